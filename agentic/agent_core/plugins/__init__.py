"""Plugin composition.

 Plugins contribute tools, context items and a typed state slice every round.

 - ``Plugin``: base class with no-op ``setup``/``prepare`` hooks.
 - ``PluginRegistry``: ordered collection; runs ``setup`` at registration and
   ``prepare`` every round.
 - ``PreparationSnapshot``: the frozen result of one round's preparation.
 - Built-ins: ``TimePlugin``, ``StaticToolsPlugin``, ``SkillsPlugin``.
 """

from .base import Plugin, PluginPrepareContext, PluginSetupContext
from .builtin import Skill, SkillCatalog, SkillsPlugin, SkillsState, StaticToolsPlugin, TimePlugin
from .prepare import PreparationBuilder, PreparationSnapshot
from .registry import PluginRegistry

__all__ = [
    "Plugin",
    "PluginPrepareContext",
    "PluginSetupContext",
    "PluginRegistry",
    "PreparationBuilder",
    "PreparationSnapshot",
    "Skill",
    "SkillCatalog",
    "SkillsPlugin",
    "SkillsState",
    "StaticToolsPlugin",
    "TimePlugin",
]
