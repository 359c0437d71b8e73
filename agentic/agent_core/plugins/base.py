from __future__ import annotations

"""Plugin protocol and hook contexts.

A plugin is a named bundle of tools, a typed state slice and per-round
preparation logic. Plugins are registered in order on the
``PluginRegistry``; every round the registry calls each plugin's ``prepare``
hook in that order with a context sharing one mutable tool list and one
context-item list, so a plugin sees everything earlier plugins contributed.

Subclasses override only the hooks they need:

- ``setup`` runs exactly once, at registration, before any ``prepare``. Raising
  from it fails the registration.
- ``prepare`` runs every round.

``state_model`` declares the pydantic model of the plugin's slice in the
prompt ``State``; the plugin owns its (de)serialization.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional, Tuple, Type

from pydantic import BaseModel

from ..schemas.domain import ContextItem, Prompt
from ..tools.base import Tool

if TYPE_CHECKING:
    from ..services import Services
    from ..state import PluginState, State


@dataclass(frozen=True)
class PluginSetupContext:
    """Context passed to ``Plugin.setup``."""

    services: "Services"


@dataclass(frozen=True)
class PluginPrepareContext:
    """Context passed to ``Plugin.prepare`` for one round.

    Attributes
    ----------
    user_id:
        The user owning the prompt.
    tools:
        Tools contributed so far this round. Append to contribute, remove to prune.
    context_items:
        Context items contributed so far this round.
    prompts:
        Read-only history, ending with the prompt being completed.
    state:
        Accessor for this plugin's state slice.
    services:
        The service locator.
    """

    user_id: str
    tools: List[Tool]
    context_items: List[ContextItem]
    prompts: Tuple[Prompt, ...]
    state: "PluginState"
    services: "Services"
    all_state: "State"

    def state_of(self, plugin: "Plugin") -> Any:
        """Read another plugin's state slice."""
        return self.all_state.get(plugin)

    def add_context(self, content: str, *, type: str = "context", id: Optional[str] = None) -> None:
        self.context_items.append(ContextItem(type=type, id=id, content=content))


class Plugin:
    """Base class for plugins. Both hooks are no-ops by default."""

    id: str = ""
    name: Optional[str] = None
    description: Optional[str] = None
    state_model: Optional[Type[BaseModel]] = None

    async def setup(self, ctx: PluginSetupContext) -> None:
        return None

    async def prepare(self, ctx: PluginPrepareContext) -> None:
        return None

    def parse_state(self, raw: Any) -> Any:
        """Deserialize a stored slice; returns it unchanged without a ``state_model``."""
        if self.state_model is None:
            return raw
        return self.state_model.model_validate(raw)

    def dump_state(self, value: Any) -> Any:
        """Serialize a slice to its JSON form, validating it against ``state_model``."""
        if self.state_model is None:
            return value
        return self.state_model.model_validate(value).model_dump(mode="json")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
