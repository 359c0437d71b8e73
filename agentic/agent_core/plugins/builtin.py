from __future__ import annotations

"""Built-in plugins.

- ``TimePlugin`` tells the model the current time every round.
- ``StaticToolsPlugin`` contributes a fixed tool bundle with optional instructions.
- ``SkillsPlugin`` lets the model switch named skills on and off; an active
  skill contributes its instruction and tools every round.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..tools.base import Tool, ToolInput
from .base import Plugin, PluginPrepareContext, PluginSetupContext

if TYPE_CHECKING:
    from ..services import Services

logger = logging.getLogger(__name__)


class TimePlugin(Plugin):
    """Contributes a ``current-time`` context item with the current UTC time."""

    id = "time"
    name = "Time"
    description = "Tells the model the current date and time."

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def prepare(self, ctx: PluginPrepareContext) -> None:
        now = self._clock()
        ctx.add_context(f"The current time is {now.isoformat()}", type="current-time")


class StaticToolsPlugin(Plugin):
    """Contributes the same tools, and optionally the same instruction, every round."""

    def __init__(self, id: str, tools: Sequence[Tool], *, instruction: Optional[str] = None) -> None:
        self.id = id
        self._tools = list(tools)
        self._instruction = instruction

    async def prepare(self, ctx: PluginPrepareContext) -> None:
        if self._instruction:
            ctx.add_context(self._instruction, type="instruction", id=self.id)
        ctx.tools.extend(self._tools)


@dataclass(frozen=True)
class Skill:
    """A named bundle of instruction and tools the model can activate on demand."""

    id: str
    description: str
    instruction: Optional[str] = None
    tools: Sequence[Tool] = field(default_factory=tuple)


class SkillCatalog:
    """Service holding the skills known to the process."""

    def __init__(self, services: "Services") -> None:
        self._skills: Dict[str, Skill] = {}

    def register(self, *skills: Skill) -> None:
        for skill in skills:
            if skill.id in self._skills:
                logger.warning(f"Replacing already registered skill '{skill.id}'")
            self._skills[skill.id] = skill

    def get(self, skill_id: str) -> Optional[Skill]:
        return self._skills.get(skill_id)

    @property
    def skills(self) -> List[Skill]:
        return list(self._skills.values())


class SkillsState(BaseModel):
    active: List[str] = Field(default_factory=list)


class SkillIdInput(BaseModel):
    id: str = Field(description="Id of the skill, as returned by skills_list.")


class SkillSummary(BaseModel):
    id: str
    description: str


class SkillListOutput(BaseModel):
    skills: List[SkillSummary]


class SkillToggleOutput(BaseModel):
    success: bool
    active: List[str]


class _NoInput(BaseModel):
    pass


class SkillsPlugin(Plugin):
    """Exposes the ``SkillCatalog`` to the model through list/activate/deactivate tools."""

    id = "skills"
    name = "Skills"
    description = "Activate and deactivate skills."
    state_model = SkillsState

    def __init__(self, *skills: Skill) -> None:
        self._initial = skills

    async def setup(self, ctx: PluginSetupContext) -> None:
        if self._initial:
            ctx.services.get(SkillCatalog).register(*self._initial)

    def _active(self, tool_input: ToolInput) -> List[str]:
        current = tool_input.state.get(self)
        return list(current.active) if current else []

    async def _list(self, tool_input: ToolInput) -> SkillListOutput:
        active = self._active(tool_input)
        catalog = tool_input.services.get(SkillCatalog)
        return SkillListOutput(
            skills=[SkillSummary(id=s.id, description=s.description) for s in catalog.skills if s.id not in active]
        )

    async def _activate(self, tool_input: ToolInput) -> SkillToggleOutput:
        skill_id = tool_input.input.id
        if tool_input.services.get(SkillCatalog).get(skill_id) is None:
            raise ValueError(f"Unknown skill '{skill_id}'")
        active = self._active(tool_input)
        if skill_id not in active:
            active.append(skill_id)
        tool_input.state.set(self, SkillsState(active=active))
        return SkillToggleOutput(success=True, active=active)

    async def _deactivate(self, tool_input: ToolInput) -> SkillToggleOutput:
        active = [s for s in self._active(tool_input) if s != tool_input.input.id]
        tool_input.state.set(self, SkillsState(active=active))
        return SkillToggleOutput(success=True, active=active)

    def tools(self) -> List[Tool]:
        return [
            Tool(
                id="skills_list",
                description="Get a list of available skills that are not active yet.",
                input_schema=_NoInput,
                output_schema=SkillListOutput,
                invoke=self._list,
            ),
            Tool(
                id="skills_activate",
                description="Activate a skill.",
                input_schema=SkillIdInput,
                output_schema=SkillToggleOutput,
                invoke=self._activate,
            ),
            Tool(
                id="skills_deactivate",
                description="Deactivate a skill.",
                input_schema=SkillIdInput,
                output_schema=SkillToggleOutput,
                invoke=self._deactivate,
            ),
        ]

    async def prepare(self, ctx: PluginPrepareContext) -> None:
        catalog = ctx.services.get(SkillCatalog)
        current = ctx.state.get()
        for skill_id in current.active if current else []:
            skill = catalog.get(skill_id)
            if skill is None:
                logger.warning(f"Active skill '{skill_id}' is not registered; skipping")
                continue
            if skill.instruction:
                ctx.add_context(skill.instruction, type="skill-instruction", id=skill.id)
            ctx.tools.extend(skill.tools)
        ctx.tools.extend(self.tools())
