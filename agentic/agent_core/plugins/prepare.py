from __future__ import annotations

"""Per-round preparation builder and its frozen snapshot."""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from pydantic_ai.tools import ToolDefinition

from ..schemas.domain import ContextItem, Prompt
from ..state import State
from ..tools.base import Tool
from .base import Plugin, PluginPrepareContext

if TYPE_CHECKING:
    from ..services import Services

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparationSnapshot:
    """Read-only aggregate of one round's tools, context and state."""

    tools: Tuple[Tool, ...] = ()
    context_items: Tuple[ContextItem, ...] = ()
    prompts: Tuple[Prompt, ...] = ()
    state: State = field(default_factory=State)

    def tool(self, name: str) -> Optional[Tool]:
        for t in self.tools:
            if t.id == name:
                return t
        return None

    @property
    def tool_ids(self) -> List[str]:
        return [t.id for t in self.tools]

    def tool_definitions(self) -> List[ToolDefinition]:
        return [t.definition() for t in self.tools]

    def system_prompt(self) -> Optional[str]:
        """Join context item contents into the system message, or None without items."""
        if not self.context_items:
            return None
        return "\n\n".join(item.content for item in self.context_items)


class PreparationBuilder:
    """Mutable accumulator threaded through every plugin's ``prepare`` hook."""

    def __init__(
        self,
        *,
        user_id: str,
        prompts: Sequence[Prompt],
        state: State,
        services: "Services",
    ) -> None:
        self.user_id = user_id
        self.prompts: Tuple[Prompt, ...] = tuple(prompts)
        self.state = state
        self.services = services
        self.tools: List[Tool] = []
        self.context_items: List[ContextItem] = []

    def for_plugin(self, plugin: Plugin) -> PluginPrepareContext:
        """Return a prepare context sharing this builder's lists and ``plugin``'s state slice."""
        return PluginPrepareContext(
            user_id=self.user_id,
            tools=self.tools,
            context_items=self.context_items,
            prompts=self.prompts,
            state=self.state.scoped(plugin),
            services=self.services,
            all_state=self.state,
        )

    def snapshot(self) -> PreparationSnapshot:
        """
        Freeze the accumulated contributions.

        Tools sharing an id keep the first contribution; later ones are dropped
        with a warning.
        """
        unique: Dict[str, Tool] = {}
        for t in self.tools:
            if t.id in unique:
                logger.warning(f"Duplicate tool id '{t.id}' ignored; keeping the first contribution")
                continue
            unique[t.id] = t
        return PreparationSnapshot(
            tools=tuple(unique.values()),
            context_items=tuple(self.context_items),
            prompts=self.prompts,
            state=self.state,
        )
