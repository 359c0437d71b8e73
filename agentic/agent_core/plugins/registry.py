from __future__ import annotations

"""Plugin registry.

The registry holds the ordered plugin collection for a process. Registration
runs each plugin's ``setup`` hook once; every round, ``prepare`` walks the
plugins in registration order and freezes their contributions into a
``PreparationSnapshot``.

The completion engine calls ``prepare`` at the start of every round.
"""

import logging
from typing import Iterator, List, Optional, Sequence

from ..errors import PluginRegistrationError
from ..schemas.domain import Prompt
from ..services import Services
from ..state import State
from .base import Plugin, PluginSetupContext
from .prepare import PreparationBuilder, PreparationSnapshot

logger = logging.getLogger(__name__)


class PluginRegistry:
    """
    Ordered collection of registered plugins.

    Notes:
        - Plugin ids are unique; registering a duplicate id fails.
        - A plugin is added only after its ``setup`` hook succeeds.
    """

    def __init__(self, services: Services) -> None:
        """Initialize an empty registry bound to ``services``."""
        self._services = services
        self._plugins: List[Plugin] = []

    async def register(self, *plugins: Plugin) -> None:
        """
        Register plugins in order, running each one's ``setup`` hook.

        Args:
            plugins: Plugins to append to the registration order.

        Raises:
            PluginRegistrationError: If a plugin id is empty or already registered,
                or if the plugin's ``setup`` hook raises.
        """
        for plugin in plugins:
            if not plugin.id:
                raise PluginRegistrationError(repr(plugin), "plugin id must not be empty")
            if self.has(plugin.id):
                raise PluginRegistrationError(plugin.id, "a plugin with this id is already registered")
            try:
                await plugin.setup(PluginSetupContext(services=self._services))
            except Exception as e:
                logger.error(f"Setup failed for plugin '{plugin.id}': {e}", exc_info=True)
                raise PluginRegistrationError(plugin.id, f"setup failed: {e}") from e
            self._plugins.append(plugin)
            logger.info(f"Registered plugin '{plugin.id}'")

    def has(self, plugin_id: str) -> bool:
        return any(p.id == plugin_id for p in self._plugins)

    def get(self, plugin_id: str) -> Optional[Plugin]:
        for p in self._plugins:
            if p.id == plugin_id:
                return p
        return None

    @property
    def plugins(self) -> List[Plugin]:
        return list(self._plugins)

    def __iter__(self) -> Iterator[Plugin]:
        return iter(list(self._plugins))

    def __len__(self) -> int:
        return len(self._plugins)

    async def prepare(self, *, user_id: str, prompts: Sequence[Prompt], state: State) -> PreparationSnapshot:
        """
        Build one round's snapshot by running every plugin's ``prepare`` hook in order.

        Args:
            user_id: The user owning the prompt.
            prompts: History followed by the prompt being completed.
            state: The prompt's state bag; plugins read and write their slices on it.

        Returns:
            The frozen snapshot of all contributions.
        """
        builder = PreparationBuilder(user_id=user_id, prompts=prompts, state=state, services=self._services)
        for plugin in self._plugins:
            await plugin.prepare(builder.for_plugin(plugin))
        snapshot = builder.snapshot()
        logger.debug(
            f"Prepared snapshot: {len(snapshot.tools)} tools, {len(snapshot.context_items)} context items"
        )
        return snapshot
