from __future__ import annotations

"""Per-plugin state carried across rounds and persisted between turns.

``State`` maps a plugin id to an opaque JSON-compatible value. Each plugin owns
the (de)serialization of its slice through ``Plugin.parse_state`` and
``Plugin.dump_state``, so the bag never needs a schema covering every plugin.
"""

import copy
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

if TYPE_CHECKING:
    from .plugins.base import Plugin


class State:
    """Namespace-per-plugin bag of serializable values."""

    def __init__(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self._states: Dict[str, Any] = copy.deepcopy(dict(initial or {}))

    def get(self, plugin: "Plugin") -> Any:
        """
        Return the typed state slice for ``plugin``.

        Returns:
            The value parsed by the plugin's ``state_model``, or None when the
            plugin has no stored state.
        """
        raw = self._states.get(plugin.id)
        if raw is None:
            return None
        return plugin.parse_state(raw)

    def set(self, plugin: "Plugin", value: Any) -> None:
        """
        Replace the state slice for ``plugin``.

        Raises:
            pydantic.ValidationError: If ``value`` does not match the plugin's state model.
        """
        self._states[plugin.id] = plugin.dump_state(value)

    def clear(self, plugin: "Plugin") -> None:
        self._states.pop(plugin.id, None)

    def scoped(self, plugin: "Plugin") -> "PluginState":
        """Return an accessor bound to ``plugin``'s slice."""
        return PluginState(self, plugin)

    def to_dict(self) -> Dict[str, Any]:
        """Return a deep copy of the raw serialized slices."""
        return copy.deepcopy(self._states)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "State":
        return cls(data)

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._states


class PluginState:
    """State accessor scoped to a single plugin."""

    def __init__(self, state: State, plugin: "Plugin") -> None:
        self._state = state
        self._plugin = plugin

    def get(self) -> Any:
        return self._state.get(self._plugin)

    def set(self, value: Any) -> None:
        self._state.set(self._plugin, value)

    def clear(self) -> None:
        self._state.clear(self._plugin)
