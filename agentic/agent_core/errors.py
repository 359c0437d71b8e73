"""Error types for the agent core.

Defines a small hierarchy of exceptions raised by the plugin registry, the
completion engine and the prompt service. Tool failures are not part of this
hierarchy: the engine converts them into ``error`` tool results instead of
raising.
"""

from __future__ import annotations


class AgenticError(Exception):
    """Base error for all agent core exceptions."""


class ApprovalRequiredError(AgenticError):
    """Raised by tool logic to ask for human confirmation instead of failing."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ApprovalNotFoundError(AgenticError):
    """Raised when approve/reject targets a tool call that is not the pending one."""

    def __init__(self, prompt_id: str, tool_call_id: str) -> None:
        super().__init__(f"No pending approval for tool call '{tool_call_id}' on prompt '{prompt_id}'")
        self.prompt_id = prompt_id
        self.tool_call_id = tool_call_id


class PluginRegistrationError(AgenticError):
    """Raised when a plugin cannot be registered (duplicate id or failing setup)."""

    def __init__(self, plugin_id: str, message: str) -> None:
        super().__init__(f"Plugin '{plugin_id}' could not be registered: {message}")
        self.plugin_id = plugin_id


class PromptNotFoundError(AgenticError):
    """Raised when no active or checkpointed prompt exists for an id."""

    def __init__(self, prompt_id: str) -> None:
        super().__init__(f"Prompt not found: '{prompt_id}'")
        self.prompt_id = prompt_id


class UnknownExecutionModeError(AgenticError):
    """Raised when a prompt is created with an unregistered execution mode."""

    def __init__(self, mode_id: str) -> None:
        super().__init__(f"Unknown execution mode: '{mode_id}'")
        self.mode_id = mode_id


class ModelNotConfiguredError(AgenticError):
    """Raised when a model key cannot be resolved to a usable provider model."""
