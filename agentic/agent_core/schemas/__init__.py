"""Schemas and DTOs for the agent core."""

from .domain import (
    ApprovalRequest,
    ContextItem,
    Prompt,
    PromptCheckpoint,
    PromptEvent,
    PromptEventType,
    PromptOutput,
    PromptOutputText,
    PromptOutputTool,
    PromptState,
    PromptUsage,
    ToolCallRequest,
    ToolResult,
    ToolResultError,
    ToolResultPending,
    ToolResultSuccess,
)

__all__ = [
    "ApprovalRequest",
    "ContextItem",
    "Prompt",
    "PromptCheckpoint",
    "PromptEvent",
    "PromptEventType",
    "PromptOutput",
    "PromptOutputText",
    "PromptOutputTool",
    "PromptState",
    "PromptUsage",
    "ToolCallRequest",
    "ToolResult",
    "ToolResultError",
    "ToolResultPending",
    "ToolResultSuccess",
]
