from __future__ import annotations

"""Prompt domain models.

A ``Prompt`` is one user turn: its input, the ordered outputs the engine
produced for it (assistant text and tool calls), its lifecycle state and the
accumulated token usage.

``PromptOutput`` and ``ToolResult`` are closed unions discriminated on the
``type`` field, so persisted prompts round-trip through ``model_validate``
without ambiguity.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import Field

from .base import BaseSchema


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PromptState(str, Enum):
    running = "running"
    waiting_for_approval = "waiting_for_approval"
    completed = "completed"


class ToolResultSuccess(BaseSchema):
    type: Literal["success"] = "success"
    output: Any = None


class ToolResultError(BaseSchema):
    type: Literal["error"] = "error"
    message: str


class ToolResultPending(BaseSchema):
    type: Literal["pending"] = "pending"
    reason: str


ToolResult = Annotated[
    Union[ToolResultSuccess, ToolResultError, ToolResultPending],
    Field(discriminator="type"),
]


class PromptOutputText(BaseSchema):
    type: Literal["text"] = "text"
    content: Optional[str] = None

    start: datetime = Field(default_factory=_utc_now)
    end: Optional[datetime] = None


class PromptOutputTool(BaseSchema):
    type: Literal["tool"] = "tool"
    call_id: str
    function: str
    input: Any = None
    result: ToolResult

    start: datetime = Field(default_factory=_utc_now)
    end: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return isinstance(self.result, ToolResultPending)


PromptOutput = Annotated[
    Union[PromptOutputText, PromptOutputTool],
    Field(discriminator="type"),
]


class PromptUsage(BaseSchema):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    reasoning_tokens: Optional[int] = None
    resolved_model: Optional[str] = None


class Prompt(BaseSchema):
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    model: str = "normal"

    input: Optional[str] = None
    output: List[PromptOutput] = Field(default_factory=list)

    state: PromptState = PromptState.running
    usage: Optional[PromptUsage] = None

    @property
    def last_output(self) -> Optional[Union[PromptOutputText, PromptOutputTool]]:
        return self.output[-1] if self.output else None


class ContextItem(BaseSchema):
    """Free-text context contributed by a plugin for one round."""

    type: str
    id: Optional[str] = None
    content: str


class ApprovalRequest(BaseSchema):
    """An outstanding confirmation request for a single tool call."""

    prompt_id: str
    tool_call_id: str
    tool_name: str
    input: Any = None
    reason: str


class ToolCallRequest(BaseSchema):
    """A tool call requested by the model, with arguments as sent by the provider."""

    call_id: str
    name: str
    arguments: Union[str, Dict[str, Any], None] = None


class PromptCheckpoint(BaseSchema):
    """Everything needed to rehydrate a completion engine identically."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    prompt_id: str

    prompt: Prompt
    history: List[Prompt] = Field(default_factory=list)
    state: Dict[str, Any] = Field(default_factory=dict)
    mode: str = "classic"
    rounds: int = 0
    max_rounds: Optional[int] = None
    deferred_calls: List[ToolCallRequest] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=_utc_now)


class PromptEventType(str, Enum):
    created = "prompt.created"
    output = "prompt.output"
    approval_requested = "prompt.approval-requested"
    completed = "prompt.completed"


class PromptEvent(BaseSchema):
    id: str = Field(default_factory=lambda: str(uuid4()))
    prompt_id: str
    user_id: str

    type: PromptEventType
    created_at: datetime = Field(default_factory=_utc_now)

    payload: Dict[str, Any] = Field(default_factory=dict)
