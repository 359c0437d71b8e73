from __future__ import annotations

"""Conversion of prompts into pydantic-ai model messages.

The model sees, in order: the system prompt joined from the round's context
items, then for every prompt of the history (ending with the current one) its
input as a user prompt, its tool calls and their returns, and its final text.
Consecutive parts of the same side are merged into one message, so tool calls
of one model response travel together followed by all of their returns.
"""

from typing import Any, List, Optional, Sequence

from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelRequestPart,
    ModelResponse,
    ModelResponsePart,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)

from ..schemas.domain import Prompt, PromptOutputText, PromptOutputTool, ToolResultError, ToolResultPending


def tool_return_content(output: PromptOutputTool) -> Any:
    """Content fed back to the model for a tool output's result."""
    result = output.result
    if isinstance(result, ToolResultError):
        return result.message
    if isinstance(result, ToolResultPending):
        return {"pending": True, "reason": result.reason}
    return result.output


class _MessageBuffer:
    def __init__(self) -> None:
        self.messages: List[ModelMessage] = []

    def request(self, part: ModelRequestPart) -> None:
        last = self.messages[-1] if self.messages else None
        if isinstance(last, ModelRequest):
            self.messages[-1] = ModelRequest(parts=[*last.parts, part])
        else:
            self.messages.append(ModelRequest(parts=[part]))

    def response(self, part: ModelResponsePart) -> None:
        last = self.messages[-1] if self.messages else None
        if isinstance(last, ModelResponse):
            self.messages[-1] = ModelResponse(parts=[*last.parts, part])
        else:
            self.messages.append(ModelResponse(parts=[part]))


def _flush_tools(buffer: _MessageBuffer, pending: List[PromptOutputTool]) -> None:
    for output in pending:
        buffer.response(ToolCallPart(tool_name=output.function, args=output.input, tool_call_id=output.call_id))
    for output in pending:
        buffer.request(
            ToolReturnPart(tool_name=output.function, content=tool_return_content(output), tool_call_id=output.call_id)
        )
    pending.clear()


def build_messages(prompts: Sequence[Prompt], system_prompt: Optional[str] = None) -> List[ModelMessage]:
    """
    Build the model conversation for a round.

    Args:
        prompts: History followed by the prompt being completed.
        system_prompt: Joined context items, or None to omit the system message.

    Returns:
        The ordered pydantic-ai messages.
    """
    buffer = _MessageBuffer()
    if system_prompt:
        buffer.request(SystemPromptPart(content=system_prompt))

    for prompt in prompts:
        if prompt.input:
            buffer.request(UserPromptPart(content=prompt.input))
        tools: List[PromptOutputTool] = []
        for output in prompt.output:
            if isinstance(output, PromptOutputTool):
                tools.append(output)
                continue
            _flush_tools(buffer, tools)
            if isinstance(output, PromptOutputText) and output.content:
                buffer.response(TextPart(content=output.content))
        _flush_tools(buffer, tools)

    return buffer.messages

