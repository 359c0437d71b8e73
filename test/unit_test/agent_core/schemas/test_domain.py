from __future__ import annotations

import pytest
from pydantic import ValidationError

from agentic.agent_core.schemas.domain import (
    Prompt,
    PromptCheckpoint,
    PromptEvent,
    PromptEventType,
    PromptOutputText,
    PromptOutputTool,
    PromptState,
    ToolCallRequest,
    ToolResultError,
    ToolResultPending,
    ToolResultSuccess,
)


def test_prompt_defaults() -> None:
    prompt = Prompt(user_id="u1", input="hello")

    assert prompt.id
    assert prompt.model == "normal"
    assert prompt.state == PromptState.running
    assert prompt.output == []
    assert prompt.usage is None
    assert prompt.last_output is None


def test_outputs_are_discriminated_on_type() -> None:
    data = {
        "user_id": "u1",
        "output": [
            {
                "type": "tool",
                "call_id": "c1",
                "function": "f",
                "input": {"a": 1},
                "result": {"type": "pending", "reason": "r"},
            },
            {"type": "text", "content": "done"},
        ],
    }

    prompt = Prompt.model_validate(data)

    assert isinstance(prompt.output[0], PromptOutputTool)
    assert isinstance(prompt.output[0].result, ToolResultPending)
    assert prompt.output[0].is_pending
    assert isinstance(prompt.output[1], PromptOutputText)
    assert prompt.last_output is prompt.output[1]


def test_unknown_result_type_is_rejected() -> None:
    with pytest.raises(ValidationError):
        PromptOutputTool.model_validate(
            {"call_id": "c1", "function": "f", "result": {"type": "maybe", "message": "?"}}
        )


def test_extra_fields_are_forbidden() -> None:
    with pytest.raises(ValidationError):
        Prompt(user_id="u1", unexpected=True)


def test_tool_results_serialize_with_type_tag() -> None:
    assert ToolResultSuccess(output=1).model_dump() == {"type": "success", "output": 1}
    assert ToolResultError(message="x").model_dump() == {"type": "error", "message": "x"}


def test_checkpoint_round_trips_through_json() -> None:
    prompt = Prompt(user_id="u1", input="hi", state=PromptState.waiting_for_approval)
    prompt.output.append(
        PromptOutputTool(call_id="c1", function="f", input={}, result=ToolResultPending(reason="confirm"))
    )
    checkpoint = PromptCheckpoint(
        prompt_id=prompt.id,
        prompt=prompt,
        history=[Prompt(user_id="u1", input="earlier", state=PromptState.completed)],
        state={"skills": {"active": ["x"]}},
        mode="ops",
        rounds=3,
        max_rounds=5,
        deferred_calls=[ToolCallRequest(call_id="c2", name="g", arguments='{"a": 1}')],
    )

    restored = PromptCheckpoint.model_validate_json(checkpoint.model_dump_json())

    assert restored == checkpoint
    assert restored.prompt.output[0].is_pending
    assert restored.history[0].input == "earlier"
    assert (restored.mode, restored.max_rounds) == ("ops", 5)


def test_prompt_event_types_use_dotted_names() -> None:
    event = PromptEvent(prompt_id="p1", user_id="u1", type=PromptEventType.approval_requested)

    assert event.model_dump(mode="json")["type"] == "prompt.approval-requested"
