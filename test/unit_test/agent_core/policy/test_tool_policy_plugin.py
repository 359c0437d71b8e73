from __future__ import annotations

import pytest
from pydantic import BaseModel, ValidationError
from pydantic_ai.messages import ModelResponse, TextPart, ToolCallPart

from agentic.agent_core.plugins.builtin import StaticToolsPlugin
from agentic.agent_core.plugins.registry import PluginRegistry
from agentic.agent_core.policy.models import ToolPolicy
from agentic.agent_core.policy.plugin import ToolPolicyPlugin
from agentic.agent_core.runtime.engine import CompletionEngine
from agentic.agent_core.runtime.models import CompletionOptions
from agentic.agent_core.schemas.domain import Prompt, PromptState, ToolResultPending, ToolResultSuccess
from agentic.agent_core.state import State
from agentic.agent_core.tools.base import Tool, ToolInput


class _Empty(BaseModel):
    pass


async def _ok(tool_input: ToolInput) -> str:
    return "ok"


def _tools(*ids: str) -> StaticToolsPlugin:
    return StaticToolsPlugin("provider", [Tool(id=i, description=i, input_schema=_Empty, invoke=_ok) for i in ids])


def test_tool_policy_allows_by_default() -> None:
    policy = ToolPolicy()

    assert policy.allows("anything")
    assert not policy.requires_approval("anything")


def test_tool_policy_block_list_wins_over_allow_list() -> None:
    policy = ToolPolicy(allowed_tools={"a", "b"}, blocked_tools={"b"})

    assert policy.allows("a")
    assert not policy.allows("b")
    assert not policy.allows("c")


def test_tool_policy_forbids_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        ToolPolicy(allowed_capabilities={"x"})


@pytest.mark.asyncio
async def test_policy_prunes_tools_of_earlier_plugins(services) -> None:
    registry = PluginRegistry(services)
    await registry.register(
        _tools("read_file", "write_file", "delete_file"),
        ToolPolicyPlugin(ToolPolicy(allowed_tools={"read_file", "write_file"}, blocked_tools={"write_file"})),
    )

    snapshot = await registry.prepare(user_id="u1", prompts=[Prompt(user_id="u1")], state=State())

    assert snapshot.tool_ids == ["read_file"]


@pytest.mark.asyncio
async def test_policy_does_not_see_later_plugins(services) -> None:
    registry = PluginRegistry(services)
    await registry.register(ToolPolicyPlugin(ToolPolicy(blocked_tools={"late"})), _tools("late"))

    snapshot = await registry.prepare(user_id="u1", prompts=[Prompt(user_id="u1")], state=State())

    assert snapshot.tool_ids == ["late"]


@pytest.mark.asyncio
async def test_policy_marks_tools_for_approval(services, script) -> None:
    await services.get(PluginRegistry).register(
        _tools("deploy"), ToolPolicyPlugin(ToolPolicy(approval_required_tools={"deploy"}))
    )
    script(
        ModelResponse(parts=[ToolCallPart(tool_name="deploy", args={}, tool_call_id="c1")]),
        ModelResponse(parts=[TextPart(content="deployed")]),
    )
    engine = CompletionEngine(CompletionOptions(services=services, user_id="u1", input="ship it"))

    prompt = await engine.run()

    assert prompt.state == PromptState.waiting_for_approval
    assert prompt.output[0].result == ToolResultPending(reason="Tool 'deploy' requires approval by policy")

    prompt = await engine.approve("c1")

    assert prompt.state == PromptState.completed
    assert prompt.output[0].result == ToolResultSuccess(output="ok")
