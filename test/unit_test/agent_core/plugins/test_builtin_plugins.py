from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import BaseModel
from pydantic_ai.messages import ModelResponse, TextPart, ToolCallPart

from agentic.agent_core.plugins.builtin import (
    Skill,
    SkillCatalog,
    SkillsPlugin,
    SkillsState,
    StaticToolsPlugin,
    TimePlugin,
)
from agentic.agent_core.plugins.registry import PluginRegistry
from agentic.agent_core.runtime.engine import CompletionEngine
from agentic.agent_core.runtime.models import CompletionOptions
from agentic.agent_core.schemas.domain import Prompt, PromptState, ToolResultError, ToolResultSuccess
from agentic.agent_core.state import State
from agentic.agent_core.tools.base import Tool, ToolInput


class _CityInput(BaseModel):
    city: str


async def _forecast(tool_input: ToolInput) -> str:
    return f"sunny in {tool_input.input.city}"


WEATHER = Skill(
    id="weather",
    description="Look up weather forecasts.",
    instruction="Answer weather questions with the forecast tool.",
    tools=(Tool(id="forecast", description="Get a forecast.", input_schema=_CityInput, invoke=_forecast),),
)


def _call(name: str, args, call_id: str) -> ModelResponse:
    return ModelResponse(parts=[ToolCallPart(tool_name=name, args=args, tool_call_id=call_id)])


@pytest.mark.asyncio
async def test_time_plugin_adds_current_time(services) -> None:
    fixed = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    registry = PluginRegistry(services)
    await registry.register(TimePlugin(clock=lambda: fixed))

    snapshot = await registry.prepare(user_id="u1", prompts=[Prompt(user_id="u1")], state=State())

    assert len(snapshot.context_items) == 1
    assert snapshot.context_items[0].type == "current-time"
    assert snapshot.context_items[0].content == "The current time is 2024-05-01T12:30:00+00:00"


@pytest.mark.asyncio
async def test_static_tools_plugin_contributes_tools_and_instruction(services) -> None:
    registry = PluginRegistry(services)
    await registry.register(StaticToolsPlugin("weather-tools", WEATHER.tools, instruction="Prefer metric units."))

    snapshot = await registry.prepare(user_id="u1", prompts=[Prompt(user_id="u1")], state=State())

    assert snapshot.tool_ids == ["forecast"]
    assert snapshot.context_items[0].id == "weather-tools"
    assert snapshot.context_items[0].content == "Prefer metric units."


@pytest.mark.asyncio
async def test_skills_plugin_registers_skills_on_setup(services) -> None:
    await PluginRegistry(services).register(SkillsPlugin(WEATHER))

    assert services.get(SkillCatalog).get("weather") is WEATHER


@pytest.mark.asyncio
async def test_inactive_skills_only_expose_management_tools(services) -> None:
    registry = PluginRegistry(services)
    await registry.register(SkillsPlugin(WEATHER))

    snapshot = await registry.prepare(user_id="u1", prompts=[Prompt(user_id="u1")], state=State())

    assert snapshot.tool_ids == ["skills_list", "skills_activate", "skills_deactivate"]
    assert snapshot.context_items == ()


@pytest.mark.asyncio
async def test_active_skill_contributes_instruction_and_tools(services) -> None:
    registry = PluginRegistry(services)
    plugin = SkillsPlugin(WEATHER)
    await registry.register(plugin)
    state = State()
    state.set(plugin, SkillsState(active=["weather"]))

    snapshot = await registry.prepare(user_id="u1", prompts=[Prompt(user_id="u1")], state=state)

    assert snapshot.tool_ids[0] == "forecast"
    assert snapshot.context_items[0].type == "skill-instruction"
    assert snapshot.context_items[0].content == WEATHER.instruction


@pytest.mark.asyncio
async def test_model_activates_skill_and_uses_it_next_round(services, script) -> None:
    await services.get(PluginRegistry).register(SkillsPlugin(WEATHER))
    scripted = script(
        _call("skills_list", {}, "c1"),
        _call("skills_activate", {"id": "weather"}, "c2"),
        _call("forecast", {"city": "Oslo"}, "c3"),
        ModelResponse(parts=[TextPart(content="It is sunny in Oslo.")]),
    )
    engine = CompletionEngine(CompletionOptions(services=services, user_id="u1", input="Weather in Oslo?"))

    prompt = await engine.run()

    assert prompt.state == PromptState.completed
    assert prompt.output[0].result == ToolResultSuccess(
        output={"skills": [{"id": "weather", "description": "Look up weather forecasts."}]}
    )
    assert prompt.output[1].result == ToolResultSuccess(output={"success": True, "active": ["weather"]})
    assert prompt.output[2].result == ToolResultSuccess(output="sunny in Oslo")
    assert "forecast" not in scripted.tool_names(1)
    assert "forecast" in scripted.tool_names(2)
    assert engine.state.to_dict() == {"skills": {"active": ["weather"]}}


@pytest.mark.asyncio
async def test_activating_unknown_skill_is_an_error(services, script) -> None:
    await services.get(PluginRegistry).register(SkillsPlugin(WEATHER))
    script(_call("skills_activate", {"id": "nope"}, "c1"), ModelResponse(parts=[TextPart(content="no such skill")]))
    engine = CompletionEngine(CompletionOptions(services=services, user_id="u1", input="activate nope"))

    prompt = await engine.run()

    assert isinstance(prompt.output[0].result, ToolResultError)
    assert "Unknown skill 'nope'" in prompt.output[0].result.message


@pytest.mark.asyncio
async def test_deactivate_removes_skill(services, script) -> None:
    plugin = SkillsPlugin(WEATHER)
    await services.get(PluginRegistry).register(plugin)
    script(_call("skills_deactivate", {"id": "weather"}, "c1"), ModelResponse(parts=[TextPart(content="done")]))
    engine = CompletionEngine(
        CompletionOptions(services=services, user_id="u1", input="stop", state={"skills": {"active": ["weather"]}})
    )

    await engine.run()

    assert engine.state.get(plugin) == SkillsState(active=[])
