from __future__ import annotations

import pytest
from pydantic_ai.messages import ModelRequest, ModelResponse, TextPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.openai import OpenAIResponsesModel
from pydantic_ai.tools import ToolDefinition

from agentic.agent_core.errors import ModelNotConfiguredError
from agentic.agent_core.model_provider import ModelService
from agentic.agent_core.services import Services
from agentic.core.config import Settings


def _settings(**overrides) -> Settings:
    values = {
        "_env_file": None,
        "provider_api_key": "sk-test",
        "provider_base_url": "http://localhost:9999/v1",
        "model_normal": "gpt-4.1-mini",
        "model_high": None,
        "logfire_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


def test_resolve_builds_responses_model_from_settings() -> None:
    service = ModelService(Services(_settings(model_high="o3")))

    normal = service.resolve("normal")
    high = service.resolve("high")

    assert isinstance(normal, OpenAIResponsesModel)
    assert normal.model_name == "gpt-4.1-mini"
    assert high.model_name == "o3"
    assert service.resolve("normal") is normal


def test_high_falls_back_to_normal_model() -> None:
    service = ModelService(Services(_settings()))

    assert service.resolve("high").model_name == "gpt-4.1-mini"


def test_resolve_requires_api_key(services) -> None:
    with pytest.raises(ModelNotConfiguredError, match="AGENTIC_PROVIDER_API_KEY"):
        ModelService(services).resolve("normal")


def test_resolve_rejects_unknown_key() -> None:
    with pytest.raises(ModelNotConfiguredError, match="Unknown model key: 'huge'"):
        ModelService(Services(_settings())).resolve("huge")


def test_use_model_overrides_per_key_and_globally(services) -> None:
    service = ModelService(services)
    default = FunctionModel(lambda m, i: ModelResponse(parts=[TextPart(content="d")]), model_name="default")
    high = FunctionModel(lambda m, i: ModelResponse(parts=[TextPart(content="h")]), model_name="high")

    service.use_model(high, key="high")
    with pytest.raises(ModelNotConfiguredError):
        service.resolve("normal")

    service.use_model(default)

    assert service.resolve("high") is high
    assert service.resolve("normal") is default
    assert service.resolve("anything") is default


@pytest.mark.asyncio
async def test_request_sends_messages_and_tools(services) -> None:
    received = {}

    def respond(messages, info: AgentInfo) -> ModelResponse:
        received["messages"] = messages
        received["tools"] = [t.name for t in info.function_tools]
        received["allow_text"] = info.allow_text_output
        return ModelResponse(parts=[TextPart(content="pong")])

    service = ModelService(services)
    service.use_model(FunctionModel(respond, model_name="fn"))
    tool = ToolDefinition(name="lookup", description="Look up.", parameters_json_schema={"type": "object"})

    response = await service.request("normal", [ModelRequest(parts=[UserPromptPart(content="ping")])], [tool])

    assert response.parts[0].content == "pong"
    assert response.model_name == "fn"
    assert received["tools"] == ["lookup"]
    assert received["allow_text"] is True
    assert received["messages"][0].parts[0].content == "ping"
