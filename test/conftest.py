from __future__ import annotations

from typing import Any, Callable, Iterable, List, Tuple, Union

import httpx
import pytest
from pydantic_ai.messages import ModelMessage, ModelResponse
from pydantic_ai.models.function import AgentInfo, FunctionModel

from agentic.agent_core.model_provider import ModelService
from agentic.agent_core.services import Services
from agentic.core.config import Settings

Step = Union[ModelResponse, Callable[[List[ModelMessage], AgentInfo], ModelResponse]]


class ScriptedModel:
    """Replays scripted model responses through a pydantic-ai ``FunctionModel``."""

    def __init__(self, *steps: Step, repeat_last: bool = False) -> None:
        self._steps = list(steps)
        self._repeat_last = repeat_last
        self.calls: List[Tuple[List[ModelMessage], AgentInfo]] = []
        self.model = FunctionModel(self.respond, model_name="scripted")

    def respond(self, messages: List[ModelMessage], info: AgentInfo) -> ModelResponse:
        self.calls.append((list(messages), info))
        if not self._steps:
            raise AssertionError("Model called more often than scripted")
        step = self._steps[0] if self._repeat_last and len(self._steps) == 1 else self._steps.pop(0)
        return step(messages, info) if callable(step) else step

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def tool_names(self, call: int = -1) -> List[str]:
        """Tool names offered to the model on a given call."""
        return [t.name for t in self.calls[call][1].function_tools]


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    allowed_prefixes: Iterable[str] = (
        "http://mock",
        "https://mock",
        "http://localhost",
        "http://127.0.0.1",
    )

    orig_sync = httpx._client.Client.request
    orig_async = httpx._client.AsyncClient.request

    def _is_allowed(url_str: str) -> bool:
        return any(url_str.startswith(p) for p in allowed_prefixes)

    def offline_sync(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return orig_sync(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard: {url_str}")

    async def offline_async(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return await orig_async(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard (async): {url_str}")

    monkeypatch.setattr(httpx._client.Client, "request", offline_sync, raising=True)
    monkeypatch.setattr(httpx._client.AsyncClient, "request", offline_async, raising=True)


@pytest.fixture()
def test_settings() -> Settings:
    """Settings isolated from the developer's environment and ``.env`` file."""
    return Settings(
        _env_file=None,
        provider_api_key=None,
        provider_base_url=None,
        model_normal="gpt-4.1-mini",
        model_high=None,
        max_rounds=25,
        logfire_enabled=False,
    )


@pytest.fixture()
def services(test_settings: Settings) -> Services:
    return Services(test_settings)


@pytest.fixture()
def script(services: Services) -> Callable[..., ScriptedModel]:
    """Install a ``ScriptedModel`` as the model behind every model key."""

    def _script(*steps: Step, repeat_last: bool = False) -> ScriptedModel:
        scripted = ScriptedModel(*steps, repeat_last=repeat_last)
        services.get(ModelService).use_model(scripted.model)
        return scripted

    return _script


@pytest.fixture()
def collect() -> Callable[..., Any]:
    """Return a handler factory recording the arguments of every call."""

    def _collect() -> Tuple[List[Any], Callable[..., None]]:
        seen: List[Any] = []

        def handler(*args: Any) -> None:
            seen.append(args if len(args) > 1 else args[0])

        return seen, handler

    return _collect
