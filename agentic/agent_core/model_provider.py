"""Model provider service.

Resolves the model keys stored on prompts (``normal``, ``high``) to
pydantic-ai models and sends direct model requests on behalf of the
completion engine.

Models are built from settings as OpenAI Responses API models. Any other
pydantic-ai ``Model`` (e.g. ``FunctionModel`` in tests, or another provider's
model) can be injected with ``use_model``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Optional, Sequence

from pydantic_ai.direct import model_request
from pydantic_ai.messages import ModelMessage, ModelResponse
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.models.openai import OpenAIResponsesModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.tools import ToolDefinition

from .errors import ModelNotConfiguredError

if TYPE_CHECKING:
    from .services import Services

logger = logging.getLogger(__name__)


class ModelService:
    """Service resolving model keys and performing model requests."""

    def __init__(self, services: "Services") -> None:
        self._settings = services.settings
        self._default: Optional[Model] = None
        self._overrides: Dict[str, Model] = {}
        self._cache: Dict[str, Model] = {}

    def use_model(self, model: Model, *, key: Optional[str] = None) -> None:
        """
        Inject a model instead of building one from settings.

        Args:
            model: Any pydantic-ai model.
            key: Restrict the override to one model key. Without it the model
                serves every key.
        """
        if key is None:
            self._default = model
        else:
            self._overrides[key] = model

    def resolve(self, key: str) -> Model:
        """
        Return the pydantic-ai model for a model key.

        Args:
            key: The prompt's model key.

        Returns:
            The injected model for the key, or a model built from settings.

        Raises:
            ModelNotConfiguredError: If the key is unknown or no provider API key is set.
        """
        if key in self._overrides:
            return self._overrides[key]
        if self._default is not None:
            return self._default
        if key in self._cache:
            return self._cache[key]

        model_name = self._settings.models.resolve(key)
        if model_name is None:
            raise ModelNotConfiguredError(f"Unknown model key: '{key}'")

        provider_cfg = self._settings.provider
        api_key: Optional[str] = provider_cfg.api_key.get_secret_value() if provider_cfg.api_key else None
        if not api_key:
            raise ModelNotConfiguredError("AGENTIC_PROVIDER_API_KEY environment variable is not set")

        logger.debug(f"Creating OpenAI Responses model: {model_name} for key '{key}'")
        provider = OpenAIProvider(api_key=api_key, base_url=provider_cfg.base_url)
        model = OpenAIResponsesModel(model_name, provider=provider)
        self._cache[key] = model
        return model

    async def request(
        self,
        key: str,
        messages: Sequence[ModelMessage],
        tools: Sequence[ToolDefinition] = (),
    ) -> ModelResponse:
        """
        Send one request to the model resolved for ``key``.

        Args:
            key: The prompt's model key.
            messages: The full conversation so far.
            tools: Function tools the model may call.

        Returns:
            The model's response.
        """
        model = self.resolve(key)
        params = ModelRequestParameters(function_tools=list(tools), allow_text_output=True)
        return await model_request(model, list(messages), model_request_parameters=params)
