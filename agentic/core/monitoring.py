"""
Monitoring and Tracing Configuration Module.

This module provides integration with Pydantic Logfire for tracing prompt
execution, including:
- Pydantic AI model requests
- HTTPX traffic to the model provider
- Prompt lifecycle records (completion, model usage)

Tracing is opt-in: nothing is sent unless ``LOGFIRE_ENABLED`` is set and a
token is configured. The record helpers are no-ops until
``initialize_logfire`` succeeded.
"""

import logging
from typing import Optional

from agentic.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

_logfire_active = False


def is_logfire_active() -> bool:
    """Return whether Logfire was initialized in this process."""
    return _logfire_active


def initialize_logfire(settings: Optional[Settings] = None) -> bool:
    """
    Initialize Pydantic Logfire for monitoring and tracing.

    Sets up Logfire with automatic instrumentation for:
    - Pydantic AI model calls
    - HTTPX HTTP requests

    Args:
        settings: Settings to read the Logfire configuration from. Defaults to
            the module-level settings instance.

    Returns:
        True when Logfire is active after the call.
    """
    global _logfire_active

    cfg = (settings or default_settings).logfire
    if not cfg.enabled:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if cfg.token is None:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return False

    if _logfire_active:
        return True

    import logfire

    logfire.configure(
        token=cfg.token.get_secret_value(),
        service_name=cfg.service_name,
        environment=cfg.environment,
    )

    try:
        logfire.instrument_pydantic_ai()
        logger.info("Logfire: Pydantic AI instrumentation enabled")
    except Exception as e:
        logger.warning(f"Failed to instrument Pydantic AI: {e}")

    try:
        logfire.instrument_httpx()
        logger.info("Logfire: HTTPX instrumentation enabled")
    except Exception as e:
        logger.warning(f"Failed to instrument HTTPX: {e}")

    _logfire_active = True
    logger.info(f"Logfire monitoring initialized: service={cfg.service_name}, environment={cfg.environment}")
    return True


def log_model_call(prompt_id: str, model: Optional[str], input_tokens: int, output_tokens: int) -> None:
    """
    Record a model request with usage metrics.

    Args:
        prompt_id: The prompt the request belongs to
        model: The resolved provider model name
        input_tokens: Tokens sent to the model
        output_tokens: Tokens produced by the model
    """
    if not _logfire_active:
        return

    import logfire

    logfire.info(
        "Model call completed",
        prompt_id=prompt_id,
        model=model,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
    )


def log_prompt_completion(prompt_id: str, user_id: str, outputs: int, rounds: int) -> None:
    """
    Record the completion of a prompt.

    Args:
        prompt_id: The unique identifier of the prompt
        user_id: The owning user
        outputs: Number of outputs the prompt produced
        rounds: Number of model rounds used
    """
    if not _logfire_active:
        return

    import logfire

    logfire.info("Prompt completed", prompt_id=prompt_id, user_id=user_id, outputs=outputs, rounds=rounds)
