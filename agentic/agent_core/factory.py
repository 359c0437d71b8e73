from __future__ import annotations

"""Convenience factories for wiring the agent core.

This module contains small helpers to build a ``Services`` locator from
settings and a ready-to-use ``PromptService`` with plugins registered.

The intent is to keep application wiring and tests concise, while still
allowing advanced deployments to register their own services, execution modes
and checkpoint repositories on the returned objects.
"""

import logging
from typing import Optional, Sequence

from agentic.core.config import Settings, settings as default_settings
from agentic.core.logging_config import setup_logging
from agentic.core.monitoring import initialize_logfire

from .plugins.base import Plugin
from .plugins.registry import PluginRegistry
from .repos.interfaces import PromptCheckpointRepository
from .service import PromptService
from .services import Services

logger = logging.getLogger(__name__)


def build_services(settings: Optional[Settings] = None) -> Services:
    """Construct a ``Services`` locator bound to ``settings``."""
    return Services(settings or default_settings)


async def build_prompt_service(
    *,
    settings: Optional[Settings] = None,
    plugins: Sequence[Plugin] = (),
    checkpoints: Optional[PromptCheckpointRepository] = None,
    services: Optional[Services] = None,
    configure_logging: bool = True,
) -> PromptService:
    """
    Build a ``PromptService`` with the given plugins registered in order.

    Args:
        settings: Settings for a new locator; ignored when ``services`` is given.
        plugins: Plugins registered on the locator's ``PluginRegistry``.
        checkpoints: Optional repository receiving prompt checkpoints.
        services: An existing locator to build on.
        configure_logging: Configure process logging from the locator's settings;
            disable when the application configures logging itself.

    Returns:
        The prompt service.

    Raises:
        PluginRegistrationError: If a plugin cannot be registered.
    """
    services = services or build_services(settings)
    if configure_logging:
        cfg = services.settings
        setup_logging(
            log_level=cfg.log_level,
            log_format=cfg.log_format,
            enable_file=cfg.enable_file_logging,
            log_file_dir=cfg.log_file_dir,
        )
    initialize_logfire(services.settings)

    await services.get(PluginRegistry).register(*plugins)
    prompts = services.get(PromptService)
    if checkpoints is not None:
        prompts.use_checkpoints(checkpoints)
    logger.debug(f"Prompt service ready with {len(services.get(PluginRegistry))} plugins")
    return prompts
