"""
Core utilities and configuration for the agentic core.

This package provides shared functionality: settings, logging configuration
and optional Logfire monitoring.
"""

from agentic.core.config import Settings, settings
from agentic.core.logging_config import get_logger, setup_logging
from agentic.core.monitoring import initialize_logfire

__all__ = ["Settings", "settings", "get_logger", "setup_logging", "initialize_logfire"]
