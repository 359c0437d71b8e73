from __future__ import annotations

"""Service locator shared by plugins, tools and the runtime.

``Services`` lazily builds one instance per service class. A service class is
any class whose constructor accepts the ``Services`` instance, which lets
services resolve their own dependencies on demand:

.. code-block:: python

    class WeatherService:
        def __init__(self, services: Services) -> None:
            self._api_key = services.settings.provider_api_key

    weather = services.get(WeatherService)

Tests and applications replace a service with ``set`` before first use.
"""

import logging
from typing import Any, Dict, Optional, Type, TypeVar

from agentic.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Services:
    """Lazily-instantiated registry of process services."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """
        Initialize the service locator.

        Args:
            settings: Engine settings exposed to services. Defaults to the
                module-level settings loaded from the environment.
        """
        self._settings = settings or default_settings
        self._instances: Dict[type, Any] = {}

    @property
    def settings(self) -> Settings:
        """Return the settings this locator was built with."""
        return self._settings

    def get(self, service_cls: Type[T]) -> T:
        """
        Return the instance registered for ``service_cls``, building it on first use.

        Args:
            service_cls: The service class. Its constructor receives this locator.

        Returns:
            The shared service instance.
        """
        if service_cls not in self._instances:
            logger.debug(f"Instantiating service {service_cls.__name__}")
            self._instances[service_cls] = service_cls(self)
        return self._instances[service_cls]

    def set(self, service_cls: Type[T], instance: T) -> None:
        """
        Register an explicit instance for ``service_cls``.

        Args:
            service_cls: The lookup key.
            instance: The instance returned by subsequent ``get`` calls.
        """
        self._instances[service_cls] = instance

    def has(self, service_cls: type) -> bool:
        """Check whether an instance exists for ``service_cls`` without building it."""
        return service_cls in self._instances

    async def aclose(self) -> None:
        """Close every instantiated service that exposes an async ``aclose``."""
        for instance in list(self._instances.values()):
            close = getattr(instance, "aclose", None)
            if callable(close):
                await close()
        self._instances.clear()
