from __future__ import annotations

from typing import List

import pytest

from agentic.agent_core.services import Services
from agentic.core.config import settings as default_settings


class _Counter:
    built = 0

    def __init__(self, services: Services) -> None:
        type(self).built += 1
        self.services = services


class _Closable:
    def __init__(self, services: Services) -> None:
        self.closed: List[bool] = []

    async def aclose(self) -> None:
        self.closed.append(True)


def test_get_builds_once_and_passes_locator(services) -> None:
    _Counter.built = 0

    first = services.get(_Counter)
    second = services.get(_Counter)

    assert first is second
    assert first.services is services
    assert _Counter.built == 1


def test_set_overrides_instance(services) -> None:
    replacement = object()

    services.set(_Counter, replacement)

    assert services.has(_Counter)
    assert services.get(_Counter) is replacement


def test_has_does_not_build(services) -> None:
    assert not services.has(_Closable)


def test_settings_default_to_module_settings() -> None:
    assert Services().settings is default_settings


def test_settings_are_exposed(services, test_settings) -> None:
    assert services.settings is test_settings


@pytest.mark.asyncio
async def test_aclose_closes_instances_and_clears(services) -> None:
    closable = services.get(_Closable)
    services.get(_Counter)

    await services.aclose()

    assert closable.closed == [True]
    assert not services.has(_Closable)
    assert not services.has(_Counter)
