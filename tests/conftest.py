"""
Shared fixtures for the MapBinder test suite.
"""

import asyncio

import pytest

from mapbinder.app.config import set_config
from mapbinder.app.loader import PlatformLoader, reset_loader, set_loader
from mapbinder.platform.memory import MemoryBootstrap


@pytest.fixture(autouse=True)
def fresh_registry():
    """Every test starts without a process loader or global configuration."""
    reset_loader()
    set_config(None)
    yield
    reset_loader()
    set_config(None)


@pytest.fixture
def bootstrap():
    return MemoryBootstrap()


@pytest.fixture
def platform_loader(bootstrap):
    """A registered loader backed by the in-memory platform."""
    return set_loader(PlatformLoader(api_key="test-key", bootstrap=bootstrap))


@pytest.fixture
def held_bootstrap():
    """A memory bootstrap that stays in flight until ``release`` is set."""
    return MemoryBootstrap(release=asyncio.Event())


@pytest.fixture
def held_loader(held_bootstrap):
    return set_loader(PlatformLoader(api_key="test-key", bootstrap=held_bootstrap))
