"""
Application Layer

Everything process-wide: the platform loader and its registry, the
configuration and the configurator that wires them together.

Key components:
- loader: single-flight platform bootstrap and readiness events
- config: environment-aware configuration
- configurator: logging and loader setup
"""

from .loader import (
    LoadState,
    LoaderEvents,
    LoaderOptions,
    PlatformLoader,
    get_loader,
    set_loader,
    reset_loader,
)
from .config import ApplicationConfig, Environment, LoaderConfig, LoggingConfig, get_config, set_config
from .configurator import configure_logging, configure_platform, validate_platform_configuration

__all__ = [
    'LoadState',
    'LoaderEvents',
    'LoaderOptions',
    'PlatformLoader',
    'get_loader',
    'set_loader',
    'reset_loader',
    'ApplicationConfig',
    'Environment',
    'LoaderConfig',
    'LoggingConfig',
    'get_config',
    'set_config',
    'configure_logging',
    'configure_platform',
    'validate_platform_configuration',
]
