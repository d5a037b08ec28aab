"""
Application Configurator

Centralized setup for MapBinder applications: logging, the platform
bootstrap and the process-wide loader, in the right order.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from ..core.exceptions import ConfigurationError
from ..platform.base import PlatformBootstrap
from ..platform.importer import ImportBootstrap
from ..platform.memory import MemoryBootstrap
from .config import ApplicationConfig, LoaderConfig, LoggingConfig, get_config, set_config
from .loader import PlatformLoader, set_loader

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "mapbinder"


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Configure the ``mapbinder`` logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        config: Logging settings (defaults to the global configuration)

    Returns:
        The package logger
    """
    config = config or get_config().logging
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {config.level!r}")
    package_logger.setLevel(level)

    for handler in list(package_logger.handlers):
        if getattr(handler, "_mapbinder_handler", False):
            package_logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(config.format)
    handlers = [logging.StreamHandler()]
    if config.file_path:
        Path(config.file_path).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._mapbinder_handler = True
        package_logger.addHandler(handler)

    return package_logger


def build_bootstrap(config: LoaderConfig) -> PlatformBootstrap:
    """
    Create the bootstrap named by the loader configuration.

    Raises:
        ConfigurationError: If the bootstrap kind is unknown
    """
    if config.bootstrap == "memory":
        return MemoryBootstrap(latency=config.latency)
    if config.bootstrap == "import":
        if not config.module:
            raise ConfigurationError("The import bootstrap requires loader.module")
        return ImportBootstrap(config.module, factory=config.factory)
    raise ConfigurationError(f"Unknown bootstrap: {config.bootstrap!r}")


def configure_platform(
    config: Optional[ApplicationConfig] = None,
    bootstrap: Optional[PlatformBootstrap] = None,
    setup_logging: bool = True,
) -> PlatformLoader:
    """
    Configure MapBinder and register the process loader.

    Call it once at startup, before creating any map entities.

    Args:
        config: Application configuration (defaults to the global one)
        bootstrap: Bootstrap to use instead of the configured one
        setup_logging: Whether to configure the package logger

    Returns:
        The registered PlatformLoader

    Example:
        ```python
        from mapbinder import ApplicationConfig, Map, configure_platform

        loader = configure_platform(ApplicationConfig.from_file("mapbinder.yaml"))
        city = Map(center=(52.37, 4.90), zoom=12)
        await city.show()
        ```
    """
    config = config or get_config()
    set_config(config)

    if setup_logging:
        configure_logging(config.logging)

    logger.info(f"🚀 Configuring MapBinder ({config.environment.value})")

    bootstrap = bootstrap or build_bootstrap(config.loader)
    platform_loader = PlatformLoader(config.loader.options(), bootstrap=bootstrap)
    set_loader(platform_loader)

    logger.info(f"✅ Platform loader registered ({type(bootstrap).__name__})")
    return platform_loader


def validate_platform_configuration(config: Optional[ApplicationConfig] = None) -> dict:
    """
    Check that a configuration can load the platform.

    Returns:
        Dictionary with validation results
    """
    config = config or get_config()
    results = {
        'api_key_set': bool(config.loader.api_key and config.loader.api_key.strip()),
        'bootstrap': config.loader.bootstrap,
        'errors': []
    }

    if not results['api_key_set']:
        results['errors'].append("No API key configured")

    try:
        config.validate()
    except ConfigurationError as e:
        results['errors'].append(str(e))

    return results


__all__ = [
    "configure_logging",
    "build_bootstrap",
    "configure_platform",
    "validate_platform_configuration",
]
