"""
Configuration Management for MapBinder Applications

🔧 Loader and logging settings:
A configuration names the platform bootstrap, the options handed to it and
how the package logs. It can be built for an environment, from a
dictionary, from a JSON or YAML file, or from ``MAPBINDER_*`` environment
variables.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
import json
import os
from pathlib import Path

from ..core.exceptions import ConfigurationError


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


BOOTSTRAP_KINDS = ("memory", "import")


def _split_list(value: Union[str, List[str], None]) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return list(value)


@dataclass
class LoaderConfig:
    """Options for the platform loader and the bootstrap it runs"""
    api_key: Optional[str] = None
    libraries: List[str] = field(default_factory=list)
    version: str = "weekly"
    bootstrap: str = "memory"
    # Import bootstrap only
    module: Optional[str] = None
    factory: str = "create_platform"
    # Memory bootstrap only
    latency: float = 0.0

    def __post_init__(self):
        self.libraries = _split_list(self.libraries)

    def options(self) -> Dict[str, Any]:
        """The subset handed to ``PlatformLoader.set_options``"""
        return {"api_key": self.api_key, "libraries": list(self.libraries), "version": self.version}


@dataclass
class LoggingConfig:
    """How the ``mapbinder`` logger is set up"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


# Per environment overrides, applied on top of the dataclass defaults
_ENVIRONMENT_DEFAULTS: Dict[Environment, Dict[str, Dict[str, Any]]] = {
    Environment.DEVELOPMENT: {"logging": {"level": "DEBUG"}},
    Environment.TESTING: {"logging": {"level": "WARNING"}, "loader": {"bootstrap": "memory"}},
    Environment.PRODUCTION: {"logging": {"level": "INFO", "file_path": "/var/log/mapbinder/app.log"}},
}

# MAPBINDER_* variable -> (section, setting, conversion)
_ENVIRONMENT_VARIABLES: Dict[str, Tuple[str, str, Callable[[str], Any]]] = {
    "MAPBINDER_API_KEY": ("loader", "api_key", str),
    "MAPBINDER_LIBRARIES": ("loader", "libraries", _split_list),
    "MAPBINDER_VERSION": ("loader", "version", str),
    "MAPBINDER_BOOTSTRAP": ("loader", "bootstrap", str.lower),
    "MAPBINDER_BOOTSTRAP_MODULE": ("loader", "module", str),
    "MAPBINDER_BOOTSTRAP_FACTORY": ("loader", "factory", str),
    "MAPBINDER_LOG_LEVEL": ("logging", "level", str.upper),
    "MAPBINDER_LOG_FILE": ("logging", "file_path", str),
}


@dataclass
class ApplicationConfig:
    """Complete MapBinder configuration"""
    environment: Environment = Environment.DEVELOPMENT
    loader: LoaderConfig = field(default_factory=LoaderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'ApplicationConfig':
        """Create the default configuration of an environment"""
        config = cls(environment=environment)
        for name, values in _ENVIRONMENT_DEFAULTS[environment].items():
            config._update(name, values)
        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ApplicationConfig':
        """
        Create configuration from dictionary.

        Raises:
            ConfigurationError: On an unknown environment, section, setting
                or bootstrap kind
        """
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(config_dict).__name__}")

        unknown = set(config_dict) - {"environment", "loader", "logging"}
        if unknown:
            raise ConfigurationError(f"Unknown configuration section(s): {', '.join(sorted(unknown))}")

        config = cls.for_environment(_parse_environment(config_dict.get("environment", "development")))
        for name in ("loader", "logging"):
            config._update(name, config_dict.get(name) or {})

        config.validate()
        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'ApplicationConfig':
        """Load configuration from a ``.json``, ``.yml`` or ``.yaml`` file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix == '.json':
            with open(config_path) as f:
                config_dict = json.load(f)
        elif config_path.suffix in ('.yml', '.yaml'):
            import yaml
            with open(config_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            raise ConfigurationError(f"Unsupported configuration file format: {config_path.suffix}")

        return cls.from_dict(config_dict)

    @classmethod
    def from_environment(cls) -> 'ApplicationConfig':
        """Create configuration from ``MAPBINDER_*`` environment variables"""
        config = cls.for_environment(_parse_environment(os.getenv('MAPBINDER_ENV', 'development')))

        for variable, (section, setting, convert) in _ENVIRONMENT_VARIABLES.items():
            value = os.getenv(variable)
            if value:
                config._update(section, {setting: convert(value)})

        config.validate()
        return config

    def _update(self, name: str, values: Dict[str, Any]) -> None:
        section = getattr(self, name)
        known = {f.name for f in fields(section)}
        for key, value in values.items():
            if key not in known:
                raise ConfigurationError(f"Unknown {name} setting: {key!r}")
            if key == "libraries":
                value = _split_list(value)
            setattr(section, key, value)

    def validate(self) -> None:
        """
        Check settings that cannot be expressed by the field types.

        Raises:
            ConfigurationError: If the bootstrap kind is unknown or the
                import bootstrap has no module
        """
        if self.loader.bootstrap not in BOOTSTRAP_KINDS:
            raise ConfigurationError(
                f"Unknown bootstrap {self.loader.bootstrap!r}, expected one of {', '.join(BOOTSTRAP_KINDS)}"
            )
        if self.loader.bootstrap == "import" and not self.loader.module:
            raise ConfigurationError("The import bootstrap requires loader.module")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary ``from_dict`` accepts"""
        return {
            "environment": self.environment.value,
            "loader": asdict(self.loader),
            "logging": asdict(self.logging),
        }


def _parse_environment(name: Any) -> Environment:
    try:
        return Environment(name)
    except ValueError as e:
        raise ConfigurationError(f"Unknown environment: {name!r}") from e


# Global configuration management
_current_config: Optional[ApplicationConfig] = None


def set_config(config: Optional[ApplicationConfig]):
    """Set the global configuration. ``None`` forgets it."""
    global _current_config
    _current_config = config


def get_config() -> ApplicationConfig:
    """Get the global configuration, reading the environment on first use"""
    global _current_config

    if _current_config is None:
        _current_config = ApplicationConfig.from_environment()

    return _current_config


def configure_from_file(config_path: Union[str, Path]) -> ApplicationConfig:
    config = ApplicationConfig.from_file(config_path)
    set_config(config)
    return config


def configure_from_dict(config_dict: Dict[str, Any]) -> ApplicationConfig:
    config = ApplicationConfig.from_dict(config_dict)
    set_config(config)
    return config


__all__ = [
    "ApplicationConfig", "Environment", "LoaderConfig", "LoggingConfig", "BOOTSTRAP_KINDS",
    "set_config", "get_config", "configure_from_file", "configure_from_dict"
]
