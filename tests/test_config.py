"""
Configuration and configurator tests.
"""

import json
import logging
from logging.handlers import RotatingFileHandler

import pytest
import yaml

from mapbinder.app.config import (
    ApplicationConfig,
    Environment,
    LoggingConfig,
    configure_from_dict,
    configure_from_file,
    get_config,
)
from mapbinder.app.configurator import (
    build_bootstrap,
    configure_logging,
    configure_platform,
    validate_platform_configuration,
)
from mapbinder.app.loader import get_loader
from mapbinder.core.exceptions import ConfigurationError
from mapbinder.platform.importer import ImportBootstrap
from mapbinder.platform.memory import MemoryBootstrap


@pytest.fixture
def package_logger():
    """Restore the package logger after configure_logging() changed it."""
    package_logger = logging.getLogger("mapbinder")
    level = package_logger.level
    handlers = list(package_logger.handlers)
    yield package_logger
    for handler in list(package_logger.handlers):
        if handler not in handlers:
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.setLevel(level)


class TestApplicationConfig:

    def test_environment_defaults(self):
        assert ApplicationConfig.for_environment(Environment.DEVELOPMENT).logging.level == "DEBUG"
        assert ApplicationConfig.for_environment(Environment.TESTING).logging.level == "WARNING"

        production = ApplicationConfig.for_environment(Environment.PRODUCTION)
        assert production.logging.file_path == "/var/log/mapbinder/app.log"

    def test_from_dict(self):
        config = ApplicationConfig.from_dict({
            "environment": "testing",
            "loader": {"api_key": "key", "libraries": "places, marker", "version": "beta"},
            "logging": {"level": "ERROR"},
        })

        assert config.environment is Environment.TESTING
        assert config.loader.api_key == "key"
        assert config.loader.libraries == ["places", "marker"]
        assert config.loader.version == "beta"
        assert config.logging.level == "ERROR"

    def test_from_dict_rejects_unknown_settings(self):
        with pytest.raises(ConfigurationError):
            ApplicationConfig.from_dict({"loader": {"region": "nl"}})

    def test_from_dict_rejects_unknown_sections(self):
        for leftover in ({"debug": True}, {"custom": {}}, {"loaders": {}}):
            with pytest.raises(ConfigurationError):
                ApplicationConfig.from_dict(leftover)

    def test_staging_is_not_an_environment(self):
        with pytest.raises(ConfigurationError):
            ApplicationConfig.from_dict({"environment": "staging"})

    def test_from_dict_rejects_unknown_environment(self):
        with pytest.raises(ConfigurationError):
            ApplicationConfig.from_dict({"environment": "moon"})

    def test_from_dict_rejects_unknown_bootstrap(self):
        with pytest.raises(ConfigurationError):
            ApplicationConfig.from_dict({"loader": {"bootstrap": "cdn"}})

    def test_import_bootstrap_needs_module(self):
        with pytest.raises(ConfigurationError):
            ApplicationConfig.from_dict({"loader": {"bootstrap": "import"}})

    def test_to_dict_feeds_from_dict(self):
        config = ApplicationConfig.from_dict({"environment": "production", "loader": {"api_key": "key"}})

        assert ApplicationConfig.from_dict(config.to_dict()).to_dict() == config.to_dict()

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "mapbinder.json"
        path.write_text(json.dumps({"loader": {"api_key": "from-json"}}))

        assert ApplicationConfig.from_file(path).loader.api_key == "from-json"

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "mapbinder.yaml"
        path.write_text(yaml.safe_dump({"loader": {"api_key": "from-yaml", "libraries": ["places"]}}))

        config = ApplicationConfig.from_file(path)

        assert config.loader.api_key == "from-yaml"
        assert config.loader.libraries == ["places"]

    def test_file_errors(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ApplicationConfig.from_file(tmp_path / "missing.json")

        path = tmp_path / "mapbinder.toml"
        path.write_text("")
        with pytest.raises(ConfigurationError):
            ApplicationConfig.from_file(path)

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("MAPBINDER_ENV", "production")
        monkeypatch.setenv("MAPBINDER_API_KEY", "env-key")
        monkeypatch.setenv("MAPBINDER_LIBRARIES", "places,geometry")
        monkeypatch.setenv("MAPBINDER_VERSION", "quarterly")
        monkeypatch.setenv("MAPBINDER_LOG_LEVEL", "debug")

        config = ApplicationConfig.from_environment()

        assert config.environment is Environment.PRODUCTION
        assert config.loader.api_key == "env-key"
        assert config.loader.libraries == ["places", "geometry"]
        assert config.loader.version == "quarterly"
        assert config.logging.level == "DEBUG"

    def test_from_environment_bootstrap_settings(self, monkeypatch):
        monkeypatch.delenv("MAPBINDER_ENV", raising=False)
        monkeypatch.setenv("MAPBINDER_BOOTSTRAP", "Import")
        monkeypatch.setenv("MAPBINDER_BOOTSTRAP_MODULE", "maps_sdk")
        monkeypatch.setenv("MAPBINDER_BOOTSTRAP_FACTORY", "make_platform")
        monkeypatch.setenv("MAPBINDER_LOG_FILE", "/tmp/mapbinder.log")

        config = ApplicationConfig.from_environment()

        assert config.loader.bootstrap == "import"
        assert config.loader.module == "maps_sdk"
        assert config.loader.factory == "make_platform"
        assert config.logging.file_path == "/tmp/mapbinder.log"

    def test_configure_from_file(self, tmp_path):
        path = tmp_path / "mapbinder.yaml"
        path.write_text(yaml.safe_dump({"environment": "testing", "loader": {"api_key": "from-file"}}))

        config = configure_from_file(path)

        assert get_config() is config
        assert config.to_dict()["loader"]["api_key"] == "from-file"
        assert set(config.to_dict()) == {"environment", "loader", "logging"}

    def test_global_config(self, monkeypatch):
        monkeypatch.delenv("MAPBINDER_ENV", raising=False)
        assert get_config().environment is Environment.DEVELOPMENT

        config = configure_from_dict({"environment": "testing"})
        assert get_config() is config


class TestConfigurator:

    def test_build_bootstrap(self):
        config = ApplicationConfig.from_dict({"loader": {"latency": 0.5}})
        bootstrap = build_bootstrap(config.loader)
        assert isinstance(bootstrap, MemoryBootstrap)
        assert bootstrap.latency == 0.5

        config = ApplicationConfig.from_dict({"loader": {"bootstrap": "import", "module": "maps_sdk"}})
        bootstrap = build_bootstrap(config.loader)
        assert isinstance(bootstrap, ImportBootstrap)
        assert bootstrap.module == "maps_sdk"

    @pytest.mark.asyncio
    async def test_configure_platform_registers_loader(self, package_logger):
        config = ApplicationConfig.from_dict({
            "environment": "testing",
            "loader": {"api_key": "key", "libraries": ["places"]},
        })

        platform_loader = configure_platform(config)

        assert get_loader() is platform_loader
        assert get_config() is config
        platform = await platform_loader.load()
        assert platform.libraries == ["places"]

    def test_configure_platform_with_bootstrap(self, package_logger):
        bootstrap = MemoryBootstrap()
        platform_loader = configure_platform(ApplicationConfig(), bootstrap=bootstrap, setup_logging=False)

        assert platform_loader.bootstrap is bootstrap

    def test_configure_logging(self, tmp_path, package_logger):
        log_file = tmp_path / "logs" / "mapbinder.log"
        config = LoggingConfig(level="debug", file_path=str(log_file), max_file_size=1024, backup_count=2)

        configure_logging(config)
        configure_logging(config)

        file_handlers = [h for h in package_logger.handlers if isinstance(h, RotatingFileHandler)]
        assert package_logger.level == logging.DEBUG
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024
        assert file_handlers[0].backupCount == 2

        logging.getLogger("mapbinder.tests").warning("written to file")
        file_handlers[0].flush()
        assert "written to file" in log_file.read_text()

    def test_configure_logging_rejects_unknown_level(self, package_logger):
        with pytest.raises(ConfigurationError):
            configure_logging(LoggingConfig(level="LOUD"))

    def test_validate_platform_configuration(self):
        results = validate_platform_configuration(ApplicationConfig())

        assert not results["api_key_set"]
        assert results["bootstrap"] == "memory"
        assert "No API key configured" in results["errors"]
