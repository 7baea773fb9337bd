"""Tests for flowbuilder.config."""

from flowbuilder.config import BuilderConfig, read_env_defaults
from flowbuilder.config import builder_config


class TestBuilderConfig:
    def test_defaults(self, monkeypatch):
        for env_var in BuilderConfig._ENV_MAP.values():
            monkeypatch.delenv(env_var, raising=False)
        config = BuilderConfig.get_default_instance()
        assert config == BuilderConfig()
        assert config.storage_path() is None

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("WORKFLOW_API_BASE_URL", "https://flows.example.com")
        monkeypatch.setenv("WORKFLOW_COMPANY_ID", "12")
        monkeypatch.setenv("WORKFLOW_BRANCH_OFFSET_X", "320.5")
        monkeypatch.setenv("WORKFLOW_STORAGE_DIR", "/tmp/flows")
        config = BuilderConfig.get_default_instance()
        assert config.api_base_url == "https://flows.example.com"
        assert config.company_id == 12
        assert config.branch_offset_x == 320.5
        assert str(config.storage_path()) == "/tmp/flows"

    def test_invalid_value_keeps_default(self, monkeypatch):
        monkeypatch.setenv("WORKFLOW_UNDO_LIMIT", "lots")
        assert BuilderConfig.get_default_instance().undo_limit == 50

    def test_singleton(self, monkeypatch):
        monkeypatch.setattr(builder_config, "_config_instance", None)
        first = builder_config.get_builder_config()
        assert builder_config.get_builder_config() is first


class TestReadEnvDefaults:
    def test_bool_coercion(self, monkeypatch):
        from dataclasses import dataclass

        @dataclass
        class Flags:
            enabled: bool = False

        monkeypatch.setenv("FLAG_ENABLED", "yes")
        assert read_env_defaults({"enabled": "FLAG_ENABLED"}, Flags.__dataclass_fields__) == {"enabled": True}

    def test_unknown_field_ignored(self, monkeypatch):
        monkeypatch.setenv("SOMETHING", "1")
        assert read_env_defaults({"missing": "SOMETHING"}, BuilderConfig.__dataclass_fields__) == {}
