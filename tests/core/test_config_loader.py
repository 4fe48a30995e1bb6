"""
Tests for ConfigLoader
"""

import pytest

from statebus.core.config_loader import ConfigLoader
from statebus.core.exceptions import ConfigNotFoundError, ConfigValidationError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run from an empty directory so no default config file is found."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(ConfigLoader, "DEFAULT_CONFIG_PATHS", [tmp_path / "statebus.yaml"])
    return tmp_path


class TestLoading:
    """Test defaults, files and overrides."""

    def test_defaults_without_file(self, isolated):
        loader = ConfigLoader()
        config = loader.load()

        assert config["commands"]["unhandled"] == "warn"
        assert loader.get("registry.strict") is False
        assert loader.get("services.settings.refresh_interval") == 30

    def test_file_merged_over_defaults(self, isolated):
        path = isolated / "custom.yaml"
        path.write_text(
            "commands:\n"
            "  unhandled: raise\n"
            "services:\n"
            "  settings:\n"
            "    refresh_interval: 60\n"
        )

        loader = ConfigLoader(path)
        loader.load()

        assert loader.get("commands.unhandled") == "raise"
        assert loader.get("services.settings.refresh_interval") == 60
        assert loader.get("services.settings.min_refresh_interval") == 5

    def test_default_location_is_searched(self, isolated):
        (isolated / "statebus.yaml").write_text("registry:\n  strict: true\n")

        loader = ConfigLoader()
        loader.load()

        assert loader.get("registry.strict") is True

    def test_overrides_win(self, isolated):
        path = isolated / "custom.yaml"
        path.write_text("commands:\n  unhandled: raise\n")

        loader = ConfigLoader(path, overrides={"commands": {"unhandled": "ignore"}})
        loader.load()

        assert loader.get("commands.unhandled") == "ignore"

    def test_env_substitution(self, isolated, monkeypatch):
        monkeypatch.setenv("STATEBUS_POLICY", "ignore")
        monkeypatch.delenv("STATEBUS_NAME", raising=False)
        path = isolated / "custom.yaml"
        path.write_text(
            "commands:\n"
            "  unhandled: ${STATEBUS_POLICY}\n"
            "general:\n"
            "  name: ${STATEBUS_NAME:-overlay}\n"
        )

        loader = ConfigLoader(path)
        loader.load()

        assert loader.get("commands.unhandled") == "ignore"
        assert loader.get("general.name") == "overlay"

    def test_empty_file_uses_defaults(self, isolated):
        path = isolated / "empty.yaml"
        path.write_text("")

        assert ConfigLoader(path).load()["commands"]["unhandled"] == "warn"


class TestErrors:
    """Test configuration errors."""

    def test_missing_explicit_file(self, isolated):
        with pytest.raises(ConfigNotFoundError):
            ConfigLoader(isolated / "nope.yaml").load()

    def test_invalid_yaml(self, isolated):
        path = isolated / "broken.yaml"
        path.write_text("commands: [unclosed\n")

        with pytest.raises(ConfigValidationError):
            ConfigLoader(path).load()

    def test_top_level_must_be_mapping(self, isolated):
        path = isolated / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigValidationError):
            ConfigLoader(path).load()

    def test_bad_values_reported_together(self, isolated):
        loader = ConfigLoader(overrides={
            "commands": {"unhandled": "shout"},
            "registry": {"strict": "yes", "service_order": "a,b"},
            "general": {"log_level": "LOUD"},
        })

        with pytest.raises(ConfigValidationError) as excinfo:
            loader.load()

        assert len(excinfo.value.errors) == 4

    @pytest.mark.parametrize("latency", ["fast", -1, True, 2.5])
    def test_latency_must_be_non_negative_int(self, isolated, latency):
        loader = ConfigLoader(overrides={"services": {"content": {"latency_ms": latency}}})

        with pytest.raises(ConfigValidationError, match="latency_ms"):
            loader.load()

    @pytest.mark.parametrize("key", ["refresh_interval", "min_refresh_interval", "max_refresh_interval"])
    @pytest.mark.parametrize("value", ["30", True, None])
    def test_intervals_must_be_ints(self, isolated, key, value):
        loader = ConfigLoader(overrides={"services": {"settings": {key: value}}})

        with pytest.raises(ConfigValidationError) as excinfo:
            loader.load()

        assert excinfo.value.errors == [
            f"services.settings.{key} must be an integer, got {value!r}"
        ]

    @pytest.mark.parametrize("settings", [
        {"refresh_interval": 1},
        {"refresh_interval": 301},
        {"min_refresh_interval": 60, "max_refresh_interval": 10},
        {"min_refresh_interval": 0, "refresh_interval": 0},
    ])
    def test_interval_range(self, isolated, settings):
        loader = ConfigLoader(overrides={"services": {"settings": settings}})

        with pytest.raises(ConfigValidationError, match="must be between"):
            loader.load()

    def test_interval_from_env_is_a_string(self, isolated, monkeypatch):
        monkeypatch.setenv("STATEBUS_REFRESH", "45")
        path = isolated / "custom.yaml"
        path.write_text(
            "services:\n"
            "  settings:\n"
            "    refresh_interval: ${STATEBUS_REFRESH}\n"
        )

        with pytest.raises(ConfigValidationError, match="refresh_interval must be an integer"):
            ConfigLoader(path).load()

    def test_use_live_data_must_be_bool(self, isolated):
        loader = ConfigLoader(overrides={"services": {"settings": {"use_live_data": "yes"}}})

        with pytest.raises(ConfigValidationError, match="use_live_data must be a boolean"):
            loader.load()

    def test_edges_of_interval_range_accepted(self, isolated):
        loader = ConfigLoader(overrides={"services": {"settings": {
            "refresh_interval": 5,
            "min_refresh_interval": 5,
            "max_refresh_interval": 5,
        }}})

        assert loader.load()["services"]["settings"]["refresh_interval"] == 5


class TestAccess:
    """Test dot-notation access."""

    def test_get_default(self, isolated):
        loader = ConfigLoader()
        loader.load()

        assert loader.get("no.such.key", "fallback") == "fallback"
        assert loader.get("commands.unhandled.deeper") is None

    def test_set_creates_sections(self, isolated):
        loader = ConfigLoader()
        loader.load()

        loader.set("components.item_list.title", "Buckets")

        assert loader.get("components.item_list.title") == "Buckets"
