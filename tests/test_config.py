# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Configuration Manager Tests
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────

import json
import logging

import pytest

from worldbook_ai.core.config import (
    ALL_SELECTED,
    DEFAULT_CHAR_LIMIT,
    DEFAULT_MAX_PASSES,
    WorldbookConfig,
    _JsonFormatter,
)


class TestWorldbookConfig:
    """Tests for WorldbookConfig dataclass."""

    def test_default_values(self):
        cfg = WorldbookConfig()
        assert cfg.worldbook_enabled is True
        assert cfg.worldbook_source == "manual"
        assert cfg.selected_worldbooks == []
        assert cfg.disabled_worldbook_entries is None
        assert cfg.enabled_worldbook_entries is None
        assert cfg.worldbook_char_limit == DEFAULT_CHAR_LIMIT == 60_000
        assert cfg.max_recursion_passes == DEFAULT_MAX_PASSES == 10
        assert cfg.server_port == 8080
        assert cfg.metrics_enabled is True

    def test_custom_values(self):
        cfg = WorldbookConfig(
            worldbook_source="character", worldbook_char_limit=500, server_port=9090
        )
        assert cfg.worldbook_source == "character"
        assert cfg.worldbook_char_limit == 500
        assert cfg.server_port == 9090

    def test_to_dict(self):
        d = WorldbookConfig(selected_worldbooks=["realm"]).to_dict()
        assert isinstance(d, dict)
        assert d["selected_worldbooks"] == ["realm"]
        assert d["worldbook_char_limit"] == 60_000

    def test_to_dict_redacts_api_keys(self):
        d = WorldbookConfig(api_keys=["secret"]).to_dict()
        assert d["api_keys"] == "***"

    def test_to_dict_empty_keys_not_redacted(self):
        assert WorldbookConfig().to_dict()["api_keys"] == []

    def test_redacted_fields_not_a_field(self):
        assert "_REDACTED_FIELDS" not in WorldbookConfig.__dataclass_fields__


class TestValidation:
    """Tests for __post_init__ checks."""

    def test_unknown_source_raises(self):
        with pytest.raises(ValueError, match="worldbook_source"):
            WorldbookConfig(worldbook_source="global")

    def test_negative_char_limit_raises(self):
        with pytest.raises(ValueError, match="worldbook_char_limit"):
            WorldbookConfig(worldbook_char_limit=-1)

    def test_zero_char_limit_allowed(self):
        assert WorldbookConfig(worldbook_char_limit=0).worldbook_char_limit == 0

    def test_zero_passes_raises(self):
        with pytest.raises(ValueError, match="max_recursion_passes"):
            WorldbookConfig(max_recursion_passes=0)

    def test_bad_timeout_raises(self):
        with pytest.raises(ValueError, match="repository_timeout"):
            WorldbookConfig(repository_timeout=0)

    def test_bad_port_raises(self):
        with pytest.raises(ValueError, match="server_port"):
            WorldbookConfig(server_port=70000)

    def test_both_overlays_raise(self):
        with pytest.raises(ValueError, match="mutually exclusive"):
            WorldbookConfig(
                disabled_worldbook_entries={"realm": ["1"]},
                enabled_worldbook_entries={"realm": ["2"]},
            )

    def test_allowlist_sentinel_accepted(self):
        cfg = WorldbookConfig(enabled_worldbook_entries=ALL_SELECTED)
        assert cfg.enabled_worldbook_entries == "__ALL_SELECTED__"

    def test_allowlist_other_string_raises(self):
        with pytest.raises(ValueError, match="enabled_worldbook_entries"):
            WorldbookConfig(enabled_worldbook_entries="everything")

    def test_allowlist_list_raises(self):
        with pytest.raises(ValueError, match="must be a mapping"):
            WorldbookConfig(enabled_worldbook_entries=["realm"])

    def test_allowlist_book_value_must_be_list(self):
        with pytest.raises(ValueError, match=r"enabled_worldbook_entries\['realm'\]"):
            WorldbookConfig(enabled_worldbook_entries={"realm": 5})

    def test_allowlist_per_book_sentinel_accepted(self):
        cfg = WorldbookConfig(enabled_worldbook_entries={"realm": ALL_SELECTED})
        assert cfg.enabled_worldbook_entries == {"realm": ALL_SELECTED}

    def test_denylist_rejects_sentinel(self):
        with pytest.raises(ValueError, match="disabled_worldbook_entries"):
            WorldbookConfig(disabled_worldbook_entries=ALL_SELECTED)

    def test_denylist_book_value_must_be_list(self):
        with pytest.raises(ValueError, match="must be a list of uids"):
            WorldbookConfig(disabled_worldbook_entries={"realm": "1"})


class TestFromEnv:
    """Tests for from_env()."""

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("WORLDBOOK_WORLDBOOK_CHAR_LIMIT", "2000")
        monkeypatch.setenv("WORLDBOOK_WORLDBOOK_ENABLED", "false")
        monkeypatch.setenv("WORLDBOOK_SELECTED_WORLDBOOKS", "realm, lore")
        cfg = WorldbookConfig.from_env()
        assert cfg.worldbook_char_limit == 2000
        assert cfg.worldbook_enabled is False
        assert cfg.selected_worldbooks == ["realm", "lore"]

    def test_env_float(self, monkeypatch):
        monkeypatch.setenv("WORLDBOOK_REPOSITORY_TIMEOUT", "2.5")
        assert WorldbookConfig.from_env().repository_timeout == 2.5

    def test_env_overlay_json(self, monkeypatch):
        monkeypatch.setenv(
            "WORLDBOOK_DISABLED_WORLDBOOK_ENTRIES", json.dumps({"realm": ["4"]})
        )
        cfg = WorldbookConfig.from_env()
        assert cfg.disabled_worldbook_entries == {"realm": ["4"]}

    def test_env_allowlist_sentinel(self, monkeypatch):
        monkeypatch.setenv("WORLDBOOK_ENABLED_WORLDBOOK_ENTRIES", ALL_SELECTED)
        assert WorldbookConfig.from_env().enabled_worldbook_entries == ALL_SELECTED

    def test_env_invalid_bool_raises(self, monkeypatch):
        monkeypatch.setenv("WORLDBOOK_METRICS_ENABLED", "maybe")
        with pytest.raises(ValueError, match="WORLDBOOK_METRICS_ENABLED"):
            WorldbookConfig.from_env()

    def test_env_invalid_int_raises(self, monkeypatch):
        monkeypatch.setenv("WORLDBOOK_SERVER_PORT", "abc")
        with pytest.raises(ValueError, match="WORLDBOOK_SERVER_PORT"):
            WorldbookConfig.from_env()

    def test_env_unknown_ignored(self, monkeypatch):
        monkeypatch.setenv("WORLDBOOK_NOT_A_FIELD", "x")
        assert WorldbookConfig.from_env() == WorldbookConfig()

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("LORE_MAX_RECURSION_PASSES", "3")
        assert WorldbookConfig.from_env(prefix="LORE_").max_recursion_passes == 3


class TestFromYaml:
    """Tests for from_yaml()."""

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "worldbook_source: character\n"
            "worldbook_char_limit: 1234\n"
            "disabled_worldbook_entries:\n"
            "  realm: ['4']\n"
            "unknown_key: ignored\n",
            encoding="utf-8",
        )
        cfg = WorldbookConfig.from_yaml(str(path))
        assert cfg.worldbook_source == "character"
        assert cfg.worldbook_char_limit == 1234
        assert cfg.disabled_worldbook_entries == {"realm": ["4"]}

    def test_json_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"max_recursion_passes": 4}), encoding="utf-8")
        assert WorldbookConfig.from_yaml(str(path)).max_recursion_passes == 4

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert WorldbookConfig.from_yaml(str(path)) == WorldbookConfig()


class TestFromSettings:
    """Tests for host settings mapping."""

    def test_camel_case_keys(self):
        cfg = WorldbookConfig.from_settings(
            {
                "worldbookEnabled": True,
                "worldbookSource": "character",
                "selectedWorldbooks": ("realm",),
                "worldbookCharLimit": 100,
                "worldbookMaxRecursion": 2,
                "somethingElse": 1,
            }
        )
        assert cfg.worldbook_source == "character"
        assert cfg.selected_worldbooks == ["realm"]
        assert cfg.worldbook_char_limit == 100
        assert cfg.max_recursion_passes == 2

    def test_snake_case_keys(self):
        cfg = WorldbookConfig.from_settings({"worldbook_char_limit": 10})
        assert cfg.worldbook_char_limit == 10

    def test_single_selected_worldbook_string(self):
        cfg = WorldbookConfig.from_settings({"selectedWorldbooks": "realm"})
        assert cfg.selected_worldbooks == ["realm"]

    def test_overlay_list_rejected(self):
        with pytest.raises(ValueError, match="enabled_worldbook_entries"):
            WorldbookConfig.from_settings({"enabledWorldbookEntries": ["realm"]})

    def test_none_values_ignored(self):
        cfg = WorldbookConfig.from_settings({"worldbookCharLimit": None})
        assert cfg.worldbook_char_limit == DEFAULT_CHAR_LIMIT

    def test_with_settings_switches_overlay_shape(self):
        base = WorldbookConfig(disabled_worldbook_entries={"realm": ["1"]})
        cfg = base.with_settings({"enabledWorldbookEntries": {"realm": ["2"]}})
        assert cfg.disabled_worldbook_entries is None
        assert cfg.enabled_worldbook_entries == {"realm": ["2"]}
        # original untouched
        assert base.disabled_worldbook_entries == {"realm": ["1"]}

    def test_with_settings_both_shapes_raise(self):
        with pytest.raises(ValueError, match="mutually exclusive"):
            WorldbookConfig().with_settings(
                {
                    "disabledWorldbookEntries": {"realm": ["1"]},
                    "enabledWorldbookEntries": {"realm": ["2"]},
                }
            )

    def test_with_settings_keeps_server_fields(self):
        base = WorldbookConfig(server_port=9000, api_keys=["k"])
        cfg = base.with_settings({"worldbookSource": "character"})
        assert cfg.server_port == 9000
        assert cfg.api_keys == ["k"]


class TestLogging:
    """Tests for configure_logging() and the JSON formatter."""

    def test_configure_level(self):
        WorldbookConfig(log_level="DEBUG").configure_logging()
        assert logging.getLogger("WorldbookAI").level == logging.DEBUG
        WorldbookConfig().configure_logging()
        assert logging.getLogger("WorldbookAI").level == logging.INFO

    def test_configure_json_handler(self):
        root = logging.getLogger("WorldbookAI")
        saved = list(root.handlers)
        try:
            WorldbookConfig(log_json=True).configure_logging()
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, _JsonFormatter)
        finally:
            root.handlers = saved

    def test_json_formatter_output(self):
        record = logging.LogRecord(
            "WorldbookAI.Pipeline", logging.INFO, __file__, 1, "hello %s", ("x",), None
        )
        record.request_id = "abc"
        data = json.loads(_JsonFormatter().format(record))
        assert data["level"] == "INFO"
        assert data["logger"] == "WorldbookAI.Pipeline"
        assert data["msg"] == "hello x"
        assert data["request_id"] == "abc"
        assert "ts" in data
