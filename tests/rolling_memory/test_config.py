"""Tests for configuration models and YAML loading."""

from unittest.mock import patch

import pytest
import yaml
from pydantic import ValidationError

from rolling_memory.config import (
    DEFAULT_PROMPT,
    InjectionPosition,
    InjectionRole,
    MemoryConfig,
    TierConfig,
)
from rolling_memory.config_utils import (
    load_config,
    load_text_file_with_guess_encoding,
    read_yaml,
    save_config,
    validate_config,
)


class TestMemoryConfig:
    def test_defaults(self):
        config = MemoryConfig()
        assert config.auto_summarize is True
        assert config.include_world_info is False
        assert config.block_chat is False
        assert config.message_length_threshold == 10
        assert config.summary_maximum_length == 20
        assert config.include_user_messages is False
        assert config.include_names is False
        assert config.prompt == DEFAULT_PROMPT
        assert config.short_term.context_limit == 0.1
        assert config.long_term.context_limit == 0.1
        assert config.short_term.position == InjectionPosition.IN_PROMPT
        assert config.short_term.role == InjectionRole.SYSTEM
        assert "{{short_memory}}" in config.short_term.template
        assert "{{long_memory}}" in config.long_term.template

    @pytest.mark.parametrize("limit", [-0.1, 1.5])
    def test_context_limit_bounds(self, limit):
        with pytest.raises(ValidationError):
            TierConfig(template="x", context_limit=limit)

    def test_negative_depth_rejected(self):
        with pytest.raises(ValidationError):
            TierConfig(template="x", depth=-1)

    def test_with_default_prompt(self):
        config = MemoryConfig(prompt="Custom", include_names=True)
        restored = config.with_default_prompt()
        assert restored.prompt == DEFAULT_PROMPT
        assert restored.include_names is True
        assert config.prompt == "Custom"


class TestConfigFiles:
    def test_read_yaml_substitutes_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MEMORY_PROMPT", "From env")
        path = tmp_path / "memory.yaml"
        path.write_text("prompt: ${MEMORY_PROMPT}\nother: ${UNSET_VAR_XYZ}\n")

        data = read_yaml(str(path))

        assert data["prompt"] == "From env"
        assert data["other"] == "${UNSET_VAR_XYZ}"

    def test_read_yaml_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert read_yaml(str(path)) == {}

    def test_read_yaml_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_yaml(str(tmp_path / "missing.yaml"))

    def test_load_config(self, tmp_path):
        path = tmp_path / "memory.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "block_chat": True,
                    "short_term": {"template": "{{short_memory}}", "context_limit": 0.2},
                    "long_term": {"template": "{{long_memory}}", "position": "in_chat"},
                }
            )
        )

        config = load_config(path)

        assert config.block_chat is True
        assert config.short_term.context_limit == 0.2
        assert config.long_term.position == InjectionPosition.IN_CHAT

    def test_invalid_config_raises(self, tmp_path):
        path = tmp_path / "memory.yaml"
        path.write_text("message_length_threshold: many\n")
        with pytest.raises(ValidationError):
            load_config(path)

    def test_validate_config_range_error(self):
        with pytest.raises(ValidationError):
            validate_config({"short_term": {"template": "x", "context_limit": 2}})

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "saved.yaml"
        config = MemoryConfig(include_names=True, refresh_debounce_seconds=0.5)

        save_config(config, path)

        assert load_config(path) == config

    def test_guess_encoding(self, tmp_path):
        path = tmp_path / "utf8.yaml"
        path.write_bytes("prompt: résumé\n".encode("utf-8"))
        assert "résumé" in load_text_file_with_guess_encoding(str(path))

    def test_utf8_bom_stripped(self, tmp_path):
        path = tmp_path / "bom.yaml"
        path.write_bytes("block_chat: true\n".encode("utf-8-sig"))

        assert load_text_file_with_guess_encoding(str(path)) == "block_chat: true\n"
        assert load_config(path).block_chat is True

    def test_legacy_encoding_falls_back_to_chardet(self, tmp_path):
        path = tmp_path / "latin1.yaml"
        path.write_bytes(
            (
                "prompt: Résumez le récit en une phrase très brève, "
                "à la troisième personne, sans détails superflus.\n"
            ).encode("latin-1")
        )
        with patch(
            "rolling_memory.config_utils.chardet.detect",
            return_value={"encoding": "ISO-8859-1"},
        ) as detect:
            content = load_text_file_with_guess_encoding(str(path))

        detect.assert_called_once()
        assert "Résumez" in content
