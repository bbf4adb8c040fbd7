import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from chronicler.config.loader import load_config, save_config
from chronicler.config.schema import Config, HistoryConfig, _resolve_env
from chronicler.prompts import DEFAULT_MEMORY_PROMPT, DEFAULT_REPLY_PROMPT, load_prompts


class TestResolveEnv:
    def test_dollar_var(self, monkeypatch) -> None:
        monkeypatch.setenv("CHRONICLER_TEST_KEY", "resolved")
        assert _resolve_env("$CHRONICLER_TEST_KEY") == "resolved"

    def test_braced_var(self, monkeypatch) -> None:
        monkeypatch.setenv("CHRONICLER_TEST_KEY", "resolved")
        assert _resolve_env("${CHRONICLER_TEST_KEY}") == "resolved"

    def test_unset_var_returns_input(self, monkeypatch) -> None:
        monkeypatch.delenv("CHRONICLER_MISSING", raising=False)
        assert _resolve_env("$CHRONICLER_MISSING") == "$CHRONICLER_MISSING"

    def test_literal_value(self) -> None:
        assert _resolve_env("plain-token") == "plain-token"
        assert _resolve_env("") == ""


def test_defaults() -> None:
    config = Config()
    assert config.history.high_water == 2000
    assert config.history.low_water == 1000
    assert config.history.truncate_length == 50
    assert config.reply.probability == pytest.approx(1 / 400)
    assert config.reply.temperature == 0.9
    assert config.models.reply == [
        "gemini/gemini-2.5-pro", "gemini/gemini-2.5-flash", "gemini/gemini-2.5-flash-lite",
    ]
    assert "gemini/gemini-2.5-flash-lite" not in config.models.memory
    assert config.media.max_output_tokens == 200
    assert config.media.retry_delay == 5.0
    assert {s["threshold"] for s in config.safety_settings} == {"OFF"}


def test_camel_case_keys_and_env_resolution(monkeypatch) -> None:
    monkeypatch.setenv("DISCORD_TOKEN_TEST", "tok")
    config = Config.model_validate({
        "discord": {"token": "$DISCORD_TOKEN_TEST", "triggerRoleIds": ["42"]},
        "history": {"highWater": 100, "lowWater": 10, "truncateLength": 20},
        "storage": {"dataDir": "/tmp/chron", "writeReadable": False},
    })
    assert config.discord.resolved_token == "tok"
    assert config.discord.trigger_role_ids == ["42"]
    assert config.history.high_water == 100
    assert config.data_path == Path("/tmp/chron")
    assert config.storage.write_readable is False


@pytest.mark.parametrize(
    "values",
    [
        {"highWater": 10, "lowWater": 10},
        {"highWater": 10, "lowWater": 20},
        {"highWater": 10, "lowWater": -1},
        {"truncateLength": 3},
    ],
)
def test_invalid_history_marks_rejected(values) -> None:
    with pytest.raises(ValidationError):
        HistoryConfig.model_validate(values)


def test_load_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "absent.json")
    assert config.history.high_water == 2000


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    config = Config()
    config.reply.probability = 0.5
    save_config(config, path)

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert "safetySettings" in raw
    assert raw["history"]["highWater"] == 2000
    assert load_config(path).reply.probability == 0.5


def test_load_invalid_json_raises(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(json.JSONDecodeError):
        load_config(path)


def test_prompts_default_and_from_file(tmp_path: Path) -> None:
    config = Config()
    assert load_prompts(config.prompts) == (DEFAULT_REPLY_PROMPT, DEFAULT_MEMORY_PROMPT)

    reply_file = tmp_path / "reply.txt"
    reply_file.write_text("Be brief.\n", encoding="utf-8")
    config.prompts.reply_path = str(reply_file)
    reply, memory = load_prompts(config.prompts)
    assert reply == "Be brief.\n"
    assert memory == DEFAULT_MEMORY_PROMPT
