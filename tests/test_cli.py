from pathlib import Path

import pytest
from typer.testing import CliRunner

import chronicler.cli.commands as commands_module
from chronicler.cli.commands import app
from chronicler.config.schema import Config, HistoryConfig, StorageConfig
from chronicler.history.manager import HistoryManager
from chronicler.history.record import Record
from chronicler.memory.store import MemoryStore
from chronicler.providers.base import LLMProvider, LLMResponse

runner = CliRunner()


class _StaticProvider(LLMProvider):
    def __init__(self, response: LLMResponse) -> None:
        super().__init__()
        self.response = response

    async def generate(self, model, content, **kwargs) -> LLMResponse:
        return self.response


@pytest.fixture
def config(tmp_path: Path, monkeypatch) -> Config:
    cfg = Config(
        storage=StorageConfig(data_dir=str(tmp_path / "data")),
        history=HistoryConfig(high_water=4, low_water=1),
    )
    monkeypatch.setattr(commands_module, "load_config", lambda path=None: cfg)
    monkeypatch.setattr(commands_module, "setup_logging", lambda **kwargs: None)
    return cfg


def _seed(config: Config, scope: str, n: int) -> None:
    log = HistoryManager(config.data_path).get_or_create(scope)
    for i in range(n):
        log.append(Record(id=str(i), channel="general", author="alice", created="2024-01-01 12:00", body=f"m{i}"))


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "chronicler v" in result.output


def test_status_lists_scopes(config: Config) -> None:
    _seed(config, "guild-1", 3)
    MemoryStore(config.data_path, "guild-1").replace("memory")

    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert "guild-1: 3 records" in result.output
    assert "1 archived" in result.output


def test_status_without_scopes(config: Config) -> None:
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert "No stored scopes" in result.output


def test_render_prints_transcript(config: Config) -> None:
    _seed(config, "guild-1", 2)
    result = runner.invoke(app, ["render", "guild-1"])
    assert result.exit_code == 0
    assert "[MESSAGES]\n#general\n[alice] 2024-01-01 12:00\nm0\n---\n" in result.output


def test_render_unknown_scope_fails(config: Config) -> None:
    result = runner.invoke(app, ["render", "nope"])
    assert result.exit_code == 1


def test_compact_below_high_water(config: Config) -> None:
    _seed(config, "guild-1", 4)
    result = runner.invoke(app, ["compact", "guild-1"])
    assert result.exit_code == 0
    assert "nothing to compact" in result.output


def test_compact_replaces_memory(config: Config, monkeypatch) -> None:
    _seed(config, "guild-1", 5)
    monkeypatch.setattr(commands_module, "_make_provider", lambda cfg: _StaticProvider(LLMResponse(content="summary")))

    result = runner.invoke(app, ["compact", "guild-1"])
    assert result.exit_code == 0
    assert "Compacted 4 records" in result.output
    assert MemoryStore(config.data_path, "guild-1").read() == "summary"
    assert len(HistoryManager(config.data_path).get_or_create("guild-1")) == 1


def test_compact_restored_on_rate_limits(config: Config, monkeypatch) -> None:
    _seed(config, "guild-1", 5)
    monkeypatch.setattr(
        commands_module, "_make_provider", lambda cfg: _StaticProvider(LLMResponse(status="rate_limited")),
    )

    result = runner.invoke(app, ["compact", "guild-1"])
    assert result.exit_code == 0
    assert "4 records restored" in result.output
    assert len(HistoryManager(config.data_path).get_or_create("guild-1")) == 5


def test_run_requires_token(config: Config) -> None:
    result = runner.invoke(app, ["run"])
    assert result.exit_code == 1
