"""CLI commands for chronicler."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from chronicler import __logo__, __version__
from chronicler.config.loader import get_config_path, load_config
from chronicler.config.schema import Config
from chronicler.logging import get_logger, setup_logging

app = typer.Typer(
    name="chronicler",
    help=f"{__logo__} chronicler - Discord history keeper with rolling memory",
    no_args_is_help=True,
)

logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{__logo__} chronicler v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
) -> None:
    """chronicler - Discord history keeper with rolling memory."""


def _load(config_path: Path | None) -> Config:
    try:
        return load_config(config_path)
    except Exception as e:
        typer.echo(f"Error: could not load config: {e}", err=True)
        raise typer.Exit(1) from e


def _make_provider(config: Config):
    from chronicler.providers.litellm_provider import LiteLLMProvider

    return LiteLLMProvider(
        api_key=config.provider.resolved_api_key or None,
        api_base=config.provider.api_base,
        extra_headers=config.provider.extra_headers,
    )


def _make_compactor(config: Config, provider, memory_prompt: str):
    from chronicler.compaction.pipeline import CompactionPipeline
    from chronicler.memory.store import MemoryStore

    data_dir = config.data_path
    return CompactionPipeline(
        provider,
        lambda scope: MemoryStore(data_dir, scope),
        models=config.models.memory,
        instruction=memory_prompt,
        high_water=config.history.high_water,
        low_water=config.history.low_water,
        safety_settings=config.safety_settings,
    )


# ============================================================================
# Run
# ============================================================================


@app.command()
def run(
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to config.json"),
) -> None:
    """Connect to Discord and start recording."""
    from chronicler.agent.loop import ChronicleLoop
    from chronicler.agent.reply import ReplyGenerator
    from chronicler.bus.queue import EventBus
    from chronicler.channels.discord import DiscordChannel
    from chronicler.history.manager import HistoryManager
    from chronicler.ingest.enricher import RecordEnricher
    from chronicler.media.describer import MediaDescriber
    from chronicler.media.fetch import MediaFetcher
    from chronicler.memory.store import MemoryStore
    from chronicler.prompts import load_prompts

    config = _load(config_path)
    setup_logging(json_output=config.logging.json_output, level=config.logging.level)

    if not config.discord.resolved_token:
        typer.echo("Error: no Discord token configured (discord.token)", err=True)
        raise typer.Exit(1)

    reply_prompt, memory_prompt = _load_prompts_or_exit(load_prompts, config)
    data_dir = config.data_path
    bus = EventBus()
    channel = DiscordChannel(config.discord, bus)
    provider = _make_provider(config)

    describer = MediaDescriber(
        provider,
        config.models.describe,
        retry_delay=config.media.retry_delay,
        max_output_tokens=config.media.max_output_tokens,
        safety_settings=config.safety_settings,
        extras=config.media.request_extras,
    )
    enricher = RecordEnricher(
        channel,
        describer,
        MediaFetcher(timeout=config.media.fetch_timeout),
        truncate_length=config.history.truncate_length,
        settle_delay=config.media.settle_delay,
    )
    replier = ReplyGenerator(
        provider,
        channel,
        models=config.models.reply,
        instruction=reply_prompt,
        probability=config.reply.probability,
        trigger_role_ids=config.discord.trigger_role_ids,
        temperature=config.reply.temperature,
        max_output_tokens=config.reply.max_output_tokens,
        safety_settings=config.safety_settings,
    )
    loop = ChronicleLoop(
        bus,
        channel,
        HistoryManager(data_dir),
        lambda scope: MemoryStore(data_dir, scope),
        enricher,
        replier,
        _make_compactor(config, provider, memory_prompt),
        write_readable=config.storage.write_readable,
    )

    typer.echo(f"{__logo__} Starting chronicler (data: {data_dir})")

    async def _run() -> None:
        loop_task = asyncio.create_task(loop.run())
        try:
            await channel.start()
        finally:
            loop.stop()
            await loop.wait_stopped()
            await channel.stop()
            await loop_task

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        typer.echo("\nGoodbye!")


def _load_prompts_or_exit(loader, config: Config) -> tuple[str, str]:
    try:
        return loader(config.prompts)
    except OSError as e:
        typer.echo(f"Error: could not read prompt file: {e}", err=True)
        raise typer.Exit(1) from e


# ============================================================================
# Inspection
# ============================================================================


@app.command()
def status(
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to config.json"),
) -> None:
    """Show configuration and stored scopes."""
    from chronicler.history.manager import HistoryManager
    from chronicler.memory.store import MemoryStore

    config = _load(config_path)
    path = config_path or get_config_path()
    data_dir = config.data_path

    typer.echo(f"{__logo__} chronicler status\n")
    typer.echo(f"Config: {path} {'✓' if path.exists() else '✗'}")
    typer.echo(f"Data: {data_dir}")
    typer.echo(f"Discord token: {'✓' if config.discord.resolved_token else 'not set'}")
    typer.echo(f"API key: {'✓' if config.provider.resolved_api_key else 'not set'}")
    typer.echo(f"Reply models: {', '.join(config.models.reply)}")
    typer.echo(f"Memory models: {', '.join(config.models.memory)}")
    typer.echo(f"History marks: high={config.history.high_water} low={config.history.low_water}")

    scopes = HistoryManager(data_dir).list_scopes()
    if not scopes:
        typer.echo("\nNo stored scopes")
        return
    typer.echo("\nScopes:")
    for item in scopes:
        memory = MemoryStore(data_dir, item["scope"])
        typer.echo(
            f"  {item['scope']}: {item['records']} records, "
            f"memory {'✓' if memory.exists() else '✗'}, "
            f"{len(memory.list_archives())} archived"
        )


@app.command()
def render(
    scope: str = typer.Argument(..., help="Scope (guild id) to render"),
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to config.json"),
) -> None:
    """Print the transcript of a stored scope."""
    from chronicler.history.manager import HistoryManager
    from chronicler.history.render import render_history

    config = _load(config_path)
    log = HistoryManager(config.data_path).get_or_create(scope)
    if not len(log):
        typer.echo(f"No records for scope {scope}", err=True)
        raise typer.Exit(1)
    typer.echo(render_history(log), nl=False)


@app.command()
def compact(
    scope: str = typer.Argument(..., help="Scope (guild id) to compact"),
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to config.json"),
) -> None:
    """Compact a stored scope now if it is over the high-water mark."""
    from chronicler.errors import CompactionError
    from chronicler.history.manager import HistoryManager
    from chronicler.prompts import load_prompts

    config = _load(config_path)
    setup_logging(json_output=config.logging.json_output, level=config.logging.level)
    _, memory_prompt = _load_prompts_or_exit(load_prompts, config)

    log = HistoryManager(config.data_path).get_or_create(scope)
    compactor = _make_compactor(config, _make_provider(config), memory_prompt)
    if not compactor.needs_compaction(log):
        typer.echo(f"Scope {scope} has {len(log)} records; nothing to compact")
        return

    try:
        result = asyncio.run(compactor.maybe_compact(scope, log))
    except CompactionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    if result is None:
        typer.echo("Compaction already in progress")
    elif result.status == "restored":
        typer.echo(f"All memory models rate limited; {result.extracted} records restored")
    else:
        typer.echo(
            f"Compacted {result.extracted} records with {result.model}; "
            f"{result.log_length} remain (archive: {result.archive_path})"
        )


if __name__ == "__main__":
    app()
