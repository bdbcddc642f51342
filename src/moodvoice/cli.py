"""Typer CLI definition for moodvoice."""

import asyncio
import json
import logging
from datetime import datetime, timedelta
from pathlib import Path

import typer

from .audio import AudioOrchestrator
from .blob import LocalBlobStore
from .cache import SQLiteCacheStore
from .config import CONFIG_PATH, generate_config, load_config
from .emotions import EmotionSelection, EmotionType, ScoredEmotion, normalize_top_emotions
from .errors import MoodVoiceError
from .journal import InMemoryJournalRepository
from .tts import TTSError, tone_from_emotions

logger = logging.getLogger(__name__)

app = typer.Typer(help="Emotion-aware speech for journal entries")


def _configure_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


def parse_emotion_arg(value: str) -> EmotionSelection:
    """Parse "TYPE:PERCENT" (e.g. "JOY:80" or "기쁨:80").

    Raises:
        typer.BadParameter: If the value is malformed
    """
    name, sep, percent = value.rpartition(":")
    if not sep or not name:
        raise typer.BadParameter(f"Expected TYPE:PERCENT, got '{value}'")
    try:
        return EmotionSelection(type=EmotionType.parse(name), percentage=int(percent))
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def _fail(message: str, error: Exception, debug: bool) -> None:
    if debug:
        typer.echo(f"Debug - {message}: {error!r}", err=True)
    else:
        typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(1) from None


@app.command()
def tone(
    emotions: list[str] = typer.Argument(..., help="Emotions as TYPE:PERCENT"),
) -> None:
    """Print the voice tone for a set of weighted emotions."""
    selections = [parse_emotion_arg(value) for value in emotions]
    typer.echo(tone_from_emotions(selections).to_json())


@app.command()
def normalize(
    emotions: list[str] = typer.Argument(..., help="Scores as TYPE:PERCENT"),
) -> None:
    """Rescale the top three emotion scores to sum to 100."""
    scores = [
        ScoredEmotion(type=s.type, percentage=s.clamped_percentage)
        for s in (parse_emotion_arg(value) for value in emotions)
    ]
    for score in normalize_top_emotions(scores):
        typer.echo(f"{score.type.name} ({score.type.description}): {score.percentage}")


@app.command()
def speak(
    text: str = typer.Argument(..., help="Text to speak"),
    emotion: list[str] | None = typer.Option(
        None, "-e", "--emotion", help="Emotion as TYPE:PERCENT (repeatable)"
    ),
    voice: str | None = typer.Option(
        None, "-v", "--voice", help="Voice (from config if omitted)"
    ),
    owner: str = typer.Option("cli", "--owner", help="Owner reference for storage"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose errors and cache activity"),
) -> None:
    """Synthesize text in an emotion-derived tone, reusing cached audio."""
    _configure_logging(debug)

    selections = [parse_emotion_arg(value) for value in emotion or []]
    config = load_config()

    try:
        orchestrator = AudioOrchestrator.from_config(config, InMemoryJournalRepository())
        descriptor = asyncio.run(
            orchestrator.get_or_create_speech(
                text,
                voice or config.tts.voice,
                tone_from_emotions(selections),
                owner,
            )
        )
    except (MoodVoiceError, TTSError) as e:
        _fail("Speech failed", e, debug)
    except (KeyError, ValueError) as e:
        _fail("Invalid request", e, debug)

    typer.echo(json.dumps(descriptor.to_dict(), ensure_ascii=False, indent=2))


@app.command("cache-stats")
def cache_stats() -> None:
    """Show cache entry counts and size."""
    config = load_config()
    store = SQLiteCacheStore(config.cache.dir)

    today = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow = today + timedelta(days=1)

    typer.echo("=== TTS Cache ===")
    typer.echo(f"Entries: {store.count()}")
    typer.echo(f"Total size: {store.total_size_bytes()} bytes")
    typer.echo(f"Created today: {store.count_created_between(today, tomorrow)}")
    typer.echo(f"Accessed today: {store.count_accessed_between(today, tomorrow)}")


@app.command("cache-stale")
def cache_stale(
    days: int | None = typer.Option(
        None, "--days", min=0, help="Idle days before an entry is stale (from config if omitted)"
    ),
    delete: bool = typer.Option(False, "--delete", help="Delete stale entries and their audio"),
) -> None:
    """List cache entries not accessed recently."""
    config = load_config()
    store = SQLiteCacheStore(config.cache.dir)

    threshold = datetime.now() - timedelta(
        days=days if days is not None else config.cache.retention_days
    )
    stale = store.find_stale_since(threshold)
    for entry in stale:
        typer.echo(
            f"{entry.key}  {entry.last_accessed_at:%Y-%m-%d %H:%M}  {entry.file_name}"
        )
    typer.echo(f"{len(stale)} stale entries")

    if delete and stale:
        blob_store = LocalBlobStore(config.storage.dir, config.storage.base_url)
        failed = 0
        for entry in stale:
            try:
                blob_store.delete(entry.audio_url)
            except OSError as e:
                failed += 1
                logger.warning(f"Could not delete audio {entry.audio_url}: {e}")
        store.delete_batch([entry.key for entry in stale])
        typer.echo(f"Deleted {len(stale)} entries")
        if failed:
            typer.echo(f"{failed} audio files could not be removed", err=True)


@app.command("init-config")
def init_config(
    path: Path = typer.Option(CONFIG_PATH, "--path", help="Where to write the config"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
) -> None:
    """Write the default configuration file."""
    if path.exists() and not force:
        typer.echo(f"Config already exists: {path} (use --force to overwrite)")
        raise typer.Exit(1)
    typer.echo(f"Wrote {generate_config(path)}")
