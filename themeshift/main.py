"""themeshift CLI entry point."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path

import click
from pydantic import ValidationError

from themeshift.agents.advisor import build_advisory_scorer
from themeshift.config import ThemeshiftSettings, load_config
from themeshift.core.logging import setup_logging
from themeshift.models.adaptation import TriggerResult
from themeshift.models.context import ContentMeta, DeviceClass, DeviceInfo
from themeshift.presentation.memory import InMemoryPresentationStore, InMemoryPresetCatalog
from themeshift.session import AdaptationSession, build_catalog

logger = logging.getLogger(__name__)


def _settings(config_path: str | None) -> ThemeshiftSettings:
    if config_path is None:
        return ThemeshiftSettings()
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError, ValidationError) as exc:
        raise click.ClickException(str(exc)) from exc


def _read_samples(path: Path) -> list[dict[str, object]]:
    samples: list[dict[str, object]] = []
    for line_no, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"{path}:{line_no}: invalid JSON ({exc.msg})") from exc
        if not isinstance(payload, dict):
            raise click.ClickException(f"{path}:{line_no}: each line must be a JSON object")
        samples.append(payload)
    return samples


def _last_timestamp(samples: list[dict[str, object]]) -> datetime | None:
    stamps = [item["timestamp_ms"] for item in samples if isinstance(item.get("timestamp_ms"), int)]
    if not stamps:
        return None
    return datetime.fromtimestamp(max(stamps) / 1000).astimezone()


@click.group()
@click.option("--log-level", default=None, help="Override observability.log_level.")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Behavioral adaptation engine tools."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level


@cli.command("rules")
@click.option("--config", "config_path", default=None, help="YAML config file.")
def rules_command(config_path: str | None) -> None:
    """List the rule catalog in evaluation order."""
    settings = _settings(config_path)
    catalog = build_catalog(settings, InMemoryPresetCatalog())
    for entry in catalog.describe():
        click.echo(f"{entry['priority']:>3}  {entry['id']:<28} [{entry['source']}] {entry['rationale']}")


@cli.command("replay")
@click.argument("samples_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--config", "config_path", default=None, help="YAML config file.")
@click.option("--now", "now_value", type=click.DateTime(), default=None, help="Evaluation time (local).")
@click.option("--device", type=click.Choice([item.value for item in DeviceClass]), default=None)
@click.option("--width", type=int, default=None, help="Viewport width in pixels.")
@click.option("--category", default="general", show_default=True)
@click.option("--strength", type=click.IntRange(0, 100), default=None)
@click.pass_context
def replay_command(
    ctx: click.Context,
    samples_path: Path,
    config_path: str | None,
    now_value: datetime | None,
    device: str | None,
    width: int | None,
    category: str,
    strength: int | None,
) -> None:
    """Feed a JSONL file of interaction samples through one manual evaluation."""
    settings = _settings(config_path)
    level = (ctx.obj or {}).get("log_level") or settings.observability.log_level
    setup_logging(level=level.upper(), json_output=settings.observability.json_logs)

    samples = _read_samples(samples_path)
    now = now_value.astimezone() if now_value is not None else _last_timestamp(samples)
    if now is None:
        raise click.ClickException("no timestamped samples and no --now given")

    advisory = build_advisory_scorer(settings.advisory.model) if settings.advisory.enabled else None
    session = AdaptationSession(
        InMemoryPresentationStore(),
        settings,
        presets=InMemoryPresetCatalog(),
        advisory=advisory,
        device=DeviceInfo(
            device_class=DeviceClass(device) if device else None,
            viewport_width=width,
        ),
        content=ContentMeta(category=category),
        clock=lambda: now,
    )
    if strength is not None:
        session.set_adaptation_strength(strength)

    for sample in samples:
        session.record(sample)
    if session.collector.dropped_count:
        click.echo(f"dropped {session.collector.dropped_count} malformed samples", err=True)

    result: TriggerResult = asyncio.run(session.trigger_now())
    if result.event is None:
        click.echo("no adaptation")
        return
    click.echo(result.event.model_dump_json(indent=2))


__all__ = ["cli"]


if __name__ == "__main__":
    cli()
