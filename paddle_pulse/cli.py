"""운영자용 CLI입니다. / Operator-facing CLI."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import NoReturn, Optional, Tuple

import typer

from .base import PaddlePulseError
from .config import AppConfig, load_app_config
from .location.resolver import LocationResolver
from .reporting.markdown import build_report, format_markdown
from .risk.engine import GoNoGoResult, evaluate
from .risk.thresholds import SkillLevel, profile_for
from .weather.aggregator import ForecastAggregator
from .weather.models import Coordinates, ResolvedLocation, WeatherModel

app = typer.Typer(help="Paddle Pulse CLI")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """로깅을 설정합니다. / Configure logging."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


async def _resolve_location(
    config: AppConfig,
    query: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
) -> ResolvedLocation:
    """입력으로 위치를 결정합니다. / Decide the location from inputs."""

    resolver = LocationResolver.from_config(config)
    if query:
        return await resolver.resolve_by_text(query)
    if lat is not None and lon is not None:
        coordinates = Coordinates(latitude=lat, longitude=lon)
        name = await resolver.resolve_by_coordinates(lat, lon)
        return ResolvedLocation(coordinates=coordinates, display_name=name)
    return config.default_location


async def _load_conditions(
    config: AppConfig,
    query: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
) -> Tuple[ResolvedLocation, WeatherModel]:
    location = await _resolve_location(config, query, lat, lon)
    aggregator = ForecastAggregator.from_config(config)
    model = await aggregator.aggregate(location.coordinates)
    return location, model


def _fail(exc: Exception) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


@app.command("conditions")
def conditions(
    query: Optional[str] = typer.Argument(None, help="Place name, e.g. 'Miami FL'"),
    lat: Optional[float] = typer.Option(None, help="Latitude"),
    lon: Optional[float] = typer.Option(None, help="Longitude"),
    skill: Optional[SkillLevel] = typer.Option(None, help="Skill level"),
    day: int = typer.Option(0, help="Day index, 0 = today"),
    report_dir: Optional[Path] = typer.Option(None, help="Write markdown report here"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config"),
) -> None:
    """패들 조건을 판정합니다. / Show paddle conditions and a go/no-go verdict."""

    if (lat is None) != (lon is None):
        raise typer.BadParameter("--lat and --lon must be given together")
    try:
        config = load_app_config(config_path)
    except (OSError, ValueError) as exc:
        _fail(exc)
    try:
        location, model = asyncio.run(_load_conditions(config, query, lat, lon))
    except (PaddlePulseError, ValueError) as exc:
        _fail(exc)
    profile = profile_for(skill or config.default_skill)
    result: GoNoGoResult = evaluate(model, day, profile)
    if as_json:
        payload = {
            "location": location.model_dump_jsonable(),
            "weather": model.model_dump_jsonable(),
            "skill": profile.model_dump_jsonable(),
            "result": result.model_dump_jsonable(),
        }
        typer.echo(json.dumps(payload, indent=2))
    else:
        typer.echo(format_markdown(location, model, day, profile, result))
    if report_dir is not None:
        report = build_report(location, model, day, profile, result, report_dir)
        typer.echo(f"Report saved to {report.path}")


@app.command("locate")
def locate(
    query: str,
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config"),
) -> None:
    """검색어의 좌표를 찾습니다. / Resolve a place name to coordinates."""

    try:
        config = load_app_config(config_path)
        resolver = LocationResolver.from_config(config)
        location = asyncio.run(resolver.resolve_by_text(query))
    except (PaddlePulseError, OSError, ValueError) as exc:
        _fail(exc)
    typer.echo(
        f"{location.display_name} | {location.coordinates.latitude:.4f} | "
        f"{location.coordinates.longitude:.4f}"
    )


def main() -> None:
    """CLI 엔트리 포인트입니다. / CLI entry point."""

    app()


if __name__ == "__main__":  # pragma: no cover - CLI guard
    main()
