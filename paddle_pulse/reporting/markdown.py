"""마크다운 리포트 빌더입니다. / Markdown report builder."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Tuple

from ..base import PaddleBaseModel
from ..risk.engine import GoNoGoResult, displayed_conditions
from ..risk.thresholds import SkillProfile
from ..units import celsius_to_fahrenheit, format_limit, meters_to_feet
from ..weather.models import HourlySample, ResolvedLocation, WeatherModel

COMPASS_POINTS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]

# (upper bound of WMO code, description)
WEATHER_CODE_BANDS = [
    (1, "Clear"),
    (3, "Partly Cloudy"),
    (49, "Fog"),
    (69, "Rain"),
    (79, "Snow"),
    (99, "Thunderstorm"),
]


class MarkdownReport(PaddleBaseModel):
    """마크다운 리포트 데이터입니다. / Markdown report data."""

    content: str
    path: Path


def describe_weather_code(code: int) -> str:
    """WMO 코드 설명입니다. / Describe a WMO weather code."""

    for upper, description in WEATHER_CODE_BANDS:
        if code <= upper:
            return description
    return "Unknown"


def compass_direction(degrees: float) -> str:
    """방위 문자열입니다. / Eight-point compass direction."""

    return COMPASS_POINTS[round(degrees / 45) % 8]


def day_label(date: str, index: int) -> str:
    """일 탭 라벨입니다. / Label for a day tab."""

    if index == 0:
        return "Today"
    if index == 1:
        return "Tomorrow"
    try:
        return datetime.strptime(date[:10], "%Y-%m-%d").strftime("%a")
    except ValueError:
        return date


def _peak(samples: Tuple[HourlySample, ...], suffix: str = "") -> str:
    if not samples:
        return "n/a"
    return f"{max(sample.value for sample in samples):.0f}{suffix}"


def _tide_range(samples: Tuple[HourlySample, ...]) -> str:
    if not samples:
        return "n/a"
    low = meters_to_feet(min(sample.value for sample in samples))
    high = meters_to_feet(max(sample.value for sample in samples))
    return f"{low:.2f} ft to {high:.2f} ft"


def format_markdown(
    location: ResolvedLocation,
    model: WeatherModel,
    day_index: int,
    profile: SkillProfile,
    result: GoNoGoResult,
) -> str:
    """마크다운 문자열을 만듭니다. / Build markdown string."""

    shown = displayed_conditions(model, day_index)
    date = (
        model.daily_forecasts[shown.day_index].date if model.daily_forecasts else ""
    )
    label = day_label(date, shown.day_index)
    verdict = "GO" if result.is_go else "NO-GO"
    current = model.current
    lines = [
        f"# Paddle Conditions: {location.display_name}",
        "",
        f"- Coordinates: {location.coordinates.latitude:.4f}, "
        f"{location.coordinates.longitude:.4f}",
        f"- Day: {label}" + (f" ({date})" if date else ""),
        f"- Skill Level: {profile.level}",
        "",
        f"## Verdict: {verdict}",
    ]
    for reason in result.reasons:
        lines.append(f"- ⚠️ {reason}")
    if result.is_go:
        lines.append("- ✅ Conditions are within your limits")
    lines.extend(
        [
            "",
            "## Conditions",
            f"- Sky: {describe_weather_code(shown.weather_code)}",
            f"- Air Temp: {celsius_to_fahrenheit(shown.air_temp_c):.0f} °F",
            f"- Water Temp: {celsius_to_fahrenheit(current.water_temp_c):.0f} °F",
            f"- Wind: {shown.wind_speed_mph:.1f} mph",
            f"- Waves: {shown.wave_height_ft:.1f} ft",
        ]
    )
    if shown.is_today:
        lines.extend(
            [
                f"- Wind Direction: {compass_direction(current.wind_direction_deg)}"
                f" ({current.wind_direction_deg:.0f}°)",
                f"- Sunrise: {current.sunrise_iso or 'n/a'}",
                f"- Sunset: {current.sunset_iso or 'n/a'}",
            ]
        )
    lines.extend(
        [
            "",
            "## Hourly Outlook",
            f"- Peak Rain Chance: "
            f"{_peak(model.hours_for_day(model.rain_series, shown.day_index), '%')}",
            f"- Peak UV Index: "
            f"{_peak(model.hours_for_day(model.uv_series, shown.day_index))}",
            f"- Tide Range: "
            f"{_tide_range(model.hours_for_day(model.tide_series, shown.day_index))}",
            "",
            "## Limits",
            f"- Max Wind Speed: {format_limit(profile.wind_limit_mph)} mph",
            f"- Max Wave Height: {format_limit(profile.wave_limit_ft)} ft",
        ]
    )
    return "\n".join(lines).strip() + "\n"


def build_report(
    location: ResolvedLocation,
    model: WeatherModel,
    day_index: int,
    profile: SkillProfile,
    result: GoNoGoResult,
    directory: Path,
) -> MarkdownReport:
    """리포트를 생성합니다. / Build markdown report file."""

    directory.mkdir(parents=True, exist_ok=True)
    shown_index = model.clamp_day(day_index)
    slug = "".join(
        char if char.isalnum() else "_" for char in location.display_name
    ).strip("_")
    path = directory / f"{slug or 'location'}_day{shown_index}_{profile.level}.md"
    content = format_markdown(location, model, day_index, profile, result)
    path.write_text(content, encoding="utf-8")
    return MarkdownReport(content=content, path=path)
