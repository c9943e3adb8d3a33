"""공통 테스트 픽스처입니다. / Shared test fixtures."""

from __future__ import annotations

from typing import Any, Callable, Dict, List

import pytest

from paddle_pulse.config import FeedSettings

HOURS = [f"2025-06-0{1 + hour // 24}T{hour % 24:02d}:00" for hour in range(48)]
DATES = ["2025-06-01", "2025-06-02", "2025-06-03"]


def feed_settings(name: str, base_url: str, path: str, retries: int = 0) -> FeedSettings:
    """샘플 피드 설정입니다. / Build sample feed settings."""

    return FeedSettings(
        name=name,
        base_url=base_url,
        path=path,
        timeout_seconds=1.0,
        retries=retries,
    )


@pytest.fixture
def make_settings() -> Callable[..., FeedSettings]:
    """피드 설정 팩토리입니다. / Feed settings factory."""

    return feed_settings


@pytest.fixture
def atmospheric_payload() -> Dict[str, Any]:
    """대기 피드 응답입니다. / Atmospheric feed response."""

    return {
        "current": {
            "wind_speed_10m": 20.0,
            "wind_direction_10m": 90.0,
            "temperature_2m": 25.0,
            "weather_code": 2,
        },
        "hourly": {
            "time": list(HOURS),
            "precipitation_probability": [hour % 100 for hour in range(48)],
            "uv_index": [round(hour * 0.25, 2) for hour in range(48)],
        },
        "daily": {
            "time": list(DATES),
            "sunrise": [f"{date}T06:35" for date in DATES],
            "sunset": [f"{date}T20:20" for date in DATES],
            "wind_speed_10m_max": [25.0, 10.0, 30.0],
            "weather_code": [2, 61, 95],
            "temperature_2m_max": [30.0, 28.0, 27.0],
            "temperature_2m_min": [22.0, 21.0, 20.0],
        },
    }


@pytest.fixture
def marine_payload() -> Dict[str, Any]:
    """해양 피드 응답입니다. / Marine feed response."""

    levels: List[Any] = [round(0.1 * (hour % 6), 2) for hour in range(48)]
    return {
        "current": {"wave_height": 0.3},
        "hourly": {
            "time": list(HOURS),
            "sea_surface_temperature": [20.0 + hour * 0.1 for hour in range(48)],
            "sea_level_height_msl": levels,
        },
        "daily": {
            "time": DATES[:2],
            "wave_height_max": [0.5, 0.8],
        },
    }
