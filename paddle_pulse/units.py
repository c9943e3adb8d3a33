"""단위 및 시간 유틸리티입니다. / Unit and time utilities."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

MPH_PER_KMH = 0.621371
FEET_PER_METER = 3.28084


def kmh_to_mph(value: float) -> float:
    """km/h를 mph로 변환합니다. / Convert km/h to mph."""

    return value * MPH_PER_KMH


def mph_to_kmh(value: float) -> float:
    """mph를 km/h로 변환합니다. / Convert mph to km/h."""

    return value / MPH_PER_KMH


def meters_to_feet(value: float) -> float:
    """미터를 피트로 변환합니다. / Convert meters to feet."""

    return value * FEET_PER_METER


def feet_to_meters(value: float) -> float:
    """피트를 미터로 변환합니다. / Convert feet to meters."""

    return value / FEET_PER_METER


def celsius_to_fahrenheit(value: float) -> float:
    """섭씨를 화씨로 변환합니다. / Convert Celsius to Fahrenheit."""

    return value * 9 / 5 + 32


def fahrenheit_to_celsius(value: float) -> float:
    """화씨를 섭씨로 변환합니다. / Convert Fahrenheit to Celsius."""

    return (value - 32) * 5 / 9


def hour_of_day_index(moment: datetime) -> int:
    """시각의 시간 인덱스입니다. / Hour-of-day index for a moment."""

    return moment.hour


def is_number(value: Any) -> bool:
    """JSON 유한 숫자 여부입니다. / Whether a JSON value is a finite number."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def format_limit(value: float) -> str:
    """한계치를 간결히 표기합니다. / Render a limit without a trailing .0."""

    return f"{value:g}"
