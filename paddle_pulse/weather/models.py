"""정규화된 날씨 모델입니다. / Normalized weather models."""

from __future__ import annotations

from typing import Tuple

from pydantic import Field

from ..base import PaddleBaseModel

HOURS_PER_DAY = 24


class Coordinates(PaddleBaseModel):
    """지리 좌표입니다. / Geographic coordinates."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    def cache_key(self, precision: int = 2) -> str:
        """반올림된 캐시 키입니다. / Rounded cache key."""

        return f"{self.latitude:.{precision}f}:{self.longitude:.{precision}f}"


class ResolvedLocation(PaddleBaseModel):
    """이름이 붙은 위치입니다. / Named location."""

    coordinates: Coordinates
    display_name: str


class HourlySample(PaddleBaseModel):
    """시간별 샘플입니다. / Hourly sample."""

    timestamp: str
    value: float


class CurrentConditions(PaddleBaseModel):
    """현재 조건 스냅샷입니다. / Current conditions snapshot."""

    wind_speed_kmh: float
    wind_direction_deg: float = Field(ge=0, lt=360)
    wave_height_m: float
    air_temp_c: float
    weather_code: int
    water_temp_c: float
    sunrise_iso: str = ""
    sunset_iso: str = ""


class DailyForecast(PaddleBaseModel):
    """일별 예보 요약입니다. / Daily forecast summary."""

    date: str
    max_wind_speed_kmh: float
    max_wave_height_m: float
    weather_code: int
    air_temp_max_c: float
    air_temp_min_c: float


class WeatherModel(PaddleBaseModel):
    """정규 날씨 모델입니다. / Canonical weather model."""

    current: CurrentConditions
    tide_series: Tuple[HourlySample, ...] = ()
    rain_series: Tuple[HourlySample, ...] = ()
    uv_series: Tuple[HourlySample, ...] = ()
    daily_forecasts: Tuple[DailyForecast, ...] = ()

    def clamp_day(self, day_index: int) -> int:
        """일 인덱스를 유효 범위로 제한합니다. / Clamp a day index into range."""

        last = max(len(self.daily_forecasts) - 1, 0)
        return min(max(day_index, 0), last)

    @staticmethod
    def hours_for_day(
        series: Tuple[HourlySample, ...], day_index: int
    ) -> Tuple[HourlySample, ...]:
        """하루치 24시간 구간입니다. / The 24-hour slice for a day."""

        start = max(day_index, 0) * HOURS_PER_DAY
        return series[start : start + HOURS_PER_DAY]
