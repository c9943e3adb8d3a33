"""예보 집계기입니다. / Forecast aggregator.

대기 피드(A)와 해양 피드(B)를 동시에 조회하여 하나의 정규 모델로 합칩니다.
Fetches the atmospheric feed (A) and the marine feed (B) concurrently and
merges them into one canonical ``WeatherModel``.

현재 조건 필드는 기본값이 없어 누락 시 실패하고, 파생 시계열 필드는
샘플 단위로 ``0``으로 대체됩니다.
Current-condition fields have no safe default and fail loudly; derived series
fields are repaired per sample with ``0``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..config import AppConfig
from ..units import hour_of_day_index, is_number
from .feeds import AtmosphericFeed, MarineFeed, UpstreamShapeError
from .models import (
    Coordinates,
    CurrentConditions,
    DailyForecast,
    HourlySample,
    WeatherModel,
)

LOGGER = logging.getLogger("weather.aggregator")

# share of atmospheric days that must find a marine day with the same date
MIN_DAILY_OVERLAP = 0.5


@dataclass
class CacheEntry:
    """캐시 엔트리 구조입니다. / Cache entry structure."""

    value: WeatherModel
    expires_at: float


class TTLCache:
    """TTL 캐시 컨테이너입니다. / TTL cache container."""

    def __init__(self) -> None:
        self._store: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[WeatherModel]:
        """캐시에서 값을 가져옵니다. / Retrieve value from cache."""

        async with self._lock:
            entry = self._store.get(key)
            if not entry:
                return None
            if entry.expires_at < time.monotonic():
                self._store.pop(key, None)
                return None
            return entry.value

    async def set(self, key: str, value: WeatherModel, ttl_seconds: int) -> None:
        """캐시에 값을 저장합니다. / Store value in cache."""

        async with self._lock:
            expires_at = time.monotonic() + ttl_seconds
            self._store[key] = CacheEntry(value=value, expires_at=expires_at)


def _at(values: Any, index: int) -> Any:
    if isinstance(values, list) and 0 <= index < len(values):
        return values[index]
    return None


def _number_or_zero(value: Any) -> float:
    return float(value) if is_number(value) else 0.0


def _block(payload: Dict[str, Any], key: str) -> Dict[str, Any]:
    block = payload.get(key)
    return block if isinstance(block, dict) else {}


def _require_number(block: Dict[str, Any], key: str, feed: str) -> float:
    """필수 숫자 필드를 읽습니다. / Read a required numeric field."""

    value = block.get(key)
    if not is_number(value):
        raise UpstreamShapeError(f"{feed}: current.{key} is missing or not numeric")
    return float(value)


def _day_key(timestamp: Any) -> str:
    return str(timestamp)[:10]


def build_series(hourly: Dict[str, Any], key: str) -> Tuple[HourlySample, ...]:
    """시간 배열에 맞춘 시계열을 만듭니다. / Build a series against the time array.

    같은 피드의 ``time[i]``와 값 ``[i]``를 위치로 결합합니다.
    Pairs ``time[i]`` with ``values[i]`` from the same feed positionally.
    값 배열이 없으면 모든 시각이 0입니다. / A missing value array yields zeros.
    """

    times = hourly.get("time")
    if not isinstance(times, list):
        return ()
    values = hourly.get(key)
    if not isinstance(values, list):
        values = []
    samples = [
        HourlySample(timestamp=str(stamp), value=_number_or_zero(_at(values, i)))
        for i, stamp in enumerate(times)
    ]
    repaired = sum(1 for i in range(len(times)) if not is_number(_at(values, i)))
    if repaired:
        LOGGER.debug("degraded_samples", extra={"series": key, "count": repaired})
    return tuple(samples)


def select_water_temperature(hourly: Dict[str, Any], hour_index: int) -> float:
    """현재 시간의 수온을 고릅니다. / Pick the water temperature for the hour.

    해당 시간 값이 없으면 0번 인덱스, 그것도 없으면 ``0``입니다.
    Falls back to index 0, then to ``0``.
    """

    temperatures = hourly.get("sea_surface_temperature")
    for candidate in (_at(temperatures, hour_index), _at(temperatures, 0)):
        if is_number(candidate):
            return float(candidate)
    return 0.0


def _marine_daily_length(marine_daily: Dict[str, Any]) -> int:
    times = marine_daily.get("time")
    if isinstance(times, list):
        return len(times)
    waves = marine_daily.get("wave_height_max")
    return len(waves) if isinstance(waves, list) else 0


def _marine_waves_by_day(
    marine_daily: Dict[str, Any], dates: Sequence[str]
) -> List[Any]:
    """날짜 키로 해양 값을 결합합니다. / Join marine values by calendar day."""

    waves = marine_daily.get("wave_height_max")
    times = marine_daily.get("time")
    if not isinstance(times, list):
        return [_at(waves, i) for i in range(len(dates))]
    by_day = {_day_key(stamp): _at(waves, i) for i, stamp in enumerate(times)}
    matched = sum(1 for date in dates if _day_key(date) in by_day)
    if dates and matched < len(dates) * MIN_DAILY_OVERLAP:
        LOGGER.warning(
            "daily_misaligned",
            extra={"matched": matched, "days": len(dates)},
        )
        raise UpstreamShapeError(
            "marine and atmospheric daily dates do not overlap "
            f"({matched} of {len(dates)} days)"
        )
    return [by_day.get(_day_key(date)) for date in dates]


def build_daily_forecasts(
    atmospheric_daily: Dict[str, Any], marine_daily: Dict[str, Any]
) -> Tuple[DailyForecast, ...]:
    """일별 예보를 결합합니다. / Combine daily forecasts.

    길이는 두 피드 중 짧은 쪽을 따릅니다.
    Length follows the shorter of the two feeds.
    """

    dates = atmospheric_daily.get("time")
    if not isinstance(dates, list):
        return ()
    days = min(len(dates), _marine_daily_length(marine_daily))
    day_dates = [str(date) for date in dates[:days]]
    waves = _marine_waves_by_day(marine_daily, day_dates)
    forecasts = []
    for i, date in enumerate(day_dates):
        forecasts.append(
            DailyForecast(
                date=date,
                max_wind_speed_kmh=_number_or_zero(
                    _at(atmospheric_daily.get("wind_speed_10m_max"), i)
                ),
                max_wave_height_m=_number_or_zero(waves[i]),
                weather_code=int(
                    _number_or_zero(_at(atmospheric_daily.get("weather_code"), i))
                ),
                air_temp_max_c=_number_or_zero(
                    _at(atmospheric_daily.get("temperature_2m_max"), i)
                ),
                air_temp_min_c=_number_or_zero(
                    _at(atmospheric_daily.get("temperature_2m_min"), i)
                ),
            )
        )
    return tuple(forecasts)


def _first_string(daily: Dict[str, Any], key: str) -> str:
    value = _at(daily.get(key), 0)
    return value if isinstance(value, str) else ""


def build_weather_model(
    atmospheric: Dict[str, Any],
    marine: Dict[str, Any],
    now: datetime,
) -> WeatherModel:
    """두 응답으로 정규 모델을 만듭니다. / Build the canonical model from both responses."""

    atmos_current = _block(atmospheric, "current")
    marine_current = _block(marine, "current")
    atmos_hourly = _block(atmospheric, "hourly")
    marine_hourly = _block(marine, "hourly")
    atmos_daily = _block(atmospheric, "daily")
    marine_daily = _block(marine, "daily")

    current = CurrentConditions(
        wind_speed_kmh=_require_number(atmos_current, "wind_speed_10m", "atmospheric"),
        wind_direction_deg=_require_number(
            atmos_current, "wind_direction_10m", "atmospheric"
        )
        % 360,
        air_temp_c=_require_number(atmos_current, "temperature_2m", "atmospheric"),
        weather_code=int(
            _require_number(atmos_current, "weather_code", "atmospheric")
        ),
        wave_height_m=_require_number(marine_current, "wave_height", "marine"),
        water_temp_c=select_water_temperature(
            marine_hourly, hour_of_day_index(now)
        ),
        sunrise_iso=_first_string(atmos_daily, "sunrise"),
        sunset_iso=_first_string(atmos_daily, "sunset"),
    )
    return WeatherModel(
        current=current,
        tide_series=build_series(marine_hourly, "sea_level_height_msl"),
        rain_series=build_series(atmos_hourly, "precipitation_probability"),
        uv_series=build_series(atmos_hourly, "uv_index"),
        daily_forecasts=build_daily_forecasts(atmos_daily, marine_daily),
    )


class ForecastAggregator:
    """예보 집계기 파사드입니다. / Forecast aggregator facade."""

    def __init__(
        self,
        atmospheric: AtmosphericFeed,
        marine: MarineFeed,
        cache_ttl_seconds: int = 0,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.atmospheric = atmospheric
        self.marine = marine
        self.cache_ttl_seconds = cache_ttl_seconds
        self.cache = TTLCache()
        self.clock = clock

    @classmethod
    def from_config(cls, config: AppConfig) -> "ForecastAggregator":
        """설정으로 집계기를 만듭니다. / Build aggregator from settings."""

        return cls(
            AtmosphericFeed(config.atmospheric, config.forecast_days),
            MarineFeed(config.marine, config.forecast_days),
            cache_ttl_seconds=config.cache.ttl_seconds,
        )

    async def aggregate(self, coordinates: Coordinates) -> WeatherModel:
        """좌표의 정규 모델을 만듭니다. / Build the canonical model for coordinates."""

        cache_key = coordinates.cache_key()
        if self.cache_ttl_seconds:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                LOGGER.debug("aggregate_cache_hit", extra={"key": cache_key})
                return cached
        atmospheric, marine = await self._fetch_both(coordinates)
        model = build_weather_model(atmospheric, marine, self.clock())
        LOGGER.info(
            "aggregate_built",
            extra={
                "key": cache_key,
                "days": len(model.daily_forecasts),
                "tide_samples": len(model.tide_series),
            },
        )
        if self.cache_ttl_seconds:
            await self.cache.set(cache_key, model, self.cache_ttl_seconds)
        return model

    async def _fetch_both(
        self, coordinates: Coordinates
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """두 피드를 동시에 조회합니다. / Fetch both feeds concurrently.

        첫 실패 시 나머지 작업을 취소하고 그 오류를 올립니다.
        On the first failure the sibling task is cancelled and the error raised.
        """

        tasks = [
            asyncio.create_task(self.atmospheric.fetch(coordinates)),
            asyncio.create_task(self.marine.fetch(coordinates)),
        ]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
        failed = [
            task
            for task in tasks
            if task.done() and not task.cancelled() and task.exception() is not None
        ]
        if failed:
            await asyncio.gather(*tasks, return_exceptions=True)
            raise failed[0].exception()  # type: ignore[misc]
        atmospheric, marine = (task.result() for task in tasks)
        return atmospheric, marine
