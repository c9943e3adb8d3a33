"""예보 집계기 테스트입니다. / Forecast aggregator tests."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from typing import Any, Dict

import pytest
import respx
from hypothesis import given
from hypothesis import strategies as st

from paddle_pulse.weather.aggregator import (
    ForecastAggregator,
    build_daily_forecasts,
    build_series,
    select_water_temperature,
)
from paddle_pulse.weather.feeds import (
    AtmosphericFeed,
    MarineFeed,
    UpstreamFetchError,
    UpstreamShapeError,
)
from paddle_pulse.weather.models import Coordinates

ATMOS_URL = "https://atmos.test/v1/forecast"
MARINE_URL = "https://marine.test/v1/marine"
POINT = Coordinates(latitude=28.24, longitude=-82.72)


def _aggregator(make_settings, ttl: int = 0) -> ForecastAggregator:
    """샘플 집계기입니다. / Build sample aggregator."""

    return ForecastAggregator(
        AtmosphericFeed(make_settings("atmospheric", "https://atmos.test", "/v1/forecast")),
        MarineFeed(make_settings("marine", "https://marine.test", "/v1/marine")),
        cache_ttl_seconds=ttl,
        clock=lambda: datetime(2025, 6, 1, 5, 0),
    )


async def _aggregate(
    make_settings, atmospheric: Dict[str, Any], marine: Dict[str, Any]
):
    with respx.mock() as mock:
        mock.get(ATMOS_URL).respond(json=atmospheric)
        mock.get(MARINE_URL).respond(json=marine)
        return await _aggregator(make_settings).aggregate(POINT)


@pytest.mark.asyncio
async def test_aggregate_builds_canonical_model(
    make_settings, atmospheric_payload, marine_payload
) -> None:
    """정규 모델을 만듭니다. / Builds the canonical model."""

    model = await _aggregate(make_settings, atmospheric_payload, marine_payload)
    current = model.current
    assert current.wind_speed_kmh == pytest.approx(20.0)
    assert current.wind_direction_deg == pytest.approx(90.0)
    assert current.air_temp_c == pytest.approx(25.0)
    assert current.weather_code == 2
    assert current.wave_height_m == pytest.approx(0.3)
    assert current.water_temp_c == pytest.approx(20.5)
    assert current.sunrise_iso == "2025-06-01T06:35"
    assert current.sunset_iso == "2025-06-01T20:20"
    assert len(model.tide_series) == 48
    assert len(model.rain_series) == 48
    assert model.uv_series[4].value == pytest.approx(1.0)
    assert model.rain_series[0].timestamp == "2025-06-01T00:00"
    assert len(model.daily_forecasts) == 2
    tomorrow = model.daily_forecasts[1]
    assert tomorrow.date == "2025-06-02"
    assert tomorrow.max_wind_speed_kmh == pytest.approx(10.0)
    assert tomorrow.max_wave_height_m == pytest.approx(0.8)
    assert tomorrow.weather_code == 61


@pytest.mark.asyncio
async def test_null_tide_sample_becomes_zero(
    make_settings, atmospheric_payload, marine_payload
) -> None:
    """누락 조위는 0입니다. / A null tide sample becomes zero."""

    levels = marine_payload["hourly"]["sea_level_height_msl"]
    original = list(levels)
    levels[3] = None
    model = await _aggregate(make_settings, atmospheric_payload, marine_payload)
    assert model.tide_series[3].value == 0
    for index, sample in enumerate(model.tide_series):
        if index != 3:
            assert sample.value == pytest.approx(original[index])


@pytest.mark.asyncio
async def test_feed_a_server_error_is_fatal(make_settings, marine_payload) -> None:
    """피드 A 500은 치명적입니다. / Feed A HTTP 500 fails the aggregation."""

    with respx.mock(assert_all_called=False) as mock:
        mock.get(ATMOS_URL).respond(status_code=500)
        mock.get(MARINE_URL).respond(json=marine_payload)
        with pytest.raises(UpstreamFetchError) as excinfo:
            await _aggregator(make_settings).aggregate(POINT)
    assert excinfo.value.feed == "atmospheric"
    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_feed_b_server_error_is_fatal(make_settings, atmospheric_payload) -> None:
    """피드 B 실패도 치명적입니다. / Feed B failure is fatal too."""

    with respx.mock(assert_all_called=False) as mock:
        mock.get(ATMOS_URL).respond(json=atmospheric_payload)
        mock.get(MARINE_URL).respond(status_code=404)
        with pytest.raises(UpstreamFetchError) as excinfo:
            await _aggregator(make_settings).aggregate(POINT)
    assert excinfo.value.feed == "marine"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "feed,key",
    [
        ("atmospheric", "wind_speed_10m"),
        ("atmospheric", "wind_direction_10m"),
        ("atmospheric", "temperature_2m"),
        ("atmospheric", "weather_code"),
        ("marine", "wave_height"),
    ],
)
async def test_missing_current_field_is_shape_error(
    make_settings, atmospheric_payload, marine_payload, feed: str, key: str
) -> None:
    """현재 필드 누락은 오류입니다. / Missing current field raises."""

    payload = atmospheric_payload if feed == "atmospheric" else marine_payload
    payload["current"].pop(key)
    with pytest.raises(UpstreamShapeError):
        await _aggregate(make_settings, atmospheric_payload, marine_payload)


@pytest.mark.asyncio
async def test_null_current_field_is_shape_error(
    make_settings, atmospheric_payload, marine_payload
) -> None:
    """현재 필드 null은 오류입니다. / Null current field raises."""

    marine_payload["current"]["wave_height"] = None
    with pytest.raises(UpstreamShapeError):
        await _aggregate(make_settings, atmospheric_payload, marine_payload)


@pytest.mark.asyncio
async def test_missing_daily_block_defaults_sun_times(
    make_settings, atmospheric_payload, marine_payload
) -> None:
    """일별 블록이 없으면 빈 문자열입니다. / No daily block gives empty sun times."""

    atmospheric_payload.pop("daily")
    model = await _aggregate(make_settings, atmospheric_payload, marine_payload)
    assert model.current.sunrise_iso == ""
    assert model.current.sunset_iso == ""
    assert model.daily_forecasts == ()


@pytest.mark.asyncio
async def test_cache_skips_second_call(
    make_settings, atmospheric_payload, marine_payload
) -> None:
    """캐시가 두 번째 호출을 생략합니다. / Cache avoids second request."""

    aggregator = _aggregator(make_settings, ttl=60)
    with respx.mock() as mock:
        atmos_route = mock.get(ATMOS_URL).respond(json=atmospheric_payload)
        marine_route = mock.get(MARINE_URL).respond(json=marine_payload)
        first = await aggregator.aggregate(POINT)
        second = await aggregator.aggregate(
            Coordinates(latitude=28.2401, longitude=-82.7199)
        )
    assert atmos_route.call_count == 1
    assert marine_route.call_count == 1
    assert first == second


class _FailingFeed:
    async def fetch(self, coordinates: Coordinates) -> Dict[str, Any]:
        raise UpstreamFetchError("atmospheric", "HTTP 500", status_code=500)


class _SlowFeed:
    def __init__(self) -> None:
        self.cancelled = False

    async def fetch(self, coordinates: Coordinates) -> Dict[str, Any]:
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return {}


@pytest.mark.asyncio
async def test_first_failure_does_not_wait_for_slow_feed() -> None:
    """첫 실패가 느린 피드를 기다리지 않습니다. / First failure cancels the slow feed."""

    slow = _SlowFeed()
    aggregator = ForecastAggregator(_FailingFeed(), slow)  # type: ignore[arg-type]
    with pytest.raises(UpstreamFetchError):
        await asyncio.wait_for(aggregator.aggregate(POINT), timeout=2)
    assert slow.cancelled


@pytest.mark.asyncio
async def test_non_finite_current_field_is_shape_error(
    make_settings, atmospheric_payload, marine_payload
) -> None:
    """무한대 현재 값은 형식 오류입니다. / Infinite current value is a shape error."""

    atmospheric_payload["current"]["wind_direction_10m"] = float("inf")
    with respx.mock() as mock:
        mock.get(ATMOS_URL).respond(
            text=json.dumps(atmospheric_payload),
            headers={"content-type": "application/json"},
        )
        mock.get(MARINE_URL).respond(json=marine_payload)
        with pytest.raises(UpstreamShapeError):
            await _aggregator(make_settings).aggregate(POINT)


def test_missing_value_array_fills_zeros() -> None:
    """값 배열이 없으면 시각마다 0입니다. / Missing value array yields one zero per hour."""

    hourly = {
        "time": ["2025-06-01T00:00", "2025-06-01T01:00"],
        "precipitation_probability": [1, 2],
    }
    series = build_series(hourly, "uv_index")
    assert [sample.timestamp for sample in series] == hourly["time"]
    assert [sample.value for sample in series] == [0.0, 0.0]
    assert build_series({"uv_index": [1.0]}, "uv_index") == ()


def test_non_finite_samples_become_zero() -> None:
    """NaN과 무한대 샘플은 0입니다. / NaN and infinite samples become zero."""

    hourly = {
        "time": ["2025-06-01T00:00", "2025-06-01T01:00", "2025-06-01T02:00"],
        "uv_index": [float("nan"), float("-inf"), 4.5],
    }
    assert [sample.value for sample in build_series(hourly, "uv_index")] == [0.0, 0.0, 4.5]


def test_water_temperature_fallbacks() -> None:
    """수온 폴백 순서입니다. / Water temperature fallback order."""

    hourly = {"sea_surface_temperature": [18.0, None, 19.5]}
    assert select_water_temperature(hourly, 2) == pytest.approx(19.5)
    assert select_water_temperature(hourly, 1) == pytest.approx(18.0)
    assert select_water_temperature(hourly, 30) == pytest.approx(18.0)
    assert select_water_temperature({"sea_surface_temperature": [None]}, 5) == 0
    assert select_water_temperature({}, 5) == 0


def test_daily_missing_numbers_default_to_zero() -> None:
    """일별 숫자 누락은 0입니다. / Missing daily numbers default to zero."""

    forecasts = build_daily_forecasts(
        {
            "time": ["2025-06-01", "2025-06-02"],
            "wind_speed_10m_max": [None, 12.0],
            "weather_code": [3],
            "temperature_2m_max": [30.0, "bad"],
        },
        {"time": ["2025-06-01", "2025-06-02"], "wave_height_max": [0.4, None]},
    )
    assert len(forecasts) == 2
    assert forecasts[0].max_wind_speed_kmh == 0
    assert forecasts[1].weather_code == 0
    assert forecasts[1].air_temp_max_c == 0
    assert forecasts[0].air_temp_min_c == 0
    assert forecasts[1].max_wave_height_m == 0


def test_daily_join_uses_calendar_day() -> None:
    """해양 일별 값은 날짜로 결합됩니다. / Marine daily values join by date."""

    forecasts = build_daily_forecasts(
        {"time": ["2025-06-01", "2025-06-02"], "wind_speed_10m_max": [5.0, 6.0]},
        {"time": ["2025-06-02", "2025-06-01"], "wave_height_max": [0.8, 0.5]},
    )
    assert [day.max_wave_height_m for day in forecasts] == [0.5, 0.8]


def test_daily_join_without_marine_dates_is_positional() -> None:
    """해양 날짜가 없으면 위치로 결합합니다. / Positional join without marine dates."""

    forecasts = build_daily_forecasts(
        {"time": ["2025-06-01", "2025-06-02", "2025-06-03"]},
        {"wave_height_max": [0.5, 0.8]},
    )
    assert [day.max_wave_height_m for day in forecasts] == [0.5, 0.8]


def test_daily_misaligned_dates_raise() -> None:
    """겹치지 않는 날짜는 오류입니다. / Non-overlapping dates raise."""

    with pytest.raises(UpstreamShapeError):
        build_daily_forecasts(
            {"time": ["2025-06-01", "2025-06-02"]},
            {"time": ["2030-01-01", "2030-01-02"], "wave_height_max": [0.5, 0.8]},
        )


@given(
    atmos_days=st.integers(min_value=0, max_value=10),
    marine_days=st.integers(min_value=0, max_value=10),
)
def test_daily_length_is_shorter_feed(atmos_days: int, marine_days: int) -> None:
    """일별 길이는 짧은 피드를 따릅니다. / Daily length follows the shorter feed."""

    dates = [f"2025-06-{day + 1:02d}" for day in range(10)]
    forecasts = build_daily_forecasts(
        {"time": dates[:atmos_days], "wind_speed_10m_max": [1.0] * atmos_days},
        {"time": dates[:marine_days], "wave_height_max": [0.2] * marine_days},
    )
    assert len(forecasts) == min(atmos_days, marine_days)


@given(
    values=st.lists(
        st.one_of(
            st.none(),
            st.text(max_size=3),
            st.booleans(),
            st.floats(min_value=-5, max_value=5),
        ),
        max_size=30,
    )
)
def test_series_repairs_non_numeric_samples(values: list) -> None:
    """숫자가 아닌 샘플은 0입니다. / Non-numeric samples become zero."""

    times = [f"2025-06-01T{hour:02d}:00" for hour in range(len(values))]
    series = build_series({"time": times, "uv_index": values}, "uv_index")
    assert len(series) == len(values)
    for raw, sample in zip(values, series):
        if isinstance(raw, float):
            assert sample.value == raw
        else:
            assert sample.value == 0
