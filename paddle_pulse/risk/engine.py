"""안전 판정 엔진입니다. / Safety decision engine."""

from __future__ import annotations

from typing import List, Tuple

from ..base import PaddleBaseModel
from ..units import format_limit, kmh_to_mph, meters_to_feet
from ..weather.models import WeatherModel
from .thresholds import SkillProfile


class DisplayedConditions(PaddleBaseModel):
    """선택된 날의 표시 지표입니다. / Metrics displayed for the selected day."""

    day_index: int
    is_today: bool
    wind_speed_kmh: float
    wave_height_m: float
    air_temp_c: float
    weather_code: int

    @property
    def wind_speed_mph(self) -> float:
        return kmh_to_mph(self.wind_speed_kmh)

    @property
    def wave_height_ft(self) -> float:
        return meters_to_feet(self.wave_height_m)


class GoNoGoResult(PaddleBaseModel):
    """출항 판정 결과입니다. / Go/no-go verdict."""

    is_go: bool
    reasons: Tuple[str, ...] = ()


def displayed_conditions(model: WeatherModel, day_index: int) -> DisplayedConditions:
    """선택된 날의 지표를 고릅니다. / Select the metrics shown for a day.

    0일은 현재 값을, 그 외에는 그날의 최대값을 씁니다.
    Day 0 uses current values; other days use the day's maxima.
    """

    index = model.clamp_day(day_index)
    if index == 0 or not model.daily_forecasts:
        current = model.current
        return DisplayedConditions(
            day_index=0,
            is_today=True,
            wind_speed_kmh=current.wind_speed_kmh,
            wave_height_m=current.wave_height_m,
            air_temp_c=current.air_temp_c,
            weather_code=current.weather_code,
        )
    day = model.daily_forecasts[index]
    return DisplayedConditions(
        day_index=index,
        is_today=False,
        wind_speed_kmh=day.max_wind_speed_kmh,
        wave_height_m=day.max_wave_height_m,
        air_temp_c=day.air_temp_max_c,
        weather_code=day.weather_code,
    )


def evaluate(
    model: WeatherModel,
    selected_day_index: int,
    skill_profile: SkillProfile,
) -> GoNoGoResult:
    """숙련도 기준으로 판정합니다. / Evaluate go/no-go for a skill profile."""

    shown = displayed_conditions(model, selected_day_index)
    wind_mph = shown.wind_speed_mph
    wave_ft = shown.wave_height_ft
    reasons: List[str] = []
    # wind is always reported before wave
    if wind_mph > skill_profile.wind_limit_mph:
        reasons.append(
            f"Wind speed ({wind_mph:.1f} mph) exceeds your "
            f"{format_limit(skill_profile.wind_limit_mph)} mph limit"
        )
    if wave_ft > skill_profile.wave_limit_ft:
        reasons.append(
            f"Wave height ({wave_ft:.1f} ft) exceeds your "
            f"{format_limit(skill_profile.wave_limit_ft)} ft limit"
        )
    return GoNoGoResult(is_go=not reasons, reasons=tuple(reasons))
