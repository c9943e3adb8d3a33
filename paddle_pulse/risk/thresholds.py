"""숙련도 임계치 관리입니다. / Skill threshold management."""

from __future__ import annotations

from enum import Enum
from typing import Dict

from pydantic import Field

from ..base import PaddleBaseModel


class SkillLevel(str, Enum):
    """숙련도 등급입니다. / Skill tier."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class SkillProfile(PaddleBaseModel):
    """숙련도 프로필 모델입니다. / Skill profile model."""

    level: SkillLevel
    wind_limit_mph: float = Field(gt=0)
    wave_limit_ft: float = Field(gt=0)


SKILL_PROFILES: Dict[SkillLevel, SkillProfile] = {
    SkillLevel.BEGINNER: SkillProfile(
        level=SkillLevel.BEGINNER, wind_limit_mph=8, wave_limit_ft=1.5
    ),
    SkillLevel.INTERMEDIATE: SkillProfile(
        level=SkillLevel.INTERMEDIATE, wind_limit_mph=12, wave_limit_ft=3
    ),
    SkillLevel.ADVANCED: SkillProfile(
        level=SkillLevel.ADVANCED, wind_limit_mph=18, wave_limit_ft=5
    ),
}


def profile_for(level: SkillLevel | str) -> SkillProfile:
    """등급으로 프로필을 찾습니다. / Look up profile by tier."""

    try:
        return SKILL_PROFILES[SkillLevel(level)]
    except ValueError as exc:
        raise KeyError(f"Unknown skill level: {level}") from exc
