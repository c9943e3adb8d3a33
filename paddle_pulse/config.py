"""환경 및 설정 로더입니다. / Environment and configuration loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import Field, SecretStr, ValidationError

from .base import PaddleBaseModel
from .risk.thresholds import SkillLevel
from .weather.models import Coordinates, ResolvedLocation

DEFAULT_CONFIG_PATH = Path("paddle_pulse.yaml")
SECRET_ENV_PREFIX = "PADDLE_PULSE_API_KEY_"


class CacheSettings(PaddleBaseModel):
    """캐시 관련 설정입니다. / Cache settings definition."""

    ttl_seconds: int = Field(default=3600, ge=0)


class FeedSettings(PaddleBaseModel):
    """개별 업스트림 피드 설정입니다. / Individual upstream feed settings."""

    name: str
    base_url: str
    path: str
    timeout_seconds: float = Field(default=10.0, gt=0)
    retries: int = Field(default=2, ge=0)
    api_key: str | None = None
    secret_suffix: str | None = Field(default=None, exclude=True)


def _atmospheric_defaults() -> FeedSettings:
    return FeedSettings(
        name="atmospheric",
        base_url="https://api.open-meteo.com",
        path="/v1/forecast",
    )


def _marine_defaults() -> FeedSettings:
    return FeedSettings(
        name="marine",
        base_url="https://marine-api.open-meteo.com",
        path="/v1/marine",
    )


def _geocoding_defaults() -> FeedSettings:
    return FeedSettings(
        name="geocoding",
        base_url="https://geocoding-api.open-meteo.com",
        path="/v1/search",
    )


def _reverse_geocoding_defaults() -> FeedSettings:
    return FeedSettings(
        name="reverse_geocoding",
        base_url="https://api.bigdatacloud.net",
        path="/data/reverse-geocode-client",
        timeout_seconds=5.0,
        retries=0,
    )


def _default_location() -> ResolvedLocation:
    return ResolvedLocation(
        coordinates=Coordinates(latitude=28.24, longitude=-82.72),
        display_name="New Port Richey, FL",
    )


class ProviderSecret(PaddleBaseModel):
    """피드 시크릿 래퍼입니다. / Feed secret wrapper."""

    api_key: SecretStr | None = None


class AppConfig(PaddleBaseModel):
    """애플리케이션 전체 설정입니다. / Application wide configuration."""

    atmospheric: FeedSettings = Field(default_factory=_atmospheric_defaults)
    marine: FeedSettings = Field(default_factory=_marine_defaults)
    geocoding: FeedSettings = Field(default_factory=_geocoding_defaults)
    reverse_geocoding: FeedSettings = Field(
        default_factory=_reverse_geocoding_defaults,
    )
    forecast_days: int = Field(default=7, ge=1, le=16)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    default_skill: SkillLevel = SkillLevel.INTERMEDIATE
    default_location: ResolvedLocation = Field(default_factory=_default_location)


def load_yaml_config(path: Path) -> Dict[str, Any]:
    """YAML 설정을 읽습니다. / Load YAML configuration."""

    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping")
    return data


def load_secrets_from_env(raw: Dict[str, Any]) -> Dict[str, ProviderSecret]:
    """환경 변수에서 시크릿을 적재합니다. / Load secrets from environment."""

    mapping: Dict[str, ProviderSecret] = {}
    for block in raw.values():
        if not isinstance(block, dict):
            continue
        suffix = block.get("secret_suffix")
        if not suffix:
            continue
        raw_value = os.getenv(f"{SECRET_ENV_PREFIX}{suffix}")
        secret = SecretStr(raw_value) if raw_value else None
        mapping[suffix] = ProviderSecret(api_key=secret)
    return mapping


def merge_config(
    raw: Dict[str, Any], secrets: Dict[str, ProviderSecret]
) -> Dict[str, Any]:
    """환경과 파일 설정을 병합합니다. / Merge file config with secrets."""

    for block in raw.values():
        if not isinstance(block, dict):
            continue
        suffix = block.get("secret_suffix")
        if suffix and suffix in secrets:
            secret_value = secrets[suffix].api_key
            if secret_value:
                block["api_key"] = secret_value.get_secret_value()
    return raw


FEED_DEFAULTS = {
    "atmospheric": _atmospheric_defaults,
    "marine": _marine_defaults,
    "geocoding": _geocoding_defaults,
    "reverse_geocoding": _reverse_geocoding_defaults,
}


def fill_feed_defaults(raw: Dict[str, Any]) -> Dict[str, Any]:
    """부분 피드 블록에 기본값을 채웁니다. / Fill partial feed blocks with defaults."""

    for key, factory in FEED_DEFAULTS.items():
        block = raw.get(key)
        if isinstance(block, dict):
            raw[key] = {**factory().model_dump(), **block}
    return raw


def load_app_config(path: Path | None = None) -> AppConfig:
    """최종 앱 설정을 반환합니다. / Return final app configuration.

    명시 경로가 없고 기본 파일도 없으면 기본값을 씁니다.
    Falls back to defaults when no path is given and the default file is absent.
    """

    config_path = path or DEFAULT_CONFIG_PATH
    if path is None and not config_path.exists():
        raw: Dict[str, Any] = {}
    else:
        raw = load_yaml_config(config_path)
    secrets = load_secrets_from_env(raw)
    merged = fill_feed_defaults(merge_config(raw, secrets))
    try:
        return AppConfig.model_validate(merged)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc
