"""업스트림 피드 클라이언트입니다. / Upstream feed clients."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..base import PaddlePulseError
from ..config import FeedSettings
from .models import Coordinates

LOGGER = logging.getLogger("weather.feeds")

ATMOSPHERIC_CURRENT = ["wind_speed_10m", "wind_direction_10m", "temperature_2m", "weather_code"]
ATMOSPHERIC_HOURLY = ["precipitation_probability", "uv_index"]
ATMOSPHERIC_DAILY = [
    "sunrise",
    "sunset",
    "wind_speed_10m_max",
    "weather_code",
    "temperature_2m_max",
    "temperature_2m_min",
]
MARINE_CURRENT = ["wave_height"]
MARINE_HOURLY = ["sea_surface_temperature", "sea_level_height_msl"]
MARINE_DAILY = ["wave_height_max"]


class UpstreamFetchError(PaddlePulseError):
    """업스트림 호출 실패입니다. / Upstream call failed."""

    def __init__(
        self, feed: str, message: str, status_code: int | None = None
    ) -> None:
        super().__init__(f"{feed}: {message}")
        self.feed = feed
        self.status_code = status_code


class UpstreamShapeError(PaddlePulseError):
    """필수 필드가 없는 응답입니다. / Response lacks a required field."""


class FeedClient:
    """JSON HTTP 피드 클라이언트입니다. / JSON HTTP feed client."""

    def __init__(self, settings: FeedSettings) -> None:
        self.settings = settings

    @property
    def name(self) -> str:
        """피드 이름을 돌려줍니다. / Return feed name."""

        return self.settings.name

    async def fetch_json(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """JSON 객체를 조회합니다. / Fetch a JSON object.

        상태 코드 오류는 재시도하지 않고, 전송 오류만 재시도합니다.
        Status errors are never retried; only transport errors are.
        """

        if self.settings.api_key:
            params = {**params, "apikey": self.settings.api_key}
        LOGGER.debug("feed_request", extra={"feed": self.name, "params": params})
        retryer = AsyncRetrying(
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            stop=stop_after_attempt(self.settings.retries + 1),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        response: httpx.Response | None = None
        try:
            async for attempt in retryer:
                with attempt:
                    response = await self._get(params)
        except httpx.TransportError as exc:
            LOGGER.exception(
                "feed_transport_failed",
                extra={"feed": self.name, "error": str(exc)},
            )
            raise UpstreamFetchError(self.name, f"transport error: {exc}") from exc
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "feed_request_failed",
                extra={"feed": self.name, "error": str(exc)},
            )
            raise UpstreamFetchError(self.name, f"request error: {exc}") from exc
        if response is None:  # pragma: no cover - safety net
            raise UpstreamFetchError(self.name, "retry loop produced no response")
        if not response.is_success:
            LOGGER.warning(
                "feed_status_failed",
                extra={"feed": self.name, "status": response.status_code},
            )
            raise UpstreamFetchError(
                self.name,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamShapeError(f"{self.name}: response is not JSON") from exc
        if not isinstance(payload, dict):
            raise UpstreamShapeError(f"{self.name}: response root is not an object")
        return payload

    async def _get(self, params: Dict[str, Any]) -> httpx.Response:
        """HTTP 호출을 실행합니다. / Execute HTTP call."""

        timeout = httpx.Timeout(self.settings.timeout_seconds)
        async with httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=timeout,
        ) as client:
            return await client.get(
                self.settings.path,
                params=params,
                headers={"accept": "application/json"},
            )


class ForecastFeed(FeedClient, ABC):
    """좌표 기반 예보 피드입니다. / Coordinate-based forecast feed."""

    def __init__(self, settings: FeedSettings, forecast_days: int = 7) -> None:
        super().__init__(settings)
        self.forecast_days = forecast_days

    async def fetch(self, coordinates: Coordinates) -> Dict[str, Any]:
        """좌표의 예보를 조회합니다. / Fetch forecast for coordinates."""

        return await self.fetch_json(self.build_params(coordinates))

    def base_params(self, coordinates: Coordinates) -> Dict[str, Any]:
        return {
            "latitude": coordinates.latitude,
            "longitude": coordinates.longitude,
            "timezone": "auto",
            "forecast_days": self.forecast_days,
        }

    @abstractmethod
    def build_params(self, coordinates: Coordinates) -> Dict[str, Any]:
        """요청 파라미터를 구성합니다. / Build request parameters."""


class AtmosphericFeed(ForecastFeed):
    """대기 예보 피드(A)입니다. / Atmospheric forecast feed (A)."""

    def build_params(self, coordinates: Coordinates) -> Dict[str, Any]:
        return {
            **self.base_params(coordinates),
            "current": ",".join(ATMOSPHERIC_CURRENT),
            "hourly": ",".join(ATMOSPHERIC_HOURLY),
            "daily": ",".join(ATMOSPHERIC_DAILY),
        }


class MarineFeed(ForecastFeed):
    """해양 예보 피드(B)입니다. / Marine forecast feed (B)."""

    def build_params(self, coordinates: Coordinates) -> Dict[str, Any]:
        return {
            **self.base_params(coordinates),
            "current": ",".join(MARINE_CURRENT),
            "hourly": ",".join(MARINE_HOURLY),
            "daily": ",".join(MARINE_DAILY),
        }
