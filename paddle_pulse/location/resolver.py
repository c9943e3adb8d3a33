"""위치 해석기입니다. / Location resolver."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..base import PaddlePulseError
from ..config import AppConfig, FeedSettings
from ..weather.feeds import FeedClient, UpstreamShapeError
from ..weather.models import Coordinates, ResolvedLocation

LOGGER = logging.getLogger("location.resolver")

PLACEHOLDER_NAME = "Current Location"
SEARCH_RESULT_COUNT = 5


class LocationNotFound(PaddlePulseError):
    """위치를 찾지 못했습니다. / No location matched the query."""


def relaxed_queries(query: str) -> List[str]:
    """완화된 검색어 목록입니다. / Progressively relaxed queries.

    "City, ST"는 쉼표 앞부분으로, "City ST"는 마지막 두 글자 토큰을
    뺀 형태로 한 번 더 시도합니다.
    "City, ST" retries with the text before the comma; "City ST" retries
    without the trailing two-letter token.
    """

    candidates = [query]
    if "," in query:
        city_only = query.split(",")[0].strip()
    else:
        parts = query.split()
        city_only = " ".join(parts[:-1]) if len(parts) > 1 and len(parts[-1]) == 2 else ""
    if city_only and city_only != query:
        candidates.append(city_only)
    return candidates


def _display_name(result: Dict[str, Any]) -> str:
    name = str(result.get("name") or "")
    if result.get("admin1") and result.get("country") == "United States":
        return f"{name}, {result['admin1']}"
    if result.get("country"):
        return f"{name}, {result['country']}"
    return name


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def reverse_display_name(data: Dict[str, Any]) -> str:
    """역지오코딩 응답으로 표시명을 만듭니다. / Build display name from reverse lookup.

    문자열이 아닌 필드는 없는 것으로 봅니다.
    Non-string fields are treated as absent.
    """

    name = _text(data, "city") or _text(data, "locality") or PLACEHOLDER_NAME
    subdivision = _text(data, "principalSubdivision")
    country = _text(data, "countryName")
    if subdivision and data.get("countryCode") == "US":
        name += f", {subdivision}"
    elif country and name != PLACEHOLDER_NAME:
        name += f", {country}"
    return name


class LocationResolver:
    """텍스트/좌표 위치 해석기입니다. / Text and coordinate location resolver."""

    def __init__(self, search: FeedSettings, reverse: FeedSettings) -> None:
        self.search = FeedClient(search)
        self.reverse = FeedClient(reverse)

    @classmethod
    def from_config(cls, config: AppConfig) -> "LocationResolver":
        """설정으로 해석기를 만듭니다. / Build resolver from settings."""

        return cls(config.geocoding, config.reverse_geocoding)

    async def _search(self, query: str) -> Optional[Dict[str, Any]]:
        payload = await self.search.fetch_json(
            {
                "name": query,
                "count": SEARCH_RESULT_COUNT,
                "language": "en",
                "format": "json",
            }
        )
        results = payload.get("results")
        if isinstance(results, list) and results and isinstance(results[0], dict):
            return results[0]
        return None

    async def resolve_by_text(self, query: str) -> ResolvedLocation:
        """검색어로 위치를 찾습니다. / Resolve a text query to a location."""

        for candidate in relaxed_queries(query.strip()):
            result = await self._search(candidate)
            if result is None:
                LOGGER.info("geocode_miss", extra={"query": candidate})
                continue
            try:
                coordinates = Coordinates(
                    latitude=result["latitude"], longitude=result["longitude"]
                )
            except (KeyError, ValueError) as exc:
                raise UpstreamShapeError(
                    f"geocoding: result for {candidate!r} lacks coordinates"
                ) from exc
            return ResolvedLocation(
                coordinates=coordinates, display_name=_display_name(result)
            )
        raise LocationNotFound(f"No location found for {query!r}")

    async def resolve_by_coordinates(self, latitude: float, longitude: float) -> str:
        """좌표의 표시명을 찾습니다. / Best-effort display name for coordinates.

        실패는 전파하지 않고 자리표시 이름을 돌려줍니다.
        Failures are never propagated; the placeholder name is returned.
        """

        try:
            data = await self.reverse.fetch_json(
                {
                    "latitude": latitude,
                    "longitude": longitude,
                    "localityLanguage": "en",
                }
            )
            return reverse_display_name(data)
        except (PaddlePulseError, httpx.HTTPError) as exc:
            LOGGER.warning(
                "reverse_geocode_failed",
                extra={"latitude": latitude, "longitude": longitude, "error": str(exc)},
            )
            return PLACEHOLDER_NAME
