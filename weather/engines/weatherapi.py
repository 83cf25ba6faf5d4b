from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, cast
from urllib.parse import quote

import httpx
from django.conf import settings

from .base import WeatherClient
from .errors import (
    InvalidCityError,
    WeatherDecodeError,
    WeatherNetworkError,
)
from .types import WeatherRecord

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.weatherapi.com/v1"


class WeatherApiClient(WeatherClient):
    """WeatherAPI.com implementation.

    Uses the `/current.json` endpoint. One attempt per call: no retries and
    the transport's default timeout.
    """

    name = "weatherapi"

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url: str = (
            base_url
            or cast(
                str,
                getattr(settings, "WEATHERAPI_BASE_URL", DEFAULT_BASE_URL),
            )
        ).rstrip("/")
        self.transport = transport

    async def fetch(self, city_name: str) -> WeatherRecord:
        city = city_name.strip()
        if not city:
            raise InvalidCityError("City name must not be empty.")

        logger.debug("weather.fetch.start city=%s", city)
        body = await self._request(self.url_for("current.json", city))
        record = decode_current(body)
        logger.debug(
            "weather.fetch.done city=%s resolved=%s", city, record.city
        )
        return record

    async def search(self, query: str) -> list[str]:
        """Return location names matching a query, best match first."""

        body = await self._request(self.url_for("search.json", query))
        return decode_search(body)

    def url_for(self, endpoint: str, query: str) -> str:
        return (
            f"{self.base_url}/{endpoint}"
            f"?key={quote_query(self.api_key)}&q={quote_query(query)}"
        )

    async def _request(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as exc:
            raise WeatherNetworkError(
                f"WeatherAPI request failed: {exc.__class__.__name__}"
            ) from exc

        if not response.content:
            raise WeatherNetworkError(
                f"WeatherAPI returned an empty body "
                f"(HTTP {response.status_code})."
            )
        return response.content


def quote_query(value: str) -> str:
    """Percent-encode a query value, falling back to the raw string.

    The fallback keeps the lookup going with an unencoded value, which may
    produce a malformed URL that then fails at the transport.
    """

    try:
        return quote(value, safe="")
    except UnicodeEncodeError:
        logger.warning("weather.encode.fallback value=%r", value)
        return value


def decode_current(body: bytes) -> WeatherRecord:
    """Decode a `/current.json` body into a record.

    Every field is required; nothing is defaulted.
    """

    payload = _load_json(body)
    if not isinstance(payload, dict):
        raise WeatherDecodeError("Expected a JSON object.")
    if "location" not in payload and "error" in payload:
        raise WeatherDecodeError(_provider_error(payload["error"]))

    location = _object(payload, "location")
    current = _object(payload, "current")
    condition = _object(current, "condition", path="current.condition")

    city = _string(location, "name", path="location.name")
    if not city.strip():
        raise WeatherDecodeError("Field 'location.name' is empty.")

    return WeatherRecord(
        city=city,
        temperature_c=_number(current, "temp_c", path="current.temp_c"),
        temperature_f=_number(current, "temp_f", path="current.temp_f"),
        condition_text=_string(
            condition, "text", path="current.condition.text"
        ),
        condition_code=_integer(
            condition, "code", path="current.condition.code"
        ),
    )


def decode_search(body: bytes) -> list[str]:
    payload = _load_json(body)
    if isinstance(payload, dict) and "error" in payload:
        raise WeatherDecodeError(_provider_error(payload["error"]))
    if not isinstance(payload, list):
        raise WeatherDecodeError("Expected a JSON array of locations.")

    names: list[str] = []
    for idx, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise WeatherDecodeError(f"Location {idx} is not an object.")
        name = _string(entry, "name", path=f"[{idx}].name")
        if name.strip():
            names.append(name)
    return names


def _load_json(body: bytes) -> Any:
    try:
        return json.loads(body)
    except ValueError as exc:
        raise WeatherDecodeError("Response body is not valid JSON.") from exc


def _provider_error(raw: Any) -> str:
    if isinstance(raw, Mapping) and isinstance(raw.get("message"), str):
        return f"Provider error: {raw['message']}"
    return "Provider returned an error response."


def _object(
    parent: Mapping[str, Any], key: str, *, path: str | None = None
) -> Mapping[str, Any]:
    value = parent.get(key)
    if not isinstance(value, dict):
        raise WeatherDecodeError(
            f"Field '{path or key}' is missing or not an object."
        )
    return value


def _string(parent: Mapping[str, Any], key: str, *, path: str) -> str:
    value = parent.get(key)
    if not isinstance(value, str):
        raise WeatherDecodeError(f"Field '{path}' is missing or not a string.")
    return value


def _number(parent: Mapping[str, Any], key: str, *, path: str) -> float:
    value = parent.get(key)
    # bool is an int subclass; JSON true/false is not a temperature.
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise WeatherDecodeError(f"Field '{path}' is missing or not a number.")
    return float(value)


def _integer(parent: Mapping[str, Any], key: str, *, path: str) -> int:
    value = parent.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise WeatherDecodeError(
            f"Field '{path}' is missing or not an integer."
        )
    return value
