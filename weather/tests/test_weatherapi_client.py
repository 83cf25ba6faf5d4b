from __future__ import annotations

# ruff: noqa: S101
import asyncio
import json

import httpx
import pytest
from pytest_django.fixtures import SettingsWrapper

from weather.engines.errors import (
    InvalidCityError,
    WeatherDecodeError,
    WeatherNetworkError,
)
from weather.engines.types import WeatherRecord
from weather.engines.weatherapi import (
    WeatherApiClient,
    decode_current,
    decode_search,
    quote_query,
)

from .fakes import LONDON_PAYLOAD, json_response, mock_client


def test_fetch_decodes_current_conditions() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return json_response(LONDON_PAYLOAD)

    result = asyncio.run(mock_client(handler).fetch("london"))

    assert result == WeatherRecord(
        city="London",
        temperature_c=15.0,
        temperature_f=59.0,
        condition_text="Cloudy",
        condition_code=1006,
    )
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/v1/current.json"
    assert request.url.params["key"] == "test-key"
    assert request.url.params["q"] == "london"


def test_fetch_trims_and_encodes_city_name() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return json_response(LONDON_PAYLOAD)

    asyncio.run(mock_client(handler).fetch("  São Paulo  "))

    assert seen[0].url.params["q"] == "São Paulo"
    assert b"q=S%C3%A3o%20Paulo" in seen[0].url.query


@pytest.mark.parametrize("city", ["", "   ", "\t\n"])
def test_fetch_rejects_blank_city_without_request(city: str) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return json_response(LONDON_PAYLOAD)

    with pytest.raises(InvalidCityError):
        asyncio.run(mock_client(handler).fetch(city))
    assert calls == []


def test_fetch_transport_error_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(WeatherNetworkError):
        asyncio.run(mock_client(handler).fetch("London"))


def test_fetch_empty_body_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"")

    with pytest.raises(WeatherNetworkError, match="empty body"):
        asyncio.run(mock_client(handler).fetch("London"))


def test_fetch_provider_error_is_decode_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return json_response(
            {
                "error": {
                    "code": 1006,
                    "message": "No matching location found.",
                }
            },
            status_code=400,
        )

    with pytest.raises(WeatherDecodeError, match="No matching location"):
        asyncio.run(mock_client(handler).fetch("Atlantis"))


def test_decode_missing_condition_code_fails() -> None:
    payload = json.loads(json.dumps(LONDON_PAYLOAD))
    del payload["current"]["condition"]["code"]

    with pytest.raises(WeatherDecodeError, match="current.condition.code"):
        decode_current(json.dumps(payload).encode())


@pytest.mark.parametrize(
    ("path", "value"),
    [
        (("current", "temp_c"), "15.0"),
        (("current", "temp_f"), None),
        (("current", "temp_c"), True),
        (("current", "condition", "code"), 1006.5),
        (("current", "condition", "text"), 3),
        (("location", "name"), ""),
        (("location",), "London"),
    ],
)
def test_decode_rejects_mistyped_fields(
    path: tuple[str, ...], value: object
) -> None:
    payload = json.loads(json.dumps(LONDON_PAYLOAD))
    target = payload
    for key in path[:-1]:
        target = target[key]
    target[path[-1]] = value

    with pytest.raises(WeatherDecodeError):
        decode_current(json.dumps(payload).encode())


def test_decode_accepts_integer_temperatures() -> None:
    payload = json.loads(json.dumps(LONDON_PAYLOAD))
    payload["current"]["temp_c"] = 15
    result = decode_current(json.dumps(payload).encode())
    assert result.temperature_c == 15.0
    assert isinstance(result.temperature_c, float)


@pytest.mark.parametrize("body", [b"not json", b"[]", b"null", b"\xff\xfe"])
def test_decode_rejects_non_object_bodies(body: bytes) -> None:
    with pytest.raises(WeatherDecodeError):
        decode_current(body)


def test_decode_search_returns_names_in_order() -> None:
    body = json.dumps(
        [
            {"id": 1, "name": "London", "country": "United Kingdom"},
            {"id": 2, "name": "Londonderry", "country": "United Kingdom"},
        ]
    ).encode()
    assert decode_search(body) == ["London", "Londonderry"]


def test_quote_query_encodes_reserved_characters() -> None:
    assert quote_query("Saint-Jean & Co") == "Saint-Jean%20%26%20Co"


def test_quote_query_falls_back_to_raw_string() -> None:
    unencodable = "Lo\ud800ndon"
    assert quote_query(unencodable) == unencodable


def test_fetch_with_unencodable_city_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return json_response(LONDON_PAYLOAD)

    with pytest.raises(WeatherNetworkError, match="UnicodeEncodeError"):
        asyncio.run(mock_client(handler).fetch("Lo\ud800ndon"))


def test_base_url_from_settings(settings: SettingsWrapper) -> None:
    settings.WEATHERAPI_BASE_URL = "https://weather.internal/v1/"
    client = WeatherApiClient(api_key="k")
    assert client.url_for("current.json", "Oslo") == (
        "https://weather.internal/v1/current.json?key=k&q=Oslo"
    )
