from __future__ import annotations

# ruff: noqa: S101
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.test import Client
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from config.api.exceptions import _to_json_value, custom_exception_handler
from config.api.responses import error_response, success_response
from weather.tests.fakes import FakeWeatherClient, record


def test_error_response_payload() -> None:
    resp = error_response(
        "Bad request",
        errors={"field": ["missing"]},
        status_code=418,
    )
    assert resp.status_code == 418
    assert resp.data == {
        "status": 1,
        "message": "Bad request",
        "data": None,
        "errors": {"field": ["missing"]},
    }


def test_success_response_payload() -> None:
    resp = success_response({"cities": []}, "Listed", status_code=201)
    assert resp.status_code == 201
    assert resp.data == {
        "status": 0,
        "message": "Listed",
        "data": {"cities": []},
        "errors": None,
    }


def test_custom_exception_handler_returns_500_on_unhandled() -> None:
    with patch("rest_framework.views.exception_handler", return_value=None):
        resp = custom_exception_handler(Exception("boom"), {})
    assert resp.status_code == 500
    assert resp.data["status"] == 1
    assert resp.data["message"] == "Internal server error"


def test_custom_exception_handler_wraps_validation_errors() -> None:
    resp = custom_exception_handler(
        ValidationError({"city": ["This field may not be blank."]}), {}
    )
    assert resp.status_code == 400
    assert resp.data["status"] == 1
    assert resp.data["message"] == "Request failed"
    assert resp.data["errors"] == {"city": ["This field may not be blank."]}


def test_custom_exception_handler_reports_missing_configuration() -> None:
    resp = custom_exception_handler(ImproperlyConfigured("no key"), {})
    assert resp.status_code == 503
    assert resp.data["errors"] == {"code": "not_configured"}


def test_custom_exception_handler_uses_detail_message() -> None:
    with patch(
        "rest_framework.views.exception_handler",
        return_value=Response({"detail": "Not found."}, status=404),
    ):
        resp = custom_exception_handler(Exception("missing"), {})
    assert resp.status_code == 404
    assert resp.data["message"] == "Not found."


def test_to_json_value_handles_sequences() -> None:
    payload = ("ok", {"value": Decimal("1.25")})
    assert _to_json_value(payload) == ["ok", {"value": "1.25"}]


def test_home_view_returns_metadata() -> None:
    client = Client()
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["service"] == "city-weather"
    assert body["tracked_cities"] == 0
    assert body["cities"] == "/api/v1/cities/"
    assert body["docs"] == "/api/docs/"
    assert settings.SESSION_COOKIE_NAME not in resp.cookies


def test_home_view_counts_tracked_cities(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    client = FakeWeatherClient(
        {"oslo": record("Oslo"), "lima": record("Lima")}
    )
    monkeypatch.setattr("weather.views.build_client", lambda: client)
    browser = Client()
    for city in ("Oslo", "Lima", "oslo"):
        browser.post(
            "/api/v1/cities/", {"city": city}, content_type="application/json"
        )

    assert browser.get("/").json()["tracked_cities"] == 2


def test_metrics_endpoint_exposes_weather_metrics() -> None:
    resp = Client().get("/metrics")
    assert resp.status_code == 200
    assert b"weather_provider_requests_total" in resp.content
