"""Tracked-city API endpoints.

Authentication: none; the only credential is the server-side provider key.
Scope: one in-memory store per Django session, discarded with the session.
Responses: wrapped by `config.api.responses.success_response`
(status/message/data/errors).
"""

from __future__ import annotations

from typing import cast

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import serializers, status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from config.api.openapi import (
    error_envelope_serializer,
    success_envelope_serializer,
)
from config.api.responses import JSONValue, error_response, success_response

from .engines.errors import (
    InvalidCityError,
    LocationResolveError,
    WeatherDecodeError,
    WeatherFetchError,
    WeatherNetworkError,
)
from .engines.types import TrackResult, UpsertOutcome
from .location import CoordinateLocationResolver
from .serializers import (
    LocateParamsSerializer,
    TrackCityParamsSerializer,
    TrackResultSerializer,
    WeatherRecordSerializer,
    serialize_records,
    serialize_track_result,
)
from .services import build_client, track_city, track_current_location
from .sessions import end_session, peek_store, session_store

cities_success_schema = success_envelope_serializer(
    "WeatherCitiesSuccess",
    data=inline_serializer(
        name="WeatherCitiesData",
        fields={"cities": WeatherRecordSerializer(many=True)},
    ),
)
track_success_schema = success_envelope_serializer(
    "WeatherTrackSuccess",
    data=TrackResultSerializer(),
)
discard_success_schema = success_envelope_serializer(
    "WeatherDiscardSuccess",
    data=inline_serializer(
        name="WeatherDiscardData",
        fields={"discarded": serializers.BooleanField()},
    ),
)
weather_error_schema = error_envelope_serializer("WeatherErrorResponse")

_ERROR_STATUS: dict[type[Exception], int] = {
    InvalidCityError: status.HTTP_400_BAD_REQUEST,
    LocationResolveError: status.HTTP_400_BAD_REQUEST,
    WeatherDecodeError: status.HTTP_502_BAD_GATEWAY,
    WeatherNetworkError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def lookup_error_response(exc: Exception) -> Response:
    code = getattr(exc, "code", "fetch_failed")
    status_code = _ERROR_STATUS.get(type(exc), status.HTTP_502_BAD_GATEWAY)
    return error_response(
        str(exc), errors={"code": code}, status_code=status_code
    )


def track_response(result: TrackResult) -> Response:
    if result.outcome is UpsertOutcome.INSERTED:
        return success_response(
            serialize_track_result(result),
            message="City added",
            status_code=status.HTTP_201_CREATED,
        )
    return success_response(
        serialize_track_result(result), message="City already tracked"
    )


class CitiesView(APIView):
    """List, add and discard the cities tracked by this session.

    Response: success envelope; `cities` in the order they were added.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        responses={200: cities_success_schema},
    )
    def get(self, request: Request) -> Response:
        store = peek_store(request)
        records = store.all() if store is not None else ()
        return success_response(
            {"cities": cast(JSONValue, serialize_records(records))}
        )

    @extend_schema(
        request=TrackCityParamsSerializer,
        responses={
            200: track_success_schema,
            201: track_success_schema,
            400: weather_error_schema,
            502: weather_error_schema,
            503: weather_error_schema,
        },
    )
    def post(self, request: Request) -> Response:
        """Look up a city and add it unless it is already tracked.

        Inputs: `city` (required, trimmed).
        Outputs: 201 with the new record, or 200 with outcome `skipped`.
        """

        serializer = TrackCityParamsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store = session_store(request)
        try:
            result = async_to_sync(track_city)(
                store,
                serializer.validated_data["city"],
                client=build_client(),
            )
        except WeatherFetchError as exc:
            return lookup_error_response(exc)
        return track_response(result)

    @extend_schema(responses={200: discard_success_schema})
    def delete(self, request: Request) -> Response:
        """End the session and drop its tracked cities."""

        return success_response({"discarded": end_session(request)})


class LocateCityView(APIView):
    """Resolve device coordinates to a city and track it.

    Response: same envelope and outcomes as `POST /api/v1/cities/`.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        request=LocateParamsSerializer,
        responses={
            200: track_success_schema,
            201: track_success_schema,
            400: weather_error_schema,
            502: weather_error_schema,
            503: weather_error_schema,
        },
    )
    def post(self, request: Request) -> Response:
        serializer = LocateParamsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data
        client = build_client()
        resolver = CoordinateLocationResolver(
            float(params["lat"]), float(params["lon"]), client=client
        )
        store = session_store(request)
        try:
            result = async_to_sync(track_current_location)(
                store, resolver, client=client
            )
        except (WeatherFetchError, LocationResolveError) as exc:
            return lookup_error_response(exc)
        return track_response(result)
