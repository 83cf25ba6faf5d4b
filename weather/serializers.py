from __future__ import annotations

from collections.abc import Sequence
from typing import ClassVar

from rest_framework import serializers

from config.api.responses import JSONValue

from .engines.types import TrackResult


class TrackCityParamsSerializer(serializers.Serializer):
    city: ClassVar[serializers.CharField] = serializers.CharField(
        max_length=200, trim_whitespace=True
    )


class LocateParamsSerializer(serializers.Serializer):
    lat: ClassVar[serializers.FloatField] = serializers.FloatField(
        min_value=-90.0, max_value=90.0
    )
    lon: ClassVar[serializers.FloatField] = serializers.FloatField(
        min_value=-180.0, max_value=180.0
    )


class WeatherRecordSerializer(serializers.Serializer):
    city: ClassVar[serializers.CharField] = serializers.CharField()
    temperature_c: ClassVar[serializers.FloatField] = serializers.FloatField()
    temperature_f: ClassVar[serializers.FloatField] = serializers.FloatField()
    condition_text: ClassVar[serializers.CharField] = serializers.CharField()
    condition_code: ClassVar[serializers.IntegerField] = (
        serializers.IntegerField()
    )


class TrackResultSerializer(serializers.Serializer):
    outcome: ClassVar[serializers.CharField] = serializers.CharField()
    record: ClassVar[WeatherRecordSerializer] = WeatherRecordSerializer(
        allow_null=True
    )


def serialize_records(
    records: Sequence[object],
) -> list[dict[str, JSONValue]]:
    serializer = WeatherRecordSerializer(records, many=True)
    return list(serializer.data)


def serialize_track_result(result: TrackResult) -> dict[str, JSONValue]:
    record = (
        WeatherRecordSerializer(result.record).data
        if result.record is not None
        else None
    )
    return {"outcome": result.outcome.value, "record": record}
