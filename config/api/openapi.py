"""drf-spectacular schemas for the response envelope in `config.api.responses`.

Documentation only; runtime responses are built by `envelope()`.
"""

from __future__ import annotations

from drf_spectacular.utils import inline_serializer
from rest_framework import serializers
from rest_framework.serializers import Serializer


def _envelope_fields(data: serializers.Field) -> dict[str, serializers.Field]:
    return {
        "status": serializers.IntegerField(),
        "message": serializers.CharField(),
        "data": data,
        "errors": serializers.JSONField(allow_null=True),
    }


def success_envelope_serializer(
    name: str,
    *,
    data: serializers.Field,
) -> Serializer:
    return inline_serializer(name=name, fields=_envelope_fields(data))


def error_envelope_serializer(name: str) -> Serializer:
    """Failure envelope; `errors.code` names the failure kind."""

    return inline_serializer(
        name=name,
        fields=_envelope_fields(serializers.JSONField(allow_null=True)),
    )
