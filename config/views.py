"""Project-level non-DRF views.

The root endpoint reports how many cities the caller's session tracks and
links to the tracked-city API and its documentation. It never starts a
session.
"""

from __future__ import annotations

from django.http import HttpRequest, JsonResponse

from weather.sessions import peek_store


def home(request: HttpRequest) -> JsonResponse:
    store = peek_store(request)
    return JsonResponse(
        {
            "ok": True,
            "service": "city-weather",
            "tracked_cities": len(store) if store is not None else 0,
            "cities": "/api/v1/cities/",
            "docs": "/api/docs/",
        }
    )
