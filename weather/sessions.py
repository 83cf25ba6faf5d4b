"""Bind tracked-city stores to the lifetime of the Django session.

A session is only created when a caller first tracks a city. Reads never
create one. A cookie whose session has expired or been culled maps to no
store, and the store it used to map to is discarded.
"""

from __future__ import annotations

from typing import cast

from django.conf import settings
from django.http import HttpRequest
from rest_framework.request import Request

from .services import registry
from .store import WeatherStore

SESSION_MARKER = "weather_tracking"


def live_session_key(request: HttpRequest | Request) -> str | None:
    """Return the key of the caller's tracking session, if it is live."""

    session = request.session
    # Reading loads the session; the backend clears a key it does not know.
    tracking = bool(session.get(SESSION_MARKER, False))
    cookie_key = request.COOKIES.get(settings.SESSION_COOKIE_NAME)
    if cookie_key and cookie_key != session.session_key:
        registry.discard(cookie_key)
    if not tracking:
        return None
    return session.session_key


def peek_store(request: HttpRequest | Request) -> WeatherStore | None:
    session_key = live_session_key(request)
    if session_key is None:
        return None
    return registry.peek(session_key)


def session_store(request: HttpRequest | Request) -> WeatherStore:
    """Return the caller's store, starting a tracking session if needed."""

    session_key = live_session_key(request)
    if session_key is None:
        session = request.session
        session[SESSION_MARKER] = True
        session.save()
        session_key = cast(str, session.session_key)
        registry.prune(session.exists)
    return registry.get(session_key)


def end_session(request: HttpRequest | Request) -> bool:
    """Flush the session and drop its store; False if none was held."""

    session_key = live_session_key(request)
    discarded = registry.discard(session_key) if session_key else False
    request.session.flush()
    return discarded
