from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Iterable, Sequence
from typing import cast

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .engines.base import WeatherClient
from .engines.errors import InvalidCityError, WeatherFetchError
from .engines.types import TrackResult, UpsertOutcome, WeatherRecord
from .engines.weatherapi import WeatherApiClient
from .location import LocationResolver
from .metrics import (
    weather_active_sessions,
    weather_provider_errors_total,
    weather_provider_latency_seconds,
    weather_provider_requests_total,
    weather_store_upserts_total,
    weather_tracked_cities,
)
from .store import Subscription, WeatherStore

logger = logging.getLogger(__name__)


def build_client() -> WeatherApiClient:
    """Instantiate the configured provider client."""

    api_key = cast(str, getattr(settings, "WEATHERAPI_KEY", "") or "")
    if not api_key.strip():
        raise ImproperlyConfigured(
            "WEATHERAPI_KEY is required to look up weather."
        )
    return WeatherApiClient(api_key=api_key.strip())


async def fetch_record(client: WeatherClient, city_name: str) -> WeatherRecord:
    """Run one provider lookup with request/error/latency metrics."""

    start_time = time.perf_counter()
    weather_provider_requests_total.labels(
        provider=client.name, endpoint="current"
    ).inc()
    try:
        return await client.fetch(city_name)
    except WeatherFetchError as exc:
        weather_provider_errors_total.labels(
            provider=client.name,
            endpoint="current",
            error_type=exc.__class__.__name__,
        ).inc()
        logger.warning(
            "weather.fetch.failed city=%s err=%s", city_name, exc
        )
        raise
    finally:
        duration = time.perf_counter() - start_time
        weather_provider_latency_seconds.labels(
            provider=client.name, endpoint="current"
        ).observe(duration)


async def track_city(
    store: WeatherStore,
    city_name: str,
    client: WeatherClient | None = None,
) -> TrackResult:
    """Look up a city and commit it to the store.

    Cities already tracked are skipped before any request is made. Two
    lookups racing for the same new city are settled by `store.upsert`.
    """

    city = city_name.strip()
    if not city:
        raise InvalidCityError("City name must not be empty.")
    if store.contains(city):
        logger.info("weather.track.already_tracked city=%s", city)
        weather_store_upserts_total.labels(
            outcome=UpsertOutcome.SKIPPED.value
        ).inc()
        return TrackResult(outcome=UpsertOutcome.SKIPPED)

    record = await fetch_record(client or build_client(), city)
    outcome = store.upsert(record)
    weather_store_upserts_total.labels(outcome=outcome.value).inc()
    logger.info(
        "weather.track.%s city=%s resolved=%s",
        outcome.value,
        city,
        record.city,
    )
    return TrackResult(outcome=outcome, record=record)


async def track_current_location(
    store: WeatherStore,
    resolver: LocationResolver,
    client: WeatherClient | None = None,
) -> TrackResult:
    city = await resolver.resolve_current_city()
    return await track_city(store, city, client=client)


async def track_cities(
    store: WeatherStore,
    names: Iterable[str],
    client: WeatherClient | None = None,
) -> list[TrackResult | WeatherFetchError]:
    """Track several cities concurrently.

    Results come back in input order; a failed lookup yields its error in
    place of a result.
    """

    provider = client or build_client()
    results = await asyncio.gather(
        *(track_city(store, name, client=provider) for name in names),
        return_exceptions=True,
    )
    outcomes: list[TrackResult | WeatherFetchError] = []
    for result in results:
        if isinstance(result, TrackResult | WeatherFetchError):
            outcomes.append(result)
        else:
            raise cast(BaseException, result)
    return outcomes


class StoreRegistry:
    """Process-local map of session key to that session's store.

    Entries live as long as their session: `prune` drops every entry whose
    session the session backend no longer holds.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stores: dict[str, tuple[WeatherStore, Subscription]] = {}

    def get(self, session_key: str) -> WeatherStore:
        with self._lock:
            entry = self._stores.get(session_key)
            if entry is None:
                store = WeatherStore()
                entry = (store, store.subscribe(_log_growth))
                self._stores[session_key] = entry
            return entry[0]

    def peek(self, session_key: str) -> WeatherStore | None:
        """Return the session's store without creating one."""

        with self._lock:
            entry = self._stores.get(session_key)
        return entry[0] if entry is not None else None

    def discard(self, session_key: str) -> bool:
        with self._lock:
            entry = self._stores.pop(session_key, None)
        if entry is None:
            return False
        entry[1].unsubscribe()
        return True

    def prune(self, is_live: Callable[[str], bool]) -> int:
        """Discard stores whose session key fails `is_live`."""

        with self._lock:
            keys = list(self._stores)
        dropped = sum(self.discard(key) for key in keys if not is_live(key))
        if dropped:
            logger.info("weather.registry.pruned count=%d", dropped)
        return dropped

    def tracked_count(self) -> int:
        with self._lock:
            stores = [store for store, _ in self._stores.values()]
        return sum(len(store) for store in stores)

    def __contains__(self, session_key: object) -> bool:
        with self._lock:
            return session_key in self._stores

    def __len__(self) -> int:
        with self._lock:
            return len(self._stores)


def _log_growth(records: Sequence[WeatherRecord]) -> None:
    logger.debug("weather.store.changed count=%d", len(records))


registry = StoreRegistry()
weather_tracked_cities.set_function(registry.tracked_count)
weather_active_sessions.set_function(registry.__len__)
