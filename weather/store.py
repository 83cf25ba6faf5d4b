"""In-memory, per-session list of tracked cities.

The store is the only holder of the tracked-city list. It is mutated only
through `upsert`, which performs the duplicate check and the append under one
lock, and it notifies observers with a snapshot after every insert.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence

from .engines.types import UpsertOutcome, WeatherRecord, normalize_city

logger = logging.getLogger(__name__)

Observer = Callable[[Sequence[WeatherRecord]], None]


class Subscription:
    """Handle returned by `WeatherStore.subscribe`."""

    def __init__(self, store: WeatherStore, observer: Observer) -> None:
        self._store = store
        self.observer = observer
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._store._remove(self)
            self.active = False


class WeatherStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: dict[str, WeatherRecord] = {}
        self._subscriptions: list[Subscription] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def contains(self, city_name: str) -> bool:
        with self._lock:
            return normalize_city(city_name) in self._records

    def upsert(self, record: WeatherRecord) -> UpsertOutcome:
        """Insert a record unless its city is already tracked.

        An existing city keeps its original record and position; the newer
        data is dropped and `SKIPPED` is returned.
        """

        with self._lock:
            key = record.key
            if key in self._records:
                logger.debug("weather.store.skipped city=%s", record.city)
                return UpsertOutcome.SKIPPED
            self._records[key] = record
            snapshot = tuple(self._records.values())
            # Delivered under the lock so observers never see snapshots
            # out of order.
            for subscription in list(self._subscriptions):
                self._notify(subscription, snapshot)
        logger.debug(
            "weather.store.inserted city=%s count=%d",
            record.city,
            len(snapshot),
        )
        return UpsertOutcome.INSERTED

    def all(self) -> tuple[WeatherRecord, ...]:
        with self._lock:
            return tuple(self._records.values())

    def subscribe(self, observer: Observer) -> Subscription:
        subscription = Subscription(self, observer)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _notify(
        self, subscription: Subscription, snapshot: Sequence[WeatherRecord]
    ) -> None:
        try:
            subscription.observer(snapshot)
        except Exception:
            # An observer failure must not undo or hide a committed insert.
            logger.exception(
                "weather.store.observer_failed observer=%r",
                subscription.observer,
            )
