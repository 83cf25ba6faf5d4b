"""Resolvers that turn "where am I" into a city name.

Resolvers are injected into the service layer; there is no process-wide
resolver. A resolver runs one resolution at a time and never cancels a
request that is already in flight.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from .engines.errors import LocationResolveError, WeatherFetchError
from .engines.weatherapi import WeatherApiClient

logger = logging.getLogger(__name__)


class LocationResolver(ABC):
    def __init__(self) -> None:
        self._in_flight = asyncio.Lock()

    async def resolve_current_city(self) -> str:
        """Return the city for the current location.

        Raises `LocationResolveError` when no city can be determined.
        """

        async with self._in_flight:
            city = (await self._resolve()).strip()
        if not city:
            raise LocationResolveError("Resolved city name is empty.")
        return city

    @abstractmethod
    async def _resolve(self) -> str: ...


class StaticLocationResolver(LocationResolver):
    """Resolver for callers that already know the city."""

    def __init__(self, city: str) -> None:
        super().__init__()
        self.city = city

    async def _resolve(self) -> str:
        return self.city


class CoordinateLocationResolver(LocationResolver):
    """Reverse-geocode device coordinates via WeatherAPI's search endpoint."""

    def __init__(
        self, lat: float, lon: float, *, client: WeatherApiClient
    ) -> None:
        super().__init__()
        self.lat = lat
        self.lon = lon
        self.client = client

    async def _resolve(self) -> str:
        if not (-90.0 <= self.lat <= 90.0 and -180.0 <= self.lon <= 180.0):
            raise LocationResolveError(
                f"Coordinates out of range: {self.lat},{self.lon}"
            )
        try:
            names = await self.client.search(f"{self.lat},{self.lon}")
        except WeatherFetchError as exc:
            logger.warning(
                "weather.location.failed lat=%s lon=%s err=%s",
                self.lat,
                self.lon,
                exc,
            )
            raise LocationResolveError(
                f"Reverse geocoding failed: {exc}"
            ) from exc
        if not names:
            raise LocationResolveError(
                f"No city found near {self.lat},{self.lon}."
            )
        logger.info(
            "weather.location.resolved lat=%s lon=%s city=%s",
            self.lat,
            self.lon,
            names[0],
        )
        return names[0]
