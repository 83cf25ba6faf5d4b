from __future__ import annotations

from abc import ABC, abstractmethod

from .types import WeatherRecord


class WeatherClient(ABC):
    """Abstract base for current-conditions providers."""

    name: str

    @abstractmethod
    async def fetch(self, city_name: str) -> WeatherRecord:
        """Return current conditions for a city.

        Raises a `WeatherFetchError` subclass instead of returning a partial
        record.
        """
