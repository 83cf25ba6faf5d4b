from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class WeatherRecord:
    """Latest observation for one city, as reported by the provider."""

    city: str
    temperature_c: float
    temperature_f: float
    condition_text: str
    condition_code: int

    @property
    def key(self) -> str:
        return normalize_city(self.city)


class UpsertOutcome(Enum):
    INSERTED = "inserted"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TrackResult:
    outcome: UpsertOutcome
    record: WeatherRecord | None = None


def normalize_city(name: str) -> str:
    """Return the case-insensitive key used to compare city names."""

    return name.strip().lower()
