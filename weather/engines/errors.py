"""Error taxonomy for weather lookups.

Every failure on the fetch path is terminal for that attempt; nothing here is
retried.
"""

from __future__ import annotations


class WeatherFetchError(Exception):
    """Base class for failures while turning a city name into a record."""

    code = "fetch_failed"


class InvalidCityError(WeatherFetchError):
    """Raised locally for an empty or whitespace-only city name."""

    code = "invalid_input"


class WeatherNetworkError(WeatherFetchError):
    """Raised when the transport fails or the response has no body."""

    code = "network_error"


class WeatherDecodeError(WeatherFetchError):
    """Raised when the response body does not match the expected schema."""

    code = "decode_error"


class LocationResolveError(Exception):
    """Raised by location resolvers when no city can be determined."""

    code = "resolve_error"
