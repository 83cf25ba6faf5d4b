from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

weather_provider_requests_total = Counter(
    "weather_provider_requests_total",
    "Total weather provider requests",
    labelnames=["provider", "endpoint"],
)

weather_provider_errors_total = Counter(
    "weather_provider_errors_total",
    "Total weather provider request errors",
    labelnames=["provider", "endpoint", "error_type"],
)

weather_provider_latency_seconds = Histogram(
    "weather_provider_latency_seconds",
    "Latency of weather provider requests",
    labelnames=["provider", "endpoint"],
    buckets=(0.1, 0.3, 0.5, 1, 2, 5, 10, 20, 30),
)

weather_store_upserts_total = Counter(
    "weather_store_upserts_total",
    "Upserts into session weather stores by outcome",
    labelnames=["outcome"],
)

weather_tracked_cities = Gauge(
    "weather_tracked_cities",
    "Cities tracked across live session stores",
)

weather_active_sessions = Gauge(
    "weather_active_sessions",
    "Session weather stores currently held in memory",
)
