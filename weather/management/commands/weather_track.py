from __future__ import annotations

import asyncio
from argparse import ArgumentParser
from typing import cast

from django.core.management.base import BaseCommand, CommandError

from weather.engines.errors import WeatherFetchError
from weather.services import build_client, track_cities
from weather.store import WeatherStore


class Command(BaseCommand):
    help = "Look up current weather for one or more cities."

    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument("cities", nargs="+", help="City names to track.")

    def handle(self, *args: object, **options: object) -> None:
        names = [str(name) for name in cast(list[str], options["cities"])]
        store = WeatherStore()
        results = asyncio.run(
            track_cities(store, names, client=build_client())
        )

        failures = 0
        for name, result in zip(names, results, strict=True):
            if isinstance(result, WeatherFetchError):
                failures += 1
                self.stderr.write(f"{name}: {result}")

        for record in store.all():
            self.stdout.write(
                f"{record.city}: {record.condition_text}, "
                f"{int(record.temperature_c)}°C / "
                f"{int(record.temperature_f)}°F"
            )

        if failures == len(names):
            raise CommandError("No city could be looked up.")
