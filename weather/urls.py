from __future__ import annotations

from django.urls import path

from .views import CitiesView, LocateCityView

urlpatterns = [
    path(
        "cities/",
        CitiesView.as_view(),
        name="weather-cities",
    ),
    path(
        "cities/locate/",
        LocateCityView.as_view(),
        name="weather-cities-locate",
    ),
]
