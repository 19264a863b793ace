"""Test doubles and constants shared across the suite."""

from __future__ import annotations

import json
from datetime import datetime
from types import SimpleNamespace

from vodcatalog.services.vod.errors import ProviderError

RUN_1 = datetime(2024, 1, 1, 12, 0, 0)
RUN_2 = datetime(2024, 1, 2, 12, 0, 0)
RUN_3 = datetime(2024, 1, 3, 12, 0, 0)


def make_provider(provider_id: int = 1, name: str = "Provider A", **overrides):
    xc_data = overrides.pop(
        "xc_data",
        json.dumps({"server": "http://example.com:8080", "username": "user", "password": "pass"}),
    )
    m3u_url = overrides.pop("m3u_url", None)
    return SimpleNamespace(id=provider_id, name=name, xc_data=xc_data, m3u_url=m3u_url, **overrides)


class FakeXtreamClient:
    """In-memory stand-in for the Xtream API."""

    def __init__(self, vod_categories=None, series_categories=None, movies=None, series=None,
                 failures=()):
        self.vod_categories = vod_categories if vod_categories is not None else []
        self.series_categories = series_categories if series_categories is not None else []
        self.movies = movies if movies is not None else []
        self.series = series if series is not None else []
        self.failures = set(failures)
        self.calls = []

    def _respond(self, action, payload):
        self.calls.append(action)
        if action in self.failures:
            raise ProviderError(f"Error in action '{action}': connection reset")
        return payload

    def get_vod_categories(self):
        return self._respond("get_vod_categories", self.vod_categories)

    def get_series_categories(self):
        return self._respond("get_series_categories", self.series_categories)

    def get_vod_streams(self):
        return self._respond("get_vod_streams", self.movies)

    def get_series(self):
        return self._respond("get_series", self.series)


class RecordingSink:
    def __init__(self):
        self.events = []

    def __call__(self, message, severity):
        self.events.append((message, severity))

    def messages(self, severity=None):
        return [m for m, s in self.events if severity is None or s == severity]
