"""Pytest configuration and fixtures for alfred-nest tests."""

import copy
from datetime import datetime, timedelta, timezone

import pytest

from alfred_nest.context import Context, Settings

API = "https://developer-api.nest.com"
TOKEN = "token-123"

ACCOUNT = {
    "metadata": {"access_token": "c.abc", "client_version": 1},
    "devices": {
        "thermostats": {
            "t1": {
                "device_id": "t1",
                "name": "Living Room",
                "structure_id": "s1",
                "software_version": "5.9",
                "is_online": True,
                "last_connection": "2016-01-01T10:00:00.000Z",
                "temperature_scale": "F",
                "hvac_mode": "heat-cool",
                "target_temperature_f": 70,
                "target_temperature_c": 21.0,
                "target_temperature_high_f": 74,
                "target_temperature_high_c": 23.5,
                "target_temperature_low_f": 66,
                "target_temperature_low_c": 19.0,
                "ambient_temperature_f": 70,
                "ambient_temperature_c": 21.0,
                "humidity": 40,
            },
            "t2": {
                "device_id": "t2",
                "name": "Bedroom",
                "structure_id": "s1",
                "temperature_scale": "C",
                "hvac_mode": "heat",
                "target_temperature_f": 68,
                "target_temperature_c": 20.0,
                "ambient_temperature_f": 64,
                "ambient_temperature_c": 18.0,
                "humidity": 35,
            },
        },
    },
    "structures": {
        "s1": {
            "structure_id": "s1",
            "thermostats": ["t1", "t2"],
            "away": "home",
            "name": "Home",
            "time_zone": "America/New_York",
        },
    },
}


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def account() -> dict:
    """A fresh copy of a two-thermostat account snapshot."""
    return copy.deepcopy(ACCOUNT)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        client_id="client-id",
        client_secret="client-secret",
        data_dir=tmp_path / "data",
        cache_dir=tmp_path / "cache",
    )


@pytest.fixture
def ctx(settings, clock) -> Context:
    """A context on a fresh install: no token, no cache."""
    return Context(settings, clock=clock)


@pytest.fixture
def authorized_ctx(ctx, clock) -> Context:
    ctx.tokens.save(TOKEN, clock.now + timedelta(hours=1))
    return ctx
