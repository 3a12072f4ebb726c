"""Tests for NestSession operations and target selection."""

import json

import pytest
from pytest_httpx import HTTPXMock

from alfred_nest.errors import DecodeError
from alfred_nest.models.account import AccountData, Bound, HvacMode, Presence, Thermostat
from alfred_nest.nest import NestSession, choose_bound, target_path
from alfred_nest.temperature import Scale, Temperature

from conftest import API, TOKEN


@pytest.fixture
def session():
    with NestSession(TOKEN) as s:
        yield s


@pytest.fixture
def range_thermostat(account) -> Thermostat:
    return AccountData.model_validate(account).devices.thermostats["t1"]


class TestChooseBound:
    def test_heat_mode_uses_plain_target(self, account):
        thermostat = AccountData.model_validate(account).devices.thermostats["t2"]
        assert choose_bound(thermostat, Temperature.celsius(25)) is Bound.NONE

    def test_range_below_ambient_is_low(self, range_thermostat):
        assert choose_bound(range_thermostat, Temperature.fahrenheit(65)) is Bound.LOW

    def test_range_above_ambient_is_high(self, range_thermostat):
        assert choose_bound(range_thermostat, Temperature.fahrenheit(75)) is Bound.HIGH

    def test_range_at_ambient_is_high(self, range_thermostat):
        assert choose_bound(range_thermostat, Temperature.fahrenheit(70)) is Bound.HIGH

    def test_range_compares_in_the_requested_scale(self, range_thermostat):
        assert choose_bound(range_thermostat, Temperature.celsius(20)) is Bound.LOW
        assert choose_bound(range_thermostat, Temperature.celsius(22)) is Bound.HIGH


def test_target_paths():
    assert target_path("t1", Scale.FAHRENHEIT) == "/devices/thermostats/t1/target_temperature_f"
    assert target_path("t1", Scale.FAHRENHEIT, Bound.LOW) == "/devices/thermostats/t1/target_temperature_low_f"
    assert target_path("t1", Scale.FAHRENHEIT, Bound.HIGH) == "/devices/thermostats/t1/target_temperature_high_f"
    assert target_path("t1", Scale.CELSIUS, Bound.HIGH) == "/devices/thermostats/t1/target_temperature_high_c"


def test_get_all_account_data(session, account, httpx_mock: HTTPXMock):
    httpx_mock.add_response(method="GET", url=f"{API}/?auth={TOKEN}", json=account)

    data = session.get_all_account_data()

    assert set(data.devices.thermostats) == {"t1", "t2"}
    t1 = data.devices.thermostats["t1"]
    assert t1.hvac_mode is HvacMode.RANGE
    assert t1.ambient_temperature() == Temperature.fahrenheit(70)
    assert t1.ambient_temperature(Scale.CELSIUS) == Temperature.celsius(21.0)
    assert data.structures["s1"].away is Presence.HOME


def test_get_all_account_data_malformed(session, httpx_mock: HTTPXMock):
    httpx_mock.add_response(method="GET", url=f"{API}/?auth={TOKEN}", text="<html>oops</html>")

    with pytest.raises(DecodeError):
        session.get_all_account_data()


def test_get_thermostats(session, account, httpx_mock: HTTPXMock):
    httpx_mock.add_response(
        method="GET", url=f"{API}/devices/thermostats?auth={TOKEN}", json=account["devices"]["thermostats"],
    )
    names = sorted(t.name for t in session.get_thermostats())
    assert names == ["Bedroom", "Living Room"]


def test_is_away(session, httpx_mock: HTTPXMock):
    httpx_mock.add_response(
        method="GET", url=f"{API}/structures/s1?auth={TOKEN}", json={"structure_id": "s1", "away": "auto-away"},
    )
    assert session.is_away("s1") is True


@pytest.mark.parametrize(
    "value,suffix",
    [(65, "target_temperature_low_f"), (75, "target_temperature_high_f")],
)
def test_range_write_hits_bound_endpoint(session, range_thermostat, value, suffix, httpx_mock: HTTPXMock):
    httpx_mock.add_response(method="PUT", url=f"{API}/devices/thermostats/t1/{suffix}?auth={TOKEN}", text=str(value))

    target = Temperature.fahrenheit(value)
    accepted = session.set_target_temperature("t1", target, choose_bound(range_thermostat, target))

    assert accepted == Temperature.fahrenheit(value)


def test_write_sends_unrounded_value(session, httpx_mock: HTTPXMock):
    httpx_mock.add_response(
        method="PUT", url=f"{API}/devices/thermostats/t2/target_temperature_c?auth={TOKEN}", text="21.1",
    )
    accepted = session.set_target_temperature("t2", Temperature.fahrenheit(70).to(Scale.CELSIUS))

    sent = json.loads(httpx_mock.get_requests()[0].content)
    assert sent == pytest.approx(21.111111)
    assert sent != 21.1
    assert accepted == Temperature.celsius(21.1)


def test_write_with_unexpected_response(session, httpx_mock: HTTPXMock):
    httpx_mock.add_response(
        method="PUT", url=f"{API}/devices/thermostats/t1/target_temperature_f?auth={TOKEN}", json={"error": "x"},
    )
    with pytest.raises(DecodeError):
        session.set_target_temperature("t1", Temperature.fahrenheit(70))


def test_set_presence(session, httpx_mock: HTTPXMock):
    httpx_mock.add_response(method="PUT", url=f"{API}/structures/s1/away?auth={TOKEN}", json="away")

    session.set_presence("s1", Presence.AWAY)

    assert httpx_mock.get_requests()[0].content == b'"away"'


def test_set_hvac_mode(session, httpx_mock: HTTPXMock):
    httpx_mock.add_response(method="PUT", url=f"{API}/devices/thermostats/t1/hvac_mode?auth={TOKEN}", json="cool")

    session.set_hvac_mode("t1", HvacMode.COOL)

    assert httpx_mock.get_requests()[0].content == b'"cool"'


def test_set_temperature_scale(session, httpx_mock: HTTPXMock):
    httpx_mock.add_response(
        method="PUT", url=f"{API}/devices/thermostats/t1/temperature_scale?auth={TOKEN}", json="C",
    )

    session.set_temperature_scale("t1", Scale.CELSIUS)

    assert httpx_mock.get_requests()[0].content == b'"C"'


def test_patch_encodes_body(session, httpx_mock: HTTPXMock):
    httpx_mock.add_response(
        method="PATCH", url=f"{API}/devices/thermostats/t1?auth={TOKEN}", json={"hvac_mode": "cool"},
    )

    resp = session.patch("/devices/thermostats/t1", {"hvac_mode": "cool"})

    assert json.loads(resp) == {"hvac_mode": "cool"}
    assert json.loads(httpx_mock.get_requests()[0].content) == {"hvac_mode": "cool"}
