"""
Integration tests for alfred-nest — read-only calls against the real Nest API.

Requires environment variables:
  NEST_ACCESS_TOKEN  — valid access token
  NEST_API_URL       — (optional) defaults to https://developer-api.nest.com

Run: NEST_INTEGRATION=1 pytest tests/integration/ -v
"""

import os

import pytest

from alfred_nest import ApiError, NestSession
from alfred_nest.transport.http import DEFAULT_API_URL

SKIP = not os.environ.get("NEST_INTEGRATION")
ACCESS_TOKEN = os.environ.get("NEST_ACCESS_TOKEN", "")
API_URL = os.environ.get("NEST_API_URL", DEFAULT_API_URL)

pytestmark = pytest.mark.skipif(SKIP, reason="NEST_INTEGRATION not set")


def make_session() -> NestSession:
    return NestSession(ACCESS_TOKEN, base_url=API_URL)


class TestAccountData:
    def test_snapshot_follows_shard_redirect(self):
        with make_session() as session:
            data = session.get_all_account_data()
        assert data.metadata.access_token

    def test_thermostats_match_snapshot(self):
        with make_session() as session:
            snapshot = session.get_all_account_data()
            thermostats = session.get_thermostats()
        assert {t.device_id for t in thermostats} == set(snapshot.devices.thermostats)

    def test_structure_presence(self):
        with make_session() as session:
            snapshot = session.get_all_account_data()
            for structure_id in snapshot.structures:
                assert isinstance(session.is_away(structure_id), bool)


class TestAuth:
    def test_rejects_invalid_token(self):
        with NestSession("invalid", base_url=API_URL) as session:
            with pytest.raises(ApiError):
                session.get_all_account_data()
