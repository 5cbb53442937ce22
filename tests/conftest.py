import json
from datetime import datetime, timedelta, timezone

import pytest

from electionledger.host import LedgerHost
from electionledger.storage import MemoryLedgerStore


NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)
PAST = "2026-01-01T00:00:00Z"
FUTURE = "2026-12-31T23:59:59Z"
LATER = "2027-03-01T00:00:00Z"
MUCH_LATER = "2027-04-01T00:00:00Z"


class FixedClock:

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def store():
    return MemoryLedgerStore()


@pytest.fixture
def host(store, clock):
    return LedgerHost(store, clock=clock)


@pytest.fixture
def submit(host):
    def _submit(operation, *args, **kwargs):
        return json.loads(host.submit(operation, *args, **kwargs))
    return _submit


@pytest.fixture
def evaluate(host):
    def _evaluate(operation, *args):
        return json.loads(host.evaluate(operation, *args))
    return _evaluate


@pytest.fixture
def register(submit):
    def _register(role, did, password="secret", dob="1990-01-01", username=None):
        return submit(
            "registerIdentity", role, did, f"Name {did}", dob, "Brno",
            username or f"user-{did}", password, "",
        )
    return _register


@pytest.fixture
def create_election(submit):
    def _create(election_id, start=PAST, end=FUTURE, title=None):
        return submit("createElection", election_id, title or f"Election {election_id}", "", start, end)
    return _create


@pytest.fixture
def approved_candidate(submit, register):
    """Register did as a voter, apply for election_id and approve."""
    def _approved(election_id, did):
        register("voter", did)
        submit("apply", election_id, did)
        return submit("approve", election_id, did)
    return _approved


@pytest.fixture
def ledger_keys(store):
    def _keys(prefix=""):
        end = prefix + "~" if prefix else ""
        return [key for key, _, _ in store.range(prefix, end)]
    return _keys
