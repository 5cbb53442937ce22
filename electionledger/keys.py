# electionledger/keys.py
# Composite key scheme. Secondary indexes and migration tools depend on these exact formats.
from typing import Tuple

from .config import RANGE_SENTINEL

ELECTION_PREFIX = "election-"
APPLICATION_PREFIX = "application-"
VOTE_PREFIX = "vote-"
COMPLAINT_PREFIX = "complain-"
LOG_PREFIX = "log-"
ARCHIVE_PREFIX = "archive-"
SINGLETON_PREFIX = "singleton-"


def identity_key(role: str, did: str) -> str:
    return f"{role.lower()}-{did}"


def identity_prefix(role: str) -> str:
    return f"{role.lower()}-"


def election_key(election_id: str) -> str:
    return f"{ELECTION_PREFIX}{election_id}"


def application_key(election_id: str, did: str) -> str:
    return f"{APPLICATION_PREFIX}{election_id}-{did}"


def application_prefix(election_id: str) -> str:
    return f"{APPLICATION_PREFIX}{election_id}-"


def vote_key(election_id: str, voter_did: str) -> str:
    return f"{VOTE_PREFIX}{election_id}-{voter_did}"


def vote_prefix(election_id: str) -> str:
    return f"{VOTE_PREFIX}{election_id}-"


def complaint_key(complaint_id: str) -> str:
    return f"{COMPLAINT_PREFIX}{complaint_id}"


def log_key(tx_id: str) -> str:
    return f"{LOG_PREFIX}{tx_id}"


def archive_key(election_id: str) -> str:
    return f"{ARCHIVE_PREFIX}{election_id}"


def singleton_key(role: str) -> str:
    return f"{SINGLETON_PREFIX}{role.lower()}-count"


def prefix_range(prefix: str) -> Tuple[str, str]:
    """(start, end) pair for an open-ended scan over every key starting with prefix."""
    return prefix, prefix + RANGE_SENTINEL
