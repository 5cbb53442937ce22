# electionledger/contract/elections.py
# Election lifecycle: CRUD, activity windows, candidate roster, calendar, key history
import logging
from datetime import datetime
from typing import List

from ..canonical import canonical_json, load_json, normalize_instant, parse_instant
from ..config import ROLE_CANDIDATE
from ..errors import AlreadyExists, AlreadyMember, InvalidArgument, NotFound
from ..keys import (
    ELECTION_PREFIX,
    VOTE_PREFIX,
    application_prefix,
    archive_key,
    election_key,
    identity_key,
    prefix_range,
    vote_prefix,
)
from ..models import Election, Vote
from .complaints import log_action
from .router import ContractRouter

logger = logging.getLogger(__name__)

router = ContractRouter(tags=["Election"])

UPCOMING = "upcoming"
RUNNING = "running"
ENDED = "ended"


def window_status(election: Election, now: datetime) -> str:
    if now < parse_instant(election.startDate):
        return UPCOMING
    if now > parse_instant(election.endDate):
        return ENDED
    return RUNNING


def is_active(election: Election, now: datetime) -> bool:
    """startDate <= now <= endDate, with now taken from the transaction, never a local clock."""
    return window_status(election, now) == RUNNING


def load_election(ctx, election_id: str) -> Election:
    record = ctx.get_json(election_key(election_id))
    if record is None:
        raise NotFound("Election not found")
    election = Election(**record)
    election.activeFlag = is_active(election, ctx.tx_datetime)
    return election


def save_election(ctx, election: Election) -> None:
    election.activeFlag = is_active(election, ctx.tx_datetime)
    ctx.put_json(election_key(election.electionId), election)


def all_elections(ctx) -> List[Election]:
    elections = []
    for key, record in ctx.scan_json(*prefix_range(ELECTION_PREFIX)):
        # election-authority-<did> identities share the prefix
        if "electionId" not in record or key != election_key(record["electionId"]):
            continue
        election = Election(**record)
        election.activeFlag = is_active(election, ctx.tx_datetime)
        elections.append(election)
    return elections


def election_votes(ctx, election_id: str) -> List[Vote]:
    """Vote records of one election, in key (voter did) order."""
    return [
        Vote(**record)
        for _, record in ctx.scan_json(*prefix_range(vote_prefix(election_id)))
        if record.get("electionId") == election_id
    ]


def all_votes(ctx) -> List[Vote]:
    return [Vote(**record) for _, record in ctx.scan_json(*prefix_range(VOTE_PREFIX))]


def drop_from_rosters(ctx, did: str) -> List[str]:
    """Take did off every election roster; returns the ids of the elections touched."""
    touched = []
    for election in all_elections(ctx):
        if did in election.candidates:
            election.candidates.remove(did)
            save_election(ctx, election)
            touched.append(election.electionId)
    return touched


def _validated_window(start_date: str, end_date: str):
    start, end = normalize_instant(start_date), normalize_instant(end_date)
    if parse_instant(end) < parse_instant(start):
        raise InvalidArgument("endDate is before startDate")
    return start, end


# === ELECTION MANAGEMENT ===

@router.transaction("createElection")
def create_election(ctx, election_id: str, title: str, description: str, start_date: str, end_date: str) -> str:
    if not election_id:
        raise InvalidArgument("electionId is required")
    key = election_key(election_id)
    if ctx.exists(key):
        raise AlreadyExists("Election already exists.")
    start, end = _validated_window(start_date, end_date)
    election = Election(
        electionId=election_id,
        title=title,
        description=description or "",
        startDate=start,
        endDate=end,
        createdAt=ctx.tx_timestamp,
    )
    save_election(ctx, election)
    log_action(ctx, "CREATE_ELECTION", election_id)
    logger.info(f"Election {election_id} created, window {start} .. {end}")
    return canonical_json(election)


@router.transaction("updateElectionDetails")
def update_election_details(ctx, election_id: str, title: str = "", description: str = "",
                            start_date: str = "", end_date: str = "") -> str:
    election = load_election(ctx, election_id)
    if title:
        election.title = title
    if description:
        election.description = description
    election.startDate, election.endDate = _validated_window(
        start_date or election.startDate,
        end_date or election.endDate,
    )
    save_election(ctx, election)
    log_action(ctx, "UPDATE_ELECTION", election_id)
    return canonical_json(election)


@router.transaction("deleteElection")
def delete_election(ctx, election_id: str) -> str:
    load_election(ctx, election_id)
    ctx.del_state(election_key(election_id))
    # Votes, applications and the archive snapshot are deleted with the election
    removed = 0
    for prefix in (vote_prefix(election_id), application_prefix(election_id)):
        for key, record in ctx.scan_json(*prefix_range(prefix)):
            if record.get("electionId") == election_id:
                ctx.del_state(key)
                removed += 1
    if ctx.exists(archive_key(election_id)):
        ctx.del_state(archive_key(election_id))
    log_action(ctx, "DELETE_ELECTION", election_id)
    logger.info(f"Election {election_id} deleted with {removed} vote and application records")
    return canonical_json({"message": f"Election {election_id} deleted", "removed": removed})


@router.query("getAllElections")
def get_all_elections(ctx) -> str:
    return canonical_json(all_elections(ctx))


@router.query("filterUpcoming")
def filter_upcoming(ctx) -> str:
    return canonical_json([e for e in all_elections(ctx) if window_status(e, ctx.tx_datetime) == UPCOMING])


@router.query("filterRunning")
def filter_running(ctx) -> str:
    return canonical_json([e for e in all_elections(ctx) if e.activeFlag])


@router.query("getCalendar")
def get_calendar(ctx) -> str:
    entries = [
        {
            "electionId": e.electionId,
            "title": e.title,
            "startDate": e.startDate,
            "endDate": e.endDate,
            "status": window_status(e, ctx.tx_datetime),
        }
        for e in all_elections(ctx)
    ]
    entries.sort(key=lambda entry: (entry["startDate"], entry["electionId"]))
    return canonical_json(entries)


@router.query("viewDetails")
def view_details(ctx, election_id: str) -> str:
    return canonical_json(load_election(ctx, election_id))


# === ROSTER ===

def _require_candidate(ctx, candidate_did: str) -> None:
    if not ctx.exists(identity_key(ROLE_CANDIDATE, candidate_did)):
        raise NotFound("Candidate not found")


@router.transaction("addCandidate")
def add_candidate(ctx, election_id: str, candidate_did: str) -> str:
    election = load_election(ctx, election_id)
    _require_candidate(ctx, candidate_did)
    if candidate_did in election.candidates:
        raise AlreadyMember(f"Candidate {candidate_did} is already in election {election_id}")
    election.candidates.append(candidate_did)
    save_election(ctx, election)
    log_action(ctx, "ADD_CANDIDATE", candidate_did)
    return canonical_json(election)


@router.transaction("removeCandidate")
def remove_candidate(ctx, election_id: str, candidate_did: str) -> str:
    election = load_election(ctx, election_id)
    _require_candidate(ctx, candidate_did)
    if candidate_did not in election.candidates:
        raise NotFound(f"Candidate {candidate_did} is not in election {election_id}")
    election.candidates.remove(candidate_did)
    save_election(ctx, election)
    log_action(ctx, "REMOVE_CANDIDATE", candidate_did)
    return canonical_json(election)


# === HISTORY & PARTICIPATION ===

@router.query("getHistory")
def get_history(ctx, election_id: str) -> str:
    history = ctx.get_history_for_key(election_key(election_id))
    if not history:
        raise NotFound("Election not found")
    for entry in history:
        entry["value"] = load_json(entry["value"]) if entry["value"] else None
    return canonical_json(history)


@router.query("getVoters")
def get_voters(ctx, election_id: str) -> str:
    return canonical_json(load_election(ctx, election_id).voters)


@router.query("getVoterCount")
def get_voter_count(ctx, election_id: str) -> str:
    election = load_election(ctx, election_id)
    return canonical_json({"electionId": election_id, "voterCount": len(election.voters)})


@router.query("getVoteCount")
def get_vote_count(ctx, election_id: str) -> str:
    load_election(ctx, election_id)
    return canonical_json({"electionId": election_id, "voteCount": len(election_votes(ctx, election_id))})
