# electionledger/contract/candidacy.py
# Candidacy workflow (pending -> approved | rejected | withdrawn) and candidate profiles
import logging
from collections import Counter

from ..canonical import canonical_json
from ..config import PARTICIPANT_ROLES, ROLE_CANDIDATE
from ..errors import DuplicateApplication, ElectionNotActive, InvalidTransition, NotFound
from ..keys import APPLICATION_PREFIX, application_key, application_prefix, identity_key, identity_prefix, prefix_range
from ..models import Application, ApplicationStatus, Identity
from .complaints import log_action
from .elections import all_votes, drop_from_rosters, load_election, save_election
from .identity import find_identity, move_identity
from .router import ContractRouter

logger = logging.getLogger(__name__)

router = ContractRouter(tags=["Candidate"])

PUBLIC_PROFILE_FIELDS = ("did", "fullName", "dob", "birthplace", "username", "image", "role", "createdAt")


def public_profile(record: dict) -> dict:
    return {field: record[field] for field in PUBLIC_PROFILE_FIELDS if field in record}


def _load_application(ctx, election_id: str, did: str):
    key = application_key(election_id, did)
    record = ctx.get_json(key)
    if record is None:
        raise NotFound("Application not found")
    return key, Application(**record)


def _move(ctx, key: str, application: Application, status: ApplicationStatus, refusal: str) -> Application:
    # Only pending applications move; every other status is terminal
    if application.status != ApplicationStatus.PENDING:
        raise InvalidTransition(refusal.format(status=application.status.value))
    application.status = status
    application.updatedAt = ctx.tx_timestamp
    ctx.put_json(key, application)
    logger.info(f"Application {key} is now {status.value}")
    return application


@router.transaction("apply")
def apply(ctx, election_id: str, did: str) -> str:
    election = load_election(ctx, election_id)
    if not election.activeFlag:
        raise ElectionNotActive("Election is not accepting applications")
    key = application_key(election_id, did)
    existing = ctx.get_json(key)
    # A withdrawn application may be replaced by a fresh one
    if existing and existing.get("status") != ApplicationStatus.WITHDRAWN.value:
        raise DuplicateApplication("Already applied for candidacy")
    if find_identity(ctx, did, PARTICIPANT_ROLES) is None:
        raise NotFound("User not found")

    application = Application(did=did, electionId=election_id, appliedAt=ctx.tx_timestamp)
    ctx.put_json(key, application)
    log_action(ctx, "APPLY_CANDIDATE", did)
    return canonical_json(application)


@router.transaction("approve")
def approve(ctx, election_id: str, did: str) -> str:
    """
    Approve a pending application. Status, the identity's move to candidate-<did>
    and the roster entry are written in this one transaction.
    """
    key, application = _load_application(ctx, election_id, did)
    if application.status == ApplicationStatus.APPROVED:
        raise InvalidTransition("Already approved")
    election = load_election(ctx, election_id)
    found = find_identity(ctx, did, PARTICIPANT_ROLES)
    if found is None:
        raise NotFound("Voter record not found")

    application = _move(ctx, key, application, ApplicationStatus.APPROVED, "Cannot approve a {status} application")
    role, record = found
    if role != ROLE_CANDIDATE and ctx.exists(identity_key(ROLE_CANDIDATE, did)):
        # Already registered as a candidate too: keep that record, drop the voter one
        ctx.del_state(identity_key(role, did))
    else:
        move_identity(ctx, record, role, ROLE_CANDIDATE)
    if did not in election.candidates:
        election.candidates.append(did)
        save_election(ctx, election)
    log_action(ctx, "APPROVE_CANDIDATE", did)
    return canonical_json(application)


@router.transaction("reject")
def reject(ctx, election_id: str, did: str) -> str:
    key, application = _load_application(ctx, election_id, did)
    if application.status == ApplicationStatus.APPROVED:
        raise InvalidTransition("Cannot reject approved candidate")
    application = _move(ctx, key, application, ApplicationStatus.REJECTED, "Cannot reject a {status} application")
    log_action(ctx, "REJECT_CANDIDATE", did)
    return canonical_json(application)


@router.transaction("withdraw")
def withdraw(ctx, election_id: str, did: str) -> str:
    key, application = _load_application(ctx, election_id, did)
    application = _move(ctx, key, application, ApplicationStatus.WITHDRAWN, "Cannot withdraw a {status} application")
    log_action(ctx, "WITHDRAW_CANDIDACY", did)
    return canonical_json(application)


@router.query("listApplications")
def list_applications(ctx, election_id: str) -> str:
    return canonical_json([
        record
        for _, record in ctx.scan_json(*prefix_range(application_prefix(election_id)))
        if record.get("electionId") == election_id
    ])


@router.query("listAllApplications")
def list_all_applications(ctx) -> str:
    return canonical_json([record for _, record in ctx.scan_json(*prefix_range(APPLICATION_PREFIX))])


@router.query("getApprovedCandidates")
def get_approved_candidates(ctx, election_id: str) -> str:
    election = load_election(ctx, election_id)
    profiles = []
    for did in election.candidates:
        record = ctx.get_json(identity_key(ROLE_CANDIDATE, did))
        if record:
            profiles.append(public_profile(record))
    return canonical_json(profiles)


# === CANDIDATE PROFILES ===

def _load_candidate(ctx, did: str):
    key = identity_key(ROLE_CANDIDATE, did)
    record = ctx.get_json(key)
    if record is None:
        raise NotFound("Candidate not found")
    return key, record


def _votes_by_election(ctx, did: str) -> Counter:
    return Counter(vote.electionId for vote in all_votes(ctx) if vote.candidateDid == did)


@router.query("getCandidateProfile")
def get_candidate_profile(ctx, did: str) -> str:
    _, record = _load_candidate(ctx, did)
    profile = public_profile(record)
    profile["votes"] = sum(_votes_by_election(ctx, did).values())
    return canonical_json(profile)


@router.transaction("updateCandidateProfile")
def update_candidate_profile(ctx, did: str, full_name: str, birthplace: str, image: str = "") -> str:
    key, record = _load_candidate(ctx, did)
    candidate = Identity(**record)
    if full_name:
        candidate.fullName = full_name
    if birthplace:
        candidate.birthplace = birthplace
    if image:
        candidate.image = image
    ctx.put_json(key, candidate)
    log_action(ctx, "UPDATE_CANDIDATE", did)
    return canonical_json(public_profile(candidate.model_dump()))


@router.transaction("deleteCandidate")
def delete_candidate(ctx, did: str) -> str:
    key, _ = _load_candidate(ctx, did)
    ctx.del_state(key)
    drop_from_rosters(ctx, did)
    log_action(ctx, "DELETE_CANDIDATE", did)
    return canonical_json({"message": f"Candidate {did} deleted"})


@router.query("listAllCandidates")
def list_all_candidates(ctx) -> str:
    return canonical_json([
        public_profile(record)
        for _, record in ctx.scan_json(*prefix_range(identity_prefix(ROLE_CANDIDATE)))
        if record.get("role") == ROLE_CANDIDATE
    ])


@router.query("getCandidateVoteCount")
def get_candidate_vote_count(ctx, did: str) -> str:
    _load_candidate(ctx, did)
    by_election = _votes_by_election(ctx, did)
    return canonical_json({"did": did, "votes": sum(by_election.values()), "byElection": dict(by_election)})
