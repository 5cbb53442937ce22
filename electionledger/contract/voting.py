# electionledger/contract/voting.py
# Voting engine: one vote per voter per election, tallies, winner, turnout, receipts
import logging
from collections import Counter
from typing import Any, Dict

from ..canonical import canonical_json
from ..config import PARTICIPANT_ROLES, ROLE_CANDIDATE, ROLE_VOTER
from ..errors import AlreadyVoted, ElectionNotActive, InvalidTransition, NotFound
from ..keys import archive_key, identity_key, vote_key
from ..models import Election, Vote
from .complaints import SYSTEM_DID, log_action
from .elections import ENDED, all_elections, all_votes, election_votes, load_election, save_election, window_status
from .identity import find_identity, identities_with_role
from .router import ContractRouter

logger = logging.getLogger(__name__)

router = ContractRouter(tags=["Vote"])


def tally(ctx, election_id: str) -> Dict[str, int]:
    counts = Counter()
    for vote in election_votes(ctx, election_id):
        counts[vote.candidateDid] += 1
    return dict(counts)


def compute_result(ctx, election: Election) -> Dict[str, Any]:
    """
    Winner is the candidate with the most votes. Ties go to the
    lexicographically smallest candidate did, whatever order the scan returned.
    """
    counts = tally(ctx, election.electionId)
    winner, max_votes = None, 0
    if counts:
        winner, max_votes = min(counts.items(), key=lambda item: (-item[1], item[0]))
    return {
        "electionId": election.electionId,
        "winner": winner,
        "maxVotes": max_votes,
        "totalVotes": sum(counts.values()),
        "totalCandidates": len(election.candidates),
        "tally": counts,
    }


def turnout(ctx, election_id: str) -> Dict[str, Any]:
    total_votes = len(election_votes(ctx, election_id))
    registered = len(identities_with_role(ctx, ROLE_VOTER))
    # No registered voters: the rate is undefined, reported as null rather than NaN/Infinity
    rate = f"{total_votes / registered * 100:.2f}%" if registered else None
    return {"electionId": election_id, "totalVotes": total_votes, "registeredVoters": registered, "turnout": rate}


# === VOTING ===

@router.transaction("castVote")
def cast_vote(ctx, election_id: str, voter_did: str, candidate_did: str) -> str:
    key = vote_key(election_id, voter_did)
    # Existence of the vote key is the double-vote guard, whichever candidate is named
    if ctx.exists(key):
        raise AlreadyVoted("You have already voted in this election.")

    election = load_election(ctx, election_id)
    if find_identity(ctx, voter_did, PARTICIPANT_ROLES) is None:
        raise NotFound("Voter not found")
    if candidate_did not in election.candidates or not ctx.exists(identity_key(ROLE_CANDIDATE, candidate_did)):
        raise NotFound("Candidate not found in this election")
    if not election.activeFlag:
        raise ElectionNotActive("Election is not open for voting")

    vote = Vote(electionId=election_id, voterDid=voter_did, candidateDid=candidate_did, timestamp=ctx.tx_timestamp)
    ctx.put_json(key, vote)
    if voter_did not in election.voters:
        election.voters.append(voter_did)
    election.votes.append(key)
    save_election(ctx, election)
    log_action(ctx, "CAST_VOTE", voter_did)
    return canonical_json(vote)


@router.query("countVotes")
def count_votes(ctx, election_id: str) -> str:
    return canonical_json(tally(ctx, election_id))


@router.query("getResult")
def get_result(ctx, election_id: str) -> str:
    return canonical_json(compute_result(ctx, load_election(ctx, election_id)))


@router.query("getReceipt")
def get_receipt(ctx, election_id: str, voter_did: str) -> str:
    record = ctx.get_json(vote_key(election_id, voter_did))
    if record is None:
        raise NotFound("Vote not found")
    return canonical_json(record)


@router.query("hasVoted")
def has_voted(ctx, election_id: str, voter_did: str) -> str:
    return canonical_json({"hasVoted": ctx.exists(vote_key(election_id, voter_did))})


def _voted_election_ids(ctx, voter_did: str) -> list:
    voted = []
    for vote in all_votes(ctx):
        if vote.voterDid == voter_did and vote.electionId not in voted:
            voted.append(vote.electionId)
    return voted


@router.query("listVotedElections")
def list_voted_elections(ctx, voter_did: str) -> str:
    return canonical_json(_voted_election_ids(ctx, voter_did))


@router.query("listUnvotedElections")
def list_unvoted_elections(ctx, voter_did: str) -> str:
    voted = _voted_election_ids(ctx, voter_did)
    return canonical_json([e for e in all_elections(ctx) if e.activeFlag and e.electionId not in voted])


@router.query("turnoutRate")
def turnout_rate(ctx, election_id: str) -> str:
    load_election(ctx, election_id)
    return canonical_json(turnout(ctx, election_id))


@router.query("getVotingHistory")
def get_voting_history(ctx, voter_did: str) -> str:
    return canonical_json([vote for vote in all_votes(ctx) if vote.voterDid == voter_did])


@router.query("getVoteHistory")
def get_vote_history(ctx, election_id: str) -> str:
    return canonical_json(election_votes(ctx, election_id))


# === RESULTS ===

def close_election(ctx, election: Election) -> Election:
    """Record the winner of an ended election and snapshot it under archive-<electionId>."""
    result = compute_result(ctx, election)
    election.winner = result["winner"]
    election.maxVotes = result["maxVotes"]
    election.winnerDeclared = True
    save_election(ctx, election)
    ctx.put_json(archive_key(election.electionId), election)
    logger.info(f"Election {election.electionId} closed, winner {election.winner} with {election.maxVotes} votes")
    return election


@router.transaction("declareWinner")
def declare_winner(ctx, election_id: str) -> str:
    election = load_election(ctx, election_id)
    if election.winnerDeclared:
        raise InvalidTransition("Winner already declared")
    if window_status(election, ctx.tx_datetime) != ENDED:
        raise InvalidTransition("Election has not ended yet")
    close_election(ctx, election)
    log_action(ctx, "DECLARE_WINNER", election_id)
    return canonical_json(election)


@router.transaction("archiveEndedElections")
def archive_ended_elections(ctx) -> str:
    """Close every ended election that has no declared winner yet, in one transaction."""
    closed = [
        close_election(ctx, election)
        for election in all_elections(ctx)
        if not election.winnerDeclared and window_status(election, ctx.tx_datetime) == ENDED
    ]
    log_action(ctx, "ARCHIVE_ELECTIONS", SYSTEM_DID)
    return canonical_json(closed)


@router.query("getArchivedElection")
def get_archived_election(ctx, election_id: str) -> str:
    record = ctx.get_json(archive_key(election_id))
    if record is None:
        raise NotFound("Archived election not found")
    return canonical_json(record)


@router.query("generateElectionReport")
def generate_election_report(ctx, election_id: str) -> str:
    election = load_election(ctx, election_id)
    result = compute_result(ctx, election)
    return canonical_json({
        "electionId": election_id,
        "electionTitle": election.title,
        "totalVotes": result["totalVotes"],
        "winner": result["winner"],
        "maxVotes": result["maxVotes"],
        "tally": result["tally"],
        "turnout": turnout(ctx, election_id)["turnout"],
        "timestamp": ctx.tx_timestamp,
    })
