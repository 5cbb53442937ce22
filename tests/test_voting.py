import pytest

from electionledger.errors import AlreadyVoted, ElectionNotActive, InvalidTransition, NotFound

from .conftest import LATER, MUCH_LATER


@pytest.fixture
def running(create_election, approved_candidate, register):
    """E1 running with candidates C1, C2 and voters V1..V4."""
    create_election("E1")
    approved_candidate("E1", "C1")
    approved_candidate("E1", "C2")
    for did in ("V1", "V2", "V3", "V4"):
        register("voter", did)


def test_cast_vote(running, submit, evaluate, ledger_keys):
    vote = submit("castVote", "E1", "V1", "C1")
    assert vote == {
        "electionId": "E1",
        "voterDid": "V1",
        "candidateDid": "C1",
        "timestamp": "2026-10-18T12:00:00.000Z",
    }
    assert "vote-E1-V1" in ledger_keys()
    election = evaluate("viewDetails", "E1")
    assert election["voters"] == ["V1"]
    assert election["votes"] == ["vote-E1-V1"]
    assert evaluate("getReceipt", "E1", "V1") == vote
    assert evaluate("hasVoted", "E1", "V1") == {"hasVoted": True}
    assert evaluate("hasVoted", "E1", "V2") == {"hasVoted": False}


def test_one_vote_per_voter(running, submit, evaluate):
    submit("castVote", "E1", "V1", "C1")
    with pytest.raises(AlreadyVoted):
        submit("castVote", "E1", "V1", "C2")
    assert evaluate("countVotes", "E1") == {"C1": 1}


def test_cast_vote_checks(running, create_election, submit):
    with pytest.raises(NotFound):
        submit("castVote", "E9", "V1", "C1")
    with pytest.raises(NotFound):
        submit("castVote", "E1", "nobody", "C1")
    with pytest.raises(NotFound):
        submit("castVote", "E1", "V1", "V2")
    create_election("E-later", start=LATER, end=MUCH_LATER)
    with pytest.raises(NotFound):
        submit("castVote", "E-later", "V1", "C1")


def test_no_votes_outside_the_window(running, submit, clock):
    clock.advance(days=365)
    with pytest.raises(ElectionNotActive):
        submit("castVote", "E1", "V1", "C1")


def test_candidates_may_vote(running, submit, evaluate):
    submit("castVote", "E1", "C1", "C2")
    assert evaluate("countVotes", "E1") == {"C2": 1}


def test_tally_and_result(running, submit, evaluate):
    for voter, candidate in (("V1", "C1"), ("V2", "C2"), ("V3", "C2"), ("V4", "C1"), ("C1", "C2")):
        submit("castVote", "E1", voter, candidate)
    counts = evaluate("countVotes", "E1")
    assert counts == {"C1": 2, "C2": 3}
    assert sum(counts.values()) == len(evaluate("getVoteHistory", "E1"))
    result = evaluate("getResult", "E1")
    assert result["winner"] == "C2"
    assert result["maxVotes"] == 3
    assert result["totalVotes"] == 5
    assert result["totalCandidates"] == 2


def test_ties_go_to_smallest_did(running, submit, evaluate):
    submit("castVote", "E1", "V1", "C2")
    submit("castVote", "E1", "V2", "C1")
    assert evaluate("getResult", "E1")["winner"] == "C1"


def test_result_without_votes(running, evaluate):
    result = evaluate("getResult", "E1")
    assert result["winner"] is None
    assert result["maxVotes"] == 0
    assert result["tally"] == {}


def test_turnout(running, submit, evaluate):
    submit("castVote", "E1", "V1", "C1")
    assert evaluate("turnoutRate", "E1") == {
        "electionId": "E1",
        "totalVotes": 1,
        "registeredVoters": 4,
        "turnout": "25.00%",
    }


def test_turnout_without_registered_voters(create_election, approved_candidate, evaluate):
    create_election("E1")
    approved_candidate("E1", "C1")
    assert evaluate("turnoutRate", "E1")["turnout"] is None


def test_voter_views(running, create_election, submit, evaluate):
    create_election("E2")
    submit("addCandidate", "E2", "C1")
    submit("castVote", "E1", "V1", "C1")
    assert evaluate("listVotedElections", "V1") == ["E1"]
    assert [e["electionId"] for e in evaluate("listUnvotedElections", "V1")] == ["E2"]
    assert [v["electionId"] for v in evaluate("getVotingHistory", "V1")] == ["E1"]
    assert evaluate("getVotingHistory", "V2") == []


def test_receipt_for_missing_vote(running, evaluate):
    with pytest.raises(NotFound):
        evaluate("getReceipt", "E1", "V1")


def test_declare_winner(running, submit, evaluate, clock):
    submit("castVote", "E1", "V1", "C2")
    with pytest.raises(InvalidTransition):
        submit("declareWinner", "E1")
    clock.advance(days=365)
    closed = submit("declareWinner", "E1")
    assert closed["winner"] == "C2"
    assert closed["maxVotes"] == 1
    assert closed["winnerDeclared"] is True
    assert evaluate("viewDetails", "E1")["winner"] == "C2"
    assert evaluate("getArchivedElection", "E1")["winner"] == "C2"
    with pytest.raises(InvalidTransition):
        submit("declareWinner", "E1")


def test_queries_never_write(running, submit, evaluate, store, clock):
    submit("castVote", "E1", "V1", "C1")
    clock.advance(days=365)
    before = store.range("", "")
    evaluate("getResult", "E1")
    evaluate("generateElectionReport", "E1")
    assert store.range("", "") == before


def test_report(running, submit, evaluate):
    submit("castVote", "E1", "V1", "C1")
    submit("castVote", "E1", "V2", "C1")
    report = evaluate("generateElectionReport", "E1")
    assert report == {
        "electionId": "E1",
        "electionTitle": "Election E1",
        "totalVotes": 2,
        "winner": "C1",
        "maxVotes": 2,
        "tally": {"C1": 2},
        "turnout": "50.00%",
        "timestamp": "2026-10-18T12:00:00.000Z",
    }


@pytest.mark.parametrize("operation, args", [
    ("deleteIdentity", ("candidate", "C1")),
    ("reassignRole", ("C1", "voter")),
    ("deleteCandidate", ("C1",)),
])
def test_former_candidates_leave_rosters(running, submit, evaluate, operation, args):
    submit(operation, *args)
    assert evaluate("viewDetails", "E1")["candidates"] == ["C2"]
    with pytest.raises(NotFound):
        submit("castVote", "E1", "V1", "C1")


def test_no_votes_for_roster_entry_without_candidate_record(running, store, submit):
    store.commit("manual", "2026-10-18T12:00:00.000Z", {}, [], {"candidate-C1": None})
    with pytest.raises(NotFound):
        submit("castVote", "E1", "V1", "C1")


def test_archive_ended_elections(running, create_election, submit, evaluate, clock):
    submit("castVote", "E1", "V1", "C2")
    create_election("E2", end=LATER)
    clock.advance(days=100)

    closed = submit("archiveEndedElections")
    assert [e["electionId"] for e in closed] == ["E1"]
    assert closed[0]["winner"] == "C2"
    assert closed[0]["winnerDeclared"] is True
    assert evaluate("getArchivedElection", "E1") == evaluate("viewDetails", "E1")
    with pytest.raises(NotFound):
        evaluate("getArchivedElection", "E2")

    assert submit("archiveEndedElections") == []
    with pytest.raises(InvalidTransition):
        submit("declareWinner", "E1")

    submit("deleteElection", "E1")
    with pytest.raises(NotFound):
        evaluate("getArchivedElection", "E1")
