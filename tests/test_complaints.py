import pytest

from electionledger.errors import AlreadyExists, InvalidArgument, NotFound


def test_submit_and_reply(register, submit, evaluate):
    register("voter", "V1")
    complaint = submit("submitComplaint", "V1", "queue too long", tx_id="c1")
    assert complaint == {
        "key": "complain-c1",
        "did": "V1",
        "content": "queue too long",
        "timestamp": "2026-10-18T12:00:00.000Z",
    }
    replied = submit("replyToComplaint", "c1", "EA1", "more booths tomorrow")
    assert replied["response"] == "more booths tomorrow"
    assert replied["respondedBy"] == "EA1"

    second = submit("replyToComplaint", "complain-c1", "EA2", "fixed")
    assert (second["response"], second["respondedBy"]) == ("fixed", "EA2")
    assert evaluate("viewComplaints") == [second]


def test_empty_complaint_rejected(submit):
    with pytest.raises(InvalidArgument):
        submit("submitComplaint", "V1", "   ")


def test_complaints_by_user(submit, evaluate):
    submit("submitComplaint", "V1", "one", tx_id="a")
    submit("submitComplaint", "V2", "two", tx_id="b")
    assert [c["key"] for c in evaluate("listComplaintsByUser", "V2")] == ["complain-b"]


def test_delete_complaint(submit, evaluate):
    submit("submitComplaint", "V1", "one", tx_id="a")
    submit("deleteComplaint", "a")
    assert evaluate("viewComplaints") == []
    with pytest.raises(NotFound):
        submit("deleteComplaint", "a")
    with pytest.raises(NotFound):
        submit("replyToComplaint", "a", "EA1", "too late")


def test_every_write_leaves_one_audit_entry(submit, evaluate, clock):
    submit("registerIdentity", "admin", "A1", "Admin", "1980-01-01", "Brno", "root", "pw", "", tx_id="t1")
    clock.advance(seconds=1)
    submit("createElection", "E1", "Board", "", "2026-01-01", "2026-12-31", tx_id="t2")
    entries = evaluate("viewAuditLogs")
    assert entries == [
        {"did": "A1", "role": "admin", "action": "REGISTER_ADMIN",
         "timestamp": "2026-10-18T12:00:00.000Z", "txId": "t1"},
        {"did": "E1", "role": "unknown", "action": "CREATE_ELECTION",
         "timestamp": "2026-10-18T12:00:01.000Z", "txId": "t2"},
    ]


def test_failed_write_leaves_no_audit_entry(register, evaluate):
    register("voter", "V1")
    with pytest.raises(AlreadyExists):
        register("voter", "V1")
    assert len(evaluate("searchAuditLogsByUser", "V1")) == 1


def test_init_ledger(submit, evaluate, store):
    assert submit("initLedger") == {"message": "VotingContract initialized"}
    assert store.get("init")[0] == "VotingContract initialized"
    assert [e["action"] for e in evaluate("viewAuditLogs")] == ["INIT_LEDGER"]


def test_reset_leaves_only_the_sentinel(register, create_election, submit, ledger_keys, store):
    register("voter", "V1")
    create_election("E1")
    submit("submitComplaint", "V1", "hello")
    result = submit("resetSystem")
    assert result["message"] == "System reset complete"
    assert result["deleted"] > 0
    assert ledger_keys() == ["init"]
    assert store.get("init")[0] == "VotingContract reset"


def test_audit_report_matches_audit_logs(register, submit, evaluate):
    register("voter", "V1")
    submit("submitComplaint", "V1", "hello")
    assert evaluate("downloadAuditReport") == evaluate("viewAuditLogs")
    assert len(evaluate("downloadAuditReport")) == 2
