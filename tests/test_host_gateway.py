import pytest
from fastapi.testclient import TestClient

from electionledger.errors import InvalidArgument
from electionledger.main import create_app


@pytest.fixture
def client(host):
    return TestClient(create_app(host))


def test_unknown_operation(host):
    with pytest.raises(InvalidArgument):
        host.submit("mintVotes")


def test_operations_run_only_on_their_path(host):
    with pytest.raises(InvalidArgument):
        host.evaluate("castVote", "E1", "V1", "C1")
    with pytest.raises(InvalidArgument):
        host.submit("getAllElections")


def test_wrong_arity(host):
    with pytest.raises(InvalidArgument):
        host.submit("createElection", "E1")


def test_arguments_must_be_strings(host):
    with pytest.raises(InvalidArgument):
        host.submit("createElection", "E1", "T", "", 2026, "2026-12-31")


def test_empty_listing_is_an_empty_array(host):
    assert host.evaluate("getAllElections") == "[]"


def test_invoke_reports_tx_id_and_version(host):
    result = host.invoke("initLedger", tx_id="boot")
    assert result.tx_id == "boot"
    assert result.version == 1


def test_every_operation_is_registered_once(host):
    operations = host.contract.operations
    for name in ("registerIdentity", "castVote", "getResult", "declareWinner", "resetSystem", "getHistory"):
        assert name in operations
    assert operations["getResult"].kind.value == "query"
    assert operations["castVote"].kind.value == "transaction"


def test_gateway_round_trip(client):
    response = client.post("/transactions/createElection",
                           json={"args": ["E1", "Board", "", "2026-01-01", "2026-12-31"]})
    assert response.status_code == 200
    assert response.headers["X-Transaction-Id"]
    assert response.json()["electionId"] == "E1"

    response = client.post("/queries/viewDetails", json={"args": ["E1"]})
    assert response.status_code == 200
    assert response.json()["title"] == "Board"


@pytest.mark.parametrize("path, args, status, code", [
    ("/queries/viewDetails", ["E9"], 404, "NOT_FOUND"),
    ("/transactions/createElection", ["E1"], 400, "INVALID_ARGUMENT"),
    ("/transactions/getAllElections", [], 400, "INVALID_ARGUMENT"),
    ("/transactions/authenticate", ["voter", "V1", "1990-01-01", "u", "pw"], 401, "INVALID_CREDENTIALS"),
])
def test_gateway_errors(client, path, args, status, code):
    response = client.post(path, json={"args": args})
    assert response.status_code == status
    assert response.json()["detail"]["code"] == code


def test_gateway_conflicts(client):
    args = {"args": ["E1", "Board", "", "2026-01-01", "2026-12-31"]}
    client.post("/transactions/createElection", json=args)
    response = client.post("/transactions/createElection", json=args)
    assert response.status_code == 409
    assert response.json()["detail"] == {"code": "ALREADY_EXISTS", "message": "Election already exists."}


def test_operations_listing(client):
    operations = {op["name"]: op for op in client.get("/operations").json()}
    assert operations["castVote"]["kind"] == "transaction"
    assert operations["getCalendar"]["tags"] == ["Election"]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy", "storage": "memory"}
