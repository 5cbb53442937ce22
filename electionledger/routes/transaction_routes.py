from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from ..errors import ContractError, ErrorCode
from ..host import LedgerHost
from ..schemas import ErrorOut, InvocationRequest, OperationOut

router = APIRouter(tags=["Ledger"])

STATUS_BY_CODE = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.ELECTION_NOT_ACTIVE: 403,
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.ALREADY_EXISTS: 409,
    ErrorCode.DUPLICATE_APPLICATION: 409,
    ErrorCode.ALREADY_MEMBER: 409,
    ErrorCode.ALREADY_VOTED: 409,
    ErrorCode.SINGLETON_VIOLATION: 409,
    ErrorCode.INVALID_TRANSITION: 409,
    ErrorCode.MVCC_CONFLICT: 409,
}

ERROR_RESPONSES = {status: {"model": ErrorOut} for status in sorted(set(STATUS_BY_CODE.values()))}


def get_host(request: Request) -> LedgerHost:
    return request.app.state.host


def to_http_exception(error: ContractError) -> HTTPException:
    return HTTPException(status_code=STATUS_BY_CODE.get(error.code, 400), detail=error.to_dict())


def json_response(payload: str, tx_id: str = None) -> Response:
    headers = {"X-Transaction-Id": tx_id} if tx_id else None
    return Response(content=payload, media_type="application/json", headers=headers)


@router.post("/transactions/{operation}", responses=ERROR_RESPONSES)
def submit_transaction(operation: str, invocation: InvocationRequest, host: LedgerHost = Depends(get_host)):
    """
    Run a write operation through the commit path.
    The response body is the operation's JSON; the transaction id comes back in X-Transaction-Id.
    """
    try:
        result = host.invoke(operation, invocation.args)
    except ContractError as e:
        raise to_http_exception(e)
    return json_response(result.payload, result.tx_id)


@router.post("/queries/{operation}", responses=ERROR_RESPONSES)
def evaluate_query(operation: str, invocation: InvocationRequest, host: LedgerHost = Depends(get_host)):
    try:
        payload = host.evaluate(operation, *invocation.args)
    except ContractError as e:
        raise to_http_exception(e)
    return json_response(payload)


@router.get("/operations", response_model=List[OperationOut])
def list_operations(host: LedgerHost = Depends(get_host)):
    return [
        OperationOut(name=op.name, kind=op.kind.value, tags=list(op.tags))
        for op in sorted(host.contract.operations.values(), key=lambda op: op.name)
    ]
