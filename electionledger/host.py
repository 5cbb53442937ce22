# electionledger/host.py
# Runs contract operations as ledger transactions: submit (commit path) and evaluate (query path)
import inspect
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, NamedTuple, Optional

from .config import LEDGER_BACKEND, LEDGER_JSON_PATH
from .contract import OperationKind, VotingContract, build_contract
from .errors import ContractError, InvalidArgument
from .storage import LedgerStore, MemoryLedgerStore
from .stub import TransactionContext

logger = logging.getLogger(__name__)


class TransactionResult(NamedTuple):
    tx_id: str
    version: int
    payload: str


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_store(backend: str = LEDGER_BACKEND) -> LedgerStore:
    if backend == "memory":
        return MemoryLedgerStore()
    if backend == "json":
        return MemoryLedgerStore(LEDGER_JSON_PATH)
    if backend == "mongo":
        from .storage_mongo import MongoLedgerStore
        return MongoLedgerStore()
    raise ValueError(f"Unknown ledger backend: {backend!r}")


class LedgerHost:
    """
    Stand-in for the ledger platform's execution side.

    Picks the transaction id and commit timestamp, hands the contract a fresh
    context per invocation and commits the working set only when the operation
    returned normally. Contract code itself never reads a clock.
    """

    def __init__(self, store: Optional[LedgerStore] = None, contract: Optional[VotingContract] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store if store is not None else get_store()
        self.contract = contract if contract is not None else build_contract()
        self.clock = clock

    def _operation(self, name: str, kind: OperationKind):
        operation = self.contract.get(name)
        if operation is None:
            raise InvalidArgument(f"Unknown operation: {name}")
        if operation.kind != kind:
            path = "submit" if operation.kind == OperationKind.TRANSACTION else "evaluate"
            raise InvalidArgument(f"{name} is a {operation.kind.value} operation; use {path}")
        return operation

    def _run(self, operation, ctx: TransactionContext, args) -> str:
        for arg in args:
            if not isinstance(arg, str):
                raise InvalidArgument(f"{operation.name} takes string arguments, got {type(arg).__name__}")
        try:
            inspect.signature(operation.func).bind(ctx, *args)
        except TypeError as e:
            raise InvalidArgument(f"{operation.name}: {e}")
        return operation.func(ctx, *args)

    def invoke(self, name: str, args=(), tx_id: Optional[str] = None,
               timestamp: Optional[datetime] = None) -> TransactionResult:
        operation = self._operation(name, OperationKind.TRANSACTION)
        ctx = TransactionContext(self.store, tx_id or uuid.uuid4().hex, timestamp or self.clock())
        try:
            payload = self._run(operation, ctx, tuple(args))
            version = ctx.commit()
        except ContractError as e:
            logger.warning(f"Transaction {ctx.tx_id} ({name}) rejected: {e.message}")
            raise
        logger.info(f"Transaction {ctx.tx_id} ({name}) committed at version {version}")
        return TransactionResult(ctx.tx_id, version, payload)

    def submit(self, name: str, *args, tx_id: Optional[str] = None, timestamp: Optional[datetime] = None) -> str:
        return self.invoke(name, args, tx_id=tx_id, timestamp=timestamp).payload

    def evaluate(self, name: str, *args, timestamp: Optional[datetime] = None) -> str:
        operation = self._operation(name, OperationKind.QUERY)
        ctx = TransactionContext(self.store, uuid.uuid4().hex, timestamp or self.clock(), read_only=True)
        logger.debug(f"Query {name} evaluated as {ctx.tx_id}")
        return self._run(operation, ctx, args)
