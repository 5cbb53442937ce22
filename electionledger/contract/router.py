# electionledger/contract/router.py
# Registers contract functions under their boundary names, each as exactly one of write or read
from enum import Enum
from typing import Callable, Dict, NamedTuple


class OperationKind(str, Enum):
    TRANSACTION = "transaction"  # writes state, goes through submit/commit
    QUERY = "query"  # read-only, safe on the evaluate path


class Operation(NamedTuple):
    name: str
    kind: OperationKind
    func: Callable
    tags: tuple


class ContractRouter:
    """Collects operations the way an APIRouter collects endpoints."""

    def __init__(self, tags=()):
        self.tags = tuple(tags)
        self.operations: Dict[str, Operation] = {}

    def _register(self, name: str, kind: OperationKind):
        def decorator(func: Callable) -> Callable:
            if name in self.operations:
                raise ValueError(f"operation {name} registered twice")
            self.operations[name] = Operation(name, kind, func, self.tags)
            return func
        return decorator

    def transaction(self, name: str):
        return self._register(name, OperationKind.TRANSACTION)

    def query(self, name: str):
        return self._register(name, OperationKind.QUERY)
