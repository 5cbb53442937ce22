"""The election contract: every operation the ledger host can run, by boundary name."""
from typing import Dict, Iterable

from . import candidacy, complaints, elections, identity, voting
from .router import ContractRouter, Operation, OperationKind


class VotingContract:

    def __init__(self, routers: Iterable[ContractRouter] = ()):
        self.operations: Dict[str, Operation] = {}
        for router in routers:
            self.include_router(router)

    def include_router(self, router: ContractRouter) -> None:
        for name, operation in router.operations.items():
            if name in self.operations:
                raise ValueError(f"operation {name} registered twice")
            self.operations[name] = operation

    def get(self, name: str) -> Operation:
        return self.operations.get(name)


def build_contract() -> VotingContract:
    return VotingContract([
        identity.router,
        elections.router,
        candidacy.router,
        voting.router,
        complaints.router,
    ])


__all__ = ["VotingContract", "Operation", "OperationKind", "build_contract"]
