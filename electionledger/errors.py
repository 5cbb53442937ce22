"""Error taxonomy shared by the contract, the host and the gateway.

Every error aborts the whole transaction. Nothing the failing invocation wrote
is committed. The contract never retries; that belongs to the caller.
"""
from enum import Enum


class ErrorCode(str, Enum):
    ALREADY_EXISTS = "ALREADY_EXISTS"
    DUPLICATE_APPLICATION = "DUPLICATE_APPLICATION"
    ALREADY_MEMBER = "ALREADY_MEMBER"
    NOT_FOUND = "NOT_FOUND"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    ALREADY_VOTED = "ALREADY_VOTED"
    SINGLETON_VIOLATION = "SINGLETON_VIOLATION"
    ELECTION_NOT_ACTIVE = "ELECTION_NOT_ACTIVE"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    MVCC_CONFLICT = "MVCC_CONFLICT"


class ContractError(Exception):
    """Base exception for contract errors."""
    code = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"code": self.code.value, "message": self.message}


class AlreadyExists(ContractError):
    code = ErrorCode.ALREADY_EXISTS


class DuplicateApplication(AlreadyExists):
    code = ErrorCode.DUPLICATE_APPLICATION


class AlreadyMember(AlreadyExists):
    code = ErrorCode.ALREADY_MEMBER


class NotFound(ContractError):
    code = ErrorCode.NOT_FOUND


class InvalidCredentials(ContractError):
    code = ErrorCode.INVALID_CREDENTIALS

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class InvalidTransition(ContractError):
    code = ErrorCode.INVALID_TRANSITION


class AlreadyVoted(ContractError):
    code = ErrorCode.ALREADY_VOTED


class SingletonViolation(ContractError):
    code = ErrorCode.SINGLETON_VIOLATION


class ElectionNotActive(ContractError):
    code = ErrorCode.ELECTION_NOT_ACTIVE


class InvalidArgument(ContractError):
    code = ErrorCode.INVALID_ARGUMENT


class MVCCConflict(ContractError):
    """Raised at commit when a key or range read by the transaction has changed."""
    code = ErrorCode.MVCC_CONFLICT
