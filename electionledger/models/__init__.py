from .identity_model import Identity
from .election_model import Election
from .candidacy_model import Application, ApplicationStatus
from .vote_model import Vote
from .complaint_model import AuditLogEntry, Complaint

__all__ = [
    "Identity",
    "Election",
    "Application",
    "ApplicationStatus",
    "Vote",
    "Complaint",
    "AuditLogEntry",
]
