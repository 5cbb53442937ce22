from enum import Enum
from pydantic import BaseModel
from typing import Optional


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class Application(BaseModel):
    did: str
    electionId: str
    status: ApplicationStatus = ApplicationStatus.PENDING
    appliedAt: str
    updatedAt: Optional[str] = None
