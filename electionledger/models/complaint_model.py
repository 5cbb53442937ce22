from pydantic import BaseModel
from typing import Optional


class Complaint(BaseModel):
    did: str
    content: str
    timestamp: str
    response: Optional[str] = None
    respondedBy: Optional[str] = None
    responseAt: Optional[str] = None


class AuditLogEntry(BaseModel):
    did: str
    role: str = "unknown"
    action: str
    timestamp: str
    txId: str
