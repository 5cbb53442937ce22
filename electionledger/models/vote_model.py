from pydantic import BaseModel


class Vote(BaseModel):
    electionId: str
    voterDid: str
    candidateDid: str
    timestamp: str
