from pydantic import BaseModel, Field
from typing import List, Optional


class Election(BaseModel):
    electionId: str = Field(..., example="E1")
    title: str
    description: str = ""
    startDate: str
    endDate: str
    activeFlag: bool = False
    createdAt: str
    candidates: List[str] = Field(default_factory=list)
    voters: List[str] = Field(default_factory=list)
    votes: List[str] = Field(default_factory=list)
    winner: Optional[str] = None
    maxVotes: Optional[int] = None
    winnerDeclared: bool = False
