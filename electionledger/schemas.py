from pydantic import BaseModel, Field
from typing import List


class InvocationRequest(BaseModel):
    args: List[str] = Field(default_factory=list, example=["E1", "Board election", "", "2026-01-01", "2026-12-31"])


class OperationOut(BaseModel):
    name: str
    kind: str
    tags: List[str]


class ErrorOut(BaseModel):
    code: str
    message: str
