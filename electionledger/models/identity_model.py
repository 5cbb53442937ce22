from pydantic import BaseModel, Field


class Identity(BaseModel):
    did: str = Field(..., example="did:example:123")
    fullName: str
    dob: str = Field(..., example="1990-04-12")
    birthplace: str
    username: str
    passwordHash: str
    image: str = ""
    role: str = Field(..., example="voter")
    createdAt: str
