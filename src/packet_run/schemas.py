from typing import List

from pydantic import BaseModel, Field, StrictInt, StrictStr


class ScoreSubmission(BaseModel):
    name: StrictStr = Field(max_length=64)
    score: StrictInt = Field(ge=0)
    duration: StrictInt = Field(ge=0)
    hash: StrictStr = Field(pattern=r"^[0-9a-fA-F]{1,16}$")


class LeaderboardEntrySchema(BaseModel):
    name: str
    score: int
    date: str

    class Config:
        from_attributes = True


class SubmitResponse(BaseModel):
    ok: bool
    leaderboard: List[LeaderboardEntrySchema]
