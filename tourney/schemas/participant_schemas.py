from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from tourney.models.participant_model import ParticipantModel
from tourney.models.bracket_model import MatchModel

class ParticipantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    logo: Optional[str] = None
    seed: Optional[int] = Field(None, ge=1, description="Bracket rank; lower seeds are kept apart longest")
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None

    class Config:
        str_strip_whitespace = True

class ParticipantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    logo: Optional[str] = None
    seed: Optional[int] = Field(None, ge=1)
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None

    class Config:
        str_strip_whitespace = True

class BulkAddError(BaseModel):
    index: int
    name: str
    error: str

class BulkAddResult(BaseModel):
    added: List[ParticipantModel] = Field(default_factory=list)
    errors: List[BulkAddError] = Field(default_factory=list)

class AutoSeedRequest(BaseModel):
    method: Literal["random", "order"] = "random"

class MatchHistoryEntry(MatchModel):
    opponent: Optional[ParticipantModel] = None
    my_score: Optional[int] = None
    opponent_score: Optional[int] = None
    won: bool = False
