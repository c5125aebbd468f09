from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from tourney.models.tournament_model import TournamentModel, TournamentStatus, TournamentType, VALID_PARTICIPANT_COUNTS
from tourney.models.bracket_model import MatchModel

class TournamentBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Name of the tournament")
    type: TournamentType = Field(TournamentType.CUSTOM, description="Kind of competition")
    description: str = ""
    rules: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    class Config:
        str_strip_whitespace = True
        use_enum_values = True

    @model_validator(mode="after")
    def end_date_after_start_date(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("Start date cannot be after end date")
        return self

class TournamentCreate(TournamentBase):
    participant_count: int = Field(..., description="Bracket size: 4, 8, 16, 32 or 64")
    admin_password: Optional[str] = Field(None, min_length=1, description="Leave empty for an open tournament")

    @field_validator("participant_count")
    @classmethod
    def valid_participant_count(cls, v):
        if v not in VALID_PARTICIPANT_COUNTS:
            raise ValueError(f"Participant count must be one of {VALID_PARTICIPANT_COUNTS}")
        return v

class TournamentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[TournamentType] = None
    description: Optional[str] = None
    rules: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    participant_count: Optional[int] = None

    class Config:
        str_strip_whitespace = True
        use_enum_values = True

    @field_validator("participant_count")
    @classmethod
    def valid_participant_count(cls, v):
        if v is not None and v not in VALID_PARTICIPANT_COUNTS:
            raise ValueError(f"Participant count must be one of {VALID_PARTICIPANT_COUNTS}")
        return v

class TournamentRead(BaseModel):
    """Public view of a tournament; admin secrets are never serialized."""
    id: str
    name: str
    type: TournamentType
    status: TournamentStatus
    participant_count: int
    max_participants: int
    current_round: int
    total_rounds: int
    description: str = ""
    rules: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    has_admin_password: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        use_enum_values = True

    @classmethod
    def from_model(cls, tournament: TournamentModel) -> "TournamentRead":
        data = tournament.model_dump(exclude={"admin_password_hash", "admin_token"})
        return cls(**data, has_admin_password=bool(tournament.admin_password_hash))

class AdminLoginRequest(BaseModel):
    password: str = ""

class AdminPasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=1)

class AdminTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"

class StartCheck(BaseModel):
    can_start: bool
    reason: Optional[str] = None

class TournamentStats(BaseModel):
    total_participants: int
    total_matches: int
    completed_matches: int
    pending_matches: int
    current_round: int
    total_rounds: int
    total_points: int
    highest_score_match: Optional[MatchModel] = None
    progress: int # percent of matches completed
