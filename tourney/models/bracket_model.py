from datetime import datetime
from typing import List, Optional
from uuid import uuid4
from enum import Enum

from pydantic import BaseModel, Field

class MatchStatus(str, Enum):
    PENDING = "pending"     # waiting for one or both participants
    UPCOMING = "upcoming"
    LIVE = "live"           # manual marker, not used by advancement
    COMPLETED = "completed"

class MatchModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    tournament_id: str
    round: int
    match_number: int # Global across the tournament, 1-based, round-major

    participant1_id: Optional[str] = None
    participant2_id: Optional[str] = None
    winner_id: Optional[str] = None

    score1: Optional[int] = None
    score2: Optional[int] = None

    status: MatchStatus = MatchStatus.PENDING

    schedule: Optional[datetime] = None
    venue: Optional[str] = None
    notes: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        use_enum_values = True

    @property
    def has_both_participants(self) -> bool:
        return bool(self.participant1_id and self.participant2_id)

    @property
    def loser_id(self) -> Optional[str]:
        if not self.winner_id:
            return None
        return self.participant2_id if self.participant1_id == self.winner_id else self.participant1_id

class MatchPatch(BaseModel):
    participant1_id: Optional[str] = None
    participant2_id: Optional[str] = None
    winner_id: Optional[str] = None
    score1: Optional[int] = None
    score2: Optional[int] = None
    status: Optional[MatchStatus] = None
    schedule: Optional[datetime] = None
    venue: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"
        use_enum_values = True

class ResultModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    tournament_id: str
    champion_id: str
    runner_up_id: str
    third_place_ids: List[str] = Field(default_factory=list)
    total_matches: int
    total_participants: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
