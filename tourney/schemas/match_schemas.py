from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from tourney.models.bracket_model import MatchModel
from tourney.models.participant_model import ParticipantModel
from tourney.schemas.tournament_schemas import TournamentRead

class ScoreUpdate(BaseModel):
    score1: int = Field(..., ge=0, description="Score for participant 1")
    score2: int = Field(..., ge=0, description="Score for participant 2")

class MatchUpdate(BaseModel):
    schedule: Optional[datetime] = None
    venue: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[Literal["upcoming", "live"]] = None

class ResolvedMatch(MatchModel):
    round_name: str
    participant1: Optional[ParticipantModel] = None
    participant2: Optional[ParticipantModel] = None
    winner: Optional[ParticipantModel] = None
    tournament: Optional[TournamentRead] = None

class RoundView(BaseModel):
    round: int
    name: str
    matches: List[ResolvedMatch] = Field(default_factory=list)

class BracketView(BaseModel):
    tournament: TournamentRead
    rounds: List[RoundView] = Field(default_factory=list)
    total_rounds: int
    champion: Optional[ParticipantModel] = None
