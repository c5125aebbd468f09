from datetime import date, datetime
from typing import Optional
from uuid import uuid4
from enum import Enum

from pydantic import BaseModel, Field

VALID_PARTICIPANT_COUNTS = (4, 8, 16, 32, 64)

class TournamentType(str, Enum):
    FUTSAL = "futsal"
    ESPORT = "esport"
    CHESS = "chess"
    CUSTOM = "custom"

class TournamentStatus(str, Enum):
    DRAFT = "draft"
    REGISTRATION = "registration"
    ONGOING = "ongoing"
    COMPLETED = "completed"

class TournamentModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    type: TournamentType = TournamentType.CUSTOM
    status: TournamentStatus = TournamentStatus.DRAFT
    participant_count: int
    max_participants: int
    current_round: int = 1
    total_rounds: int # Fixed once the bracket is generated
    description: str = ""
    rules: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    admin_password_hash: Optional[str] = None
    admin_token: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        use_enum_values = True

class TournamentPatch(BaseModel):
    """Partial update merged into a stored tournament record."""
    name: Optional[str] = None
    type: Optional[TournamentType] = None
    status: Optional[TournamentStatus] = None
    participant_count: Optional[int] = None
    max_participants: Optional[int] = None
    current_round: Optional[int] = None
    total_rounds: Optional[int] = None
    description: Optional[str] = None
    rules: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    admin_password_hash: Optional[str] = None
    admin_token: Optional[str] = None

    class Config:
        extra = "forbid"
        use_enum_values = True
