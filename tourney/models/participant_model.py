from datetime import datetime
from typing import Optional
from uuid import uuid4
from enum import Enum

from pydantic import BaseModel, Field

class ParticipantStatus(str, Enum):
    ACTIVE = "active"
    ELIMINATED = "eliminated"
    WITHDRAWN = "withdrawn"

class ParticipantModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    tournament_id: str
    name: str
    logo: Optional[str] = None
    seed: Optional[int] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: ParticipantStatus = ParticipantStatus.ACTIVE
    eliminated_at_round: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        use_enum_values = True

class ParticipantPatch(BaseModel):
    name: Optional[str] = None
    logo: Optional[str] = None
    seed: Optional[int] = Field(None, ge=1)
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[ParticipantStatus] = None
    eliminated_at_round: Optional[int] = None

    class Config:
        extra = "forbid"
        use_enum_values = True
