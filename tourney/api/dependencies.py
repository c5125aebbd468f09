from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tourney.core.config import settings
from tourney.core.database import JsonRecordStore, RecordStore
from tourney.core import security
from tourney.core.security import AdminCapability, InvalidAdminToken
from tourney.services.bracket_service import BracketService
from tourney.services.participant_service import ParticipantService
from tourney.services.tournament_service import TournamentService

bearer_scheme = HTTPBearer(auto_error=False)

@lru_cache()
def get_record_store() -> RecordStore:
    return JsonRecordStore(settings.DATA_DIR)

def get_tournament_service(store: RecordStore = Depends(get_record_store)) -> TournamentService:
    return TournamentService(store)

def get_participant_service(
    store: RecordStore = Depends(get_record_store),
    tournament_service: TournamentService = Depends(get_tournament_service),
) -> ParticipantService:
    return ParticipantService(store, tournament_service)

def get_bracket_service(
    store: RecordStore = Depends(get_record_store),
    tournament_service: TournamentService = Depends(get_tournament_service),
    participant_service: ParticipantService = Depends(get_participant_service),
) -> BracketService:
    return BracketService(store, tournament_service, participant_service)

def get_admin_capability(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tournament_service: TournamentService = Depends(get_tournament_service),
) -> AdminCapability:
    """
    Turns the bearer token into an AdminCapability.
    Whether the capability covers the tournament being modified is checked by the services.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate admin token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        capability = security.decode_admin_token(credentials.credentials)
    except InvalidAdminToken:
        raise credentials_exception
    if not tournament_service.is_token_current(capability):
        raise credentials_exception
    return capability
