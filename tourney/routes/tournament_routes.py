from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from tourney.api.dependencies import get_admin_capability, get_bracket_service, get_tournament_service
from tourney.core.security import AdminCapability
from tourney.models.bracket_model import MatchModel, ResultModel
from tourney.models.tournament_model import TournamentStatus
from tourney.schemas.match_schemas import BracketView
from tourney.schemas.tournament_schemas import (
    AdminLoginRequest,
    AdminPasswordRequest,
    AdminTokenResponse,
    StartCheck,
    TournamentCreate,
    TournamentRead,
    TournamentStats,
    TournamentUpdate,
)
from tourney.services.bracket_service import BracketService
from tourney.services.tournament_service import TournamentService

router = APIRouter()

# --- Tournament Endpoints ---

@router.post("", response_model=TournamentRead, status_code=201, summary="Create New Tournament")
async def create_tournament(
    tournament_in: TournamentCreate,
    service: TournamentService = Depends(get_tournament_service),
):
    """
    Creates a new tournament in `draft` status.

    - **name**: Name of the tournament (1-100 characters).
    - **participant_count**: Bracket size, one of 4, 8, 16, 32, 64.
    - **admin_password** (optional): Required later to obtain an admin token. Without it anyone can administer the tournament.
    """
    return TournamentRead.from_model(service.create(tournament_in))


@router.get("", response_model=List[TournamentRead], summary="List Tournaments")
async def list_tournaments(
    status_filter: Optional[TournamentStatus] = Query(None, alias="status"),
    q: Optional[str] = Query(None, description="Search in name and description"),
    service: TournamentService = Depends(get_tournament_service),
):
    if q:
        tournaments = service.search(q)
    else:
        tournaments = service.get_all()
    if status_filter:
        tournaments = [t for t in tournaments if t.status == status_filter]
    return [TournamentRead.from_model(t) for t in tournaments]


@router.get("/recent", response_model=List[TournamentRead], summary="Recently Updated Tournaments")
async def list_recent_tournaments(
    limit: int = Query(5, ge=1, le=50),
    service: TournamentService = Depends(get_tournament_service),
):
    return [TournamentRead.from_model(t) for t in service.get_recent(limit)]


@router.get("/{tournament_id}", response_model=TournamentRead)
async def get_tournament(
    tournament_id: str = Path(..., description="The ID of the tournament"),
    service: TournamentService = Depends(get_tournament_service),
):
    return TournamentRead.from_model(service.get(tournament_id))


@router.patch("/{tournament_id}", response_model=TournamentRead)
async def update_tournament(
    tournament_in: TournamentUpdate,
    tournament_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: TournamentService = Depends(get_tournament_service),
):
    return TournamentRead.from_model(service.update_details(tournament_id, tournament_in, capability))


@router.delete("/{tournament_id}", status_code=204)
async def delete_tournament(
    tournament_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: TournamentService = Depends(get_tournament_service),
):
    if not service.delete(tournament_id, capability):
        raise HTTPException(status_code=404, detail="Tournament not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{tournament_id}/stats", response_model=TournamentStats)
async def get_tournament_stats(
    tournament_id: str = Path(...),
    service: TournamentService = Depends(get_tournament_service),
):
    return service.get_stats(tournament_id)


# --- Admin Authentication ---

@router.post("/{tournament_id}/auth", response_model=AdminTokenResponse, summary="Obtain an admin token")
async def authenticate_admin(
    credentials: AdminLoginRequest,
    tournament_id: str = Path(...),
    service: TournamentService = Depends(get_tournament_service),
):
    """
    Exchanges the tournament's admin password for a bearer token.
    Send it as `Authorization: Bearer <token>` on every mutating request.
    """
    return AdminTokenResponse(access_token=service.authenticate(tournament_id, credentials.password))


@router.put("/{tournament_id}/admin-password", response_model=AdminTokenResponse)
async def set_admin_password(
    payload: AdminPasswordRequest,
    tournament_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: TournamentService = Depends(get_tournament_service),
):
    """Sets a new password. Tokens issued before this call stop working."""
    token = service.set_admin_password(tournament_id, payload.new_password, capability)
    return AdminTokenResponse(access_token=token)


# --- Bracket Lifecycle ---

@router.get("/{tournament_id}/can-start", response_model=StartCheck)
async def can_start_tournament(
    tournament_id: str = Path(...),
    service: TournamentService = Depends(get_tournament_service),
):
    return service.can_start(tournament_id)


@router.post("/{tournament_id}/start", response_model=TournamentRead, summary="Seed round 1 and start")
async def start_tournament(
    tournament_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    return TournamentRead.from_model(bracket_service.start_tournament(tournament_id, capability))


@router.post("/{tournament_id}/bracket", response_model=List[MatchModel], status_code=201,
             summary="Generate bracket for the tournament")
async def generate_bracket(
    tournament_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    """
    Creates every match of the bracket, empty, and opens registration.
    Only possible while the tournament is in `draft`.
    """
    return bracket_service.generate_bracket(tournament_id, capability)


@router.get("/{tournament_id}/bracket", response_model=BracketView)
async def get_bracket(
    tournament_id: str = Path(...),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    return bracket_service.get_bracket_view(tournament_id)


@router.delete("/{tournament_id}/bracket", status_code=204, summary="Reset the bracket")
async def reset_bracket(
    tournament_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    """Deletes all matches and results and returns the tournament to `draft`."""
    bracket_service.reset_bracket(tournament_id, capability)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{tournament_id}/result", response_model=ResultModel)
async def get_result(
    tournament_id: str = Path(...),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    result = bracket_service.get_result(tournament_id)
    if not result:
        raise HTTPException(status_code=404, detail="Tournament has no result yet")
    return result
