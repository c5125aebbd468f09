from fastapi import APIRouter, Depends, Path

from tourney.api.dependencies import get_admin_capability, get_bracket_service
from tourney.core.exceptions import NotFound
from tourney.core.security import AdminCapability
from tourney.schemas.match_schemas import MatchUpdate, ResolvedMatch, ScoreUpdate
from tourney.services.bracket_service import BracketService

router = APIRouter()


def _match_in_tournament(service: BracketService, tournament_id: str, match_id: str) -> ResolvedMatch:
    match = service.get_match(match_id)
    if match.tournament_id != tournament_id:
        raise NotFound(f"Match with ID {match_id} not found in this tournament.")
    return match


@router.get("/{match_id}", response_model=ResolvedMatch)
async def get_match(
    tournament_id: str = Path(...),
    match_id: str = Path(..., description="The ID of the match"),
    service: BracketService = Depends(get_bracket_service),
):
    return _match_in_tournament(service, tournament_id, match_id)


@router.patch("/{match_id}", response_model=ResolvedMatch, summary="Edit match details")
async def update_match(
    match_in: MatchUpdate,
    tournament_id: str = Path(...),
    match_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: BracketService = Depends(get_bracket_service),
):
    """
    Sets schedule, venue and notes. `status` may only move a playable match
    between `upcoming` and `live`; completing a match goes through `/score`.
    """
    _match_in_tournament(service, tournament_id, match_id)
    return service.update_match(match_id, match_in, capability)


@router.post("/{match_id}/score", response_model=ResolvedMatch, summary="Record match result")
async def record_score(
    score_in: ScoreUpdate,
    tournament_id: str = Path(...),
    match_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: BracketService = Depends(get_bracket_service),
):
    """
    Records the final score. The winner advances to the next round;
    scoring the final completes the tournament. Draws are rejected.
    """
    _match_in_tournament(service, tournament_id, match_id)
    return service.update_score(match_id, score_in.score1, score_in.score2, capability)
