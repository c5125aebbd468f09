from typing import Any, Dict, List

from fastapi import APIRouter, Depends, File, HTTPException, Path, Response, UploadFile, status

from tourney.api.dependencies import get_admin_capability, get_participant_service
from tourney.core.exceptions import NotFound
from tourney.core.security import AdminCapability
from tourney.models.participant_model import ParticipantModel
from tourney.schemas.participant_schemas import (
    AutoSeedRequest,
    BulkAddResult,
    MatchHistoryEntry,
    ParticipantCreate,
    ParticipantUpdate,
)
from tourney.services.participant_service import ParticipantService

router = APIRouter()


def _participant_in_tournament(service: ParticipantService, tournament_id: str, participant_id: str) -> ParticipantModel:
    participant = service.get_by_id(participant_id)
    if not participant or participant.tournament_id != tournament_id:
        raise NotFound(f"Participant with ID {participant_id} not found in this tournament.")
    return participant


@router.get("", response_model=List[ParticipantModel], summary="List participants")
async def list_participants(
    tournament_id: str = Path(...),
    service: ParticipantService = Depends(get_participant_service),
):
    """Participants ordered by seed; unseeded participants come last in registration order."""
    service.tournament_service.get(tournament_id)
    return service.list_by_tournament(tournament_id)


@router.post("", response_model=ParticipantModel, status_code=201)
async def add_participant(
    participant_in: ParticipantCreate,
    tournament_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: ParticipantService = Depends(get_participant_service),
):
    return service.add(tournament_id, participant_in, capability)


@router.post("/bulk", response_model=BulkAddResult, summary="Add several participants at once")
async def add_participants_bulk(
    rows: List[Dict[str, Any]],
    tournament_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: ParticipantService = Depends(get_participant_service),
):
    """
    Rows are validated one by one. Valid rows are added even if others fail;
    every failure is reported in `errors` with its index.
    """
    return service.add_bulk(tournament_id, rows, capability)


@router.post("/import", response_model=BulkAddResult, summary="Import participants from a CSV file")
async def import_participants_csv(
    tournament_id: str = Path(...),
    file: UploadFile = File(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: ParticipantService = Depends(get_participant_service),
):
    raw = await file.read()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")
    return service.import_csv(tournament_id, content, capability)


@router.post("/auto-seed", response_model=List[ParticipantModel])
async def auto_seed_participants(
    request: AutoSeedRequest,
    tournament_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: ParticipantService = Depends(get_participant_service),
):
    return service.auto_seed(tournament_id, capability, method=request.method)


@router.patch("/{participant_id}", response_model=ParticipantModel)
async def update_participant(
    participant_in: ParticipantUpdate,
    tournament_id: str = Path(...),
    participant_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: ParticipantService = Depends(get_participant_service),
):
    """Once the tournament is running only contact details can change."""
    _participant_in_tournament(service, tournament_id, participant_id)
    return service.update(participant_id, participant_in, capability)


@router.delete("/{participant_id}", status_code=204)
async def delete_participant(
    tournament_id: str = Path(...),
    participant_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: ParticipantService = Depends(get_participant_service),
):
    _participant_in_tournament(service, tournament_id, participant_id)
    service.delete(participant_id, capability)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{participant_id}/withdraw", response_model=ParticipantModel)
async def withdraw_participant(
    tournament_id: str = Path(...),
    participant_id: str = Path(...),
    capability: AdminCapability = Depends(get_admin_capability),
    service: ParticipantService = Depends(get_participant_service),
):
    _participant_in_tournament(service, tournament_id, participant_id)
    return service.withdraw(participant_id, capability)


@router.get("/{participant_id}/history", response_model=List[MatchHistoryEntry])
async def get_participant_history(
    tournament_id: str = Path(...),
    participant_id: str = Path(...),
    service: ParticipantService = Depends(get_participant_service),
):
    _participant_in_tournament(service, tournament_id, participant_id)
    return service.get_match_history(participant_id)
