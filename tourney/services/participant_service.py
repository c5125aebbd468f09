import csv
import io
import logging
import random
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from tourney.core import database
from tourney.core.database import RecordStore
from tourney.core.exceptions import (
    DuplicateParticipant,
    InvalidCsv,
    NotFound,
    RegistrationClosed,
    RosterFull,
    TournamentError,
)
from tourney.core import security
from tourney.core.security import AdminCapability
from tourney.models.bracket_model import MatchModel
from tourney.models.participant_model import ParticipantModel, ParticipantPatch, ParticipantStatus
from tourney.models.tournament_model import TournamentModel, TournamentStatus
from tourney.schemas.participant_schemas import (
    BulkAddError,
    BulkAddResult,
    MatchHistoryEntry,
    ParticipantCreate,
    ParticipantUpdate,
)
from tourney.services.tournament_service import TournamentService

logger = logging.getLogger(__name__)

# Fields that may still change once the tournament is running
CONTACT_FIELDS = {"logo", "contact_person", "email", "phone"}

def _is_locked(tournament: TournamentModel) -> bool:
    return tournament.status in (TournamentStatus.ONGOING, TournamentStatus.COMPLETED)

def seed_order_key(participant: ParticipantModel):
    # Seeded first by ascending seed; unseeded keep their relative order (sorted() is stable)
    return (participant.seed is None, participant.seed or 0)


class ParticipantService:
    def __init__(self, store: RecordStore, tournament_service: TournamentService):
        self.store = store
        self.tournament_service = tournament_service

    def _require(self, participant_id: str) -> ParticipantModel:
        participant = self.get_by_id(participant_id)
        if not participant:
            raise NotFound(f"Participant with ID {participant_id} not found.")
        return participant

    def _patch(self, participant_id: str, patch: ParticipantPatch) -> ParticipantModel:
        record = self.store.update(
            database.PARTICIPANTS, participant_id, patch.model_dump(mode="json", exclude_unset=True)
        )
        if record is None:
            raise NotFound(f"Participant with ID {participant_id} not found.")
        return ParticipantModel(**record)

    def _ensure_unique_name(self, tournament_id: str, name: str, exclude_id: Optional[str] = None):
        wanted = name.strip().lower()
        for p in self.list_by_tournament(tournament_id):
            if p.id != exclude_id and p.name.lower() == wanted:
                raise DuplicateParticipant(f"Participant name '{name}' is already taken.")

    def list_by_tournament(self, tournament_id: str) -> List[ParticipantModel]:
        participants = [
            ParticipantModel(**r) for r in self.store.find(database.PARTICIPANTS, tournament_id=tournament_id)
        ]
        return sorted(participants, key=seed_order_key)

    def get_by_id(self, participant_id: str) -> Optional[ParticipantModel]:
        record = self.store.get_by_id(database.PARTICIPANTS, participant_id)
        return ParticipantModel(**record) if record else None

    def add(self, tournament_id: str, data: ParticipantCreate, capability: AdminCapability) -> ParticipantModel:
        security.ensure_admin(capability, tournament_id)
        tournament = self.tournament_service.get(tournament_id)

        if _is_locked(tournament):
            raise RegistrationClosed("Tournament is already running; participants can no longer be added.")
        if len(self.list_by_tournament(tournament_id)) >= tournament.max_participants:
            raise RosterFull(f"Roster is full ({tournament.max_participants} participants).")
        self._ensure_unique_name(tournament_id, data.name)

        participant = ParticipantModel(tournament_id=tournament_id, **data.model_dump())
        record = self.store.insert(
            database.PARTICIPANTS,
            participant.model_dump(mode="json", exclude={"id", "created_at", "updated_at"})
        )
        logger.info("Participant added: %s", record["name"])
        return ParticipantModel(**record)

    def add_bulk(
        self,
        tournament_id: str,
        rows: List[Union[ParticipantCreate, Dict[str, Any]]],
        capability: AdminCapability,
    ) -> BulkAddResult:
        """Add every row that validates; collect the failures instead of stopping at the first one."""
        security.ensure_admin(capability, tournament_id)
        result = BulkAddResult()
        for index, row in enumerate(rows):
            name = row.name if isinstance(row, ParticipantCreate) else str(row.get("name", ""))
            try:
                data = row if isinstance(row, ParticipantCreate) else ParticipantCreate(**row)
                result.added.append(self.add(tournament_id, data, capability))
            except ValidationError as e:
                result.errors.append(BulkAddError(index=index, name=name, error=e.errors()[0]["msg"]))
            except TournamentError as e:
                result.errors.append(BulkAddError(index=index, name=name, error=str(e)))
        return result

    def import_csv(self, tournament_id: str, content: str, capability: AdminCapability) -> BulkAddResult:
        return self.add_bulk(tournament_id, self.parse_csv(content), capability)

    def update(self, participant_id: str, data: ParticipantUpdate, capability: AdminCapability) -> ParticipantModel:
        participant = self._require(participant_id)
        security.ensure_admin(capability, participant.tournament_id)
        tournament = self.tournament_service.get(participant.tournament_id)

        update_data = data.model_dump(exclude_unset=True)
        if _is_locked(tournament):
            update_data = {k: v for k, v in update_data.items() if k in CONTACT_FIELDS}
        elif update_data.get("name"):
            self._ensure_unique_name(participant.tournament_id, update_data["name"], exclude_id=participant_id)
        return self._patch(participant_id, ParticipantPatch(**update_data))

    def delete(self, participant_id: str, capability: AdminCapability) -> bool:
        participant = self._require(participant_id)
        security.ensure_admin(capability, participant.tournament_id)
        tournament = self.tournament_service.get(participant.tournament_id)
        if _is_locked(tournament):
            raise RegistrationClosed("Participants cannot be removed while the tournament is running.")

        # Free any bracket slot the participant already holds
        for match in self.store.find(database.MATCHES, tournament_id=participant.tournament_id):
            updates = {}
            if match.get("participant1_id") == participant_id:
                updates["participant1_id"] = None
            if match.get("participant2_id") == participant_id:
                updates["participant2_id"] = None
            if updates:
                self.store.update(database.MATCHES, match["id"], updates)

        deleted = self.store.delete(database.PARTICIPANTS, participant_id)
        if deleted:
            logger.info("Participant deleted: %s", participant.name)
        return deleted

    def eliminate(self, participant_id: str, round_number: int) -> ParticipantModel:
        return self._patch(participant_id, ParticipantPatch(
            status=ParticipantStatus.ELIMINATED,
            eliminated_at_round=round_number,
        ))

    def reactivate(self, participant_id: str) -> ParticipantModel:
        return self._patch(participant_id, ParticipantPatch(
            status=ParticipantStatus.ACTIVE,
            eliminated_at_round=None,
        ))

    def withdraw(self, participant_id: str, capability: AdminCapability) -> ParticipantModel:
        participant = self._require(participant_id)
        security.ensure_admin(capability, participant.tournament_id)
        return self._patch(participant_id, ParticipantPatch(status=ParticipantStatus.WITHDRAWN))

    def auto_seed(self, tournament_id: str, capability: AdminCapability, method: str = "random") -> List[ParticipantModel]:
        """Give every participant a seed 1..n, either shuffled or alphabetically."""
        security.ensure_admin(capability, tournament_id)
        tournament = self.tournament_service.get(tournament_id)
        if _is_locked(tournament):
            raise RegistrationClosed("Seeds cannot change once the tournament is running.")

        participants = self.list_by_tournament(tournament_id)
        if method == "random":
            ordered = list(participants)
            random.shuffle(ordered)
        elif method == "order":
            ordered = sorted(participants, key=lambda p: p.name.casefold())
        else:
            raise TournamentError(f"Unknown seeding method '{method}'.")

        for seed, participant in enumerate(ordered, start=1):
            self._patch(participant.id, ParticipantPatch(seed=seed))
        return self.list_by_tournament(tournament_id)

    @staticmethod
    def parse_csv(content: str) -> List[Dict[str, str]]:
        rows = list(csv.reader(io.StringIO(content.strip())))
        if len(rows) < 2:
            raise InvalidCsv("CSV must contain a header row and at least one participant.")

        headers = [h.strip().lower() for h in rows[0]]

        def column(*candidates: str, partial: bool = False) -> int:
            for i, header in enumerate(headers):
                for candidate in candidates:
                    if header == candidate or (partial and candidate in header):
                        return i
            return -1

        name_index = column("name", "nama")
        if name_index == -1:
            raise InvalidCsv('CSV must have a "name" column.')
        optional_columns = {
            "email": column("email"),
            "phone": column("phone", "telepon"),
            "contact_person": column("contact", "kontak", partial=True),
        }

        participants = []
        for values in rows[1:]:
            values = [v.strip() for v in values]
            if name_index >= len(values) or not values[name_index]:
                continue
            participant = {"name": values[name_index]}
            for field, index in optional_columns.items():
                if index != -1 and index < len(values) and values[index]:
                    participant[field] = values[index]
            participants.append(participant)
        return participants

    def get_match_history(self, participant_id: str) -> List[MatchHistoryEntry]:
        participant = self._require(participant_id)
        matches = [
            MatchModel(**m) for m in self.store.find(database.MATCHES, tournament_id=participant.tournament_id)
            if participant_id in (m.get("participant1_id"), m.get("participant2_id"))
        ]

        history = []
        for match in sorted(matches, key=lambda m: (m.round, m.match_number)):
            is_participant1 = match.participant1_id == participant_id
            opponent_id = match.participant2_id if is_participant1 else match.participant1_id
            history.append(MatchHistoryEntry(
                **match.model_dump(),
                opponent=self.get_by_id(opponent_id) if opponent_id else None,
                my_score=match.score1 if is_participant1 else match.score2,
                opponent_score=match.score2 if is_participant1 else match.score1,
                won=match.winner_id == participant_id,
            ))
        return history
