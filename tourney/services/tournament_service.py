import logging
from typing import List, Optional

from tourney.core import database
from tourney.core.database import RecordStore
from tourney.core.exceptions import AlreadyGenerated, NotFound, TournamentError
from tourney.core import security
from tourney.core.security import AdminCapability
from tourney.models.tournament_model import TournamentModel, TournamentPatch, TournamentStatus
from tourney.models.bracket_model import MatchModel, MatchStatus
from tourney.schemas.tournament_schemas import StartCheck, TournamentCreate, TournamentStats, TournamentUpdate
from tourney.services.bracket_topology import total_rounds_for

logger = logging.getLogger(__name__)

class TournamentService:
    def __init__(self, store: RecordStore):
        self.store = store

    def _require(self, tournament_id: str) -> TournamentModel:
        tournament = self.get_by_id(tournament_id)
        if not tournament:
            raise NotFound(f"Tournament with ID {tournament_id} not found.")
        return tournament

    def create(self, data: TournamentCreate) -> TournamentModel:
        tournament = TournamentModel(
            name=data.name,
            type=data.type,
            participant_count=data.participant_count,
            max_participants=data.participant_count,
            total_rounds=total_rounds_for(data.participant_count),
            description=data.description,
            rules=data.rules,
            start_date=data.start_date,
            end_date=data.end_date,
            admin_password_hash=security.get_password_hash(data.admin_password) if data.admin_password else None,
            admin_token=security.generate_admin_token(),
        )
        record = self.store.insert(
            database.TOURNAMENTS,
            tournament.model_dump(mode="json", exclude={"id", "created_at", "updated_at"})
        )
        logger.info("Tournament created: %s (%s)", record["name"], record["id"])
        return TournamentModel(**record)

    def get_by_id(self, tournament_id: str) -> Optional[TournamentModel]:
        record = self.store.get_by_id(database.TOURNAMENTS, tournament_id)
        return TournamentModel(**record) if record else None

    def get(self, tournament_id: str) -> TournamentModel:
        return self._require(tournament_id)

    def get_all(self) -> List[TournamentModel]:
        return [TournamentModel(**r) for r in self.store.get_all(database.TOURNAMENTS)]

    def get_recent(self, limit: int = 5) -> List[TournamentModel]:
        tournaments = sorted(self.get_all(), key=lambda t: t.updated_at, reverse=True)
        return tournaments[:limit]

    def get_by_status(self, status: TournamentStatus) -> List[TournamentModel]:
        return [TournamentModel(**r) for r in self.store.find(database.TOURNAMENTS, status=TournamentStatus(status).value)]

    def search(self, query: str) -> List[TournamentModel]:
        q = query.strip().lower()
        return [
            t for t in self.get_all()
            if q in t.name.lower() or q in (t.description or "").lower()
        ]

    def update(self, tournament_id: str, patch: TournamentPatch) -> TournamentModel:
        record = self.store.update(
            database.TOURNAMENTS, tournament_id, patch.model_dump(mode="json", exclude_unset=True)
        )
        if record is None:
            raise NotFound(f"Tournament with ID {tournament_id} not found.")
        return TournamentModel(**record)

    def update_details(self, tournament_id: str, data: TournamentUpdate, capability: AdminCapability) -> TournamentModel:
        security.ensure_admin(capability, tournament_id)
        tournament = self._require(tournament_id)

        # The bracket size is locked once the bracket exists
        count_changed = data.participant_count not in (None, tournament.participant_count)
        if count_changed and tournament.status != TournamentStatus.DRAFT:
            raise AlreadyGenerated("Cannot change the participant count after the bracket has been generated.")

        update_data = data.model_dump(exclude_unset=True)
        start = update_data.get("start_date", tournament.start_date)
        end = update_data.get("end_date", tournament.end_date)
        if start and end and start > end:
            raise TournamentError("Start date cannot be after end date")

        if update_data.get("participant_count"):
            count = update_data["participant_count"]
            update_data["max_participants"] = count
            update_data["total_rounds"] = total_rounds_for(count)
        return self.update(tournament_id, TournamentPatch(**update_data))

    def delete(self, tournament_id: str, capability: AdminCapability) -> bool:
        security.ensure_admin(capability, tournament_id)
        self.store.delete_where(database.PARTICIPANTS, tournament_id=tournament_id)
        self.store.delete_where(database.MATCHES, tournament_id=tournament_id)
        self.store.delete_where(database.RESULTS, tournament_id=tournament_id)
        deleted = self.store.delete(database.TOURNAMENTS, tournament_id)
        if deleted:
            logger.info("Tournament deleted: %s", tournament_id)
        return deleted

    # --- Admin capability ---

    def authenticate(self, tournament_id: str, password: str) -> str:
        """Exchange the admin password for a signed admin token."""
        tournament = self._require(tournament_id)
        if tournament.admin_password_hash and not security.verify_password(password or "", tournament.admin_password_hash):
            raise PermissionError("Invalid admin password.")
        return security.create_admin_token(tournament.id, tournament.admin_token)

    def is_token_current(self, capability: AdminCapability) -> bool:
        tournament = self.get_by_id(capability.tournament_id)
        return bool(tournament) and tournament.admin_token == capability.token_secret

    def set_admin_password(self, tournament_id: str, new_password: str, capability: AdminCapability) -> str:
        security.ensure_admin(capability, tournament_id)
        self._require(tournament_id)
        # Rotating the secret revokes every token issued before this call
        admin_token = security.generate_admin_token()
        self.update(tournament_id, TournamentPatch(
            admin_password_hash=security.get_password_hash(new_password),
            admin_token=admin_token,
        ))
        return security.create_admin_token(tournament_id, admin_token)

    # --- Lifecycle queries ---

    def can_start(self, tournament_id: str) -> StartCheck:
        tournament = self.get_by_id(tournament_id)
        if not tournament:
            return StartCheck(can_start=False, reason="Tournament not found")
        if tournament.status == TournamentStatus.DRAFT:
            return StartCheck(can_start=False, reason="Bracket has not been generated")
        if tournament.status != TournamentStatus.REGISTRATION:
            return StartCheck(can_start=False, reason="Tournament has already started")

        registered = len(self.store.find(database.PARTICIPANTS, tournament_id=tournament_id))
        if registered < tournament.participant_count:
            return StartCheck(
                can_start=False,
                reason=f"Roster incomplete ({registered}/{tournament.participant_count})"
            )
        return StartCheck(can_start=True)

    def get_stats(self, tournament_id: str) -> TournamentStats:
        tournament = self._require(tournament_id)
        matches = [MatchModel(**m) for m in self.store.find(database.MATCHES, tournament_id=tournament_id)]
        completed = [m for m in matches if m.status == MatchStatus.COMPLETED]

        total_points = 0
        highest_match, highest_total = None, 0
        for match in completed:
            total = (match.score1 or 0) + (match.score2 or 0)
            total_points += total
            if total > highest_total:
                highest_match, highest_total = match, total

        return TournamentStats(
            total_participants=len(self.store.find(database.PARTICIPANTS, tournament_id=tournament_id)),
            total_matches=len(matches),
            completed_matches=len(completed),
            pending_matches=len(matches) - len(completed),
            current_round=tournament.current_round,
            total_rounds=tournament.total_rounds,
            total_points=total_points,
            highest_score_match=highest_match,
            progress=round(len(completed) / len(matches) * 100) if matches else 0,
        )
