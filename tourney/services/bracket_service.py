import logging
from datetime import date
from typing import Dict, List, Optional

from tourney.core import database
from tourney.core.database import RecordStore
from tourney.core.exceptions import (
    AlreadyGenerated,
    AlreadyStarted,
    BracketCorruption,
    BracketNotGenerated,
    CannotResetCompleted,
    DrawNotAllowed,
    IncompleteMatch,
    IncompleteRoster,
    InvalidScore,
    MatchAlreadyCompleted,
    MatchNotReady,
    NotFound,
)
from tourney.core import security
from tourney.core.security import AdminCapability
from tourney.models.bracket_model import MatchModel, MatchPatch, MatchStatus, ResultModel
from tourney.models.participant_model import ParticipantModel
from tourney.models.tournament_model import TournamentModel, TournamentPatch, TournamentStatus
from tourney.schemas.match_schemas import BracketView, MatchUpdate, ResolvedMatch, RoundView
from tourney.schemas.tournament_schemas import TournamentRead
from tourney.services import bracket_topology as topology
from tourney.services.participant_service import ParticipantService, seed_order_key
from tourney.services.tournament_service import TournamentService

logger = logging.getLogger(__name__)


class BracketService:
    """
    Builds the match tree for a tournament and moves winners through it.

    Lifecycle: generate_bracket (draft -> registration), start_tournament /
    assign_participants (round 1 filled, registration -> ongoing), then one
    update_score per played match until the final completes the tournament.
    """

    def __init__(self,
                 store: RecordStore,
                 tournament_service: TournamentService,
                 participant_service: ParticipantService
                ):
        self.store = store
        self.tournament_service = tournament_service
        self.participant_service = participant_service

    # --- Record helpers ---

    def _matches(self, tournament_id: str, round_number: Optional[int] = None) -> List[MatchModel]:
        criteria = {"tournament_id": tournament_id}
        if round_number is not None:
            criteria["round"] = round_number
        matches = [MatchModel(**m) for m in self.store.find(database.MATCHES, **criteria)]
        return sorted(matches, key=lambda m: (m.round, m.match_number))

    def _get_match_model(self, match_id: str) -> MatchModel:
        record = self.store.get_by_id(database.MATCHES, match_id)
        if not record:
            raise NotFound(f"Match with ID {match_id} not found.")
        return MatchModel(**record)

    def _update_match(self, match_id: str, patch: MatchPatch) -> MatchModel:
        record = self.store.update(database.MATCHES, match_id, patch.model_dump(mode="json", exclude_unset=True))
        if record is None:
            raise NotFound(f"Match with ID {match_id} not found.")
        return MatchModel(**record)

    def _participants_by_id(self, tournament_id: str) -> Dict[str, ParticipantModel]:
        return {p.id: p for p in self.participant_service.list_by_tournament(tournament_id)}

    def _resolve(self, match: MatchModel, tournament: TournamentModel,
                 participants: Dict[str, ParticipantModel], with_tournament: bool = False) -> ResolvedMatch:
        return ResolvedMatch(
            **match.model_dump(),
            round_name=topology.get_round_name(match.round, tournament.total_rounds),
            participant1=participants.get(match.participant1_id) if match.participant1_id else None,
            participant2=participants.get(match.participant2_id) if match.participant2_id else None,
            winner=participants.get(match.winner_id) if match.winner_id else None,
            tournament=TournamentRead.from_model(tournament) if with_tournament else None,
        )

    # --- Topology builder ---

    def generate_bracket(self, tournament_id: str, capability: AdminCapability) -> List[MatchModel]:
        """Create every (empty) match of the bracket and open registration."""
        security.ensure_admin(capability, tournament_id)
        tournament = self.tournament_service.get(tournament_id)
        if tournament.status != TournamentStatus.DRAFT:
            raise AlreadyGenerated("Bracket has already been generated for this tournament.")

        layout = topology.round_layout(tournament.participant_count)
        matches: List[MatchModel] = []
        match_number = 1
        for round_number, match_count in layout:
            for _ in range(match_count):
                match = MatchModel(tournament_id=tournament_id, round=round_number, match_number=match_number)
                record = self.store.insert(
                    database.MATCHES, match.model_dump(mode="json", exclude={"id", "created_at", "updated_at"})
                )
                matches.append(MatchModel(**record))
                match_number += 1

        self.tournament_service.update(tournament_id, TournamentPatch(
            status=TournamentStatus.REGISTRATION,
            total_rounds=len(layout),
        ))
        logger.info("Bracket generated for %s: %d matches in %d rounds", tournament_id, len(matches), len(layout))
        return matches

    # --- Seeding assigner ---

    def _ensure_registration(self, tournament: TournamentModel):
        if tournament.status == TournamentStatus.DRAFT:
            raise BracketNotGenerated("Bracket has not been generated yet.")
        if tournament.status != TournamentStatus.REGISTRATION:
            raise AlreadyStarted("Tournament has already started.")

    def assign_participants(self, tournament_id: str, capability: AdminCapability) -> List[MatchModel]:
        """Place the seed-ordered roster into round 1: seed 1 vs seed n, seed 2 vs seed n-1, ..."""
        security.ensure_admin(capability, tournament_id)
        tournament = self.tournament_service.get(tournament_id)
        self._ensure_registration(tournament)

        participants = self.participant_service.list_by_tournament(tournament_id)
        if len(participants) != tournament.participant_count:
            raise IncompleteRoster(
                f"Roster incomplete ({len(participants)}/{tournament.participant_count})."
            )

        first_round = self._matches(tournament_id, round_number=1)
        if any(m.status == MatchStatus.COMPLETED for m in first_round):
            raise AlreadyStarted("Round 1 already has results; reset the bracket before reseeding.")
        pairs = topology.create_seed_pairings(sorted(participants, key=seed_order_key))
        if len(first_round) != len(pairs):
            logger.error("Tournament %s has %d first-round matches, expected %d",
                         tournament_id, len(first_round), len(pairs))
            raise BracketCorruption(f"First round of tournament {tournament_id} does not match its roster size.")

        for match, (p1, p2) in zip(first_round, pairs):
            self._update_match(match.id, MatchPatch(
                participant1_id=p1.id,
                participant2_id=p2.id,
                status=MatchStatus.UPCOMING,
            ))
        logger.info("Participants assigned to bracket for %s", tournament_id)
        return self._matches(tournament_id, round_number=1)

    def start_tournament(self, tournament_id: str, capability: AdminCapability) -> TournamentModel:
        security.ensure_admin(capability, tournament_id)
        tournament = self.tournament_service.get(tournament_id)
        self._ensure_registration(tournament)

        self.assign_participants(tournament_id, capability)
        return self.tournament_service.update(tournament_id, TournamentPatch(
            status=TournamentStatus.ONGOING,
            start_date=date.today(),
        ))

    # --- Read views ---

    def get_bracket_view(self, tournament_id: str) -> BracketView:
        tournament = self.tournament_service.get(tournament_id)
        participants = self._participants_by_id(tournament_id)

        rounds: Dict[int, RoundView] = {}
        for match in self._matches(tournament_id):
            if match.round not in rounds:
                rounds[match.round] = RoundView(
                    round=match.round,
                    name=topology.get_round_name(match.round, tournament.total_rounds),
                )
            rounds[match.round].matches.append(self._resolve(match, tournament, participants))

        champion = None
        if tournament.status == TournamentStatus.COMPLETED:
            result = self.get_result(tournament_id)
            if result:
                champion = participants.get(result.champion_id)

        return BracketView(
            tournament=TournamentRead.from_model(tournament),
            rounds=list(rounds.values()),
            total_rounds=tournament.total_rounds,
            champion=champion,
        )

    def get_match(self, match_id: str) -> ResolvedMatch:
        match = self._get_match_model(match_id)
        tournament = self.tournament_service.get(match.tournament_id)
        return self._resolve(match, tournament, self._participants_by_id(match.tournament_id), with_tournament=True)

    def get_result(self, tournament_id: str) -> Optional[ResultModel]:
        results = self.store.find(database.RESULTS, tournament_id=tournament_id)
        return ResultModel(**results[0]) if results else None

    # --- Match advancement engine ---

    def update_match(self, match_id: str, data: MatchUpdate, capability: AdminCapability) -> ResolvedMatch:
        """Edit schedule, venue, notes or the manual live marker of a match."""
        match = self._get_match_model(match_id)
        security.ensure_admin(capability, match.tournament_id)

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("status"):
            if match.status == MatchStatus.PENDING:
                raise MatchNotReady("Match is not ready to be played yet.")
            if match.status == MatchStatus.COMPLETED:
                raise MatchAlreadyCompleted("Match has already been completed.")
        self._update_match(match_id, MatchPatch(**update_data))
        return self.get_match(match_id)

    def update_score(self, match_id: str, score1: int, score2: int, capability: AdminCapability) -> ResolvedMatch:
        match = self._get_match_model(match_id)
        security.ensure_admin(capability, match.tournament_id)

        if match.status == MatchStatus.PENDING:
            raise MatchNotReady("Match is not ready to be played yet.")
        if match.status == MatchStatus.COMPLETED:
            raise MatchAlreadyCompleted("Match has already been completed; its score cannot be changed.")
        if not match.has_both_participants:
            raise IncompleteMatch("Match does not have two participants assigned.")
        if score1 < 0 or score2 < 0:
            raise InvalidScore("Scores cannot be negative.")
        if score1 == score2:
            raise DrawNotAllowed("Scores cannot be equal in a single elimination match. A winner must be determined.")

        if score1 > score2:
            winner_id, loser_id = match.participant1_id, match.participant2_id
        else:
            winner_id, loser_id = match.participant2_id, match.participant1_id

        completed = self._update_match(match_id, MatchPatch(
            score1=score1,
            score2=score2,
            winner_id=winner_id,
            status=MatchStatus.COMPLETED,
        ))
        self.participant_service.eliminate(loser_id, match.round)
        logger.info("Score recorded for match %d (%s): %d-%d", match.match_number, match_id, score1, score2)

        tournament = self.tournament_service.get(match.tournament_id)
        if match.round == tournament.total_rounds:
            self._finalize_tournament(tournament, winner_id, loser_id)
        else:
            self._advance_winner(completed, tournament, winner_id)
            self._update_current_round(tournament)
        return self.get_match(match_id)

    def _advance_winner(self, match: MatchModel, tournament: TournamentModel, winner_id: str):
        destination = topology.next_match_slot(tournament.participant_count, match.round, match.match_number)
        next_round = self._matches(tournament.id, round_number=destination.round)
        if destination.index_in_round >= len(next_round):
            logger.error(
                "Next match not found for match %d of tournament %s (round %d, index %d)",
                match.match_number, tournament.id, destination.round, destination.index_in_round
            )
            raise BracketCorruption(f"Next match for match {match.id} is missing from the bracket.")

        next_match = next_round[destination.index_in_round]
        if destination.slot == 1:
            updates = {"participant1_id": winner_id}
            other_slot = next_match.participant2_id
        else:
            updates = {"participant2_id": winner_id}
            other_slot = next_match.participant1_id
        if other_slot:
            updates["status"] = MatchStatus.UPCOMING

        self._update_match(next_match.id, MatchPatch(**updates))
        logger.info("Winner %s advanced to match %d slot %d", winner_id, next_match.match_number, destination.slot)

    def _update_current_round(self, tournament: TournamentModel):
        """The current round is the earliest round that still has an unfinished match."""
        matches = self._matches(tournament.id)
        for round_number in range(1, tournament.total_rounds + 1):
            round_matches = [m for m in matches if m.round == round_number]
            if any(m.status != MatchStatus.COMPLETED for m in round_matches):
                if tournament.current_round != round_number:
                    self.tournament_service.update(tournament.id, TournamentPatch(current_round=round_number))
                return

    # --- Finalization ---

    def _finalize_tournament(self, tournament: TournamentModel, champion_id: str, runner_up_id: str) -> ResultModel:
        existing = self.get_result(tournament.id)
        if existing:
            logger.warning("Tournament %s already has a result; keeping it", tournament.id)
            return existing

        matches = self._matches(tournament.id)
        semifinal_round = tournament.total_rounds - 1
        third_place_ids = [
            m.loser_id for m in matches
            if m.round == semifinal_round and m.winner_id and m.loser_id
        ]

        result = ResultModel(
            tournament_id=tournament.id,
            champion_id=champion_id,
            runner_up_id=runner_up_id,
            third_place_ids=third_place_ids,
            total_matches=len(matches),
            total_participants=tournament.participant_count,
        )
        record = self.store.insert(
            database.RESULTS, result.model_dump(mode="json", exclude={"id", "created_at", "updated_at"})
        )
        self.tournament_service.update(tournament.id, TournamentPatch(
            status=TournamentStatus.COMPLETED,
            current_round=tournament.total_rounds,
            end_date=date.today(),
        ))
        logger.info("Tournament %s completed. Champion: %s", tournament.id, champion_id)
        return ResultModel(**record)

    # --- Reset ---

    def reset_bracket(self, tournament_id: str, capability: AdminCapability):
        """Drop every match and result so the bracket can be regenerated."""
        security.ensure_admin(capability, tournament_id)
        tournament = self.tournament_service.get(tournament_id)
        if tournament.status == TournamentStatus.COMPLETED:
            raise CannotResetCompleted("Cannot reset a tournament that has already been completed.")

        self.store.delete_where(database.MATCHES, tournament_id=tournament_id)
        self.store.delete_where(database.RESULTS, tournament_id=tournament_id)
        for participant in self.participant_service.list_by_tournament(tournament_id):
            self.participant_service.reactivate(participant.id)

        self.tournament_service.update(tournament_id, TournamentPatch(
            status=TournamentStatus.DRAFT,
            current_round=1,
        ))
        logger.info("Bracket reset for %s", tournament_id)
