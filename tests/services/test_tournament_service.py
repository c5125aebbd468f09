import pytest
import json
from datetime import date

from tourney.core import security
from tourney.core.database import JsonRecordStore
from tourney.core.exceptions import AlreadyGenerated, NotFound, TournamentError
from tourney.core.security import AdminCapability
from tourney.models.tournament_model import TournamentStatus
from tourney.schemas.participant_schemas import ParticipantCreate
from tourney.schemas.tournament_schemas import TournamentCreate, TournamentUpdate
from tourney.services.bracket_service import BracketService
from tourney.services.participant_service import ParticipantService
from tourney.services.tournament_service import TournamentService


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"

@pytest.fixture
def store(data_dir):
    return JsonRecordStore(str(data_dir))

@pytest.fixture
def tournament_service(store):
    return TournamentService(store)

def capability_for(tournament):
    return AdminCapability(tournament_id=tournament.id, token_secret=tournament.admin_token)


class TestTournamentService:

    def test_create_tournament_success(self, tournament_service: TournamentService, data_dir):
        tournament = tournament_service.create(TournamentCreate(name="Futsal Cup", type="futsal", participant_count=16))
        assert tournament.id is not None
        assert tournament.status == TournamentStatus.DRAFT
        assert tournament.max_participants == 16
        assert tournament.total_rounds == 4
        assert tournament.current_round == 1
        assert tournament.admin_token.startswith("admin_")

        with open(data_dir / "tournaments.json", "r") as f:
            tournaments_in_file = json.load(f)
        assert len(tournaments_in_file) == 1
        assert tournaments_in_file[0]["name"] == "Futsal Cup"

    def test_create_hashes_admin_password(self, tournament_service: TournamentService):
        tournament = tournament_service.create(
            TournamentCreate(name="Chess Open", participant_count=8, admin_password="hunter2")
        )
        assert tournament.admin_password_hash != "hunter2"
        assert security.verify_password("hunter2", tournament.admin_password_hash)

    def test_get_tournament_not_found(self, tournament_service: TournamentService):
        assert tournament_service.get_by_id("missing") is None
        with pytest.raises(NotFound):
            tournament_service.get("missing")

    def test_search_and_status_filter(self, tournament_service: TournamentService):
        tournament_service.create(TournamentCreate(name="Spring Futsal", participant_count=4))
        tournament_service.create(TournamentCreate(name="Chess Open", participant_count=4, description="Blitz futsal-free"))
        tournament_service.create(TournamentCreate(name="Valorant Night", participant_count=8))

        assert {t.name for t in tournament_service.search("FUTSAL")} == {"Spring Futsal", "Chess Open"}
        assert len(tournament_service.get_by_status(TournamentStatus.DRAFT)) == 3
        assert tournament_service.get_by_status(TournamentStatus.ONGOING) == []
        assert len(tournament_service.get_recent(limit=2)) == 2

    def test_update_details(self, tournament_service: TournamentService):
        tournament = tournament_service.create(TournamentCreate(name="Cup", participant_count=4))
        updated = tournament_service.update_details(
            tournament.id, TournamentUpdate(name="Bigger Cup", participant_count=32), capability_for(tournament)
        )
        assert updated.name == "Bigger Cup"
        assert updated.max_participants == 32
        assert updated.total_rounds == 5

    def test_update_rejects_inverted_dates(self, tournament_service: TournamentService):
        tournament = tournament_service.create(
            TournamentCreate(name="Cup", participant_count=4, start_date=date(2026, 5, 10))
        )
        with pytest.raises(TournamentError):
            tournament_service.update_details(
                tournament.id, TournamentUpdate(end_date=date(2026, 5, 1)), capability_for(tournament)
            )

    def test_participant_count_locked_after_generation(self, store, tournament_service: TournamentService):
        tournament = tournament_service.create(TournamentCreate(name="Cup", participant_count=4))
        capability = capability_for(tournament)
        bracket_service = BracketService(store, tournament_service, ParticipantService(store, tournament_service))
        bracket_service.generate_bracket(tournament.id, capability)

        with pytest.raises(AlreadyGenerated):
            tournament_service.update_details(tournament.id, TournamentUpdate(participant_count=8), capability)

    def test_resending_current_count_after_generation(self, store, tournament_service: TournamentService):
        tournament = tournament_service.create(TournamentCreate(name="Cup", participant_count=4))
        capability = capability_for(tournament)
        bracket_service = BracketService(store, tournament_service, ParticipantService(store, tournament_service))
        bracket_service.generate_bracket(tournament.id, capability)

        updated = tournament_service.update_details(
            tournament.id, TournamentUpdate(name="Renamed Cup", participant_count=4), capability
        )
        assert updated.name == "Renamed Cup"
        assert updated.participant_count == 4
        assert updated.status == TournamentStatus.REGISTRATION

    def test_delete_cascades(self, store, tournament_service: TournamentService):
        tournament = tournament_service.create(TournamentCreate(name="Cup", participant_count=4))
        capability = capability_for(tournament)
        participant_service = ParticipantService(store, tournament_service)
        BracketService(store, tournament_service, participant_service).generate_bracket(tournament.id, capability)
        participant_service.add(tournament.id, ParticipantCreate(name="Alpha"), capability)

        assert tournament_service.delete(tournament.id, capability) is True
        assert store.get_all("participants") == []
        assert store.get_all("matches") == []
        assert tournament_service.get_by_id(tournament.id) is None

    def test_delete_requires_capability(self, tournament_service: TournamentService):
        tournament = tournament_service.create(TournamentCreate(name="Cup", participant_count=4))
        with pytest.raises(PermissionError):
            tournament_service.delete(tournament.id, AdminCapability(tournament_id="other"))


class TestAdminAuthentication:

    def test_authenticate_with_password(self, tournament_service: TournamentService):
        tournament = tournament_service.create(
            TournamentCreate(name="Cup", participant_count=4, admin_password="hunter2")
        )
        token = tournament_service.authenticate(tournament.id, "hunter2")
        capability = security.decode_admin_token(token)
        assert capability.tournament_id == tournament.id
        assert tournament_service.is_token_current(capability)

    def test_wrong_password_rejected(self, tournament_service: TournamentService):
        tournament = tournament_service.create(
            TournamentCreate(name="Cup", participant_count=4, admin_password="hunter2")
        )
        with pytest.raises(PermissionError):
            tournament_service.authenticate(tournament.id, "guess")

    def test_open_tournament_authenticates_anyone(self, tournament_service: TournamentService):
        tournament = tournament_service.create(TournamentCreate(name="Cup", participant_count=4))
        assert tournament_service.authenticate(tournament.id, "")

    def test_password_change_revokes_old_tokens(self, tournament_service: TournamentService):
        tournament = tournament_service.create(TournamentCreate(name="Cup", participant_count=4))
        old = security.decode_admin_token(tournament_service.authenticate(tournament.id, ""))

        new_token = tournament_service.set_admin_password(tournament.id, "n3w", old)
        assert not tournament_service.is_token_current(old)
        assert tournament_service.is_token_current(security.decode_admin_token(new_token))
        with pytest.raises(PermissionError):
            tournament_service.authenticate(tournament.id, "")


class TestLifecycleQueries:

    def test_can_start_reasons(self, store, tournament_service: TournamentService):
        assert tournament_service.can_start("missing").reason == "Tournament not found"

        tournament = tournament_service.create(TournamentCreate(name="Cup", participant_count=4))
        capability = capability_for(tournament)
        assert tournament_service.can_start(tournament.id).reason == "Bracket has not been generated"

        participant_service = ParticipantService(store, tournament_service)
        BracketService(store, tournament_service, participant_service).generate_bracket(tournament.id, capability)
        participant_service.add(tournament.id, ParticipantCreate(name="Alpha"), capability)
        check = tournament_service.can_start(tournament.id)
        assert check.can_start is False
        assert check.reason == "Roster incomplete (1/4)"

        for name in ("Bravo", "Charlie", "Delta"):
            participant_service.add(tournament.id, ParticipantCreate(name=name), capability)
        assert tournament_service.can_start(tournament.id).can_start is True

    def test_stats(self, store, tournament_service: TournamentService):
        tournament = tournament_service.create(TournamentCreate(name="Cup", participant_count=4))
        capability = capability_for(tournament)
        participant_service = ParticipantService(store, tournament_service)
        bracket_service = BracketService(store, tournament_service, participant_service)
        bracket_service.generate_bracket(tournament.id, capability)
        for name in ("Alpha", "Bravo", "Charlie", "Delta"):
            participant_service.add(tournament.id, ParticipantCreate(name=name), capability)
        bracket_service.start_tournament(tournament.id, capability)

        first = bracket_service.get_bracket_view(tournament.id).rounds[0].matches[0]
        bracket_service.update_score(first.id, 7, 3, capability)

        stats = tournament_service.get_stats(tournament.id)
        assert stats.total_participants == 4
        assert stats.total_matches == 3
        assert stats.completed_matches == 1
        assert stats.pending_matches == 2
        assert stats.total_points == 10
        assert stats.highest_score_match.id == first.id
        assert stats.progress == 33
