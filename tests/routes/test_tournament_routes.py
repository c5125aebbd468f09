import pytest
from fastapi.testclient import TestClient

from tourney.main import app
from tourney.api.dependencies import get_record_store
from tourney.core.database import JsonRecordStore

# --- Test Client Fixture ---
@pytest.fixture
def client(tmp_path):
    store = JsonRecordStore(str(tmp_path / "data"))
    app.dependency_overrides[get_record_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()

def create_tournament(client: TestClient, participant_count: int = 4, password: str = "pw"):
    response = client.post("/tournaments", json={
        "name": "Route Cup",
        "type": "esport",
        "participant_count": participant_count,
        "admin_password": password,
    })
    assert response.status_code == 201
    tournament = response.json()
    token = client.post(f"/tournaments/{tournament['id']}/auth", json={"password": password}).json()["access_token"]
    return tournament, {"Authorization": f"Bearer {token}"}


class TestTournamentRoutes:

    def test_create_tournament(self, client: TestClient):
        tournament, _ = create_tournament(client)
        assert tournament["status"] == "draft"
        assert tournament["total_rounds"] == 2
        assert tournament["has_admin_password"] is True
        assert "admin_token" not in tournament
        assert "admin_password_hash" not in tournament

    def test_create_invalid_participant_count(self, client: TestClient):
        response = client.post("/tournaments", json={"name": "Odd Cup", "participant_count": 6})
        assert response.status_code == 422

    def test_list_and_filter(self, client: TestClient):
        create_tournament(client)
        client.post("/tournaments", json={"name": "Chess Open", "participant_count": 8})

        assert len(client.get("/tournaments").json()) == 2
        assert [t["name"] for t in client.get("/tournaments", params={"q": "chess"}).json()] == ["Chess Open"]
        assert client.get("/tournaments", params={"status": "ongoing"}).json() == []
        assert len(client.get("/tournaments/recent", params={"limit": 1}).json()) == 1

    def test_get_unknown_tournament(self, client: TestClient):
        response = client.get("/tournaments/missing")
        assert response.status_code == 404
        assert "not found" in response.json()["detail"]

    def test_update_requires_token(self, client: TestClient):
        tournament, headers = create_tournament(client)
        assert client.patch(f"/tournaments/{tournament['id']}", json={"name": "New"}).status_code == 401
        assert client.patch(
            f"/tournaments/{tournament['id']}", json={"name": "New"}, headers={"Authorization": "Bearer junk"}
        ).status_code == 401

        response = client.patch(f"/tournaments/{tournament['id']}", json={"name": "New"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["name"] == "New"

    def test_token_for_other_tournament_forbidden(self, client: TestClient):
        first, _ = create_tournament(client)
        _, other_headers = create_tournament(client)
        response = client.patch(f"/tournaments/{first['id']}", json={"name": "Hijack"}, headers=other_headers)
        assert response.status_code == 403

    def test_wrong_password(self, client: TestClient):
        tournament, _ = create_tournament(client)
        response = client.post(f"/tournaments/{tournament['id']}/auth", json={"password": "nope"})
        assert response.status_code == 403

    def test_password_change_revokes_token(self, client: TestClient):
        tournament, headers = create_tournament(client)
        response = client.put(
            f"/tournaments/{tournament['id']}/admin-password", json={"new_password": "pw2"}, headers=headers
        )
        assert response.status_code == 200
        new_headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

        assert client.patch(f"/tournaments/{tournament['id']}", json={"rules": "x"}, headers=headers).status_code == 401
        assert client.patch(f"/tournaments/{tournament['id']}", json={"rules": "x"}, headers=new_headers).status_code == 200

    def test_delete_tournament(self, client: TestClient):
        tournament, headers = create_tournament(client)
        assert client.delete(f"/tournaments/{tournament['id']}", headers=headers).status_code == 204
        assert client.get(f"/tournaments/{tournament['id']}").status_code == 404


class TestBracketLifecycleRoutes:

    def test_full_tournament_over_http(self, client: TestClient):
        tournament, headers = create_tournament(client)
        tid = tournament["id"]

        response = client.post(f"/tournaments/{tid}/bracket", headers=headers)
        assert response.status_code == 201
        assert len(response.json()) == 3
        assert client.post(f"/tournaments/{tid}/bracket", headers=headers).json()["error"] == "AlreadyGenerated"

        check = client.get(f"/tournaments/{tid}/can-start").json()
        assert check == {"can_start": False, "reason": "Roster incomplete (0/4)"}

        for seed, name in enumerate(["Alpha", "Bravo", "Charlie", "Delta"], start=1):
            added = client.post(f"/tournaments/{tid}/participants", json={"name": name, "seed": seed}, headers=headers)
            assert added.status_code == 201

        started = client.post(f"/tournaments/{tid}/start", headers=headers)
        assert started.status_code == 200
        assert started.json()["status"] == "ongoing"

        bracket = client.get(f"/tournaments/{tid}/bracket").json()
        assert [r["name"] for r in bracket["rounds"]] == ["Semifinal", "Final"]
        semi1, semi2 = bracket["rounds"][0]["matches"]
        assert semi1["participant1"]["name"] == "Alpha"
        assert semi1["participant2"]["name"] == "Delta"

        assert client.get(f"/tournaments/{tid}/result").status_code == 404

        client.post(f"/tournaments/{tid}/matches/{semi1['id']}/score", json={"score1": 2, "score2": 0}, headers=headers)
        client.post(f"/tournaments/{tid}/matches/{semi2['id']}/score", json={"score1": 0, "score2": 2}, headers=headers)
        final = client.get(f"/tournaments/{tid}/bracket").json()["rounds"][1]["matches"][0]
        assert final["status"] == "upcoming"

        response = client.post(
            f"/tournaments/{tid}/matches/{final['id']}/score", json={"score1": 3, "score2": 1}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["winner"]["name"] == "Alpha"

        result = client.get(f"/tournaments/{tid}/result").json()
        assert result["champion_id"] == semi1["participant1_id"]
        assert client.get(f"/tournaments/{tid}").json()["status"] == "completed"
        assert client.get(f"/tournaments/{tid}/bracket").json()["champion"]["name"] == "Alpha"

        stats = client.get(f"/tournaments/{tid}/stats").json()
        assert stats["completed_matches"] == 3
        assert stats["progress"] == 100

        reset = client.delete(f"/tournaments/{tid}/bracket", headers=headers)
        assert reset.status_code == 400
        assert reset.json()["error"] == "CannotResetCompleted"

    def test_start_without_bracket(self, client: TestClient):
        tournament, headers = create_tournament(client)
        response = client.post(f"/tournaments/{tournament['id']}/start", headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "BracketNotGenerated"

    def test_reset_bracket(self, client: TestClient):
        tournament, headers = create_tournament(client)
        client.post(f"/tournaments/{tournament['id']}/bracket", headers=headers)
        assert client.delete(f"/tournaments/{tournament['id']}/bracket", headers=headers).status_code == 204
        assert client.get(f"/tournaments/{tournament['id']}").json()["status"] == "draft"
