"""
Unit tests for the Flask API using the test client.
"""

from unittest.mock import Mock

import pytest

from badgeledger.core.api_blueprints import create_app
from badgeledger.core.config import Settings
from badgeledger.core.exceptions import StorageError

PLAYER = "0x" + "4e" * 20
OTHER = "0x" + "7c" * 20


@pytest.fixture
def settings(signer_key):
    return Settings(signer_private_key=signer_key[0], database_path=":memory:")


@pytest.fixture
def client(settings, service):
    app = create_app(settings, service)
    app.testing = True
    return app.test_client()


def _submit(client, player=PLAYER, score=150, lines=3, **extra):
    body = {"playerAddress": player, "score": score, "linesCleared": lines, **extra}
    return client.post("/api/games/submit", json=body)


class TestCoreEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "ok"
        assert "timestamp" in data

    def test_metrics(self, client):
        _submit(client)
        response = client.get("/metrics")
        assert response.status_code == 200
        assert b"badgeledger_games_submitted_total" in response.data


class TestSubmitGame:
    def test_first_game(self, client):
        response = _submit(client)
        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["gameId"] == 1
        assert data["newAchievements"] == [1, 3]
        assert data["player"]["total_games"] == 1

    def test_optional_tournament_fields(self, client, service):
        response = _submit(client, duration=120, isTournament=True, tournamentId=3)
        assert response.status_code == 200
        (game,) = service.registry.get_games(PLAYER)
        assert game["tournament_id"] == 3

    def test_uppercase_address_is_normalized(self, client, service):
        _submit(client, player="0x" + "4E" * 20)
        assert service.registry.get_player(PLAYER) is not None

    @pytest.mark.parametrize(
        "body",
        [
            {"score": 10, "linesCleared": 1},
            {"playerAddress": "0x1234", "score": 10},
            {"playerAddress": PLAYER, "score": -5},
            {"playerAddress": PLAYER, "score": "lots"},
            {"playerAddress": PLAYER, "score": 2**63},
        ],
    )
    def test_invalid_body(self, client, body):
        response = client.post("/api/games/submit", json=body)
        assert response.status_code == 400
        assert response.get_json()["code"] == "validation_error"

    def test_missing_body(self, client):
        response = client.post("/api/games/submit", data="", content_type="application/json")
        assert response.status_code == 400

    def test_wrong_content_type(self, client):
        response = client.post("/api/games/submit", data="x", content_type="text/plain")
        assert response.status_code == 415


class TestPlayers:
    def test_unknown_player(self, client):
        response = client.get(f"/api/players/{OTHER}")
        assert response.status_code == 200
        assert response.get_json()["exists"] is False

    def test_known_player(self, client):
        _submit(client)
        data = client.get(f"/api/players/{PLAYER}").get_json()
        assert data["exists"] is True
        assert data["player"]["best_score"] == 150
        assert [a["achievement_id"] for a in data["achievements"]] == [1, 3]

    def test_game_history(self, client):
        _submit(client, score=10)
        _submit(client, score=30, isTournament=True, tournamentId=2)
        data = client.get(f"/api/players/{PLAYER}/games").get_json()
        assert [game["score"] for game in data["games"]] == [30, 10]
        assert data["games"][0]["is_tournament"] is True
        assert data["games"][0]["tournament_id"] == 2

    def test_game_history_limit_is_capped(self, client):
        for score in range(3):
            _submit(client, score=score)
        data = client.get(f"/api/players/{PLAYER}/games?limit=1").get_json()
        assert data["limit"] == 1
        assert len(data["games"]) == 1

        data = client.get(f"/api/players/{PLAYER}/games?limit=100000").get_json()
        assert data["limit"] == 50
        assert len(data["games"]) == 3

    def test_bad_address(self, client):
        response = client.get("/api/players/not-an-address")
        assert response.status_code == 400


class TestSignature:
    def test_unearned_is_forbidden(self, client):
        response = client.post(
            "/api/achievements/signature", json={"playerAddress": PLAYER, "achievementId": 4}
        )
        assert response.status_code == 403
        assert response.get_json()["error"] == "Achievement not earned"

    @pytest.mark.parametrize("achievement_id", [5, 2**64, 2**256 - 1])
    def test_id_outside_catalog_is_forbidden(self, client, achievement_id):
        _submit(client)
        response = client.post(
            "/api/achievements/signature",
            json={"playerAddress": PLAYER, "achievementId": achievement_id},
        )
        assert response.status_code == 403
        assert response.get_json()["error"] == "Achievement not earned"

    def test_earned_credential_redeems_on_ledger(self, client, ledger):
        _submit(client)
        response = client.post(
            "/api/achievements/signature", json={"playerAddress": PLAYER, "achievementId": 3}
        )
        assert response.status_code == 200
        signature = response.get_json()["signature"]
        assert signature.startswith("0x") and len(signature) == 132

        assert ledger.redeem(PLAYER, 3, signature)

    def test_invalid_request(self, client):
        response = client.post(
            "/api/achievements/signature", json={"playerAddress": PLAYER, "achievementId": -1}
        )
        assert response.status_code == 400


class TestLeaderboard:
    def test_global(self, client):
        _submit(client, player=PLAYER, score=10)
        _submit(client, player=OTHER, score=20)
        data = client.get("/api/leaderboard").get_json()
        assert [row["player_address"] for row in data["leaderboard"]] == [OTHER, PLAYER]
        assert data["leaderboard"][0] == {"player_address": OTHER, "best_score": 20, "games_played": 1}

    def test_tournament_uses_global_ranking(self, client):
        _submit(client, score=10)
        data = client.get("/api/tournaments/5/leaderboard").get_json()
        assert data["tournamentId"] == 5
        assert data["leaderboard"][0]["player_address"] == PLAYER


class TestErrorMapping:
    @pytest.fixture
    def failing_client(self, settings):
        service = Mock()
        service.signer.address = "0x" + "11" * 20
        service.submit_game.side_effect = StorageError("database is locked")
        service.leaderboard.side_effect = RuntimeError("boom")
        app = create_app(settings, service)
        return app.test_client()

    def test_storage_error_is_503(self, failing_client):
        response = _submit(failing_client)
        assert response.status_code == 503
        assert response.get_json()["code"] == "unavailable"

    def test_unexpected_error_is_500_without_details(self, failing_client):
        response = failing_client.get("/api/leaderboard")
        assert response.status_code == 500
        data = response.get_json()
        assert data["error"] == "Internal server error"
        assert "boom" not in response.get_data(as_text=True)
