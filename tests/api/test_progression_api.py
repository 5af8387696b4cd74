"""Progression / Relationship API 엔드포인트 테스트"""

from fastapi.testclient import TestClient


def _register(client: TestClient, player_id: str = "p1") -> dict:
    response = client.post("/players", json={"player_id": player_id})
    assert response.status_code == 200
    return response.json()


class TestRegister:
    def test_new_player(self, client):
        body = _register(client)
        assert body["current_level"] == 1
        assert body["next_level_threshold"] == 100
        assert body["skills"]["speed"] == 0
        assert body["version"] == 0

    def test_register_twice_keeps_state(self, client):
        _register(client)
        client.post("/players/p1/progression/experience", json={"amount": 150})
        assert _register(client)["total_experience"] == 150

    def test_unknown_player_404(self, client):
        assert client.get("/players/ghost/progression").status_code == 404


class TestExperience:
    def test_multi_level(self, client):
        _register(client)
        body = client.post("/players/p1/progression/experience", json={"amount": 5500}).json()
        assert body["leveled_up"] is True
        assert body["new_level"] == 11
        assert [r["level"] for r in body["triggered_rewards"]] == [5, 10]

        progression = client.get("/players/p1/progression").json()
        assert progression["mastery_points"] == 3

    def test_negative_amount_invalid(self, client):
        _register(client)
        body = client.post("/players/p1/progression/experience", json={"amount": -1}).json()
        assert body["status"] == "invalid"


class TestSkillsPrestige:
    def test_skill_upgrade(self, client):
        _register(client)
        client.post("/players/p1/progression/experience", json={"amount": 1000})
        body = client.post(
            "/players/p1/progression/skills", json={"branch": "luck", "tier_index": 0}
        ).json()
        assert body["status"] == "applied"
        assert body["new_level"] == 1
        assert body["bonus_total"] == 0.05

    def test_unknown_branch_422(self, client):
        _register(client)
        response = client.post(
            "/players/p1/progression/skills", json={"branch": "charisma", "tier_index": 0}
        )
        assert response.status_code == 422

    def test_prestige_refused_below_50(self, client):
        _register(client)
        body = client.post("/players/p1/progression/prestige").json()
        assert body == {"success": False, "prestige_count": 0, "mastery_points": 0}


class TestAchievements:
    def test_grant_then_duplicate(self, client):
        _register(client)
        first = client.post("/players/p1/achievements", json={"achievement_id": "first_win"})
        second = client.post("/players/p1/achievements", json={"achievement_id": "first_win"})
        assert first.json()["status"] == "applied"
        assert second.json() == {"status": "duplicate", "reason": "already_granted"}

    def test_unknown_achievement_404(self, client):
        _register(client)
        response = client.post("/players/p1/achievements", json={"achievement_id": "nope"})
        assert response.status_code == 404


class TestSeasonalRank:
    def test_rank(self, client):
        body = client.get("/players/seasonal-rank/5200", params={"season": 3}).json()
        assert body["tier"] == "diamond"
        assert body["season"] == 3
        assert body["rewards"][0]["reward_type"] == "RUSH"


class TestRelationships:
    def test_dialogue_and_evolution(self, client):
        _register(client)
        body = client.post(
            "/players/p1/relationships/dialogue", json={"character_id": "nova", "delta": 12}
        ).json()
        assert body["scores"] == {"nova": 12}

        stage = client.get("/players/p1/characters/nova/evolution").json()
        assert stage == {"character_id": "nova", "stage": 1}

    def test_unknown_character_404(self, client):
        _register(client)
        response = client.post(
            "/players/p1/relationships/dialogue", json={"character_id": "ghost", "delta": 1}
        )
        assert response.status_code == 404
