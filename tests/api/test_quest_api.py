"""Quest API 엔드포인트 테스트"""

import time

from fastapi.testclient import TestClient

TRANSFER = "Transfer(address,address,uint256)"


def _register(client: TestClient, player_id: str = "p1") -> None:
    assert client.post("/players", json={"player_id": player_id}).status_code == 200


def _complete_first_steps(client: TestClient) -> None:
    client.post("/players/p1/quests/first_steps/activate")
    client.post(
        "/players/p1/quests/first_steps/progress",
        json={"objective_id": "finish_tutorial"},
    )
    client.post("/players/p1/actions", json={"action_tag": "collect_coin", "amount": 10})


class TestAvailability:
    def test_available_for_new_player(self, client):
        _register(client)
        response = client.get("/players/p1/quests/available")
        assert response.status_code == 200
        assert response.json()["available"] == ["first_steps", "rush_runner"]

    def test_unknown_player_404(self, client):
        assert client.get("/players/ghost/quests/available").status_code == 404


class TestQuestFlow:
    def test_activate_and_progress(self, client):
        _register(client)
        response = client.post("/players/p1/quests/first_steps/activate")
        assert response.json() == {"status": "applied", "reason": None}

        response = client.post(
            "/players/p1/quests/first_steps/progress",
            json={"objective_id": "collect_coins", "delta": 4, "action_tag": "collect_coin"},
        )
        body = response.json()
        assert body["status"] == "applied"
        assert body["objective_completed"] is False

        state = client.get("/players/p1/quests/first_steps").json()
        assert state["status"] == "active"
        assert state["progress"]["collect_coins"] == 4
        assert state["percentage"] == 0.0

    def test_locked_activation(self, client):
        _register(client)
        body = client.post("/players/p1/quests/nova_intro/activate").json()
        assert body == {"status": "rejected", "reason": "locked"}

    def test_unknown_quest_404(self, client):
        _register(client)
        assert client.post("/players/p1/quests/ghost/activate").status_code == 404

    def test_game_action_routes_by_tag(self, client):
        _register(client)
        client.post("/players/p1/quests/first_steps/activate")
        response = client.post(
            "/players/p1/actions", json={"action_tag": "collect_coin", "amount": 3}
        )
        assert [r["objective_id"] for r in response.json()] == ["collect_coins"]

    def test_negative_action_amount_rejected(self, client):
        _register(client)
        response = client.post(
            "/players/p1/actions", json={"action_tag": "collect_coin", "amount": -1}
        )
        assert response.status_code == 422


class TestDispense:
    def test_dispense_rewards(self, client):
        _register(client)
        _complete_first_steps(client)

        response = client.post("/players/p1/quests/first_steps/dispense")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "applied"
        assert [g["reward_type"] for g in body["granted"]] == ["experience", "token"]
        assert body["relationship_changes"] == {"rush_runner": 10}
        assert body["newly_available"] == ["nova_intro", "daily_run", "nova"]

        again = client.post("/players/p1/quests/first_steps/dispense").json()
        assert again["status"] == "duplicate"
        assert again["granted"] == body["granted"]

    def test_rarity_in_response(self, client):
        _register(client)
        _complete_first_steps(client)
        client.post("/players/p1/quests/first_steps/dispense")
        client.post("/players/p1/quests/nova_intro/activate")
        client.post("/players/p1/actions", json={"action_tag": "talk_nova"})

        body = client.post("/players/p1/quests/nova_intro/dispense").json()
        assert body["rarities"] == {"1": "legendary"}
        nft = [g for g in body["granted"] if g["reward_type"] == "nft"]
        assert nft[0]["rarity"] == "legendary"

    def test_dispense_before_completion(self, client):
        _register(client)
        body = client.post("/players/p1/quests/first_steps/dispense").json()
        assert body["status"] == "invalid"
        assert body["reason"] == "not_completed"


class TestChainEvents:
    def _event(self, unique_id="0xaaa:0", value="1500", timestamp=None):
        return {
            "player_id": "p1",
            "signature": TRANSFER,
            "parameters": {"from": "0x1", "to": "0x2", "value": value},
            "timestamp": timestamp if timestamp is not None else int(time.time()),
            "unique_id": unique_id,
        }

    def test_reactive_quest_completion(self, client):
        _register(client)
        client.post("/players/p1/achievements", json={"achievement_id": "wallet_linked"})
        client.post("/players/p1/quests/token_holder/activate")

        body = client.post("/chain-events", json=self._event()).json()
        assert body["event_id"] == "0xaaa:0"
        assert body["results"][0]["status"] == "applied"
        assert body["results"][0]["quest_completed"] is True

        again = client.post("/chain-events", json=self._event()).json()
        assert again["results"][0]["status"] == "duplicate"

        state = client.get("/players/p1/quests/token_holder").json()
        assert state["status"] == "completed_pending_dispense"

    def test_parameter_mismatch(self, client):
        _register(client)
        client.post("/players/p1/achievements", json={"achievement_id": "wallet_linked"})
        client.post("/players/p1/quests/token_holder/activate")

        body = client.post("/chain-events", json=self._event(value="999")).json()
        assert body["results"][0]["reason"] == "parameter_mismatch"

    def test_unknown_player_404(self, client):
        assert client.post("/chain-events", json=self._event()).status_code == 404

    def test_negative_timestamp_422(self, client):
        response = client.post("/chain-events", json=self._event(timestamp=-1))
        assert response.status_code == 422
