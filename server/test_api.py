"""
End-to-end tests for the HTTP and WebSocket surface.

Drives the FastAPI app through Starlette's TestClient: health endpoints,
the lobby API and a short game played over /ws.

Run with: pytest test_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from main import app, room_manager


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    room_manager.rooms.clear()


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"

    def test_ready_after_startup(self, client):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json()["checks"]["deck"]["cards"] == 50

    def test_metrics(self, client):
        data = client.get("/metrics").json()
        assert data["active_rooms"] == 0
        assert set(data["games_by_phase"]) == {"LOBBY", "FIND_START_NEUTRAL", "PLAY", "ENDED"}


class TestRoomsApi:

    def test_empty_list(self, client):
        assert client.get("/api/rooms").json() == {"rooms": [], "total": 0}

    def test_unknown_room(self, client):
        assert client.get("/api/rooms/ZZZZ").status_code == 404

    def test_room_visible_after_create(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "create_room", "player_name": "Alice"})
            created = ws.receive_json()
            assert created["type"] == "room_created"

            listing = client.get("/api/rooms").json()
            assert listing["total"] == 1
            room = client.get(f"/api/rooms/{created['room_code'].lower()}").json()
            assert room["phase"] == "LOBBY"
            assert room["players"][0]["name"] == "Alice"
            assert room["current_position"] is None


class TestWebSocketGame:

    def test_create_join_start_draw(self, client):
        with client.websocket_connect("/ws") as host, client.websocket_connect("/ws") as guest:
            host.send_json({"type": "create_room", "player_name": "Alice"})
            created = host.receive_json()
            assert host.receive_json()["type"] == "player_joined"

            guest.send_json({"type": "join_room", "room_code": created["room_code"], "player_name": "Bob"})
            assert guest.receive_json()["type"] == "room_joined"
            joined = guest.receive_json()
            assert [p["name"] for p in joined["players"]] == ["Alice", "Bob"]
            assert host.receive_json()["type"] == "player_joined"

            host.send_json({"type": "start_game"})
            started = host.receive_json()
            assert started["type"] == "game_started"
            assert started["game_state"]["phase"] == "FIND_START_NEUTRAL"
            assert host.receive_json()["type"] == "your_turn"
            assert guest.receive_json()["type"] == "game_started"

            guest.send_json({"type": "draw"})
            error = guest.receive_json()
            assert error["type"] == "error"
            assert error["reason"] == "not_your_turn"

            host.send_json({"type": "draw"})
            state = host.receive_json()
            assert state["type"] == "game_state"
            assert state["game_state"]["current_player_id"] != created["player_id"]
            assert guest.receive_json()["type"] == "game_state"
            assert guest.receive_json()["type"] == "your_turn"

    def test_start_alone_rejected(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "create_room", "player_name": "Alice"})
            ws.receive_json()
            ws.receive_json()
            ws.send_json({"type": "start_game"})
            assert ws.receive_json()["message"] == "Need at least 2 players"
