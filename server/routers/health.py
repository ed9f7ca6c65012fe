"""
Operational endpoints.

    /health   liveness: 200 while the process is serving requests
    /ready    readiness: 503 until the deck is loaded and rooms can be created
    /metrics  room, player and game counts for dashboards
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from models.game_state import GamePhase

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

# Wired up by main.lifespan
_room_manager = None
_deck_size = None


def set_health_dependencies(room_manager=None, deck_size=None):
    global _room_manager, _deck_size
    _room_manager = room_manager
    _deck_size = deck_size


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def health_check():
    return {"status": "ok", "timestamp": _now()}


@router.get("/ready")
async def readiness_check():
    """Report whether the room registry and the deck are in place."""
    rooms_ok = _room_manager is not None
    deck_ok = bool(_deck_size)
    checks = {
        "room_manager": {"status": "ok" if rooms_ok else "not_configured"},
        "deck": {"status": "ok", "cards": _deck_size} if deck_ok else {"status": "error", "message": "deck not loaded"},
    }
    ready = rooms_ok and deck_ok
    if not ready:
        logger.warning(f"Readiness check failed: {checks}")

    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ok" if ready else "degraded", "checks": checks, "timestamp": _now()},
    )


@router.get("/metrics")
async def metrics():
    """Room and game counts, with games broken down by phase."""
    data = {"timestamp": _now()}
    if _room_manager is None:
        return data

    rooms = list(_room_manager.rooms.values())
    by_phase = {phase.value: 0 for phase in GamePhase}
    for room in rooms:
        by_phase[room.state.phase.value] += 1

    data.update({
        "active_rooms": len(rooms),
        "connected_players": sum(len(room.players) for room in rooms),
        "games_by_phase": by_phase,
        "games_in_progress": by_phase[GamePhase.FIND_START_NEUTRAL.value] + by_phase[GamePhase.PLAY.value],
    })
    return data
