"""
Lobby API router for Takedown.

Read-only views of the rooms on this server so a client can list open
lobbies before joining over the WebSocket. Joining, starting and playing
all happen on /ws.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from constants import MAX_PLAYERS
from models.game_state import GamePhase
from room import Room, RoomManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rooms", tags=["rooms"])


# =============================================================================
# Response Models
# =============================================================================


class RoomPlayerResponse(BaseModel):
    """Player entry in a room summary."""
    id: str
    name: str
    is_host: bool


class RoomSummaryResponse(BaseModel):
    """Room summary."""
    code: str
    game_id: str
    phase: str
    players: list[RoomPlayerResponse]
    max_players: int
    current_position: Optional[str] = None
    winner_id: Optional[str] = None


class RoomListResponse(BaseModel):
    """List of rooms."""
    rooms: list[RoomSummaryResponse]
    total: int


# =============================================================================
# Dependencies
# =============================================================================

# Set by main.py during startup
_room_manager: Optional[RoomManager] = None


def set_room_manager(manager: RoomManager) -> None:
    """Set the room manager instance (called from main.py)."""
    global _room_manager
    _room_manager = manager


def get_room_manager_dep() -> RoomManager:
    """Dependency to get the room manager."""
    if _room_manager is None:
        raise HTTPException(status_code=503, detail="Room manager not initialized")
    return _room_manager


def _summary(room: Room) -> dict:
    started = room.state.phase != GamePhase.LOBBY
    return {
        "code": room.code,
        "game_id": room.state.id,
        "phase": room.state.phase.value,
        "players": room.player_list(),
        "max_players": MAX_PLAYERS,
        "current_position": room.state.current_position.value if started else None,
        "winner_id": room.state.winner_id,
    }


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=RoomListResponse)
async def list_rooms(
    open_only: bool = Query(True, description="Only rooms still in the lobby with free seats"),
    manager: RoomManager = Depends(get_room_manager_dep),
):
    """List rooms on this server."""
    rooms = list(manager.rooms.values())
    if open_only:
        rooms = [
            r for r in rooms
            if r.state.phase == GamePhase.LOBBY and len(r.players) < MAX_PLAYERS
        ]
    return {"rooms": [_summary(r) for r in rooms], "total": len(rooms)}


@router.get("/{code}", response_model=RoomSummaryResponse)
async def get_room(
    code: str,
    manager: RoomManager = Depends(get_room_manager_dep),
):
    """Get one room by code (case-insensitive)."""
    room = manager.get_room(code)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return _summary(room)
