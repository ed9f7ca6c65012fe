"""
Room management for multiplayer Takedown games.

This module is the session layer around the engine: it maps WebSocket
connections to seats, enforces lobby rules (capacity, duplicate joins,
no joins after the deal) and serializes game mutations per room.

Each Room holds:
    - A short code players type in to join
    - One RoomPlayer per connected seat, in join order
    - The GameState the engine operates on
    - An asyncio.Lock held while an action is applied and broadcast
"""

import asyncio
import logging
import random
import string
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import WebSocket

from constants import MAX_PLAYERS, ROOM_CODE_LENGTH
from game import add_player, create_game_state, remove_player
from models.game_state import GamePhase, GameState

logger = logging.getLogger(__name__)


@dataclass
class RoomPlayer:
    """
    A connected seat in a room.

    The engine's Player holds the hand and score; RoomPlayer holds what only
    the server cares about: the socket and who may start the game.
    """

    id: str
    name: str
    websocket: Optional[WebSocket] = None
    is_host: bool = False


@dataclass
class Room:
    """
    A lobby hosting one Takedown game.

    Attributes:
        code: Join code (e.g., "KQZT").
        players: Connected seats keyed by player id, in join order.
        state: The engine's GameState for this room.
        game_lock: Held while a game action is applied and broadcast.
    """

    code: str
    players: dict[str, RoomPlayer] = field(default_factory=dict)
    state: GameState = field(default_factory=lambda: create_game_state(str(uuid.uuid4())))
    game_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def join_error(self, player_id: str) -> Optional[str]:
        """Why a player cannot join this room right now, or None if they can."""
        if player_id in self.players:
            return "Already in this room"
        if self.state.phase != GamePhase.LOBBY:
            return "Game already in progress"
        if len(self.players) >= MAX_PLAYERS:
            return "Room is full"
        return None

    def add_player(
        self,
        player_id: str,
        name: str,
        websocket: Optional[WebSocket] = None,
    ) -> Optional[RoomPlayer]:
        """
        Seat a player in the room and register them with the game.

        Whoever is seated first hosts the room.

        Returns:
            The new RoomPlayer, or None when join_error() refuses the join.
        """
        if self.join_error(player_id) is not None:
            return None
        if add_player(self.state, player_id, name) is None:
            return None

        seat = RoomPlayer(id=player_id, name=name, websocket=websocket, is_host=not self.players)
        self.players[player_id] = seat
        return seat

    def remove_player(self, player_id: str) -> Optional[RoomPlayer]:
        """
        Drop a player's seat.

        Before the deal the player also leaves the game. After it, the
        engine keeps them in turn order and only the connection goes away.
        If the host leaves, the longest-seated remaining player hosts.
        """
        seat = self.players.pop(player_id, None)
        if seat is None:
            return None

        remove_player(self.state, player_id)
        if seat.is_host and self.players:
            successor = next(iter(self.players.values()))
            successor.is_host = True
            logger.debug(f"Room {self.code}: host passed to {successor.id}")
        return seat

    def get_player(self, player_id: str) -> Optional[RoomPlayer]:
        return self.players.get(player_id)

    def is_empty(self) -> bool:
        return not self.players

    def player_list(self) -> list[dict]:
        """Seats for lobby display: id, name and is_host."""
        return [
            {"id": seat.id, "name": seat.name, "is_host": seat.is_host}
            for seat in self.players.values()
        ]

    async def _send(self, seat: RoomPlayer, message: dict) -> None:
        if seat.websocket is None:
            return
        try:
            await seat.websocket.send_json(message)
        except Exception as e:
            logger.debug(f"Send to {seat.id} in room {self.code} failed: {e}")

    async def broadcast(self, message: dict, exclude: Optional[str] = None) -> None:
        """Send a message to every connected seat except `exclude`."""
        for seat in list(self.players.values()):
            if seat.id != exclude:
                await self._send(seat, message)

    async def send_to(self, player_id: str, message: dict) -> None:
        """Send a message to one seat; unknown ids are ignored."""
        seat = self.players.get(player_id)
        if seat is not None:
            await self._send(seat, message)


class RoomManager:
    """
    Registry of the rooms on this server, keyed by join code.

    The server holds a single instance; rooms are removed once their last
    connection leaves.
    """

    def __init__(self) -> None:
        self.rooms: dict[str, Room] = {}

    def _generate_code(self, max_attempts: int = 100) -> str:
        for _ in range(max_attempts):
            code = "".join(random.choices(string.ascii_uppercase, k=ROOM_CODE_LENGTH))
            if code not in self.rooms:
                return code
        raise RuntimeError(f"No free room code after {max_attempts} attempts")

    def create_room(self) -> Room:
        """Open a room with a fresh code and an empty game in the lobby."""
        room = Room(code=self._generate_code())
        self.rooms[room.code] = room
        logger.info(f"Room {room.code} created for game {room.state.id}")
        return room

    def get_room(self, code: str) -> Optional[Room]:
        """Look up a room; codes are matched case-insensitively."""
        return self.rooms.get(code.upper())

    def remove_room(self, code: str) -> None:
        if self.rooms.pop(code, None) is not None:
            logger.info(f"Room {code} removed")
