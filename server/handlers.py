"""WebSocket message handlers for the Takedown card game.

One coroutine per client message type, looked up in HANDLERS by main.py.
Every handler takes the message, the connection context and keyword
dependencies (room_manager, broadcast_game_state, handle_player_leave) and
ignores the ones it does not need. Game mutations happen under the room lock.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import WebSocket

from constants import MIN_PLAYERS
from game import OutOfCardsError, apply_action, end_game, start, state_for_player
from logging_config import game_id_var, player_id_var, room_code_var
from models.actions import Action, action_from_message
from models.game_state import GamePhase
from room import Room

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 32


@dataclass
class ConnectionContext:
    """State tracked per WebSocket connection."""

    websocket: WebSocket
    connection_id: str
    player_id: str
    current_room: Optional[Room] = None


async def send_error(ctx: ConnectionContext, message: str, reason: Optional[str] = None) -> None:
    payload = {"type": "error", "message": message}
    if reason:
        payload["reason"] = reason
    await ctx.websocket.send_json(payload)


def _player_name(data: dict) -> str:
    name = str(data.get("player_name") or "Player").strip()
    return name[:MAX_NAME_LENGTH] or "Player"


def _enter_room(ctx: ConnectionContext, room: Room) -> None:
    ctx.current_room = room
    room_code_var.set(room.code)
    game_id_var.set(room.state.id)
    player_id_var.set(ctx.player_id)


# ---------------------------------------------------------------------------
# Lobby / Room handlers
# ---------------------------------------------------------------------------

async def handle_create_room(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    if ctx.current_room:
        await send_error(ctx, "Already in a room")
        return

    room = room_manager.create_room()
    room.add_player(ctx.player_id, _player_name(data), ctx.websocket)
    _enter_room(ctx, room)
    logger.info(f"Player {ctx.player_id} created room {room.code}")

    await ctx.websocket.send_json({
        "type": "room_created",
        "room_code": room.code,
        "game_id": room.state.id,
        "player_id": ctx.player_id,
    })

    await room.broadcast({
        "type": "player_joined",
        "players": room.player_list(),
    })


async def handle_join_room(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    if ctx.current_room:
        await send_error(ctx, "Already in a room")
        return

    room_code = str(data.get("room_code", "")).upper()
    room = room_manager.get_room(room_code)
    if not room:
        await send_error(ctx, "Room not found")
        return

    error = room.join_error(ctx.player_id)
    if error:
        await send_error(ctx, error)
        return

    room.add_player(ctx.player_id, _player_name(data), ctx.websocket)
    _enter_room(ctx, room)
    logger.info(f"Player {ctx.player_id} joined room {room.code}")

    await ctx.websocket.send_json({
        "type": "room_joined",
        "room_code": room.code,
        "game_id": room.state.id,
        "player_id": ctx.player_id,
    })

    await room.broadcast({
        "type": "player_joined",
        "players": room.player_list(),
    })


# ---------------------------------------------------------------------------
# Game lifecycle handlers
# ---------------------------------------------------------------------------

async def handle_start_game(data: dict, ctx: ConnectionContext, **kw) -> None:
    room = ctx.current_room
    if not room:
        return

    room_player = room.get_player(ctx.player_id)
    if not room_player or not room_player.is_host:
        await send_error(ctx, "Only the host can start the game")
        return

    async with room.game_lock:
        if room.state.phase != GamePhase.LOBBY:
            await send_error(ctx, "Game already started")
            return

        if len(room.state.players) < MIN_PLAYERS:
            await send_error(ctx, f"Need at least {MIN_PLAYERS} players")
            return

        start(room.state)
        logger.info(f"Room {room.code} started with {len(room.state.players)} players")

        for pid, player in room.players.items():
            if player.websocket:
                await player.websocket.send_json({
                    "type": "game_started",
                    "game_state": state_for_player(room.state, pid),
                })

        current = room.state.current_player()
        if current:
            await room.send_to(current.id, {"type": "your_turn"})


# ---------------------------------------------------------------------------
# Turn action handlers
# ---------------------------------------------------------------------------

async def _submit(ctx: ConnectionContext, action: Action, broadcast_game_state) -> None:
    room = ctx.current_room
    async with room.game_lock:
        try:
            result = apply_action(room.state, action)
        except OutOfCardsError:
            logger.exception(f"Room {room.code}: no cards left, ending game {room.state.id}")
            end_game(room.state)
            await room.broadcast({
                "type": "error",
                "message": "No cards left to draw, game over",
                "reason": "out_of_cards",
            })
            await broadcast_game_state(room)
            return

        if not result.ok:
            await send_error(ctx, result.message, reason=result.error.value)
            return

        logger.debug(
            f"Room {room.code}: {action.type.value} by {ctx.player_id} "
            f"advanced {result.turns_advanced} turn(s)"
        )
        await broadcast_game_state(room)


async def handle_draw(data: dict, ctx: ConnectionContext, *, broadcast_game_state, **kw) -> None:
    if not ctx.current_room:
        return
    await _submit(ctx, action_from_message(data, ctx.player_id), broadcast_game_state)


async def handle_play_card(data: dict, ctx: ConnectionContext, *, broadcast_game_state, **kw) -> None:
    if not ctx.current_room:
        return

    action = action_from_message(data, ctx.player_id)
    if action is None:
        await send_error(ctx, "card_id is required")
        return
    await _submit(ctx, action, broadcast_game_state)


# ---------------------------------------------------------------------------
# Leave handlers
# ---------------------------------------------------------------------------

async def handle_leave_room(data: dict, ctx: ConnectionContext, *, handle_player_leave, **kw) -> None:
    if ctx.current_room:
        await handle_player_leave(ctx.current_room, ctx.player_id)
        ctx.current_room = None
        room_code_var.set(None)
        game_id_var.set(None)


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

HANDLERS = {
    "create_room": handle_create_room,
    "join_room": handle_join_room,
    "start_game": handle_start_game,
    "draw": handle_draw,
    "play_card": handle_play_card,
    "leave_room": handle_leave_room,
}
