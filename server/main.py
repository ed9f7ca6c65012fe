"""
FastAPI entry point for the Takedown server.

One WebSocket endpoint (/ws) carries the whole game protocol; the HTTP
routers only expose health checks and a read-only lobby listing. Each
incoming message is routed by its "type" through handlers.HANDLERS.
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from cards import build_deck
from config import config
from game import deck_templates, state_for_player
from handlers import HANDLERS, ConnectionContext
from logging_config import player_id_var, setup_logging
from models.game_state import GamePhase
from room import Room, RoomManager


def _init_sentry() -> None:
    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.starlette import StarletteIntegration
    except ImportError:
        logging.getLogger(__name__).warning("SENTRY_DSN is set but sentry-sdk is not installed")
        return

    sentry_sdk.init(
        dsn=config.SENTRY_DSN,
        environment=config.ENVIRONMENT,
        traces_sample_rate=0.1 if config.ENVIRONMENT == "production" else 1.0,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
    )
    logging.getLogger(__name__).info("Sentry error tracking enabled")


if config.SENTRY_DSN:
    _init_sentry()

setup_logging(level=config.LOG_LEVEL, environment=config.ENVIRONMENT)
logger = logging.getLogger(__name__)

room_manager = RoomManager()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A broken CARD_MANIFEST should stop the server here, not at the first deal.
    deck_size = len(build_deck(deck_templates()))

    from routers.health import set_health_dependencies
    from routers.rooms import set_room_manager
    set_health_dependencies(room_manager=room_manager, deck_size=deck_size)
    set_room_manager(room_manager)

    logger.info(f"Takedown server up (environment={config.ENVIRONMENT}, deck={deck_size} cards)")
    yield

    logger.info("Shutting down, closing player connections")
    await _disconnect_everyone()
    room_manager.rooms.clear()
    logger.info("Shutdown complete")


async def _disconnect_everyone():
    for room in list(room_manager.rooms.values()):
        for seat in list(room.players.values()):
            if seat.websocket is None:
                continue
            try:
                await seat.websocket.close(code=1001, reason="Server shutting down")
            except Exception as e:
                logger.debug(f"Closing socket of {seat.id} failed: {e}")


app = FastAPI(
    title="Takedown Card Game",
    debug=config.DEBUG,
    version="0.3.0",
    lifespan=lifespan,
)

from routers.health import router as health_router
from routers.rooms import router as rooms_router
app.include_router(health_router)
app.include_router(rooms_router)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()

    # The connection id doubles as the player id for the whole session.
    connection_id = str(uuid.uuid4())
    player_id_var.set(connection_id)
    ctx = ConnectionContext(websocket=websocket, connection_id=connection_id, player_id=connection_id)
    logger.debug(f"Connection {connection_id} opened")

    deps = {
        "room_manager": room_manager,
        "broadcast_game_state": broadcast_game_state,
        "handle_player_leave": handle_player_leave,
    }

    try:
        while True:
            message = await websocket.receive_json()
            handler = HANDLERS.get(message.get("type")) if isinstance(message, dict) else None
            if handler is None:
                logger.debug(f"Unknown message from {connection_id}: {message!r:.80}")
                continue
            await handler(message, ctx, **deps)
    except WebSocketDisconnect:
        logger.debug(f"Connection {connection_id} closed")
        if ctx.current_room:
            await handle_player_leave(ctx.current_room, ctx.player_id)


async def broadcast_game_state(room: Room):
    """
    Push the game to every connected seat, each from its own point of view.

    After the state, the winner is announced if the game just ended,
    otherwise the player to move gets a your_turn nudge.
    """
    state = room.state
    mover = state.current_player()

    game_over = None
    if state.phase == GamePhase.ENDED:
        winner = state.get_player(state.winner_id) if state.winner_id else None
        game_over = {
            "type": "game_over",
            "winner_id": state.winner_id,
            "winner_name": winner.name if winner else None,
            "final_scores": [
                {"id": p.id, "name": p.name, "score": p.score, "penalty_points": p.penalty_points}
                for p in state.players
            ],
        }

    for seat_id in list(room.players):
        await room.send_to(seat_id, {"type": "game_state", "game_state": state_for_player(state, seat_id)})
        if game_over:
            await room.send_to(seat_id, game_over)
        elif mover and seat_id == mover.id:
            await room.send_to(seat_id, {"type": "your_turn"})


async def handle_player_leave(room: Room, player_id: str):
    """Drop a seat; delete the room once nobody is connected."""
    seat = room.remove_player(player_id)

    if room.is_empty():
        room_manager.remove_room(room.code)
        return
    if seat:
        await room.broadcast({
            "type": "player_left",
            "player_id": player_id,
            "player_name": seat.name,
            "players": room.player_list(),
        })


def run():
    """Serve the app with uvicorn (auto-reload when DEBUG is on)."""
    import uvicorn

    logger.info(f"Starting Takedown server on {config.HOST}:{config.PORT} (debug={config.DEBUG})")
    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
