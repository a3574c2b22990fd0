from typing import Optional
from fastapi import APIRouter, Header, HTTPException
from pydantic import BaseModel
from fastapi.responses import JSONResponse
from models import OutcomeKind, ScoreBoard
from services.game_errors import InvalidConfiguration
from services.tic_tac_toe_service import GameSession, tic_tac_toe_service
import logging

# Set up logging
logger = logging.getLogger(__name__)

# Create a router for Tic-Tac-Toe game endpoints
tic_tac_toe_router = APIRouter(prefix="/tic-tac-toe", tags=["tic-tac-toe"])

# Store game sessions and scores by player; scores outlive back-to-menu
game_instances = {}
score_boards = {}


def require_player(x_player_id: Optional[str]) -> str:
    if not x_player_id:
        logger.info("❌ TIC-TAC-TOE UNAUTHORIZED - Missing player id")
        raise HTTPException(status_code=401, detail="Missing X-Player-Id header.")
    return x_player_id


def get_player_scores(player_id):
    """
    Get or create the scoreboard for a player

    Args:
        player_id: The player's identifier

    Returns:
        ScoreBoard: The player's cumulative scores
    """
    if player_id not in score_boards:
        score_boards[player_id] = ScoreBoard()
    return score_boards[player_id]


def get_player_session(player_id) -> GameSession:
    """
    Get the player's current session

    Args:
        player_id: The player's identifier

    Returns:
        GameSession: The session started with POST /session

    Raises:
        HTTPException: 404 if no session is running
    """
    session = game_instances.get(player_id)
    if session is None:
        raise HTTPException(status_code=404, detail="No game in progress. Choose a mode to start.")
    return session


class SessionRequest(BaseModel):
    mode: str
    difficulty: Optional[str] = None


class MoveRequest(BaseModel):
    index: int


@tic_tac_toe_router.post("/session")
async def start_session(session_request: SessionRequest, x_player_id: str = Header(None)):
    """Start a game in the chosen mode and return the initial state"""
    player_id = require_player(x_player_id)

    try:
        session = tic_tac_toe_service.new_session(
            session_request.mode,
            session_request.difficulty,
            scoreboard=get_player_scores(player_id),
        )
    except InvalidConfiguration as e:
        logger.warning(f"⚠️ TIC-TAC-TOE INVALID CONFIGURATION - {player_id} | Error: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))

    previous = game_instances.get(player_id)
    if previous is not None:
        tic_tac_toe_service.back_to_menu(previous)
    game_instances[player_id] = session

    logger.info(f"🎮 TIC-TAC-TOE GAME STARTED - {player_id} | Mode: {session.mode.value}")
    return JSONResponse(content=session.serialize_game_state())


@tic_tac_toe_router.get("/state")
async def get_state(x_player_id: str = Header(None)):
    """Return the current game state (polled while the AI is thinking)"""
    player_id = require_player(x_player_id)
    session = get_player_session(player_id)
    return JSONResponse(content=session.serialize_game_state())


@tic_tac_toe_router.post("/move")
async def make_move(move_data: MoveRequest, x_player_id: str = Header(None)):
    """Process a player's move"""
    player_id = require_player(x_player_id)
    session = get_player_session(player_id)

    outcome = await tic_tac_toe_service.apply_human_move(session, move_data.index)
    if outcome.kind is OutcomeKind.ILLEGAL_MOVE:
        logger.warning(f"⚠️ TIC-TAC-TOE INVALID MOVE - {player_id} | {outcome.reason.value}: {outcome.message}")
        raise HTTPException(status_code=400, detail=f"{outcome.reason.value}: {outcome.message}")

    logger.info(f"🎮 TIC-TAC-TOE PLAYER MOVE - {player_id} | Position: {move_data.index}")
    return JSONResponse(content={
        "outcome": outcome.to_dict(),
        "state": session.serialize_game_state(),
    })


@tic_tac_toe_router.post("/restart")
async def restart_game(x_player_id: str = Header(None)):
    """Clear the board and keep the scores"""
    player_id = require_player(x_player_id)
    session = get_player_session(player_id)

    tic_tac_toe_service.request_restart(session)
    logger.info(f"🎮 TIC-TAC-TOE GAME RESET - {player_id}")
    return JSONResponse(content=session.serialize_game_state())


@tic_tac_toe_router.post("/menu")
async def back_to_menu(x_player_id: str = Header(None)):
    """Leave the current game; mode and difficulty must be chosen again"""
    player_id = require_player(x_player_id)
    session = get_player_session(player_id)

    scores = tic_tac_toe_service.back_to_menu(session)
    del game_instances[player_id]
    logger.info(f"🏠 TIC-TAC-TOE MENU - {player_id}")
    return JSONResponse(content={"scores": scores.to_dict()})


@tic_tac_toe_router.get("/scores")
async def get_scores(x_player_id: str = Header(None)):
    """Return the player's cumulative scores"""
    player_id = require_player(x_player_id)
    session = game_instances.get(player_id)
    if session is not None:
        scores = tic_tac_toe_service.get_score_board(session)
    else:
        scores = get_player_scores(player_id)
    return JSONResponse(content=scores.to_dict())


@tic_tac_toe_router.post("/scores/reset")
async def reset_scores(x_player_id: str = Header(None)):
    """Zero all score counters"""
    player_id = require_player(x_player_id)
    session = game_instances.get(player_id)
    if session is not None:
        scores = tic_tac_toe_service.request_score_reset(session)
    else:
        scores = get_player_scores(player_id)
        scores.reset()

    logger.info(f"🧹 TIC-TAC-TOE SCORES RESET - {player_id}")
    return JSONResponse(content=scores.to_dict())
