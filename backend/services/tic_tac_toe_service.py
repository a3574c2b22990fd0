"""
Tic-Tac-Toe Game Service

This module runs tic-tac-toe game sessions for two humans or for a human (X)
against the computer (O). It owns the session lifecycle, validates and applies
human moves, schedules the computer's reply after a short "thinking" delay,
and keeps the cumulative score.

Usage:
    service = TicTacToeService()
    session = service.new_session("human-vs-computer", "hard")

    # Human (X) plays the centre; the computer's reply is scheduled
    outcome = await service.apply_human_move(session, 4)

    # Wait for the computer's move to land
    ai_outcome = await service.wait_for_computer_move(session)

    # Serialized state for the front end
    state = session.serialize_game_state()
"""

import asyncio
import logging
import os
import uuid
from typing import Callable, List, Optional, Set

from models import (
    DEFAULT_DIFFICULTY,
    GAME_MODE_ALIASES,
    Difficulty,
    GameMode,
    IllegalMoveReason,
    MoveOutcome,
    OutcomeKind,
    Player,
    ScoreBoard,
)
from services.board_state import BoardState
from services.game_errors import IllegalMove, InvalidConfiguration, SessionClosed
from services.move_policy import MovePolicyEngine

logger = logging.getLogger(__name__)

COMPUTER_PLAYER = Player.O
HUMAN_PLAYER = Player.X

Listener = Callable[["GameSession", MoveOutcome], None]


def parse_game_mode(mode) -> GameMode:
    if isinstance(mode, GameMode):
        return mode
    if isinstance(mode, str):
        key = mode.strip().lower()
        if key in GAME_MODE_ALIASES:
            return GAME_MODE_ALIASES[key]
        try:
            return GameMode(key)
        except ValueError:
            pass
    raise InvalidConfiguration(f"Unknown game mode: {mode!r}")


def parse_difficulty(difficulty) -> Difficulty:
    if difficulty is None:
        return DEFAULT_DIFFICULTY
    if isinstance(difficulty, Difficulty):
        return difficulty
    if isinstance(difficulty, str):
        try:
            return Difficulty(difficulty.strip().lower())
        except ValueError:
            pass
    raise InvalidConfiguration(f"Unknown difficulty: {difficulty!r}")


def describe_outcome(outcome: MoveOutcome, mode: GameMode) -> Optional[dict]:
    """
    Headline and message for a finished game.

    Args:
        outcome (MoveOutcome): The outcome of the final move
        mode (GameMode): Mode of the session the game was played in

    Returns:
        dict: {'title', 'message'}, or None if the outcome is not terminal
    """
    if outcome.kind is OutcomeKind.DRAW:
        return {"title": "It's a Draw!", "message": "Well played by both sides!"}
    if outcome.kind is not OutcomeKind.WIN:
        return None
    if mode is GameMode.HUMAN_VS_COMPUTER and outcome.player is COMPUTER_PLAYER:
        return {"title": "AI Wins!", "message": "Better luck next time!"}
    return {
        "title": f"Player {outcome.player.value} Wins!",
        "message": "Congratulations on your victory!",
    }


class GameSession:
    """
    One playthrough: board, mode, difficulty and the score it feeds.

    The generation counter changes on every restart and on back-to-menu;
    a computer move scheduled under an older generation is discarded.
    """

    def __init__(self, mode: GameMode, difficulty: Optional[Difficulty], scoreboard: ScoreBoard,
                 policy: Optional[MovePolicyEngine] = None):
        self.session_id = uuid.uuid4().hex
        self.mode = mode
        self.difficulty = difficulty
        self.scoreboard = scoreboard
        self.policy = policy
        self.board = BoardState()
        self.generation = 0
        self.closed = False
        self.last_outcome: Optional[MoveOutcome] = None
        self.pending_move: Optional[asyncio.Task] = None
        self._listeners: List[Listener] = []

    @property
    def current_turn(self) -> Player:
        return self.board.current_turn

    @property
    def active(self) -> bool:
        return self.board.active and not self.closed

    @property
    def is_vs_computer(self) -> bool:
        return self.mode is GameMode.HUMAN_VS_COMPUTER

    @property
    def is_computer_turn(self) -> bool:
        return self.is_vs_computer and self.active and self.current_turn is COMPUTER_PLAYER

    def add_listener(self, listener: Listener):
        """Register a callback invoked with (session, outcome) after every applied move."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self, outcome: MoveOutcome):
        """Call every listener; a failing listener is logged and skipped."""
        for listener in list(self._listeners):
            try:
                listener(self, outcome)
            except Exception as e:
                logger.error(f"❌ TIC-TAC-TOE LISTENER ERROR - {self.session_id} | {str(e)}")

    def turn_label(self) -> str:
        if self.is_vs_computer and self.current_turn is COMPUTER_PLAYER:
            return "AI's Turn"
        return f"Player {self.current_turn.value}'s Turn"

    def player_labels(self) -> dict:
        if self.is_vs_computer:
            return {
                "X": "You (X)",
                "O": f"AI (O) - {self.difficulty.value.capitalize()}",
            }
        return {"X": "Player X", "O": "Player O"}

    def serialize_game_state(self) -> dict:
        """
        Convert the session to a JSON-serializable format for frontend communication.

        Returns:
            dict: Serialized game state
        """
        winner = self.board.check_winner()
        if winner is not None:
            status = "win"
        elif self.board.check_draw():
            status = "draw"
        else:
            status = "ongoing"

        result = None
        if self.last_outcome is not None and self.last_outcome.is_terminal:
            result = describe_outcome(self.last_outcome, self.mode)

        return {
            "sessionId": self.session_id,
            "board": [cell.value if cell else None for cell in self.board.cells],
            "currentPlayer": self.current_turn.value,
            "gameActive": self.active,
            "gameMode": self.mode.value,
            "difficulty": self.difficulty.value if self.difficulty else None,
            "status": status,
            "winner": winner[0].value if winner else None,
            "winningLine": list(winner[1]) if winner else None,
            "turnLabel": self.turn_label(),
            "playerLabels": self.player_labels(),
            "aiThinking": self.is_computer_turn,
            "result": result,
            "scores": self.scoreboard.to_dict(),
        }


class TicTacToeService:
    """
    Creates sessions and drives them move by move.

    Human moves are applied synchronously; in human-vs-computer mode the
    computer's reply runs as an asyncio task after AI_DELAY_MS.
    """

    def __init__(self, rng=None):
        self.AI_DELAY_MS = int(os.getenv("TIC_TAC_TOE_AI_DELAY_MS", "500"))
        self.rng = rng
        self._background_tasks: Set[asyncio.Task] = set()

    def new_session(self, mode, difficulty=None, scoreboard: Optional[ScoreBoard] = None) -> GameSession:
        """
        Start a new game session.

        Args:
            mode (str | GameMode): 'human-vs-human' / 'pvp' or 'human-vs-computer' / 'pvc'
            difficulty (str | Difficulty): 'easy', 'medium' or 'hard'; vs computer only,
                defaults to 'medium'
            scoreboard (ScoreBoard): Scores to keep counting into; a fresh one if omitted

        Returns:
            GameSession: Active session with an empty board and X to move

        Raises:
            InvalidConfiguration: If the mode or difficulty is not recognised
        """
        game_mode = parse_game_mode(mode)

        policy = None
        level = None
        if game_mode is GameMode.HUMAN_VS_COMPUTER:
            level = parse_difficulty(difficulty)
            policy = MovePolicyEngine(level, COMPUTER_PLAYER, rng=self.rng)

        session = GameSession(game_mode, level, scoreboard if scoreboard is not None else ScoreBoard(), policy)
        logger.info(
            f"🎮 TIC-TAC-TOE NEW SESSION - {session.session_id} | Mode: {game_mode.value}"
            + (f" | Difficulty: {level.value}" if level else "")
        )
        return session

    async def apply_human_move(self, session: GameSession, cell_index: int) -> MoveOutcome:
        """
        Process a human move at the specified index.

        Args:
            session (GameSession): Session to play in
            cell_index (int): Board position (0-8)

        Returns:
            MoveOutcome: APPLIED, WIN, DRAW, or ILLEGAL_MOVE with the reason
        """
        if session.closed:
            return MoveOutcome.illegal(IllegalMoveReason.SESSION_INACTIVE, "Session has been closed")

        # Against the computer the human always plays X
        player = HUMAN_PLAYER if session.is_vs_computer else session.current_turn
        outcome = self._apply(session, cell_index, player)

        if outcome.kind is OutcomeKind.APPLIED and session.is_computer_turn:
            self._schedule_computer_move(session)

        return outcome

    async def wait_for_computer_move(self, session: GameSession) -> Optional[MoveOutcome]:
        """
        Wait for the pending computer move, if there is one.

        Returns:
            MoveOutcome: The computer's outcome, or None if nothing was pending
                or the move was discarded as stale
        """
        task = session.pending_move
        if task is None:
            return None
        return await task

    def request_restart(self, session: GameSession) -> GameSession:
        """
        Clear the board for a new game; scores are kept.

        Raises:
            SessionClosed: If the session was already left via back-to-menu
        """
        if session.closed:
            raise SessionClosed("Session has been closed")

        session.generation += 1
        session.board.reset()
        session.last_outcome = None
        session.pending_move = None
        logger.info(f"🔄 TIC-TAC-TOE RESTART - {session.session_id} | Generation: {session.generation}")
        return session

    def request_score_reset(self, session: GameSession) -> ScoreBoard:
        session.scoreboard.reset()
        logger.info(f"🧹 TIC-TAC-TOE SCORES RESET - {session.session_id}")
        return session.scoreboard

    def get_score_board(self, session: GameSession) -> ScoreBoard:
        return session.scoreboard

    def back_to_menu(self, session: GameSession) -> ScoreBoard:
        """
        Leave the session for good. Any pending computer move is invalidated.

        Returns:
            ScoreBoard: The session's scores, so a new session can keep them
        """
        session.generation += 1
        session.closed = True
        session.board.active = False
        session.pending_move = None
        logger.info(f"🏠 TIC-TAC-TOE BACK TO MENU - {session.session_id}")
        return session.scoreboard

    def _apply(self, session: GameSession, cell_index: int, player: Player) -> MoveOutcome:
        try:
            outcome = session.board.apply_move(cell_index, player)
        except IllegalMove as e:
            logger.warning(
                f"⚠️ TIC-TAC-TOE INVALID MOVE - {session.session_id} | {e.reason.value}: {e.message}"
            )
            return MoveOutcome.illegal(e.reason, e.message)

        session.last_outcome = outcome
        if outcome.is_terminal:
            # The board is frozen at this point, so this runs once per game
            session.scoreboard.record(outcome)
            logger.info(
                f"🏁 TIC-TAC-TOE GAME OVER - {session.session_id} | {outcome.kind.value}"
                + (f" | Winner: {outcome.player.value}" if outcome.kind is OutcomeKind.WIN else "")
            )

        session.notify(outcome)
        return outcome

    def _schedule_computer_move(self, session: GameSession):
        task = asyncio.create_task(self._play_computer_move(session, session.generation))
        session.pending_move = task
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _play_computer_move(self, session: GameSession, generation: int) -> Optional[MoveOutcome]:
        await asyncio.sleep(self.AI_DELAY_MS / 1000)

        if session.closed or session.generation != generation:
            logger.info(f"🗑️ TIC-TAC-TOE STALE AI MOVE DISCARDED - {session.session_id} | Generation: {generation}")
            return None

        move = session.policy.choose_move(session.board)
        outcome = self._apply(session, move, COMPUTER_PLAYER)
        logger.info(f"🤖 TIC-TAC-TOE AI MOVE - {session.session_id} | Position: {move}")
        return outcome


# Create a singleton instance
tic_tac_toe_service = TicTacToeService()
