from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Tuple

WinningLine = Tuple[int, int, int]

# Fixed scan order: rows, then columns, then diagonals
WINNING_LINES: Tuple[WinningLine, ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # Rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # Columns
    (0, 4, 8), (2, 4, 6),             # Diagonals
)

BOARD_CELLS = 9
CENTER_CELL = 4
CORNER_CELLS = (0, 2, 6, 8)


class Player(str, Enum):
    X = "X"
    O = "O"

    def opposite(self) -> "Player":
        return Player.O if self is Player.X else Player.X


class GameMode(str, Enum):
    HUMAN_VS_HUMAN = "human-vs-human"
    HUMAN_VS_COMPUTER = "human-vs-computer"


# Short names the browser front end sends
GAME_MODE_ALIASES = {
    "pvp": GameMode.HUMAN_VS_HUMAN,
    "pvc": GameMode.HUMAN_VS_COMPUTER,
}


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


DEFAULT_DIFFICULTY = Difficulty.MEDIUM


class IllegalMoveReason(str, Enum):
    OUT_OF_RANGE = "OUT_OF_RANGE"
    CELL_OCCUPIED = "CELL_OCCUPIED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    SESSION_INACTIVE = "SESSION_INACTIVE"


class OutcomeKind(str, Enum):
    APPLIED = "applied"
    ILLEGAL_MOVE = "illegal_move"
    WIN = "win"
    DRAW = "draw"


@dataclass(frozen=True)
class MoveOutcome:
    kind: OutcomeKind
    cell_index: Optional[int] = None
    player: Optional[Player] = None          # Who moved (winner on WIN)
    current_turn: Optional[Player] = None    # Side to move after the move
    line: Optional[WinningLine] = None       # Set on WIN only
    reason: Optional[IllegalMoveReason] = None
    message: Optional[str] = None

    @classmethod
    def applied(cls, cell_index: int, player: Player, current_turn: Player) -> "MoveOutcome":
        return cls(OutcomeKind.APPLIED, cell_index=cell_index, player=player, current_turn=current_turn)

    @classmethod
    def illegal(cls, reason: IllegalMoveReason, message: str) -> "MoveOutcome":
        return cls(OutcomeKind.ILLEGAL_MOVE, reason=reason, message=message)

    @classmethod
    def win(cls, cell_index: int, player: Player, line: WinningLine, current_turn: Player) -> "MoveOutcome":
        return cls(OutcomeKind.WIN, cell_index=cell_index, player=player, line=line, current_turn=current_turn)

    @classmethod
    def draw(cls, cell_index: int, player: Player, current_turn: Player) -> "MoveOutcome":
        return cls(OutcomeKind.DRAW, cell_index=cell_index, player=player, current_turn=current_turn)

    @property
    def is_terminal(self) -> bool:
        return self.kind in (OutcomeKind.WIN, OutcomeKind.DRAW)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "cellIndex": self.cell_index,
            "player": self.player.value if self.player else None,
            "currentPlayer": self.current_turn.value if self.current_turn else None,
            "line": list(self.line) if self.line else None,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
        }


@dataclass
class ScoreBoard:
    wins_x: int = 0
    wins_o: int = 0
    draws: int = 0
    games_played: int = 0

    def record(self, outcome: MoveOutcome) -> None:
        """Count one finished game. Non-terminal outcomes are ignored."""
        if outcome.kind is OutcomeKind.WIN:
            if outcome.player is Player.X:
                self.wins_x += 1
            else:
                self.wins_o += 1
        elif outcome.kind is OutcomeKind.DRAW:
            self.draws += 1
        else:
            return
        self.games_played += 1

    def reset(self) -> None:
        self.wins_x = 0
        self.wins_o = 0
        self.draws = 0
        self.games_played = 0

    def win_rate(self, player: Player) -> float:
        if self.games_played == 0:
            return 0
        wins = self.wins_x if player is Player.X else self.wins_o
        return wins / self.games_played

    def win_rate_percent(self, player: Player) -> float:
        """Win rate as a percentage with one decimal, halves rounded up (6.25 -> 6.3)."""
        if self.games_played == 0:
            return 0.0
        wins = self.wins_x if player is Player.X else self.wins_o
        percent = Decimal(wins * 100) / Decimal(self.games_played)
        return float(percent.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))

    def to_dict(self) -> dict:
        return {
            "X": self.wins_x,
            "O": self.wins_o,
            "draws": self.draws,
            "totalGames": self.games_played,
            "winRateX": self.win_rate_percent(Player.X),
            "winRateO": self.win_rate_percent(Player.O),
        }
