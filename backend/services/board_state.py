"""
Board State Service

Holds the 3x3 tic-tac-toe grid, tracks whose turn it is, and detects the
terminal conditions (win or draw) after every move.

Usage:
    board = BoardState()
    outcome = board.apply_move(4, Player.X)   # MoveOutcome(kind=APPLIED, ...)
    board.check_winner()                      # None, or (Player, winning line)
"""

from typing import List, Optional, Sequence, Tuple

from models import (
    BOARD_CELLS,
    WINNING_LINES,
    IllegalMoveReason,
    MoveOutcome,
    Player,
    WinningLine,
)
from services.game_errors import IllegalMove

Cells = Tuple[Optional[Player], ...]


def find_winner(cells: Sequence[Optional[Player]]) -> Optional[Tuple[Player, WinningLine]]:
    """
    Scan the winning lines in table order on any board snapshot.

    Args:
        cells (sequence): Nine cells, each None, Player.X or Player.O

    Returns:
        tuple: (player, line) for the first complete line, or None
    """
    for line in WINNING_LINES:
        a, b, c = line
        if cells[a] is not None and cells[a] == cells[b] == cells[c]:
            return cells[a], line
    return None


def empty_cells_of(cells: Sequence[Optional[Player]]) -> List[int]:
    """Indices of the empty cells, in index order."""
    return [i for i, cell in enumerate(cells) if cell is None]


def place_mark(cells: Sequence[Optional[Player]], cell_index: int, player: Player) -> Cells:
    """Return a new snapshot with player placed at cell_index; cells is not modified."""
    trial = list(cells)
    trial[cell_index] = player
    return tuple(trial)


class BoardState:
    """
    The 9-cell board plus turn tracking and the active flag.

    Cells are only ever filled by apply_move and only cleared by reset,
    so X and O counts never drift more than one apart.
    """

    def __init__(self):
        self._cells: List[Optional[Player]] = [None] * BOARD_CELLS
        self.current_turn = Player.X
        self.active = True

    @property
    def cells(self) -> Cells:
        """Read-only snapshot of the board."""
        return tuple(self._cells)

    def reset(self):
        """Clear all cells, give X the move and reopen the board."""
        self._cells = [None] * BOARD_CELLS
        self.current_turn = Player.X
        self.active = True

    def empty_cells(self) -> List[int]:
        return empty_cells_of(self._cells)

    def count(self, player: Player) -> int:
        return sum(1 for cell in self._cells if cell is player)

    def with_move(self, cell_index: int, player: Player) -> Cells:
        """
        Hypothetical placement on a snapshot; the live board is untouched.

        Args:
            cell_index (int): Empty cell to fill
            player (Player): Symbol to place

        Returns:
            tuple: The nine cells after the placement
        """
        return place_mark(self._cells, cell_index, player)

    def copy(self) -> "BoardState":
        """Independent board with the same cells, turn and active flag."""
        board = BoardState()
        board._cells = list(self._cells)
        board.current_turn = self.current_turn
        board.active = self.active
        return board

    def check_winner(self) -> Optional[Tuple[Player, WinningLine]]:
        return find_winner(self._cells)

    def check_draw(self) -> bool:
        """
        Check if the game is a draw (board full with no winner).

        Returns:
            bool: True if all nine cells are filled and no line is complete
        """
        return None not in self._cells and self.check_winner() is None

    def validate_move(self, cell_index: int, player) -> Player:
        """
        Raise IllegalMove if the move cannot be played right now.

        Args:
            cell_index (int): Board position (0-8)
            player (Player | str): Side attempting the move; 'X' and 'O' are accepted

        Returns:
            Player: The validated side

        Raises:
            IllegalMove: Inactive board, bad index, wrong side or occupied cell
        """
        if not self.active:
            raise IllegalMove(IllegalMoveReason.SESSION_INACTIVE, "Game is not active")

        if isinstance(cell_index, bool) or not isinstance(cell_index, int) or not (0 <= cell_index < BOARD_CELLS):
            raise IllegalMove(
                IllegalMoveReason.OUT_OF_RANGE,
                f"Invalid index: {cell_index}. Must be between 0 and {BOARD_CELLS - 1}.",
            )

        try:
            player = Player(player)
        except ValueError:
            raise IllegalMove(IllegalMoveReason.NOT_YOUR_TURN, f"Unknown player: {player!r}")

        if player != self.current_turn:
            raise IllegalMove(
                IllegalMoveReason.NOT_YOUR_TURN,
                f"It's not {player.value}'s turn",
            )

        if self._cells[cell_index] is not None:
            raise IllegalMove(
                IllegalMoveReason.CELL_OCCUPIED,
                f"Cell {cell_index} is already occupied",
            )

        return player

    def apply_move(self, cell_index: int, player) -> MoveOutcome:
        """
        Place a symbol, flip the turn and evaluate the terminal state.

        Args:
            cell_index (int): Board position (0-8)
            player (Player): Side making the move; must be the side to move

        Returns:
            MoveOutcome: APPLIED, WIN or DRAW

        Raises:
            IllegalMove: If the move is rejected; the board is left unchanged
        """
        player = self.validate_move(cell_index, player)

        self._cells[cell_index] = player
        self.current_turn = player.opposite()

        winner = self.check_winner()
        if winner is not None:
            self.active = False
            winning_player, line = winner
            return MoveOutcome.win(cell_index, winning_player, line, self.current_turn)

        if self.check_draw():
            self.active = False
            return MoveOutcome.draw(cell_index, player, self.current_turn)

        return MoveOutcome.applied(cell_index, player, self.current_turn)

    def __str__(self):
        rows = []
        for start in range(0, BOARD_CELLS, 3):
            rows.append(" | ".join(
                cell.value if cell else " " for cell in self._cells[start:start + 3]
            ))
        return "\n---------\n".join(rows)
