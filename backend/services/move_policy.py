"""
Move Policy Engine

Chooses the computer's next cell for a given difficulty:

    easy   - any empty cell, uniformly at random
    hard   - win, else block, else centre, else a random corner, else any cell
    medium - a fresh coin flip every turn between hard and easy

The hard policy only looks one move ahead and does not see forks, so it can
be beaten.
"""

import logging
import random
from typing import Optional, Sequence

from models import CENTER_CELL, CORNER_CELLS, Difficulty, Player
from services.board_state import BoardState, empty_cells_of, find_winner, place_mark
from services.game_errors import PolicyInvariantError

logger = logging.getLogger(__name__)

MEDIUM_HARD_PROBABILITY = 0.5


def find_winning_move(cells: Sequence[Optional[Player]], player: Player) -> Optional[int]:
    """
    Return the first empty cell (in index order) that completes a line for player.

    Every placement is tried on a fresh snapshot, so nothing needs undoing.

    Args:
        cells (sequence): Board snapshot
        player (Player): Symbol to try

    Returns:
        int: Winning cell index, or None
    """
    for index in empty_cells_of(cells):
        winner = find_winner(place_mark(cells, index, player))
        if winner is not None and winner[0] is player:
            return index
    return None


class MovePolicyEngine:
    """
    Move selection for one computer-controlled side.

    The random source is any object with random() and choice(); it defaults
    to the random module so production play is unseeded.
    """

    def __init__(self, difficulty: Difficulty, player: Player = Player.O, rng=None):
        self.difficulty = Difficulty(difficulty)
        self.player = player
        self.rng = rng if rng is not None else random

    def choose_move(self, board: BoardState) -> int:
        """
        Pick the computer's next cell on the current board.

        Args:
            board (BoardState): Live board; it is only read

        Returns:
            int: Index of an empty cell

        Raises:
            PolicyInvariantError: If the board has no empty cell
        """
        cells = board.cells
        if not empty_cells_of(cells):
            raise PolicyInvariantError("Computer move requested on a full board")

        if self.difficulty is Difficulty.EASY:
            return self.random_move(cells)
        if self.difficulty is Difficulty.HARD:
            return self.best_move(cells)

        # Medium re-rolls on every turn
        if self.rng.random() < MEDIUM_HARD_PROBABILITY:
            logger.debug("Medium policy rolled hard play")
            return self.best_move(cells)
        logger.debug("Medium policy rolled random play")
        return self.random_move(cells)

    def random_move(self, cells: Sequence[Optional[Player]]) -> int:
        available_moves = empty_cells_of(cells)
        if not available_moves:
            raise PolicyInvariantError("No empty cell to choose from")
        return self.rng.choice(available_moves)

    def best_move(self, cells: Sequence[Optional[Player]]) -> int:
        """
        Layered heuristic: win, block, centre, corner, anything.

        Args:
            cells (sequence): Board snapshot

        Returns:
            int: Index of the chosen cell
        """
        # First, check if we can win
        win_index = find_winning_move(cells, self.player)
        if win_index is not None:
            return win_index

        # Second, block the opponent from winning
        block_index = find_winning_move(cells, self.player.opposite())
        if block_index is not None:
            return block_index

        # Third, take the centre
        if cells[CENTER_CELL] is None:
            return CENTER_CELL

        # Fourth, a random free corner
        corners = [i for i in CORNER_CELLS if cells[i] is None]
        if corners:
            return self.rng.choice(corners)

        # Finally, any free cell
        return self.random_move(cells)
