import os
import random
import sys
import unittest

# Add the backend directory to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models import Difficulty, Player
from services.board_state import BoardState
from services.game_errors import PolicyInvariantError
from services.move_policy import MovePolicyEngine, find_winning_move

X, O = Player.X, Player.O


class FixedRandom:
    """Random source with a fixed roll; choice() takes the first option."""

    def __init__(self, roll):
        self.roll = roll
        self.choices = []

    def random(self):
        return self.roll

    def choice(self, options):
        self.choices.append(list(options))
        return options[0]


class ScriptedRandom(FixedRandom):
    """Random source that hands out a scripted roll per call."""

    def __init__(self, rolls):
        super().__init__(None)
        self.rolls = list(rolls)

    def random(self):
        return self.rolls.pop(0)


def board_from(moves):
    board = BoardState()
    for index in moves:
        board.apply_move(index, board.current_turn)
    return board


class TestFindWinningMove(unittest.TestCase):
    def test_first_winning_cell_in_index_order(self) -> None:
        cells = [O, O, None,
                 O, None, None,
                 None, None, None]
        # Both 2 and 6 win for O; the lower index is taken
        self.assertEqual(find_winning_move(cells, O), 2)

    def test_no_winning_cell(self) -> None:
        cells = [X, None, None,
                 None, O, None,
                 None, None, None]
        self.assertIsNone(find_winning_move(cells, X))

    def test_cells_are_not_mutated(self) -> None:
        cells = [X, X, None, None, O, None, None, None, None]
        find_winning_move(cells, X)
        self.assertEqual(cells, [X, X, None, None, O, None, None, None, None])


class TestHardPolicy(unittest.TestCase):
    def test_takes_the_win_regardless_of_seed(self) -> None:
        # X: 0, 8, 6   O: 3, 4 -> O wins at 5 (and X threatens 7)
        board = board_from([0, 3, 8, 4, 6])
        for seed in range(25):
            engine = MovePolicyEngine(Difficulty.HARD, O, rng=random.Random(seed))
            self.assertEqual(engine.choose_move(board), 5)

    def test_blocks_when_it_cannot_win(self) -> None:
        # X: 0, 1   O: 4 -> X threatens 2
        board = board_from([0, 4, 1])
        for seed in range(25):
            engine = MovePolicyEngine(Difficulty.HARD, O, rng=random.Random(seed))
            self.assertEqual(engine.choose_move(board), 2)

    def test_win_preferred_over_block(self) -> None:
        # X: 0, 1, 8   O: 3, 4 -> X threatens 2, O wins at 5
        board = board_from([0, 3, 1, 4, 8])
        engine = MovePolicyEngine(Difficulty.HARD, O)
        self.assertEqual(engine.choose_move(board), 5)

    def test_takes_centre(self) -> None:
        board = board_from([0])
        engine = MovePolicyEngine(Difficulty.HARD, O)
        self.assertEqual(engine.choose_move(board), 4)

    def test_random_free_corner_when_centre_taken(self) -> None:
        board = board_from([4])
        rng = FixedRandom(0.0)
        engine = MovePolicyEngine(Difficulty.HARD, O, rng=rng)
        self.assertEqual(engine.choose_move(board), 0)
        self.assertEqual(rng.choices, [[0, 2, 6, 8]])

    def test_corner_choice_stays_among_free_corners(self) -> None:
        # X: 4, 8   O: 0 -> nothing to win or block; free corners 2 and 6
        board = board_from([4, 0, 8])
        for seed in range(25):
            engine = MovePolicyEngine(Difficulty.HARD, O, rng=random.Random(seed))
            self.assertIn(engine.choose_move(board), (2, 6))

    def test_falls_back_to_any_free_cell(self) -> None:
        # X: 2, 3, 4, 8   O: 0, 6, 5 -> only sides 1 and 7 free, no threats
        board = board_from([2, 0, 3, 6, 4, 5, 8])
        rng = FixedRandom(0.0)
        engine = MovePolicyEngine(Difficulty.HARD, O, rng=rng)
        self.assertEqual(engine.choose_move(board), 1)
        self.assertEqual(rng.choices, [[1, 7]])

    def test_blocks_late_in_game(self) -> None:
        board = BoardState()
        for index, player in ((0, X), (4, O), (8, X), (2, O), (6, X), (3, O), (5, X)):
            board.apply_move(index, player)
        # X threatens 7 (6-7-8); O cannot win this turn
        engine = MovePolicyEngine(Difficulty.HARD, O)
        self.assertEqual(engine.choose_move(board), 7)

    def test_live_board_left_untouched(self) -> None:
        board = board_from([0, 4, 1])
        before = board.cells
        MovePolicyEngine(Difficulty.HARD, O).choose_move(board)
        self.assertEqual(board.cells, before)
        self.assertIs(board.current_turn, O)

    def test_greedy_policy_misses_forks(self) -> None:
        # X: 0, 8  O: 4. Hard has nothing to win or block and takes a corner,
        # which lets X fork; a side move would have held the draw.
        board = board_from([0, 4, 8])
        engine = MovePolicyEngine(Difficulty.HARD, O, rng=FixedRandom(0.0))
        self.assertIn(engine.choose_move(board), (2, 6))


class TestEasyAndMediumPolicy(unittest.TestCase):
    def test_easy_picks_only_empty_cells(self) -> None:
        board = board_from([0, 4, 8])
        for seed in range(50):
            engine = MovePolicyEngine(Difficulty.EASY, O, rng=random.Random(seed))
            self.assertIn(engine.choose_move(board), board.empty_cells())

    def test_easy_ignores_the_win(self) -> None:
        board = board_from([0, 3, 8, 4, 6])
        rng = FixedRandom(0.0)
        engine = MovePolicyEngine(Difficulty.EASY, O, rng=rng)
        self.assertEqual(engine.choose_move(board), 1)
        self.assertEqual(rng.choices, [board.empty_cells()])

    def test_medium_low_roll_plays_hard(self) -> None:
        board = board_from([0, 3, 8, 4, 6])
        engine = MovePolicyEngine(Difficulty.MEDIUM, O, rng=FixedRandom(0.49))
        self.assertEqual(engine.choose_move(board), 5)

    def test_medium_high_roll_plays_random(self) -> None:
        board = board_from([0, 3, 8, 4, 6])
        engine = MovePolicyEngine(Difficulty.MEDIUM, O, rng=FixedRandom(0.5))
        self.assertEqual(engine.choose_move(board), 1)

    def test_medium_rolls_again_every_turn(self) -> None:
        rng = ScriptedRandom([0.2, 0.9])
        engine = MovePolicyEngine(Difficulty.MEDIUM, O, rng=rng)
        board = board_from([0, 3, 8, 4, 6])

        # Low roll: hard play completes 3-4-5
        self.assertEqual(engine.choose_move(board), 5)
        # High roll on the same engine: random play takes the first free cell
        self.assertEqual(engine.choose_move(board), 1)
        self.assertEqual(rng.rolls, [])
        self.assertEqual(rng.choices, [board.empty_cells()])

    def test_full_board_is_an_invariant_violation(self) -> None:
        board = board_from([0, 1, 2, 4, 3, 5, 7, 6, 8])
        for level in Difficulty:
            with self.assertRaises(PolicyInvariantError):
                MovePolicyEngine(level, O).choose_move(board)


if __name__ == "__main__":
    unittest.main()
