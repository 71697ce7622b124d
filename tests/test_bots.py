import random
import time
import unittest

from connect3d.ai.bots import RandomBot, GreedyBot
from connect3d.ai.minimax import HardBot, ExpertBot
from connect3d.ai.registry import get_bot, list_bots, runs_in_worker
from connect3d.game.board import Board
from connect3d.utils import Move, Player, UnknownBotError
from tests.helpers import (WIN_ONES, WIN_TWOS, BLOCK_ONES, BLOCK_TWOS, STACK_COLUMN, board_with,
                           draw_board, snapshot_of)


def all_bots():
    return [RandomBot(rng=random.Random(3)), GreedyBot(rng=random.Random(3)),
            HardBot(), ExpertBot(time_limit_ms=1000)]


class TestRegistry(unittest.TestCase):
    def test_four_tiers(self):
        self.assertEqual([b['id'] for b in list_bots()], ['random', 'greedy', 'hard', 'expert'])
        for info in list_bots():
            self.assertTrue(info['name'])
            self.assertTrue(info['description'])

    def test_unknown_bot(self):
        with self.assertRaises(UnknownBotError) as ctx:
            get_bot('nope')
        self.assertEqual(str(ctx.exception), 'Bot not found: nope')

    def test_options_and_placement(self):
        bot = get_bot('expert', time_limit_ms=250)
        self.assertEqual(bot.time_limit_ms, 250)
        self.assertTrue(runs_in_worker('hard'))
        self.assertTrue(runs_in_worker('expert'))
        self.assertFalse(runs_in_worker('random'))
        self.assertFalse(runs_in_worker('greedy'))


class TestCommonBehaviour(unittest.TestCase):
    def test_no_legal_move(self):
        snapshot = snapshot_of(draw_board(), Player.ONE)
        for bot in all_bots():
            self.assertIsNone(bot.get_move(snapshot), bot)

    def test_single_legal_move(self):
        snapshot = snapshot_of(draw_board(with_gap=True), Player.TWO)
        for bot in all_bots():
            self.assertEqual(bot.get_move(snapshot), Move(0, 0), bot)

    def test_immediate_win(self):
        snapshot = snapshot_of(board_with(WIN_ONES, WIN_TWOS), Player.ONE)
        for bot in all_bots()[1:]:
            self.assertEqual(bot.get_move(snapshot), Move(3, 0), bot)

    def test_vertical_win_in_corner_column(self):
        snapshot = snapshot_of(board_with(ones=STACK_COLUMN), Player.ONE)
        for bot in all_bots()[1:]:
            self.assertEqual(bot.get_move(snapshot), Move(0, 0), bot)

    def test_blocks_vertical_threat_in_corner_column(self):
        snapshot = snapshot_of(board_with(twos=STACK_COLUMN), Player.ONE)
        for bot in all_bots()[2:]:
            self.assertEqual(bot.get_move(snapshot), Move(0, 0), bot)

    def test_snapshot_is_not_modified(self):
        board = board_with(BLOCK_ONES, BLOCK_TWOS)
        before = board.copy()
        for bot in all_bots()[:2]:
            bot.get_move(snapshot_of(board, Player.TWO))
        self.assertEqual(board, before)


class TestRandomBot(unittest.TestCase):
    def test_moves_are_legal(self):
        bot = RandomBot(rng=random.Random(0))
        board = Board()
        player = Player.ONE
        for _ in range(30):
            move = bot.get_move(snapshot_of(board, player))
            self.assertIn(move, board.valid_moves())
            board.place(move.x, move.z, player)
            player = player.other()


class TestGreedyBot(unittest.TestCase):
    def test_blocks(self):
        bot = GreedyBot(rng=random.Random(0))
        snapshot = snapshot_of(board_with(BLOCK_ONES, BLOCK_TWOS), Player.TWO)
        self.assertEqual(bot.get_move(snapshot), Move(3, 0))

    def test_prefers_centre_on_empty_board(self):
        bot = GreedyBot(rng=random.Random(0))
        move = bot.get_move(snapshot_of(Board(), Player.ONE))
        self.assertIn(move, [Move(1, 1), Move(1, 2), Move(2, 1), Move(2, 2)])


class TestHardBot(unittest.TestCase):
    def test_blocks(self):
        bot = HardBot()
        snapshot = snapshot_of(board_with(BLOCK_ONES, BLOCK_TWOS), Player.TWO)
        self.assertEqual(bot.get_move(snapshot), Move(3, 0))
        self.assertGreater(bot.last_stats.nodes, 0)


class TestExpertBot(unittest.TestCase):
    def test_blocks(self):
        bot = ExpertBot(time_limit_ms=1000)
        snapshot = snapshot_of(board_with(BLOCK_ONES, BLOCK_TWOS), Player.TWO)
        self.assertEqual(bot.get_move(snapshot), Move(3, 0))
        self.assertGreaterEqual(bot.last_stats.depth_reached, 2)

    def test_respects_time_budget(self):
        bot = ExpertBot(time_limit_ms=1000)
        start = time.perf_counter()
        move = bot.get_move(snapshot_of(Board(), Player.ONE))
        elapsed = time.perf_counter() - start

        self.assertIn(move, Board().valid_moves())
        self.assertLess(elapsed, 2.0)
        self.assertGreaterEqual(bot.last_stats.depth_reached, 1)
        self.assertGreater(bot.last_stats.tt_size, 0)

    def test_default_budget_on_empty_board(self):
        bot = ExpertBot()
        start = time.perf_counter()
        move = bot.get_move(snapshot_of(Board(), Player.ONE))
        self.assertLess(time.perf_counter() - start, 6.0)
        self.assertIn(move, Board().valid_moves())
        self.assertFalse(bot.last_stats.timed_out and bot.last_stats.depth_reached == 0)

    def test_stops_when_the_board_is_nearly_full(self):
        board = draw_board()
        for index in (12, 14):
            board.cells[index] = 0
        # Two empty cells: the search cannot go deeper than two plies
        bot = ExpertBot(time_limit_ms=2000)
        move = bot.get_move(snapshot_of(board, Player.ONE))
        self.assertIn(move, [Move(0, 0), Move(0, 2)])
        self.assertLessEqual(bot.last_stats.depth_reached, 2)


if __name__ == '__main__':
    unittest.main()
