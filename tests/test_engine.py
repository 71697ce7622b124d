import unittest

from connect3d.game.board import Board
from connect3d.game.rules import GameEngine, GameState
from connect3d.utils import DRAW_SENTINEL, GameResult, LastMove, Move, Player
from tests.helpers import draw_board, engine_at


def play_moves(engine, moves):
    for x, z in moves:
        assert engine.drop_piece(x, z), (x, z)


class TestDropPiece(unittest.TestCase):
    def setUp(self):
        self.engine = GameEngine()

    def test_pieces_stack_and_turns_alternate(self):
        self.assertTrue(self.engine.drop_piece(1, 1))
        self.assertEqual(self.engine.last_move, LastMove(1, 0, 1, Player.ONE))
        self.assertEqual(self.engine.current_player, Player.TWO)

        self.assertTrue(self.engine.drop_piece(1, 1))
        self.assertEqual(self.engine.last_move, LastMove(1, 1, 1, Player.TWO))
        self.assertEqual(self.engine.board.get_cell(1, 1, 1), Player.TWO)
        self.assertEqual(self.engine.current_player, Player.ONE)
        self.assertEqual(self.engine.get_drop_y(1, 1), 2)

    def test_invalid_moves_leave_state_untouched(self):
        play_moves(self.engine, [(2, 3)] * 4)
        state = self.engine.state

        self.assertFalse(self.engine.drop_piece(2, 3))
        self.assertFalse(self.engine.drop_piece(4, 0))
        self.assertFalse(self.engine.drop_piece(-1, 2))

        after = self.engine.state
        self.assertEqual(after.board, state.board)
        self.assertEqual(after.current_player, state.current_player)
        self.assertEqual(after.generation, state.generation)
        self.assertEqual(after.last_move, state.last_move)

    def test_win_along_x(self):
        play_moves(self.engine, [(0, 0), (0, 1), (1, 0), (1, 1), (2, 0), (2, 1), (3, 0)])

        self.assertEqual(self.engine.winner, Player.ONE)
        self.assertEqual(self.engine.game_result, GameResult.PLAYER_ONE_WIN)
        self.assertEqual(self.engine.winning_line, ((0, 0, 0), (1, 0, 0), (2, 0, 0), (3, 0, 0)))
        # The winner stays the current player and the game accepts no more moves
        self.assertEqual(self.engine.current_player, Player.ONE)
        board = self.engine.board.copy()
        generation = self.engine.generation
        self.assertFalse(self.engine.drop_piece(3, 3))
        self.assertEqual(self.engine.board.key(), board.key())
        self.assertEqual(self.engine.generation, generation)
        self.assertEqual(self.engine.get_valid_moves(), [])

    def test_vertical_win_for_second_player(self):
        play_moves(self.engine, [(0, 0), (3, 3), (0, 1), (3, 3), (1, 0), (3, 3), (2, 2), (3, 3)])
        self.assertEqual(self.engine.winner, Player.TWO)
        self.assertEqual(self.engine.winning_line, ((3, 0, 3), (3, 1, 3), (3, 2, 3), (3, 3, 3)))

    def test_last_piece_on_a_lineless_board_is_a_draw(self):
        engine = engine_at(draw_board(with_gap=True), Player.TWO)
        self.assertFalse(engine.is_game_over())

        self.assertTrue(engine.drop_piece(0, 0))
        self.assertTrue(engine.is_draw)
        self.assertIsNone(engine.winner)
        self.assertEqual(engine.game_result, GameResult.DRAW)
        self.assertEqual(engine.board, draw_board())

    def test_reset(self):
        play_moves(self.engine, [(0, 0), (1, 1), (2, 2)])
        generation = self.engine.generation

        self.engine.reset_game()
        self.assertEqual(self.engine.board, Board())
        self.assertEqual(self.engine.current_player, Player.ONE)
        self.assertIsNone(self.engine.last_move)
        self.assertIsNone(self.engine.winning_line)
        self.assertEqual(self.engine.generation, generation + 1)


class TestNotifications(unittest.TestCase):
    def setUp(self):
        self.engine = GameEngine()
        self.states = []
        self.unsubscribe = self.engine.subscribe(self.states.append)

    def test_listeners_receive_each_change(self):
        self.engine.drop_piece(0, 0)
        self.engine.drop_piece(5, 5)
        self.engine.reset_game()

        self.assertEqual(len(self.states), 2)
        self.assertIsInstance(self.states[0], GameState)
        self.assertEqual(self.states[0].last_move, LastMove(0, 0, 0, Player.ONE))
        self.assertEqual(self.states[1].board.piece_count(), 0)
        self.assertLess(self.states[0].generation, self.states[1].generation)

    def test_published_board_is_a_copy(self):
        self.engine.drop_piece(0, 0)
        self.states[0].board.set_cell(3, 0, 3, Player.TWO)
        self.assertEqual(self.engine.board.get_cell(3, 0, 3), Player.EMPTY)

    def test_unsubscribe(self):
        self.unsubscribe()
        self.engine.drop_piece(0, 0)
        self.assertEqual(self.states, [])

    def test_snapshot_is_independent(self):
        self.engine.drop_piece(2, 2)
        snapshot = self.engine.snapshot()
        self.assertEqual(snapshot.current_player, Player.TWO)
        snapshot.board.place(2, 2, Player.TWO)
        self.assertEqual(self.engine.get_drop_y(2, 2), 1)
        self.assertIn(Move(2, 2), snapshot.legal_moves())


class TestNetworkedPlay(unittest.TestCase):
    def setUp(self):
        self.engine = GameEngine()
        self.records = []
        self.engine.set_update_callback(self.records.append)

    def test_local_moves_produce_update_records(self):
        self.engine.drop_piece(1, 2)
        self.engine.reset_game()

        self.assertEqual(len(self.records), 1)
        record = self.records[0]
        self.assertEqual(record['board'][1][0][2], 0)
        self.assertIsNone(record['board'][0][0][0])
        self.assertEqual(record['current_player'], 1)
        self.assertIsNone(record['winner'])
        self.assertIsNone(record['winning_line'])
        self.assertEqual(record['status'], 'playing')

    def test_finished_game_records(self):
        play_moves(self.engine, [(0, 0), (0, 1), (1, 0), (1, 1), (2, 0), (2, 1), (3, 0)])
        record = self.records[-1]
        self.assertEqual(record['winner'], 0)
        self.assertEqual(record['status'], 'finished')
        self.assertEqual(record['winning_line'], [[0, 0, 0], [1, 0, 0], [2, 0, 0], [3, 0, 0]])

        draw = engine_at(draw_board(with_gap=True), Player.TWO)
        draw.drop_piece(0, 0)
        self.assertEqual(draw.to_update_record()['winner'], DRAW_SENTINEL)

    def test_remote_update_overwrites_state(self):
        peer = GameEngine()
        peer.drop_piece(3, 1)
        generation = self.engine.generation

        self.engine.apply_remote_update(peer.to_update_record())

        self.assertEqual(self.engine.board, peer.board)
        self.assertEqual(self.engine.current_player, Player.TWO)
        self.assertEqual(self.engine.last_move, LastMove(3, 0, 1, Player.ONE))
        self.assertEqual(self.engine.generation, generation + 1)
        # Remote updates are not echoed back
        self.assertEqual(self.records, [])

    def test_remote_win(self):
        peer = GameEngine()
        play_moves(peer, [(0, 0), (0, 1), (1, 0), (1, 1), (2, 0), (2, 1), (3, 0)])
        self.engine.apply_remote_update(peer.to_update_record())

        self.assertEqual(self.engine.winner, Player.ONE)
        self.assertEqual(self.engine.winning_line, peer.winning_line)
        self.assertTrue(self.engine.is_game_over())
        self.assertFalse(self.engine.drop_piece(3, 3))

    def test_last_writer_wins(self):
        first = GameEngine()
        first.drop_piece(0, 0)
        second = GameEngine()
        second.drop_piece(2, 2)

        self.engine.apply_remote_update(first.to_update_record())
        self.engine.apply_remote_update(second.to_update_record())

        self.assertEqual(self.engine.board, second.board)
        self.assertEqual(self.engine.board.get_cell(0, 0, 0), Player.EMPTY)


if __name__ == '__main__':
    unittest.main()
