import json
import unittest
from unittest import mock

from connect3d.ai.worker import (MessageKind, make_request, move_response, error_response,
                                 parse_request, parse_response, handle_request)
from connect3d.debug import debug
from connect3d.game.board import Board
from connect3d.game.rules import GameSnapshot
from connect3d.utils import InvalidMessageError, Move, Player
from tests.helpers import WIN_ONES, WIN_TWOS, board_with, snapshot_of


class TestMessages(unittest.TestCase):
    def test_request_is_plain_json(self):
        snapshot = snapshot_of(board_with(WIN_ONES, WIN_TWOS), Player.ONE)
        request = make_request('expert', snapshot, {'time_limit_ms': 300})

        decoded = json.loads(json.dumps(request))
        self.assertEqual(decoded['kind'], 'CalculateMove')
        self.assertEqual(decoded['botId'], 'expert')
        self.assertEqual(decoded['currentPlayer'], 0)
        self.assertEqual(len(decoded['board']), 64)
        self.assertEqual(decoded['botOptions'], {'time_limit_ms': 300})

        bot_id, parsed, options = parse_request(decoded)
        self.assertEqual(bot_id, 'expert')
        self.assertEqual(parsed.board, snapshot.board)
        self.assertEqual(parsed.current_player, Player.ONE)
        self.assertEqual(options, {'time_limit_ms': 300})

    def test_malformed_requests(self):
        good = make_request('random', GameSnapshot(Board(), Player.TWO))
        with self.assertRaises(InvalidMessageError):
            parse_request({'kind': 'Something'})
        with self.assertRaises(InvalidMessageError):
            parse_request({k: v for k, v in good.items() if k != 'board'})
        with self.assertRaises(InvalidMessageError):
            parse_request(dict(good, board=[0] * 10))
        with self.assertRaises(InvalidMessageError):
            parse_request(dict(good, currentPlayer=7))

    def test_responses(self):
        self.assertEqual(parse_response(move_response(Move(2, 3))), Move(2, 3))
        self.assertIsNone(parse_response(move_response(None)))
        with self.assertRaises(InvalidMessageError) as ctx:
            parse_response(error_response('boom'))
        self.assertEqual(str(ctx.exception), 'boom')
        with self.assertRaises(InvalidMessageError):
            parse_response({'kind': 'Other'})


class TestHandleRequest(unittest.TestCase):
    def test_random_move(self):
        response = handle_request(make_request('random', GameSnapshot(Board(), Player.ONE)))
        self.assertEqual(response['kind'], MessageKind.MOVE_CALCULATED.value)
        self.assertIn(Move(response['move']['x'], response['move']['z']), Board().valid_moves())

    def test_failing_bot_closes_its_timer(self):
        bot = mock.Mock()
        bot.get_move.side_effect = RuntimeError('search exploded')
        with mock.patch('connect3d.ai.worker.get_bot', return_value=bot):
            response = handle_request(make_request('hard', GameSnapshot(Board(), Player.ONE)))

        self.assertEqual(response['kind'], MessageKind.ERROR.value)
        self.assertIn('search exploded', response['message'])
        self.assertNotIn('worker_move', debug._performance_markers)

    def test_expert_finds_win(self):
        snapshot = snapshot_of(board_with(WIN_ONES, WIN_TWOS), Player.ONE)
        response = handle_request(make_request('expert', snapshot, {'time_limit_ms': 300}))
        self.assertEqual(response, {'kind': 'MoveCalculated', 'move': {'x': 3, 'z': 0}})

    def test_unknown_bot_becomes_error(self):
        response = handle_request(make_request('nope', GameSnapshot(Board(), Player.ONE)))
        self.assertEqual(response, {'kind': 'Error', 'message': 'Bot not found: nope'})

    def test_bad_options_become_error(self):
        request = make_request('hard', GameSnapshot(Board(), Player.ONE), {'bogus': 1})
        response = handle_request(request)
        self.assertEqual(response['kind'], 'Error')
        self.assertIn('TypeError', response['message'])

    def test_malformed_request_becomes_error(self):
        response = handle_request({'kind': 'CalculateMove', 'botId': 'random'})
        self.assertEqual(response['kind'], 'Error')


if __name__ == '__main__':
    unittest.main()
