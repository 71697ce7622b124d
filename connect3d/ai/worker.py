"""
worker.py - Message handler executed in the bot worker process

The worker shares no memory with the engine. It receives one plain-dict
request and answers with one plain-dict response:

    request:  {"kind": "CalculateMove", "botId", "board", "currentPlayer"}
    response: {"kind": "MoveCalculated", "move": {"x", "z"} | None}
              {"kind": "Error", "message"}
"""

from enum import Enum
from typing import Any, Dict, Optional

from connect3d.ai.registry import get_bot
from connect3d.debug import debug
from connect3d.game.rules import GameSnapshot
from connect3d.utils import NUM_CELLS, Move, InvalidMessageError, UnknownBotError


class MessageKind(str, Enum):
    CALCULATE_MOVE = 'CalculateMove'
    MOVE_CALCULATED = 'MoveCalculated'
    ERROR = 'Error'


def make_request(bot_id: str, snapshot: GameSnapshot, bot_options: Optional[Dict[str, Any]] = None
                 ) -> Dict[str, Any]:
    """Build a CalculateMove request from a snapshot."""
    request = {'kind': MessageKind.CALCULATE_MOVE.value, 'botId': bot_id}
    request.update(snapshot.to_message())
    if bot_options:
        request['botOptions'] = dict(bot_options)
    return request


def move_response(move: Optional[Move]) -> Dict[str, Any]:
    payload = None if move is None else {'x': int(move.x), 'z': int(move.z)}
    return {'kind': MessageKind.MOVE_CALCULATED.value, 'move': payload}


def error_response(message: str) -> Dict[str, Any]:
    return {'kind': MessageKind.ERROR.value, 'message': message}


def parse_request(request: Dict[str, Any]):
    """
    Validate a request.

    Returns:
        (bot_id, snapshot, bot_options)

    Raises:
        InvalidMessageError: If the request is malformed
    """
    if not isinstance(request, dict) or request.get('kind') != MessageKind.CALCULATE_MOVE.value:
        raise InvalidMessageError(f"Unsupported request: {request!r}")
    try:
        bot_id = request['botId']
        board = request['board']
        current_player = request['currentPlayer']
    except KeyError as e:
        raise InvalidMessageError(f"Request is missing {e.args[0]!r}") from None
    if len(board) != NUM_CELLS:
        raise InvalidMessageError(f"Board must have {NUM_CELLS} cells, got {len(board)}")
    try:
        snapshot = GameSnapshot.from_message(board, current_player)
    except ValueError as e:
        raise InvalidMessageError(str(e)) from None
    return bot_id, snapshot, request.get('botOptions') or {}


def parse_response(response: Dict[str, Any]) -> Optional[Move]:
    """
    Extract the move from a MoveCalculated response.

    Raises:
        InvalidMessageError: For Error responses or malformed messages
    """
    kind = response.get('kind') if isinstance(response, dict) else None
    if kind == MessageKind.ERROR.value:
        raise InvalidMessageError(response.get('message', 'unknown worker error'))
    if kind != MessageKind.MOVE_CALCULATED.value:
        raise InvalidMessageError(f"Unsupported response: {response!r}")
    move = response.get('move')
    if move is None:
        return None
    return Move(int(move['x']), int(move['z']))


def handle_request(request: Dict[str, Any]) -> Dict[str, Any]:
    """
    Compute a bot move for one request.

    Any failure is logged and reported as an Error response rather than
    raised, so the caller always receives exactly one reply.

    Args:
        request: CalculateMove request

    Returns:
        MoveCalculated or Error response
    """
    try:
        bot_id, snapshot, options = parse_request(request)
        bot = get_bot(bot_id, **options)
        debug.start_timer("worker_move")
        try:
            move = bot.get_move(snapshot)
        finally:
            debug.end_timer("worker_move", "worker")
        return move_response(move)
    except (InvalidMessageError, UnknownBotError) as e:
        debug.error(str(e), "worker")
        return error_response(str(e))
    except Exception as e:
        debug.exception(f"Bot search failed: {e}", "worker")
        return error_response(f"{type(e).__name__}: {e}")
