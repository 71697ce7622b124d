"""
scheduler.py - Runs bot turns against a GameEngine

Light bots (random, greedy) run synchronously on the calling thread after a
short, cancellable pacing delay. Heavy bots (hard, expert) run in a single
worker process: the scheduler sends a plain-dict request built from a
snapshot and later collects the plain-dict reply.

Only one request can be in flight. Each request remembers the engine
generation it was computed for; a reply arriving after the engine has moved
on (reset, remote update) is discarded instead of applied.
"""

import threading
import time
from concurrent.futures import Executor, Future, ProcessPoolExecutor, wait as wait_futures
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, Optional

from connect3d.ai.registry import DEFAULT_BOT_ID, get_bot, get_bot_class
from connect3d.ai.worker import handle_request, make_request, parse_response
from connect3d.debug import debug
from connect3d.game.rules import GameEngine, GameState
from connect3d.utils import (BOT_MOVE_DELAY, Move, InvalidMessageError, SchedulerBusyError,
                             UnknownBotError)


class RequestStatus(Enum):
    APPLIED = auto()      # A move was played on the engine
    PENDING = auto()      # A worker request is still running
    DISCARDED = auto()    # The reply was for an outdated position
    CANCELLED = auto()    # The pacing delay was interrupted
    FAILED = auto()       # Unknown bot, worker error or unusable move
    IDLE = auto()         # Nothing to do (game over or no request pending)


@dataclass
class _PendingRequest:
    future: Future
    generation: int
    bot_id: str
    started: float


class SearchScheduler:
    """
    Decides how a bot move is computed and feeds it back into the engine.

    The engine is only touched from the thread that calls request_move,
    poll and wait.
    """

    def __init__(self, engine: GameEngine, bot_id: str = DEFAULT_BOT_ID,
                 move_delay: float = BOT_MOVE_DELAY,
                 executor: Optional[Executor] = None,
                 bot_options: Optional[Dict[str, Dict[str, Any]]] = None):
        """
        Initialize the scheduler.

        Args:
            engine: The engine whose turns are played
            bot_id: Default bot used by request_move
            move_delay: Pacing delay in seconds before a synchronous bot moves
            executor: Executor for heavy bots; a one-process pool is created on demand
            bot_options: Per-bot constructor options, e.g. {'expert': {'time_limit_ms': 3000}}
        """
        self.engine = engine
        self.bot_id = bot_id
        self.move_delay = move_delay
        self.bot_options = bot_options or {}
        self.last_error: Optional[str] = None

        self._executor = executor
        self._owns_executor = executor is None
        self._pending: Optional[_PendingRequest] = None
        self._cancel = threading.Event()
        self._delay_generation: Optional[int] = None
        self._unsubscribe = engine.subscribe(self._on_state_change)

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def _on_state_change(self, state: GameState):
        if self._delay_generation is not None and state.generation != self._delay_generation:
            self._cancel.set()

    def _get_executor(self) -> Executor:
        if self._executor is None:
            debug.debug("Starting bot worker process", "scheduler")
            self._executor = ProcessPoolExecutor(max_workers=1)
        return self._executor

    def request_move(self, bot_id: Optional[str] = None) -> RequestStatus:
        """
        Start computing a move for the player to move.

        Args:
            bot_id: Bot to use; defaults to the scheduler's bot

        Returns:
            APPLIED/CANCELLED/FAILED for synchronous bots, PENDING once a worker
            request was sent, IDLE if the game is over

        Raises:
            SchedulerBusyError: If a worker request is still pending
        """
        if self._pending is not None:
            raise SchedulerBusyError(f"A move for bot '{self._pending.bot_id}' is already pending")

        if self.engine.is_game_over():
            return RequestStatus.IDLE

        bot_id = bot_id or self.bot_id
        try:
            bot_class = get_bot_class(bot_id)
        except UnknownBotError as e:
            # Configuration bug: the turn does not advance
            self.last_error = str(e)
            debug.error(f"Cannot play bot turn: {e}", "scheduler")
            return RequestStatus.FAILED

        snapshot = self.engine.snapshot()
        generation = self.engine.generation

        if bot_class.runs_in_worker:
            request = make_request(bot_id, snapshot, self.bot_options.get(bot_id))
            future = self._get_executor().submit(handle_request, request)
            self._pending = _PendingRequest(future, generation, bot_id, time.perf_counter())
            debug.debug(f"Sent move request to worker for bot '{bot_id}' "
                        f"(generation {generation})", "scheduler")
            return RequestStatus.PENDING

        return self._run_synchronously(bot_id, snapshot, generation)

    def _run_synchronously(self, bot_id: str, snapshot, generation: int) -> RequestStatus:
        self._cancel.clear()
        self._delay_generation = generation
        try:
            if self.move_delay > 0 and self._cancel.wait(self.move_delay):
                debug.debug(f"Bot '{bot_id}' move cancelled during delay", "scheduler")
                return RequestStatus.CANCELLED
        finally:
            self._delay_generation = None

        if self.engine.generation != generation:
            debug.debug("Position changed during delay; skipping bot move", "scheduler")
            return RequestStatus.CANCELLED

        bot = get_bot(bot_id, **self.bot_options.get(bot_id, {}))
        move = bot.get_move(snapshot)
        return self._apply(move, bot_id)

    def poll(self) -> RequestStatus:
        """
        Collect the worker reply if it has arrived.

        Returns:
            PENDING while the worker is busy, IDLE if nothing was requested,
            otherwise the outcome of handling the reply
        """
        pending = self._pending
        if pending is None:
            return RequestStatus.IDLE
        if not pending.future.done():
            return RequestStatus.PENDING

        self._pending = None
        elapsed_ms = (time.perf_counter() - pending.started) * 1000

        if pending.generation != self.engine.generation:
            debug.debug(f"Discarding stale reply for generation {pending.generation} "
                        f"(now {self.engine.generation})", "scheduler")
            return RequestStatus.DISCARDED

        try:
            response = pending.future.result()
        except Exception as e:
            self.last_error = f"{type(e).__name__}: {e}"
            debug.error(f"Worker failed for bot '{pending.bot_id}': {self.last_error}", "scheduler")
            return RequestStatus.FAILED

        try:
            move = parse_response(response)
        except InvalidMessageError as e:
            self.last_error = str(e)
            debug.error(f"Bot '{pending.bot_id}' reported an error: {e}", "scheduler")
            return RequestStatus.FAILED

        debug.debug(f"Worker reply for bot '{pending.bot_id}' after {elapsed_ms:.0f} ms", "scheduler")
        return self._apply(move, pending.bot_id)

    def wait(self, timeout: Optional[float] = None) -> RequestStatus:
        """Block until the pending reply arrives (or timeout), then poll."""
        pending = self._pending
        if pending is not None:
            wait_futures([pending.future], timeout=timeout)
        return self.poll()

    def cancel(self):
        """Interrupt a synchronous bot's pacing delay."""
        self._cancel.set()

    def _apply(self, move: Optional[Move], bot_id: str) -> RequestStatus:
        if move is None:
            self.last_error = f"Bot '{bot_id}' returned no move"
            debug.error(self.last_error, "scheduler")
            return RequestStatus.FAILED
        if not self.engine.drop_piece(move.x, move.z):
            self.last_error = f"Bot '{bot_id}' returned invalid move {tuple(move)}"
            debug.error(self.last_error, "scheduler")
            return RequestStatus.FAILED
        self.last_error = None
        debug.info(f"Bot '{bot_id}' played ({move.x}, {move.z})", "scheduler")
        return RequestStatus.APPLIED

    def close(self):
        """Stop listening to the engine and shut down an owned worker pool."""
        self._unsubscribe()
        self.cancel()
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> 'SearchScheduler':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
