"""
cli.py - Command-line interface for 3D Connect Four

This module provides a CLI for playing against the bots, running bot-vs-bot
matches through the gymnasium environment and timing the bots on sample
positions.
"""

import argparse
import random
import sys
import time
from typing import List, Optional, Union

from connect3d.ai.registry import BOT_FACTORIES, get_bot, list_bots
from connect3d.ai.scheduler import SearchScheduler, RequestStatus
from connect3d.data.settings import (GameMode, GameSettings, load_settings, save_settings,
                                     is_bot_turn)
from connect3d.debug import debug
from connect3d.game.board import Board
from connect3d.game.rules import GameEngine, GameSnapshot, Connect3DEnv
from connect3d.utils import GRID_SIZE, NUM_CELLS, Move, Player, GameResult, column_index

QUIT = 'q'
RESTART = 'r'


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


class SimpleCLI:
    """Simple command-line interface for 3D Connect Four."""

    def __init__(self):
        """Initialize the CLI."""
        self.engine = GameEngine()
        self.args = None
        self.settings: Optional[GameSettings] = None

    def parse_args(self, argv: Optional[List[str]] = None) -> None:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(description='3D Connect Four (4x4x4)')
        parser.add_argument('--debug_level',
                            choices=['none', 'error', 'warning', 'info', 'debug', 'trace'],
                            default='warning',
                            help='Set debug level: none (silent) ... trace (most verbose)')
        parser.add_argument('--settings', type=str, default=None,
                            help='Settings file (default: data/settings.json)')

        subparsers = parser.add_subparsers(dest='command', help='Command to run')
        bot_ids = list(BOT_FACTORIES)

        # Play command
        play_parser = subparsers.add_parser('play', help='Play a game interactively')
        play_parser.add_argument('--bot', choices=bot_ids, help='Bot opponent (overrides settings)')
        play_parser.add_argument('--human', type=int, choices=[0, 1],
                                 help='Seat of the human player: 0 moves first')
        play_parser.add_argument('--two-player', action='store_true',
                                 help='Two humans share the keyboard')
        play_parser.add_argument('--time-limit', type=int,
                                 help='Expert bot time budget per move in milliseconds')
        play_parser.add_argument('--delay', type=float, help='Pacing delay before a light bot moves')
        play_parser.add_argument('--save', action='store_true',
                                 help='Persist the chosen options as the new settings')

        # Match command
        match_parser = subparsers.add_parser('match', help='Play bots against each other')
        match_parser.add_argument('--bot1', choices=bot_ids, default='greedy')
        match_parser.add_argument('--bot2', choices=bot_ids, default='random')
        match_parser.add_argument('--games', type=positive_int, default=10, help='Number of games')
        match_parser.add_argument('--time-limit', type=int, default=1000,
                                  help='Expert bot time budget per move in milliseconds')
        match_parser.add_argument('--seed', type=int, default=None)
        match_parser.add_argument('--show', action='store_true', help='Print the final board of each game')

        # Benchmark command
        benchmark_parser = subparsers.add_parser('benchmark', help='Time a bot on sample positions')
        benchmark_parser.add_argument('--bot', choices=bot_ids, default='hard')
        benchmark_parser.add_argument('--positions', type=positive_int, default=5,
                                      help='Number of sample positions')
        benchmark_parser.add_argument('--time-limit', type=int, default=None,
                                      help='Expert bot time budget per move in milliseconds')
        benchmark_parser.add_argument('--seed', type=int, default=0)

        # Bots command
        subparsers.add_parser('bots', help='List the available bots')

        self.args = parser.parse_args(argv)
        debug.set_from_string(self.args.debug_level)

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Run the CLI based on the parsed arguments."""
        if not self.args:
            self.parse_args(argv)

        if self.args.command == 'play':
            self.play_game()
        elif self.args.command == 'match':
            self.run_match()
        elif self.args.command == 'benchmark':
            self.benchmark()
        elif self.args.command == 'bots':
            self.show_bots()
        else:
            print("Please specify a command. Use --help for options.")
            sys.exit(1)

    def load_play_settings(self) -> GameSettings:
        """Persisted settings with command-line overrides applied."""
        settings = load_settings(self.args.settings)
        if self.args.bot:
            settings.selected_bot_id = self.args.bot
        if self.args.human is not None:
            settings.bot_player = 1 - self.args.human
        if self.args.two_player:
            settings.game_mode = GameMode.TWO_PLAYER
        elif self.args.bot or self.args.human is not None:
            settings.game_mode = GameMode.SINGLE_PLAYER
        if self.args.time_limit:
            settings.expert_time_limit_ms = self.args.time_limit
        if self.args.delay is not None:
            settings.bot_delay = self.args.delay
        if self.args.save:
            save_settings(settings, self.args.settings)
        return settings

    def play_game(self) -> None:
        """Play a game interactively."""
        self.settings = settings = self.load_play_settings()
        if settings.game_mode == GameMode.ONLINE:
            print("Online games are not available from the command line; playing locally.")
            settings.game_mode = GameMode.TWO_PLAYER

        bot = BOT_FACTORIES[settings.selected_bot_id]
        print("Starting a new 3D Connect Four game!")
        if settings.game_mode == GameMode.SINGLE_PLAYER:
            print(f"Opponent: {bot.name} - {bot.description}")
        print("Enter a column as 'x z' (each 0-3) to make a move.")
        print("Other commands: 'q' to quit, 'r' to restart.")

        self.engine.reset_game()
        print(self.engine.render())

        with SearchScheduler(self.engine, bot_id=settings.selected_bot_id,
                             move_delay=settings.bot_delay,
                             bot_options=settings.bot_options()) as scheduler:
            while not self.engine.is_game_over():
                if is_bot_turn(settings, self.engine.state):
                    if not self.play_bot_turn(scheduler, bot.name):
                        print(f"{bot.name} could not move: {scheduler.last_error}")
                        return
                    print(self.engine.render())
                    continue

                move = self.get_human_move()
                if move is None:
                    continue
                if move == QUIT:
                    print("Quitting game.")
                    return
                if move == RESTART:
                    self.engine.reset_game()
                    print("Game restarted.")
                    print(self.engine.render())
                    continue

                if self.engine.drop_piece(move.x, move.z):
                    print(self.engine.render())
                else:
                    print(f"Invalid move: column ({move.x}, {move.z}) is full")

        self.announce_result()

    def play_bot_turn(self, scheduler: SearchScheduler, bot_name: str) -> bool:
        """Let the scheduler play one bot move, waiting for the worker if needed."""
        print(f"{bot_name} is thinking...")
        status = scheduler.request_move()
        if status == RequestStatus.PENDING:
            status = scheduler.wait()
        if status != RequestStatus.APPLIED:
            return False
        last = self.engine.last_move
        print(f"{bot_name} plays ({last.x}, {last.z}), landing at height {last.y}")
        return True

    def get_human_move(self) -> Union[Move, str, None]:
        """
        Get a move from human player input.

        Returns:
            The move, QUIT or RESTART, or None if the input was invalid
        """
        player = self.engine.current_player
        try:
            user_input = input(f"Player {player} move (x z, q/r): ").strip().lower()
        except EOFError:
            return QUIT

        if user_input in (QUIT, RESTART):
            return user_input

        parts = user_input.replace(',', ' ').split()
        try:
            x, z = (int(p) for p in parts)
        except ValueError:
            print("Invalid input. Please enter two numbers like '1 2' or a command.")
            return None

        if not (0 <= x < GRID_SIZE and 0 <= z < GRID_SIZE):
            print(f"Coordinates must be between 0 and {GRID_SIZE - 1}.")
            return None
        return Move(x, z)

    def announce_result(self) -> None:
        print("Game over!")
        result = self.engine.game_result
        if result == GameResult.DRAW:
            print("It's a draw!")
            return

        winner = self.engine.winner
        print(f"Winning line: {list(self.engine.winning_line)}")
        if self.settings and self.settings.game_mode == GameMode.SINGLE_PLAYER:
            if winner.index == self.settings.bot_player:
                print("Bot wins! Better luck next time.")
            else:
                print("You win! Congratulations!")
        else:
            print(f"Player {winner} wins!")

    def run_match(self) -> None:
        """Play bot1 against bot2, alternating who moves first."""
        args = self.args
        rng = random.Random(args.seed)
        options = {'expert': {'time_limit_ms': args.time_limit}}
        bots = []
        for bot_id in (args.bot1, args.bot2):
            bot_options = dict(options.get(bot_id, {}))
            if bot_id in ('random', 'greedy'):
                bot_options['rng'] = random.Random(rng.random())
            bots.append(get_bot(bot_id, **bot_options))

        env = Connect3DEnv(render_mode='ascii')
        wins = [0, 0]
        draws = 0
        total_moves = 0

        print(f"Match: {bots[0].name} vs {bots[1].name}, {args.games} games")
        debug.start_timer("match")
        for game in range(args.games):
            _, info = env.reset(seed=args.seed)
            # bots[seats[0]] plays first
            seats = (0, 1) if game % 2 == 0 else (1, 0)
            terminated = truncated = False
            while not (terminated or truncated):
                bot = bots[seats[info['current_player']]]
                snapshot = env.engine.snapshot()
                move = bot.get_move(snapshot)
                if move is None:
                    break
                _, _, terminated, truncated, info = env.step(column_index(move.x, move.z))

            total_moves += info['moves_made']
            result = GameResult[info['game_result']]
            if result == GameResult.DRAW:
                draws += 1
                outcome = "draw"
            elif result.is_game_over():
                seat = 0 if result == GameResult.PLAYER_ONE_WIN else 1
                wins[seats[seat]] += 1
                outcome = f"{bots[seats[seat]].name} wins"
            else:
                outcome = "unfinished"
            print(f"Game {game + 1}: {outcome} in {info['moves_made']} moves")
            if args.show:
                print(env.render())
        elapsed = debug.end_timer("match", "cli") or 0.0

        games = args.games
        print(f"\n{bots[0].name}: {wins[0]} wins, {bots[1].name}: {wins[1]} wins, {draws} draws")
        print(f"Average game length: {total_moves / games:.1f} moves, "
              f"{elapsed / games:.2f} s per game")
        env.close()

    def sample_positions(self, count: int, seed: int) -> List[GameSnapshot]:
        """Unfinished positions reached by random play at increasing depths."""
        rng = random.Random(seed)
        positions = []
        while len(positions) < count:
            plies = min(2 * len(positions) + rng.randint(0, 3), NUM_CELLS - GRID_SIZE)
            board = Board()
            player = Player.ONE
            for _ in range(plies):
                child, index = board.play(rng.choice(board.valid_moves()), player)
                # Stop one ply short of a finished game
                if child.is_win_at(index) or child.is_full():
                    break
                board = child
                player = player.other()
            positions.append(GameSnapshot(board=board, current_player=player))
        return positions

    def benchmark(self) -> None:
        """Benchmark a bot's move time on sample positions."""
        args = self.args
        options = {}
        if args.bot == 'expert' and args.time_limit:
            options['time_limit_ms'] = args.time_limit
        bot = get_bot(args.bot, **options)

        positions = self.sample_positions(args.positions, args.seed)
        print(f"Benchmarking {bot.name} on {len(positions)} positions...")

        total = 0.0
        for i, snapshot in enumerate(positions):
            start = time.perf_counter()
            move = bot.get_move(snapshot)
            elapsed = time.perf_counter() - start
            total += elapsed

            line = (f"Position {i + 1} ({snapshot.board.piece_count():2d} pieces): "
                    f"move {tuple(move) if move else None} in {elapsed * 1000:.1f} ms")
            stats = getattr(bot, 'last_stats', None)
            if stats is not None and stats.nodes:
                line += f", depth {stats.depth_reached}, {stats.nodes} nodes"
                if stats.tt_size:
                    line += f", {stats.tt_hits} table hits"
            print(line)

        print(f"Total: {total:.3f} seconds, {total / len(positions) * 1000:.1f} ms per move")

    def show_bots(self) -> None:
        for info in list_bots():
            print(f"{info['id']:8s} {info['name']:12s} {info['description']}")


def main(argv: Optional[List[str]] = None):
    """Main entry point for the CLI."""
    cli = SimpleCLI()
    cli.run(argv)


if __name__ == "__main__":
    main()
