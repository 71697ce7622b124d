#!/usr/bin/env python3
"""
run.py - Main entry point for 3D Connect Four

Examples:

    # Play against the expert bot, moving first
    python run.py play --bot expert --human 0

    # Two players sharing the keyboard
    python run.py play --two-player

    # Greedy bot against the random bot, 20 games
    python run.py match --bot1 greedy --bot2 random --games 20

    # Time the hard bot on sample positions with detailed logging
    python run.py --debug_level debug benchmark --bot hard
"""

from connect3d.interfaces.cli import main

if __name__ == "__main__":
    main()
