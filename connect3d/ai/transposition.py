"""
transposition.py - Transposition table for the iterative-deepening search

Positions reached through different move orders share one entry, keyed by
the board's 64-byte encoding. Entries remember the depth they were searched
to and whether the score is exact or only a bound.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class BoundType(Enum):
    """Type of bound stored in a transposition table entry."""
    EXACT = 0   # Searched with a full window
    LOWER = 1   # Beta cutoff, true value >= score
    UPPER = 2   # Failed low, true value <= score


@dataclass(frozen=True)
class TranspositionEntry:
    depth: int
    score: float
    bound: BoundType


class TranspositionTable:
    """Dictionary-backed table, cleared between root searches."""

    def __init__(self):
        self.table: Dict[bytes, TranspositionEntry] = {}
        self.hits = 0
        self.stores = 0

    def get(self, key: bytes) -> Optional[TranspositionEntry]:
        return self.table.get(key)

    def probe(self, key: bytes, depth: int, alpha: float, beta: float) -> Optional[float]:
        """
        Look up a usable score for a position.

        Entries are only used when they were searched at least as deep as
        requested: exact scores are returned directly, lower bounds when they
        reach beta and upper bounds when they fall to alpha.

        Args:
            key: Board encoding
            depth: Remaining search depth at this node
            alpha: Current alpha bound
            beta: Current beta bound

        Returns:
            The stored score if it decides this node, otherwise None
        """
        entry = self.table.get(key)
        if entry is None or entry.depth < depth:
            return None

        if entry.bound == BoundType.EXACT:
            self.hits += 1
            return entry.score
        if entry.bound == BoundType.LOWER and entry.score >= beta:
            self.hits += 1
            return entry.score
        if entry.bound == BoundType.UPPER and entry.score <= alpha:
            self.hits += 1
            return entry.score
        return None

    def store(self, key: bytes, depth: int, score: float, bound: BoundType):
        self.table[key] = TranspositionEntry(depth, score, bound)
        self.stores += 1

    def reset(self):
        self.table.clear()
        self.hits = 0
        self.stores = 0

    def __len__(self) -> int:
        return len(self.table)
