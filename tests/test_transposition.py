import unittest

from connect3d.ai.transposition import TranspositionTable, BoundType
from connect3d.game.board import Board


class TestTranspositionTable(unittest.TestCase):
    def setUp(self):
        self.table = TranspositionTable()
        self.key = Board().key()

    def test_exact_entries_need_enough_depth(self):
        self.table.store(self.key, 3, 120.0, BoundType.EXACT)
        self.assertEqual(self.table.probe(self.key, 2, -1000, 1000), 120.0)
        self.assertEqual(self.table.probe(self.key, 3, -1000, 1000), 120.0)
        self.assertIsNone(self.table.probe(self.key, 4, -1000, 1000))

    def test_lower_bound_only_cuts_at_beta(self):
        self.table.store(self.key, 2, 50.0, BoundType.LOWER)
        self.assertEqual(self.table.probe(self.key, 2, 0, 40), 50.0)
        self.assertIsNone(self.table.probe(self.key, 2, 0, 60))

    def test_upper_bound_only_cuts_at_alpha(self):
        self.table.store(self.key, 2, 10.0, BoundType.UPPER)
        self.assertEqual(self.table.probe(self.key, 2, 20, 100), 10.0)
        self.assertIsNone(self.table.probe(self.key, 2, 5, 100))

    def test_counters_and_reset(self):
        self.assertIsNone(self.table.probe(self.key, 0, -1, 1))
        self.table.store(self.key, 1, 0.0, BoundType.EXACT)
        self.table.probe(self.key, 1, -1, 1)
        self.assertEqual(self.table.hits, 1)
        self.assertEqual(self.table.stores, 1)
        self.assertEqual(len(self.table), 1)
        self.assertEqual(self.table.get(self.key).bound, BoundType.EXACT)

        self.table.reset()
        self.assertEqual(len(self.table), 0)
        self.assertEqual(self.table.hits, 0)
        self.assertIsNone(self.table.get(self.key))


if __name__ == '__main__':
    unittest.main()
