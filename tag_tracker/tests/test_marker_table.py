# tests/test_marker_table.py
# Version 1.0 - Tests de la table des marqueurs suivis
# Modification: Bornes du ttl, remise à zéro, protection de la référence

import sys
import unittest
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from tag_tracker.core.marker_table import TrackedMarkerTable


class TestTrackedMarkerTable(unittest.TestCase):
    """Vieillissement et éviction des marqueurs"""

    def setUp(self):
        self.table = TrackedMarkerTable(smoothing_frames=20, reference_tag_id=2)

    def test_upsert_creates_entry_with_full_ttl(self):
        marker = self.table.upsert(5, (1.0, 0.0, 1.0), "Id: 5")

        self.assertIn(5, self.table)
        self.assertEqual(marker.ttl, 20)
        self.assertEqual(marker.description, "Id: 5")
        np.testing.assert_allclose(self.table.get(5).translation, [1.0, 0.0, 1.0])

    def test_fresh_upsert_not_aged_in_same_pass(self):
        self.table.upsert(5, (0, 0, 1))
        evicted = self.table.age_and_evict()

        self.assertEqual(evicted, set())
        self.assertEqual(self.table.get(5).ttl, 20)

    def test_eviction_boundary_is_exact(self):
        # Frame 0: détection, puis plus rien
        self.table.upsert(5, (0, 0, 1))
        self.table.age_and_evict()

        for frame in range(1, 21):
            evicted = self.table.age_and_evict()
            self.assertEqual(evicted, set(), f"frame {frame}")
            self.assertIn(5, self.table)
        self.assertEqual(self.table.get(5).ttl, 0)
        self.assertTrue(self.table.is_live(5))

        # Frame 21: ttl passe à -1
        evicted = self.table.age_and_evict()
        self.assertEqual(evicted, {5})
        self.assertNotIn(5, self.table)
        self.assertIsNone(self.table.get(5))

    def test_redetection_resets_ttl(self):
        self.table.upsert(5, (0, 0, 1))
        self.table.age_and_evict()
        for _ in range(7):
            self.table.age_and_evict()
        self.assertEqual(self.table.get(5).ttl, 13)

        self.table.upsert(5, (0, 0, 2))
        self.table.age_and_evict()

        self.assertEqual(self.table.get(5).ttl, 20)
        np.testing.assert_allclose(self.table.get(5).translation, [0, 0, 2])

    def test_reference_never_evicted(self):
        self.table.upsert(2, (0, 0, 1))
        self.table.age_and_evict()

        for _ in range(100):
            self.assertNotIn(2, self.table.age_and_evict())

        self.assertIn(2, self.table)
        self.assertEqual(self.table.get(2).ttl, 20 - 100)
        self.assertFalse(self.table.is_live(2))
        np.testing.assert_allclose(self.table.get(2).translation, [0, 0, 1])

    def test_only_missing_markers_age(self):
        self.table.upsert(5, (0, 0, 1))
        self.table.upsert(6, (0, 0, 1))
        self.table.age_and_evict()

        self.table.upsert(5, (0, 0, 1))
        self.table.age_and_evict()

        self.assertEqual(self.table.get(5).ttl, 20)
        self.assertEqual(self.table.get(6).ttl, 19)

    def test_last_seen_frame_follows_detections(self):
        self.table.upsert(5, (0, 0, 1))
        self.table.age_and_evict()
        self.assertEqual(self.table.get(5).last_seen_frame, 0)

        for _ in range(3):
            self.table.age_and_evict()
        self.assertEqual(self.table.get(5).last_seen_frame, 0)

        # Frame 4: nouvelle détection
        self.table.upsert(5, (0, 0, 2))
        self.table.age_and_evict()
        self.assertEqual(self.table.get(5).last_seen_frame, 4)
        self.assertEqual(self.table.frame_index, 5)

    def test_duplicate_ids_in_frame_keep_last(self):
        self.table.upsert(5, (0, 0, 1), "premier")
        self.table.upsert(5, (0, 0, 3), "second")
        self.table.age_and_evict()

        self.assertEqual(len(self.table), 1)
        self.assertEqual(self.table.get(5).description, "second")

    def test_is_protected(self):
        self.assertTrue(self.table.is_protected(2))
        self.assertFalse(self.table.is_protected(5))

    def test_zero_smoothing_evicts_next_frame(self):
        table = TrackedMarkerTable(smoothing_frames=0, reference_tag_id=2)
        table.upsert(5, (0, 0, 1))
        self.assertEqual(table.age_and_evict(), set())
        self.assertEqual(table.age_and_evict(), {5})

    def test_negative_smoothing_rejected(self):
        with self.assertRaises(ValueError):
            TrackedMarkerTable(smoothing_frames=-1)

    def test_iteration_sorted_by_id(self):
        for marker_id in (9, 3, 5):
            self.table.upsert(marker_id, (0, 0, 1))
        self.assertEqual([m.id for m in self.table], [3, 5, 9])


if __name__ == "__main__":
    unittest.main()
