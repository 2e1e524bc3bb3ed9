# tests/test_tracking_engine.py
# Version 1.0 - Tests du moteur de suivi
# Modification: Scénarios de référence, perte sur front, cadence d'affichage

import sys
import threading
import unittest
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from tag_tracker.core.reference_frame import ReferenceStatus
from tag_tracker.core.tracking_engine import TagTrackingEngine


class DictConfig:
    """Configuration de test clé pointée -> valeur"""

    def __init__(self, **overrides):
        self.config_values = {
            'tracking.tracking.smoothing_frames': 20,
            'tracking.tracking.display_interval': 10,
            'tracking.tracking.reference_tag_id': 2,
            'tracking.marker.size_m': 0.07,
        }
        self.config_values.update(overrides)

    def get(self, section, key, default=None):
        return self.config_values.get(f"{section}.{key}", default)


class StaticDetection:
    def __init__(self, marker_id, translation):
        self.id = marker_id
        self.translation = np.asarray(translation, dtype=float)

    def relative_translation_rotation(self, marker_size, fx, fy, px, py):
        return self.translation, np.eye(3)


class FailingDetection:
    id = 9

    def relative_translation_rotation(self, marker_size, fx, fy, px, py):
        raise ValueError("pas de solution")


def positions_by_id(result):
    return {p.marker_id: p for p in result.positions}


class TestTagTrackingEngine(unittest.TestCase):

    def setUp(self):
        self.engine = TagTrackingEngine(DictConfig())

    def test_relative_position_at_first_frame(self):
        result = self.engine.process_detections([
            StaticDetection(2, (0, 0, 1)),
            StaticDetection(5, (1, 0, 1)),
        ])

        self.assertEqual(result.reference_status, ReferenceStatus.LIVE)
        self.assertFalse(result.reference_lost)
        position = positions_by_id(result)[5]
        self.assertAlmostEqual(position.distance, 1.0)
        self.assertEqual((position.x, position.y, position.z), (1.0, 0.0, 0.0))
        self.assertEqual(result.report_lines(), ["Id: 5, distance=1m, x=1, y=0, z=0"])
        self.assertNotIn(2, positions_by_id(result))

    def test_reference_loss_holds_last_origin_and_signals_once(self):
        self.engine.process_detections([StaticDetection(2, (0, 0, 1)), StaticDetection(5, (1, 0, 1))])

        lost_frames = []
        for frame in range(1, 30):
            result = self.engine.process_detections([StaticDetection(5, (1, 0, 1))])
            if result.reference_lost:
                lost_frames.append(frame)

            position = positions_by_id(result)[5]
            np.testing.assert_allclose(position.offset, [1.0, 0.0, 0.0])

            expected = ReferenceStatus.LIVE if frame <= 20 else ReferenceStatus.LOST
            self.assertEqual(result.reference_status, expected, f"frame {frame}")

        self.assertEqual(lost_frames, [21])
        self.assertIn(2, self.engine.table)

    def test_reference_lost_fires_again_after_recovery(self):
        engine = TagTrackingEngine(DictConfig(**{'tracking.tracking.smoothing_frames': 1}))
        ref = StaticDetection(2, (0, 0, 1))

        signals = []
        sequence = [[ref], [], [], [], [ref], [], [], []]
        for detections in sequence:
            result = engine.process_detections(detections)
            signals.append((result.reference_lost, result.reference_recovered))

        self.assertEqual(signals, [
            (False, False),
            (False, False),
            (True, False),
            (False, False),
            (False, True),
            (False, False),
            (True, False),
            (False, False),
        ])

    def test_marker_disappears_at_frame_21(self):
        self.engine.process_detections([StaticDetection(2, (0, 0, 1)), StaticDetection(5, (1, 0, 1))])

        for frame in range(1, 22):
            detections = [StaticDetection(2, (0, 0, 1))]
            result = self.engine.process_detections(detections)
            if frame <= 20:
                self.assertIn(5, positions_by_id(result), f"frame {frame}")
                self.assertEqual(result.evicted, set())
            else:
                self.assertNotIn(5, positions_by_id(result))
                self.assertEqual(result.evicted, {5})
                self.assertNotIn(5, self.engine.table)

    def test_positions_follow_moving_reference(self):
        self.engine.process_detections([StaticDetection(2, (0, 0, 1)), StaticDetection(5, (1, 0, 1))])
        result = self.engine.process_detections([StaticDetection(2, (0.5, 0, 1))])

        np.testing.assert_allclose(positions_by_id(result)[5].offset, [0.5, 0.0, 0.0])

    def test_reference_never_seen(self):
        result = self.engine.process_detections([StaticDetection(5, (1, 0, 1))])

        self.assertEqual(result.reference_status, ReferenceStatus.UNSEEN)
        self.assertEqual(result.positions, [])
        self.assertFalse(result.reference_lost)
        self.assertIn(5, self.engine.table)

    def test_empty_frame_ages_markers(self):
        self.engine.process_detections([StaticDetection(5, (1, 0, 1))])
        result = self.engine.process_detections([])

        self.assertEqual(result.descriptions, {})
        self.assertEqual(self.engine.get_marker(5).ttl, 19)

    def test_descriptions_per_detection(self):
        result = self.engine.process_detections([StaticDetection(5, (3, 4, 0))])

        self.assertTrue(result.descriptions[5].startswith("Id: 5, distance=5m, x=3, y=4, z=0, yaw="))
        self.assertEqual(self.engine.get_marker(5).description, result.descriptions[5])

    def test_unsolved_pose_is_a_miss(self):
        result = self.engine.process_detections([FailingDetection(), StaticDetection(5, (1, 0, 1))])

        self.assertNotIn(9, self.engine.table)
        self.assertEqual(set(result.descriptions), {5})

    def test_display_cadence(self):
        emitted = [self.engine.process_detections([]).emit for _ in range(25)]

        self.assertEqual([i for i, e in enumerate(emitted) if e], [0, 10, 20])

    def test_invalid_configuration(self):
        with self.assertRaises(ValueError):
            TagTrackingEngine(DictConfig(**{'tracking.tracking.display_interval': 0}))
        with self.assertRaises(ValueError):
            TagTrackingEngine(DictConfig(**{'tracking.marker.size_m': 0}))

    def test_intrinsics_default_to_image_center(self):
        engine = TagTrackingEngine(DictConfig(**{
            'camera.realsense.color_width': 640,
            'camera.realsense.color_height': 360,
        }))
        self.assertEqual((engine.intrinsics.px, engine.intrinsics.py), (320.0, 180.0))
        self.assertEqual((engine.intrinsics.fx, engine.intrinsics.fy), (600.0, 600.0))

    def test_snapshot_is_a_copy(self):
        self.engine.process_detections([StaticDetection(5, (1, 0, 1))])
        snapshot = self.engine.snapshot()
        snapshot[5].translation[0] = 42.0

        self.assertEqual(self.engine.get_marker(5).translation[0], 1.0)

    def test_snapshot_keeps_last_seen_frame(self):
        self.engine.process_detections([StaticDetection(5, (1, 0, 1))])
        self.engine.process_detections([])
        self.engine.process_detections([StaticDetection(5, (1, 0, 1)), StaticDetection(6, (0, 0, 1))])
        self.engine.process_detections([])

        snapshot = self.engine.snapshot()
        self.assertEqual(snapshot[5].last_seen_frame, 2)
        self.assertEqual(snapshot[6].last_seen_frame, 2)
        self.assertEqual(snapshot[5].ttl, 19)

    def test_snapshot_from_other_thread(self):
        self.engine.process_detections([StaticDetection(5, (1, 0, 1))])
        snapshots = []
        reader = threading.Thread(target=lambda: snapshots.append(self.engine.snapshot()))
        reader.start()
        reader.join()

        self.assertEqual(list(snapshots[0]), [5])

    def test_reset(self):
        self.engine.process_detections([StaticDetection(2, (0, 0, 1))])
        self.engine.reset()

        self.assertEqual(len(self.engine.table), 0)
        self.assertTrue(self.engine.process_detections([]).emit)


if __name__ == "__main__":
    unittest.main()
