"""
Tests for splitting recognizer frames into left/right hand buffers.
"""
import unittest
from types import SimpleNamespace

from musicmotion_controls.tracker import (
    PALM_LANDMARKS,
    DualHandTracker,
    frame_from_recognizer_result,
    palm_centroid,
)
from musicmotion_controls.types import FrameResult, Hand, HandDetection


def landmarks_at(x, y, n=21):
    return [(x, y)] * n


def detection(label, x, y, gesture="None", n=21):
    return HandDetection(handedness=label, landmarks=landmarks_at(x, y, n), gestures=[gesture, "Open_Palm"])


class PointAssertions:
    def assertPointAlmostEqual(self, a, b, places=7):
        self.assertIsNotNone(a)
        self.assertAlmostEqual(a[0], b[0], places=places)
        self.assertAlmostEqual(a[1], b[1], places=places)


class TestPalmCentroid(unittest.TestCase):
    def test_mean_of_palm_points(self):
        lms = landmarks_at(0.0, 0.0)
        for k, idx in enumerate(PALM_LANDMARKS):
            lms[idx] = (float(k), 2.0 * k)
        cx, cy = palm_centroid(lms)
        self.assertAlmostEqual(cx, 2.5)
        self.assertAlmostEqual(cy, 5.0)

    def test_fingertips_do_not_move_centroid(self):
        lms = landmarks_at(0.5, 0.5)
        for tip in (4, 8, 12, 16, 20):
            lms[tip] = (0.99, 0.01)
        self.assertEqual(palm_centroid(lms), (0.5, 0.5))

    def test_short_landmark_list_is_undetected(self):
        self.assertIsNone(palm_centroid(landmarks_at(0.5, 0.5, n=10)))
        self.assertIsNone(palm_centroid([]))


class TestDualHandTracker(PointAssertions, unittest.TestCase):
    def setUp(self):
        self.tracker = DualHandTracker()

    def test_demultiplexes_left_and_right(self):
        self.tracker.ingest(
            FrameResult([detection("Left", 0.2, 0.3, "Closed_Fist"), detection("Right", 0.7, 0.6, "Open_Palm")]),
            timestamp_ms=0.0,
        )
        state = self.tracker.get_two_hands_state(now_ms=0.0)
        self.assertPointAlmostEqual(state.left.position, (0.2, 0.3))
        self.assertEqual(state.left.gesture, "Closed_Fist")
        self.assertPointAlmostEqual(state.right.position, (0.7, 0.6))
        self.assertEqual(state.right.gesture, "Open_Palm")

    def test_missing_hand_clears_buffer(self):
        self.tracker.ingest(FrameResult([detection("Left", 0.2, 0.3), detection("Right", 0.7, 0.6)]), 0.0)
        self.tracker.ingest(FrameResult([detection("Right", 0.7, 0.6)]), 33.0)

        self.assertEqual(len(self.tracker.left), 0)
        self.assertEqual(len(self.tracker.right), 2)
        state = self.tracker.get_two_hands_state(now_ms=40.0)
        self.assertIsNone(state.left.position)
        self.assertEqual(state.left.gesture, "")
        self.assertIsNotNone(state.right.position)

    def test_empty_frame_clears_both(self):
        self.tracker.ingest(FrameResult([detection("Left", 0.2, 0.3)]), 0.0)
        self.tracker.ingest(FrameResult(), 33.0)
        state = self.tracker.get_two_hands_state(now_ms=40.0)
        self.assertIsNone(state.left.position)
        self.assertIsNone(state.right.position)

    def test_first_detection_per_label_wins(self):
        self.tracker.ingest(FrameResult([detection("Right", 0.1, 0.1), detection("Right", 0.9, 0.9)]), 0.0)
        self.assertEqual(len(self.tracker.right), 1)
        self.assertPointAlmostEqual(self.tracker.right.latest().position, (0.1, 0.1))
        self.assertEqual(len(self.tracker.left), 0)

    def test_malformed_detection_counts_as_missing(self):
        self.tracker.ingest(FrameResult([detection("Left", 0.2, 0.3)]), 0.0)
        self.tracker.ingest(FrameResult([detection("Left", 0.2, 0.3, n=5)]), 33.0)
        self.assertEqual(len(self.tracker.left), 0)

    def test_unknown_label_is_ignored(self):
        self.tracker.ingest(FrameResult([detection("", 0.2, 0.3), detection("Both", 0.4, 0.4)]), 0.0)
        self.assertEqual(len(self.tracker.left), 0)
        self.assertEqual(len(self.tracker.right), 0)

    def test_state_is_extrapolated(self):
        self.tracker.ingest(FrameResult([detection("left", 0.4, 0.4)]), 0.0)
        self.tracker.ingest(FrameResult([detection("left", 0.5, 0.5)]), 100.0)
        x, y = self.tracker.get_two_hands_state(now_ms=150.0).left.position
        self.assertAlmostEqual(x, 0.55)
        self.assertAlmostEqual(y, 0.55)

    def test_injected_clock_stamps_observations(self):
        t = [1000.0]
        tracker = DualHandTracker(clock=lambda: t[0])
        tracker.ingest(FrameResult([detection("Right", 0.5, 0.5)]))
        self.assertEqual(tracker.buffer(Hand.RIGHT).latest().timestamp_ms, 1000.0)
        t[0] = 1200.0
        self.assertEqual(tracker.get_two_hands_state().right.position, (0.5, 0.5))

    def test_capacity_and_policy_are_forwarded(self):
        tracker = DualHandTracker(capacity=4, policy="ema")
        for i in range(6):
            tracker.ingest(FrameResult([detection("Left", 0.5, 0.5)]), float(i))
        self.assertEqual(len(tracker.left), 4)
        self.assertEqual(tracker.left.policy.value, "ema")


class TestRecognizerConversion(unittest.TestCase):
    def _cat(self, name):
        return SimpleNamespace(category_name=name, score=0.9)

    def test_converts_mediapipe_result(self):
        lm = [SimpleNamespace(x=0.25, y=0.75, z=0.0)] * 21
        result = SimpleNamespace(
            hand_landmarks=[lm, lm],
            handedness=[[self._cat("Left")], [self._cat("Right")]],
            gestures=[[self._cat("Closed_Fist"), self._cat("None")], []],
        )
        frame = frame_from_recognizer_result(result)
        self.assertEqual(len(frame.detections), 2)
        left, right = frame.detections
        self.assertEqual(left.handedness, "Left")
        self.assertEqual(left.top_gesture, "Closed_Fist")
        self.assertEqual(left.landmarks[0], (0.25, 0.75))
        self.assertEqual(right.top_gesture, "")

    def test_partial_result_degrades(self):
        lm = [SimpleNamespace(x=0.5, y=0.5)] * 21
        frame = frame_from_recognizer_result(SimpleNamespace(hand_landmarks=[lm]))
        self.assertEqual(frame.detections[0].handedness, "")
        self.assertEqual(frame_from_recognizer_result(SimpleNamespace()).detections, [])


if __name__ == "__main__":
    unittest.main()
