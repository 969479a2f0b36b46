"""
Tests for the perception worker thread, using a fake recognizer.
"""
import time
import unittest

from musicmotion_controls.types import FrameResult, HandDetection
from musicmotion_controls.worker import PerceptionWorker


class FakeDetector:
    def __init__(self, fail=False):
        self.fail = fail
        self.seen = []

    def recognize(self, frame, timestamp_ms):
        if self.fail:
            raise RuntimeError("recognizer exploded")
        self.seen.append((frame, timestamp_ms))
        return FrameResult([HandDetection("Left", [(0.5, 0.5)] * 21, [frame])])


def wait_for_results(worker, count, timeout_s=2.0):
    results = []
    deadline = time.monotonic() + timeout_s
    while len(results) < count and time.monotonic() < deadline:
        results.extend(worker.drain())
        time.sleep(0.005)
    return results


class TestPerceptionWorker(unittest.TestCase):
    def test_process_returns_result_with_timing(self):
        clock = iter([10.0, 14.5])
        worker = PerceptionWorker(FakeDetector(), clock=lambda: next(clock))
        out = worker.process("frame-a", 123.0)
        self.assertEqual(out.timestamp_ms, 123.0)
        self.assertAlmostEqual(out.recognize_ms, 4.5)
        self.assertEqual(out.frame.detections[0].top_gesture, "frame-a")

    def test_failed_recognition_is_dropped(self):
        worker = PerceptionWorker(FakeDetector(fail=True))
        with self.assertLogs("musicmotion_controls.worker", level="WARNING"):
            self.assertIsNone(worker.process("frame", 1.0))
        self.assertEqual(worker.failed_frames, 1)

    def test_only_newest_pending_frame_is_kept(self):
        detector = FakeDetector()
        worker = PerceptionWorker(detector)
        worker.submit("old", 1.0)
        worker.submit("new", 2.0)
        self.assertEqual(worker.dropped_frames, 1)

        with worker:
            results = wait_for_results(worker, 1)
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].timestamp_ms, 2.0)
        self.assertEqual(detector.seen, [("new", 2.0)])
        self.assertFalse(worker.running)

    def test_results_arrive_in_order(self):
        worker = PerceptionWorker(FakeDetector())
        with worker:
            results = []
            for i in range(3):
                worker.submit(f"f{i}", float(i))
                results.extend(wait_for_results(worker, 1))
        self.assertEqual([r.timestamp_ms for r in results], [0.0, 1.0, 2.0])

    def test_drain_on_idle_worker_is_empty(self):
        self.assertEqual(list(PerceptionWorker(FakeDetector()).drain()), [])


if __name__ == "__main__":
    unittest.main()
