"""
Tests for the mixer math and rendering (no audio device needed).
"""
import math
import unittest

import numpy as np

from musicmotion_controls.mixing import (
    HIGHPASS_MIN_HZ,
    LOWPASS_MAX_HZ,
    Mixer,
    _Param,
    filter_cutoffs,
    loop_gain,
    midi_to_freq,
)


class TestMappings(unittest.TestCase):
    def test_loop_gain(self):
        self.assertEqual(loop_gain(0.0), 0.0)
        self.assertEqual(loop_gain(0.001), 0.0)
        self.assertAlmostEqual(loop_gain(1.0), 10 ** (-10 / 20))
        self.assertAlmostEqual(loop_gain(0.5), 0.5 * 10 ** (-10 / 20))
        self.assertAlmostEqual(loop_gain(2.0), loop_gain(1.0))

    def test_filter_neutral_and_extremes(self):
        self.assertEqual(filter_cutoffs(0.5), (LOWPASS_MAX_HZ, HIGHPASS_MIN_HZ))
        lp, hp = filter_cutoffs(0.0)
        self.assertAlmostEqual(lp, 100.0)
        self.assertEqual(hp, HIGHPASS_MIN_HZ)
        lp, hp = filter_cutoffs(1.0)
        self.assertEqual(lp, LOWPASS_MAX_HZ)
        self.assertAlmostEqual(hp, 10000.0)

    def test_filter_is_monotonic_per_side(self):
        lows = [filter_cutoffs(v)[0] for v in (0.0, 0.1, 0.25, 0.4)]
        highs = [filter_cutoffs(v)[1] for v in (0.5, 0.6, 0.75, 0.9)]
        self.assertEqual(lows, sorted(lows))
        self.assertEqual(highs, sorted(highs))

    def test_midi_to_freq(self):
        self.assertAlmostEqual(midi_to_freq(69), 440.0)
        self.assertAlmostEqual(midi_to_freq(81), 880.0)


class TestParamRamp(unittest.TestCase):
    def test_reaches_target_after_ramp(self):
        p = _Param(0.0, ramp_samples=100)
        p.set(1.0)
        first = p.render(50)
        self.assertAlmostEqual(first[-1], 0.5)
        second = p.render(100)
        self.assertEqual(second[-1], 1.0)
        self.assertTrue(np.all(np.diff(np.concatenate([first, second])) >= 0))

    def test_ramps_down(self):
        p = _Param(1.0, ramp_samples=10)
        p.set(0.0)
        out = p.render(20)
        self.assertEqual(out[-1], 0.0)
        self.assertTrue(np.all(out >= 0.0))


class TestMixer(unittest.TestCase):
    def setUp(self):
        self.mixer = Mixer(sample_rate=8000)

    def test_silent_by_default(self):
        out = self.mixer.render(256)
        self.assertEqual(out.shape, (256,))
        self.assertEqual(out.dtype, np.float32)
        self.assertTrue(np.all(out == 0.0))

    def test_loop_volume_makes_sound(self):
        self.mixer.set_loop_volume(1, 1.0)
        self.assertAlmostEqual(self.mixer.loop_volume(1), loop_gain(1.0))
        out = self.mixer.render(4000)
        self.assertGreater(float(np.max(np.abs(out))), 0.0)
        self.assertLessEqual(float(np.max(np.abs(out))), 1.0)

    def test_trigger_sample(self):
        self.mixer.trigger_sample(0)
        out = self.mixer.render(512)
        self.assertGreater(float(np.max(np.abs(out))), 0.0)

    def test_out_of_range_indices_are_ignored(self):
        self.mixer.set_loop_volume(99, 1.0)
        self.mixer.trigger_sample(-1)
        self.assertIsNone(self.mixer.loop_volume(99))
        self.assertTrue(np.all(self.mixer.render(128) == 0.0))

    def test_effects(self):
        self.mixer.set_effect("filter", 0.2)
        self.mixer.set_effect("delay", 1.5)
        self.assertEqual(self.mixer.effect_value("filter"), 0.2)
        self.assertEqual(self.mixer.effect_value("delay"), 1.0)
        with self.assertRaises(ValueError):
            self.mixer.set_effect("chorus", 0.5)

    def test_delay_repeats_a_sample(self):
        mixer = Mixer(sample_rate=8000, bpm=120.0)
        mixer.set_effect("delay", 1.0)
        mixer.render(int(8000 * 0.2))  # let the wet ramp settle
        mixer.set_loop_volume(0, 1.0)
        out = mixer.render(8000)
        self.assertTrue(np.all(np.isfinite(out)))

    def test_invalid_construction(self):
        with self.assertRaises(ValueError):
            Mixer(sample_rate=0)
        with self.assertRaises(ValueError):
            Mixer(bpm=-1.0)

    def test_counts(self):
        self.assertEqual(self.mixer.num_loops, 4)
        self.assertEqual(self.mixer.num_samples, 5)
        self.assertTrue(math.isclose(self.mixer.effect_value("filter"), 0.5))


if __name__ == "__main__":
    unittest.main()
