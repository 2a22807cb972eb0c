import math
import random
import unittest

from contracts.probe_result import ThroughputSample
from core.aggregator import Aggregator
from core.errors import InvalidInput


def sample(mbps, weight, label=""):
    return ThroughputSample(label=label, megabits_per_second=mbps, weight=weight)


class TestAggregator(unittest.TestCase):
    def setUp(self):
        self.aggregator = Aggregator()

    def test_weighted_mean_and_stddev(self):
        stat = self.aggregator.aggregate([sample(800, 10), sample(1600, 5)])
        self.assertAlmostEqual(stat.mean, (800 * 10 + 1600 * 5) / 15)
        self.assertAlmostEqual(stat.mean, 1066.6667, places=3)
        self.assertAlmostEqual(stat.stddev, math.sqrt(1280000 / 9), places=6)

    def test_single_sample(self):
        stat = self.aggregator.aggregate([sample(123.456, 7)])
        self.assertEqual(stat.mean, 123.456)
        self.assertEqual(stat.stddev, 0)

    def test_equal_weights_match_arithmetic_mean(self):
        values = [12.5, 90.0, 33.3, 47.1]
        stat = self.aggregator.aggregate([sample(v, 3) for v in values])
        self.assertAlmostEqual(stat.mean, sum(values) / len(values))

    def test_mean_within_sample_range(self):
        rng = random.Random(1234)
        for _ in range(50):
            samples = [
                sample(rng.uniform(0, 2000), rng.randint(1, 500))
                for _ in range(rng.randint(1, 6))
            ]
            values = [s.megabits_per_second for s in samples]
            stat = self.aggregator.aggregate(samples)
            self.assertGreaterEqual(stat.mean, min(values))
            self.assertLessEqual(stat.mean, max(values))
            self.assertGreaterEqual(stat.stddev, 0)

    def test_identical_values_stay_exact(self):
        for count in range(1, 12):
            for value in (0.1, 0.3, 812.7, 1e-3):
                with self.subTest(count=count, value=value):
                    stat = self.aggregator.aggregate(
                        [sample(value, 1) for _ in range(count)]
                    )
                    self.assertEqual(stat.mean, value)
                    self.assertEqual(stat.stddev, 0.0)

    def test_mean_within_range_for_near_equal_values(self):
        values = [0.1, 0.1, 0.1, 0.1 + 2**-55, 0.1, 0.1, 0.1]
        stat = self.aggregator.aggregate([sample(v, 1) for v in values])
        self.assertGreaterEqual(stat.mean, min(values))
        self.assertLessEqual(stat.mean, max(values))

    def test_zero_weight_samples_are_ignored(self):
        stat = self.aggregator.aggregate([sample(100, 4), sample(900, 0)])
        self.assertEqual(stat.mean, 100)
        self.assertEqual(stat.stddev, 0)

    def test_empty_samples_rejected(self):
        with self.assertRaises(InvalidInput):
            self.aggregator.aggregate([])

    def test_all_zero_weights_rejected(self):
        with self.assertRaises(InvalidInput):
            self.aggregator.aggregate([sample(100, 0), sample(200, 0)])

    def test_invalid_input_is_value_error(self):
        with self.assertRaises(ValueError):
            self.aggregator.aggregate([])


if __name__ == "__main__":
    unittest.main()
