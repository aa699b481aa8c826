import unittest

import numpy as np
from scipy.stats import kstest

from laser.contagion.conditional import AgeBandedDuration
from laser.contagion.conditional import AgeBandedProbability
from laser.contagion.conditional import ConstantDuration
from laser.contagion.conditional import ConstantProbability
from laser.contagion.conditional import TriangularDuration
from laser.contagion.conditional import UniformDuration
from laser.contagion.conditional import parse_duration
from laser.contagion.conditional import parse_probability


class TestProbabilities(unittest.TestCase):
    def test_constant_from_number_and_string(self):
        for value in (0.46, "0.46", " 0.46 "):
            probability = parse_probability(value)
            assert isinstance(probability, ConstantProbability)
            assert probability(0) == 0.46
            assert probability(99) == 0.46

        return

    def test_age_bands_are_inclusive(self):
        probability = parse_probability("age{0-29: 0.02, 30-49: 0.1, 50-59: 0.3}")
        assert isinstance(probability, AgeBandedProbability)
        assert probability(0) == 0.02
        assert probability(29) == 0.02
        assert probability(30) == 0.1
        assert probability(49) == 0.1
        assert probability(59) == 0.3
        # ages outside every band fall back to the default
        assert probability(60) == 0.0
        assert probability(500) == 0.0

        return

    def test_bands_may_be_given_out_of_order(self):
        probability = AgeBandedProbability([(50, 59, 0.3), (0, 49, 0.1)], default=0.5)
        assert probability(10) == 0.1
        assert probability(55) == 0.3
        assert probability(60) == 0.5

        return

    def test_callable_passes_through(self):
        def fn(age):
            return 0.25

        assert parse_probability(fn) is fn

        return

    def test_rejects_bad_values(self):
        with self.assertRaises(ValueError):
            parse_probability(1.5)
        with self.assertRaises(ValueError):
            parse_probability("-0.1")
        with self.assertRaises(ValueError):
            parse_probability("often")
        with self.assertRaises(ValueError):
            parse_probability("age{0-29: 0.1, 20-40: 0.2}")  # overlap
        with self.assertRaises(ValueError):
            parse_probability("age{40-20: 0.1}")  # reversed
        with self.assertRaises(ValueError):
            parse_probability("age{0-29 0.1}")  # garbled
        with self.assertRaises(TypeError):
            parse_probability([0.1])

        return


class TestDurations(unittest.TestCase):
    def test_number_is_days(self):
        duration = parse_duration(3)
        assert isinstance(duration, ConstantDuration)
        assert duration.sample(np.random.default_rng(0)) == 72.0

        return

    def test_distribution_names_are_case_insensitive(self):
        assert isinstance(parse_duration("Triangular(2.5, 3.4, 3.8)"), TriangularDuration)
        assert isinstance(parse_duration("uniform(1, 2)"), UniformDuration)
        assert isinstance(parse_duration("CONSTANT(2)"), ConstantDuration)

        return

    def test_triangular_samples_match_distribution(self):
        """Samples of Triangular(2.5, 3.4, 3.8) days, in hours, follow the triangular distribution."""
        duration = parse_duration("Triangular(2.5, 3.4, 3.8)")
        prng = np.random.default_rng(20200301)
        samples = np.array([duration.sample(prng) for _ in range(5_000)])

        assert samples.min() >= 2.5 * 24
        assert samples.max() <= 3.8 * 24

        loc = 2.5 * 24
        scale = (3.8 - 2.5) * 24
        c = (3.4 - 2.5) / (3.8 - 2.5)
        _statistic, p_value = kstest(samples, "triang", args=(c, loc, scale))
        assert p_value > 0.01, f"KS test failed: p-value={p_value}"

        return

    def test_age_banded_duration(self):
        duration = parse_duration("age{0-59: Constant(1), 60-120: Uniform(5, 10)}", scale=1.0)
        assert isinstance(duration, AgeBandedDuration)
        prng = np.random.default_rng(1)
        assert duration.sample(prng, age=30) == 1.0
        assert 5.0 <= duration.sample(prng, age=75) <= 10.0
        with self.assertRaises(ValueError):
            duration.sample(prng, age=121)

        return

    def test_scaled(self):
        duration = parse_duration("Triangular(1, 2, 3)", scale=1.0).scaled(24.0)
        assert (duration.left, duration.mode, duration.right) == (24.0, 48.0, 72.0)

        return

    def test_object_with_sample_passes_through(self):
        duration = ConstantDuration(5.0)
        assert parse_duration(duration) is duration

        return

    def test_rejects_bad_values(self):
        with self.assertRaises(ValueError):
            parse_duration("Gamma(1, 2)")  # unknown distribution
        with self.assertRaises(ValueError):
            parse_duration("Triangular(1, 2)")  # wrong arity
        with self.assertRaises(ValueError):
            parse_duration("Triangular(3, 2, 1)")  # unordered
        with self.assertRaises(ValueError):
            parse_duration("Uniform(a, b)")
        with self.assertRaises(ValueError):
            parse_duration("a while")
        with self.assertRaises(ValueError):
            parse_duration(-1)
        with self.assertRaises(TypeError):
            parse_duration(None)

        return


if __name__ == "__main__":
    unittest.main()
