import unittest

import numpy as np

from laser.contagion.infectiousness import RampCurve
from laser.contagion.infectiousness import ViralLoadCurve


class TestRampCurve(unittest.TestCase):
    def setUp(self):
        self.curve = RampCurve(3 * 24.0, 7 * 24.0, 14 * 24.0)

        return

    def test_shape(self):
        assert self.curve(0.0) == 0.0
        assert self.curve(3 * 24.0) == 0.0
        assert np.isclose(self.curve(5 * 24.0), 0.5)
        assert self.curve(7 * 24.0) == 1.0
        assert np.isclose(self.curve(10.5 * 24.0), 0.5)
        assert self.curve(14 * 24.0) == 0.0
        assert self.curve(15 * 24.0) == 0.0

        return

    def test_never_exposed_and_negative_elapsed(self):
        assert self.curve(np.inf) == 0.0
        assert self.curve(-1.0) == 0.0

        return

    def test_vectorized(self):
        elapsed = np.array([0.0, 5 * 24.0, 7 * 24.0, np.inf])
        values = self.curve(elapsed)
        assert isinstance(values, np.ndarray)
        assert np.allclose(values, [0.0, 0.5, 1.0, 0.0])
        assert np.all((values >= 0.0) & (values <= 1.0))

        return

    def test_invalid_parameters(self):
        with self.assertRaises(ValueError):
            RampCurve(5.0, 3.0, 10.0)
        with self.assertRaises(ValueError):
            RampCurve(1.0, 3.0, 3.0)
        with self.assertRaises(ValueError):
            RampCurve(-1.0, 3.0, 10.0)

        return


class TestViralLoadCurve(unittest.TestCase):
    def setUp(self):
        # latent 2 days, incubation 3.4 days, clinical 3 days
        self.curve = ViralLoadCurve(L=48.0, I=81.6, C=72.0, v_max=7.23, r=2.294, v0=4.0)

        return

    def test_load(self):
        assert self.curve.load(0.0) == 0.0
        assert self.curve.load(48.0) == 0.0
        assert np.isclose(self.curve.load(81.6), 7.23)
        assert np.isclose(self.curve.load((48.0 + 81.6) / 2), 7.23 / 2)
        assert np.isclose(self.curve.load(81.6 + 36.0), 7.23 / 2)
        assert self.curve.load(81.6 + 72.0) == 0.0
        assert self.curve.load(np.inf) == 0.0

        return

    def test_dose_response(self):
        assert np.isclose(self.curve.dose_response(4.0), 0.5)
        assert self.curve.dose_response(0.0) == 0.0
        peak = self.curve(81.6)
        assert np.isclose(peak, 1.0 / (1.0 + np.exp(-2.294 * (7.23 - 4.0))))
        assert 0.99 < peak < 1.0

        return

    def test_vectorized(self):
        values = self.curve(np.array([0.0, 81.6, np.inf]))
        assert values.shape == (3,)
        assert values[0] == 0.0
        assert values[1] > 0.99
        assert values[2] == 0.0

        return

    def test_invalid_parameters(self):
        with self.assertRaises(ValueError):
            ViralLoadCurve(L=5.0, I=4.0, C=3.0, v_max=7.0, r=2.0, v0=4.0)
        with self.assertRaises(ValueError):
            ViralLoadCurve(L=2.0, I=4.0, C=0.0, v_max=7.0, r=2.0, v0=4.0)
        with self.assertRaises(ValueError):
            ViralLoadCurve(L=2.0, I=4.0, C=3.0, v_max=0.0, r=2.0, v0=4.0)

        return


if __name__ == "__main__":
    unittest.main()
