"""
Infectiousness as a function of the time elapsed since exposure.

Two curve shapes are provided:

- ``RampCurve`` rises linearly from 0 at ``t_min`` to 1 at ``t_mode`` and falls linearly
  back to 0 at ``t_max``. Used by the area transmission model.
- ``ViralLoadCurve`` models a viral load rising from 0 at the end of the latent period
  ``L`` to ``v_max`` at the end of the incubation period ``I`` and falling back to 0 over the
  clinical period ``C``. The load is mapped to a transmission probability with the logistic
  dose-response ``1 / (1 + exp(-r (v - v0)))``. Used by the distance transmission model.

Both curves accept scalars or numpy arrays of elapsed times (hours) and return 0 outside
their support, including for agents never exposed (elapsed time ``inf``).
"""

import numba as nb
import numpy as np

__all__ = ["RampCurve", "ViralLoadCurve"]


@nb.njit(nogil=True, cache=True)
def nb_ramp(elapsed, t_min, t_mode, t_max, out):
    for i in range(len(elapsed)):
        t = elapsed[i]
        if t >= t_min and t < t_mode:
            out[i] = (t - t_min) / (t_mode - t_min)
        elif t >= t_mode and t <= t_max:
            out[i] = (t_max - t) / (t_max - t_mode)
        else:
            out[i] = 0.0

    return


@nb.njit(nogil=True, cache=True)
def nb_viral_load(elapsed, L, I, C, v_max, out):  # noqa: E741
    for i in range(len(elapsed)):
        t = elapsed[i]
        if t >= L and t < I:
            out[i] = v_max * (t - L) / (I - L)
        elif t >= I and t < I + C:
            out[i] = v_max * (I + C - t) / C
        else:
            out[i] = 0.0

    return


@nb.njit(nogil=True, cache=True)
def nb_dose_response(loads, r, v0, out):
    for i in range(len(loads)):
        v = loads[i]
        if v > 0.0:
            out[i] = 1.0 / (1.0 + np.exp(-r * (v - v0)))
        else:
            out[i] = 0.0

    return


def _as_elapsed(elapsed):
    scalar = np.ndim(elapsed) == 0
    return np.atleast_1d(np.asarray(elapsed, dtype=np.float64)), scalar


class RampCurve:
    """
    Piecewise-linear infectiousness ramp in [0, 1].

    Args:
        t_min (float): elapsed time at which an exposed agent first becomes contagious.
        t_mode (float): elapsed time of peak contagiousness.
        t_max (float): elapsed time after which the agent is no longer contagious.
    """

    def __init__(self, t_min: float, t_mode: float, t_max: float):
        if not (0.0 <= t_min <= t_mode < t_max):
            raise ValueError(f"RampCurve requires 0 <= t_min <= t_mode < t_max ({t_min=}, {t_mode=}, {t_max=})")
        self.t_min = float(t_min)
        self.t_mode = float(t_mode)
        self.t_max = float(t_max)

        return

    def __call__(self, elapsed):
        elapsed, scalar = _as_elapsed(elapsed)
        out = np.empty_like(elapsed)
        nb_ramp(elapsed, self.t_min, self.t_mode, self.t_max, out)

        return float(out[0]) if scalar else out


class ViralLoadCurve:
    """
    Viral load curve with logistic dose-response.

    Args:
        L (float): latent period; no viral load before ``L``.
        I (float): incubation period, includes ``L``; the load peaks at ``I``.
        C (float): clinical period after ``I`` over which the load drops back to 0.
        v_max (float): peak viral load.
        r (float): steepness of the dose-response.
        v0 (float): viral load at which the dose-response is 0.5.
    """

    def __init__(self, L: float, I: float, C: float, v_max: float, r: float, v0: float):  # noqa: E741
        if not (0.0 <= L <= I):
            raise ValueError(f"ViralLoadCurve requires 0 <= L <= I ({L=}, {I=})")
        if C <= 0.0:
            raise ValueError(f"ViralLoadCurve requires C > 0 ({C=})")
        if v_max <= 0.0:
            raise ValueError(f"ViralLoadCurve requires v_max > 0 ({v_max=})")
        self.L = float(L)
        self.I = float(I)
        self.C = float(C)
        self.v_max = float(v_max)
        self.r = float(r)
        self.v0 = float(v0)

        return

    def load(self, elapsed):
        elapsed, scalar = _as_elapsed(elapsed)
        out = np.empty_like(elapsed)
        nb_viral_load(elapsed, self.L, self.I, self.C, self.v_max, out)

        return float(out[0]) if scalar else out

    def dose_response(self, loads):
        loads, scalar = _as_elapsed(loads)
        out = np.empty_like(loads)
        nb_dose_response(loads, self.r, self.v0, out)

        return float(out[0]) if scalar else out

    def __call__(self, elapsed):
        return self.dose_response(self.load(elapsed))
