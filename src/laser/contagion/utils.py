import functools
import time
from typing import ClassVar

import numpy as np
from laser.core import PropertySet

from .shared import Phase

__all__ = ["TimingStats", "check_census", "get_default_parameters", "get_param", "validate"]


def get_default_parameters() -> PropertySet:
    """
    Reference parameter set.

    Durations are in days (converted to hours when the model is built), calculation
    thresholds in seconds, and fractions are numbers or ``age{lo-hi: p, ...}`` maps.
    """
    return PropertySet(
        {
            "seed": 20200301,
            "verbose": False,
            "transmission_model": "area",
            "until": 120 * 24.0,
            "census_interval": 24.0,
            "policy_file": "",
            # progression
            "fraction_asymptomatic": 0.46,
            "incubation_period_asymptomatic": "Triangular(2.5, 3.4, 3.8)",
            "incubation_period_symptomatic": "Triangular(2.5, 3.4, 3.8)",
            "period_asymptomatic_to_recovered": "Triangular(7, 12, 14)",
            "fraction_symptomatic_to_hospitalized": "age{0-29: 0.02, 30-49: 0.1, 50-59: 0.3, 60-79: 0.6, 80-120: 0.2}",
            "period_symptomatic_to_hospitalized": "Triangular(5, 7.5, 10)",
            "period_symptomatic_to_recovered": "Triangular(5, 7.5, 10)",
            "fraction_hospitalized_to_icu": "age{0-29: 0.05, 30-49: 0.02, 50-59: 0.05, 60-79: 0.15, 80-120: 0.0}",
            "fraction_hospitalized_to_dead": 0.0,
            "period_hospitalized_to_icu": "Triangular(3, 8, 14)",
            "period_hospitalized_to_dead": "Triangular(3, 8, 14)",
            "period_hospitalized_to_recovered": "Triangular(3, 8, 14)",
            "fraction_icu_to_dead": "age{0-49: 0, 50-59: 0.015, 60-69: 0.08, 70-79: 0.4, 80-120: 0.6}",
            "period_icu_to_dead": "Triangular(1, 14, 30)",
            "period_icu_to_recovered": "Triangular(10, 14, 30)",
            # area transmission model
            "area_contagiousness": 0.5,
            "area_beta": 1.0,
            "area_t_e_min": 3.0,
            "area_t_e_mode": 7.0,
            "area_t_e_max": 14.0,
            "area_calculation_threshold": 60.0,
            # distance transmission model
            "dist_L": 2.0,
            "dist_I": 3.4,
            "dist_C": 3.0,
            "dist_v_max": 7.23,
            "dist_v_0": 4.0,
            "dist_r": 2.294,
            "dist_psi": 3.0,
            "dist_alpha": 5.0,
            "dist_mu": 0.0,
            "dist_calculation_threshold": 60.0,
            # initial infections
            "number_infected": 0,
            "min_age_infected": 0,
            "max_age_infected": 120,
        }
    )


def get_param(params, key: str):
    value = getattr(params, key, None)
    if value is None:
        raise KeyError(f"Missing model parameter '{key}'")

    return value


def check_census(model) -> None:
    """Assert that the census matches the phases recorded on the people frame."""
    phases = model.people.phase[: model.people.count]
    counted = np.bincount(phases, minlength=len(Phase))
    assert model.census.total == model.people.count, f"Census total {model.census.total} != population {model.people.count}"
    assert np.array_equal(counted, model.census.counts), f"Census {model.census.to_dict()} disagrees with agent phases {counted}"

    return


def validate(pre, post):
    """
    Decorator adding pre- and post-validation to a method.

    The validation methods are called with the method's arguments when either the
    owning component or its model has ``validating`` set.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            validating = getattr(self, "validating", False) or getattr(self.model, "validating", False)
            if pre and validating:
                with TimingStats.start(pre.__name__):
                    getattr(self, pre.__name__)(*args, **kwargs)
            result = func(self, *args, **kwargs)
            if post and validating:
                with TimingStats.start(post.__name__):
                    getattr(self, post.__name__)(*args, **kwargs)
            return result

        return wrapper

    return decorator


class TimingContext:
    """One labelled node in the timing tree; re-entered contexts accumulate."""

    def __init__(self, label: str, stats: "_TimingStats", parent: dict) -> None:
        self.label = label
        self.stats = stats
        self.parent = parent
        self.children = {}
        self.ncalls = 0
        self.elapsed = 0
        self._start = 0

        return

    def __enter__(self):
        self.ncalls += 1
        self.stats._enter(self)
        self._start = time.perf_counter_ns()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed += time.perf_counter_ns() - self._start
        self.stats._exit(self)

        return

    @property
    def exclusive(self) -> int:
        return self.elapsed - sum(child.elapsed for child in self.children.values())


class _TimingStats:
    """Nested wall-clock timers, e.g. ``with TimingStats.start("transmission"): ...``."""

    _scale_factors: ClassVar[dict[str, float]] = {"ns": 1, "us": 1e3, "ms": 1e6, "s": 1e9}

    def __init__(self) -> None:
        self.context = {}
        self.root = TimingContext("root", self, self.context)
        self.context = self.root.children

        return

    def start(self, label: str) -> TimingContext:
        if label not in self.context:
            self.context[label] = TimingContext(label, self, self.context)

        return self.context[label]

    def _enter(self, context: TimingContext) -> None:
        self.context = context.children
        return

    def _exit(self, context: TimingContext) -> None:
        self.context = context.parent
        return

    def to_string(self, scale: str = "ms") -> str:
        assert scale in self._scale_factors, f"Unknown time scale '{scale}'"
        factor = self._scale_factors[scale]
        lines = []

        def _recurse(node: TimingContext, depth: int) -> None:
            average = node.elapsed / node.ncalls / factor if node.ncalls else 0.0
            lines.append(
                f"{'    ' * depth}{node.label}: {node.ncalls} calls, total {node.elapsed / factor:.3f} {scale}, "
                f"avg {average:.3f} {scale}, excl {node.exclusive / factor:.3f} {scale}"
            )
            for child in node.children.values():
                _recurse(child, depth + 1)

            return

        for child in self.root.children.values():
            _recurse(child, 0)

        return "\n".join(lines)


TimingStats = _TimingStats()
