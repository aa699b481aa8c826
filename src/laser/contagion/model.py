from laser.contagion.utils import TimingStats as ts  # noqa: I001

import warnings

import numpy as np
from laser.core import LaserFrame
from laser.core import PropertySet

from .monitor import PersonMonitor
from .policy import DiseasePolicy
from .policy import load_policies
from .progression import ProgressionStateMachine
from .scheduler import EventScheduler
from .shared import Phase
from .shared import PhaseCensus
from .transmission import create_transmission
from .utils import get_default_parameters

__all__ = ["Model"]


class Model:
    """
    One simulation run: the people, their disease phases and the two disease engines.

    Args:
        ages (array-like): age in years of every agent; agent ids are indices into this array.
        params (PropertySet | dict): overrides for ``get_default_parameters()``.
        validating (bool): check census consistency around every phase transition.

    The activity engine reports co-location through ``contact()``; everything else is
    driven by the event scheduler in ``run()``.
    """

    def __init__(self, ages, params=None, validating=False):
        with ts.start("Model.__init__()"):
            self.params = _merge_parameters(params)
            self.validating = validating

            ages = np.asarray(ages)
            if ages.ndim != 1 or len(ages) == 0:
                raise ValueError("ages must be a non-empty 1D array")
            if np.any(ages < 0):
                raise ValueError("ages must be non-negative")

            npeople = len(ages)
            self.people = LaserFrame(capacity=npeople, initial_count=npeople)
            self.people.add_scalar_property("age", dtype=np.int16)
            self.people.add_scalar_property("phase", dtype=np.int8, default=Phase.SUSCEPTIBLE.value)
            self.people.add_scalar_property("exposure_time", dtype=np.float64, default=-np.inf)
            self.people.add_scalar_property("generation", dtype=np.int32, default=0)
            self.people.age[:] = ages

            self.census = PhaseCensus(npeople)
            self.prng = np.random.default_rng(self.params.seed)
            self.scheduler = EventScheduler()
            self.monitor = PersonMonitor(self)
            self.progression = ProgressionStateMachine(self)
            self.transmission = create_transmission(self, self.params.transmission_model)

            self.policies = load_policies(self, getattr(self.params, "policy_file", ""))

            if self.params.number_infected > 0:
                self.seed_infections(self.params.number_infected, self.params.min_age_infected, self.params.max_age_infected)

        return

    @property
    def now(self) -> float:
        return self.scheduler.now

    def contact(self, location, agent_ids, duration: float):
        """
        Agents ``agent_ids`` spent ``duration`` hours together at ``location``.

        For transmission models that only report who got exposed, the exposure time is
        set, the exposure reported and progression started here.

        Returns:
            InfectionRecord: the transmission engine's record of the calculation.
        """
        with ts.start("transmission"):
            record = self.transmission.infect(location, agent_ids, duration)

        if not self.transmission.applies_exposure:
            for agent in record.exposed:
                self.people.exposure_time[agent] = self.now
                self.monitor.report_exposure(agent, location, record.infector)
                self.progression.expose(int(agent))

        return record

    def seed_infections(self, count: int, min_age: int = 0, max_age: int = 200) -> np.ndarray:
        """
        Expose ``count`` randomly chosen susceptible agents aged ``min_age`` to ``max_age`` (inclusive) now.

        Returns:
            np.ndarray: ids of the exposed agents.
        """
        phases = self.people.phase[: self.people.count]
        ages = self.people.age[: self.people.count]
        candidates = np.nonzero((phases == Phase.SUSCEPTIBLE.value) & (ages >= min_age) & (ages <= max_age))[0]
        if count > len(candidates):
            raise ValueError(f"Cannot seed {count} infections, only {len(candidates)} susceptible agents aged {min_age}-{max_age}")

        seeds = self.prng.choice(candidates, size=count, replace=False)
        for agent in seeds:
            self.people.exposure_time[agent] = self.now
            self.progression.expose(int(agent))

        return seeds

    def add_policy(self, time: float, parameter: str, value: float) -> DiseasePolicy:
        """Schedule a transmission parameter change at absolute time ``time`` (hours)."""
        policy = DiseasePolicy(self, time, parameter, value)
        self.policies.append(policy)

        return policy

    def run(self, until: float = None) -> None:
        """Process scheduled events up to ``until`` hours (default ``params.until``), recording the census daily."""
        until = float(self.params.until if until is None else until)
        interval = float(self.params.census_interval)

        def _record():
            self.monitor.record_census()
            if self.now + interval <= until:
                self.scheduler.schedule_rel(interval, _record)

            return

        with ts.start("Model.run()"):
            self.scheduler.schedule_now(_record)
            self.scheduler.run(until)

        if self.params.verbose:
            print(ts.to_string())

        return


def _merge_parameters(params) -> PropertySet:
    merged = get_default_parameters().to_dict()
    if params is None:
        return PropertySet(merged)

    overrides = params.to_dict() if isinstance(params, PropertySet) else dict(params)
    unexpected = set(overrides) - set(merged)
    if unexpected:
        warnings.warn(f"Unexpected model parameters (passed through): {sorted(unexpected)}", stacklevel=3)
    merged.update(overrides)

    return PropertySet(merged)
