"""
Force-of-infection engines.

Both engines are called with a location, the ids of the agents present in one of its
sub-locations (or in the whole location when the location type computes infection over
the whole location) and the time in hours these agents spent together.

``AreaTransmission`` only reports who got exposed; its caller writes the exposure time and
triggers progression. ``DistanceTransmission`` writes the exposure time, reports the
exposure and calls ``progression.expose()`` itself.
"""

import logging
import math

import numpy as np

from .infectiousness import RampCurve
from .infectiousness import ViralLoadCurve
from .shared import DiseaseState
from .shared import phase_mask
from .utils import get_param

__all__ = [
    "TRANSMISSION_MODELS",
    "AreaTransmission",
    "DistanceTransmission",
    "InfectionRecord",
    "Location",
    "LocationType",
    "create_transmission",
]

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24.0
SECONDS_PER_HOUR = 3600.0


class LocationType:
    """
    Args:
        name (str): location type name, used when tallying infections.
        infect_in_sublocation (bool): compute infection per sub-location (True) or over the whole location.
        correction_factor_area (float): sigma_T, ventilation and distancing correction making the
            location behave as larger (< 1) or smaller (> 1) than it is.
    """

    def __init__(self, name: str, infect_in_sublocation: bool = True, correction_factor_area: float = 1.0):
        if correction_factor_area <= 0.0:
            raise ValueError(f"Location type {name!r} needs a positive area correction factor ({correction_factor_area=})")
        self.name = name
        self.infect_in_sublocation = bool(infect_in_sublocation)
        self.correction_factor_area = float(correction_factor_area)

        return

    def __repr__(self):
        return f"LocationType({self.name!r})"


class Location:
    def __init__(self, id: int, type: LocationType, area: float, nsublocations: int = 1):  # noqa: A002
        if area <= 0.0:
            raise ValueError(f"Location {id} must have a positive area ({area=})")
        if nsublocations < 1:
            raise ValueError(f"Location {id} must have at least one sub-location ({nsublocations=})")
        self.id = int(id)
        self.type = type
        self.area = float(area)
        self.nsublocations = int(nsublocations)

        return

    @property
    def per_sublocation(self) -> bool:
        # A single sub-location is always computed in place.
        return self.type.infect_in_sublocation or self.nsublocations < 2

    @property
    def effective_area(self) -> float:
        return self.area / self.nsublocations if self.per_sublocation else self.area

    def __repr__(self):
        return f"Location({self.id}, {self.type.name!r}, area={self.area}, nsublocations={self.nsublocations})"


class InfectionRecord:
    """Outcome of one ``infect()`` call."""

    def __init__(self, location: Location):
        self.location = location
        self.calculated = False
        self.probability = 0.0
        self.infectious = np.empty(0, dtype=np.int64)
        self.exposed = np.empty(0, dtype=np.int64)
        self.infector = None

        return

    def __repr__(self):
        return (
            f"InfectionRecord(location={self.location.id}, calculated={self.calculated}, "
            f"infectious={len(self.infectious)}, exposed={len(self.exposed)})"
        )


def _as_ids(agent_ids) -> np.ndarray:
    """Distinct agent ids as an int64 array; an agent listed twice is present once."""
    if isinstance(agent_ids, (set, frozenset)):
        agent_ids = np.fromiter(agent_ids, dtype=np.int64, count=len(agent_ids))
    elif not isinstance(agent_ids, np.ndarray):
        agent_ids = list(agent_ids)

    return np.unique(np.asarray(agent_ids, dtype=np.int64))


class AreaTransmission:
    """
    Exponential dose model scaled by the shared area.

    For the infectious agents j present in (sub)location K::

        p_infection = 1 - exp(-beta * p_B * t / (sigma_T * A_K) * sum_j p_j(t_e))

    where ``p_B`` is the base contagiousness, ``beta`` the personal protection factor,
    ``t`` the time spent together (hours), ``sigma_T`` the location type correction, ``A_K``
    the area of the (sub)location and ``p_j(t_e)`` the ramp infectiousness of agent j at its
    time since exposure. With p_B = -10 ln(0.95), one infectious agent at peak and one
    susceptible agent spending one hour in 10 m² give p = 0.05; 5 m² gives p = 0.0975 and
    beta = 0.5 gives p = 0.0253.
    """

    applies_exposure = False

    def __init__(self, model, curve=None):
        self.model = model
        params = model.params
        self.contagiousness = float(get_param(params, "area_contagiousness"))
        self.beta = float(get_param(params, "area_beta"))
        if not (0.0 <= self.beta <= 1.0):
            raise ValueError(f"area_beta must be in [0, 1] ({self.beta=})")
        if self.contagiousness < 0.0:
            raise ValueError(f"area_contagiousness must be non-negative ({self.contagiousness=})")
        self.calculation_threshold = float(get_param(params, "area_calculation_threshold")) / SECONDS_PER_HOUR
        self.curve = (
            curve
            if curve is not None
            else RampCurve(
                float(get_param(params, "area_t_e_min")) * HOURS_PER_DAY,
                float(get_param(params, "area_t_e_mode")) * HOURS_PER_DAY,
                float(get_param(params, "area_t_e_max")) * HOURS_PER_DAY,
            )
        )

        return

    def set_parameter(self, name: str, value: float) -> bool:
        logger.error("Unrecognized parameter name %r for the area transmission model", name)
        return False

    def infect(self, location: Location, agent_ids, duration: float) -> InfectionRecord:
        record = InfectionRecord(location)

        # Very short contacts carry no risk; skipping them keeps busy locations cheap.
        if duration < self.calculation_threshold:
            return record
        record.calculated = True

        factor = -self.beta * self.contagiousness * duration / (location.type.correction_factor_area * location.effective_area)
        if factor == 0.0:
            return record

        people = self.model.people
        agents = _as_ids(agent_ids)
        phases = people.phase[agents]
        ill = agents[phase_mask(phases, DiseaseState.ILL)]
        if len(ill) == 0:
            return record
        record.infectious = ill

        elapsed = self.model.scheduler.now - people.exposure_time[ill]
        contribution = float(np.sum(self.curve(elapsed)))
        if contribution == 0.0:
            return record

        record.probability = -math.expm1(factor * contribution)
        susceptible = agents[phase_mask(phases, DiseaseState.SUSCEPTIBLE)]
        draws = self.model.prng.random(len(susceptible))
        record.exposed = susceptible[draws < record.probability]

        return record


class DistanceTransmission:
    """
    Distance and viral load model.

    For the infectious agents j present in (sub)location k::

        p_infection = 1 - exp(-sum_j (1 - mu)^2 * alpha * sigma(max(Delta, psi)) * t * P_j(t_e))
        Delta = sqrt(A_k / N_k)
        sigma(d) = 1 - 1 / (1 + exp(-3 (d - 1.5)))

    ``sigma`` is ~1 at 0 m, 0.5 at 1.5 m and ~0 at 3 m; ``psi`` is the minimum distance
    people keep, ``mu`` the mask effectiveness in [0, 1], ``alpha`` a calibration factor and
    ``P_j`` the viral load dose-response of agent j.
    """

    PARAMETERS = ("psi", "mu")
    applies_exposure = True

    def __init__(self, model, curve=None):
        self.model = model
        params = model.params
        self.psi = float(get_param(params, "dist_psi"))
        self.alpha = float(get_param(params, "dist_alpha"))
        self.mu = float(get_param(params, "dist_mu"))
        if self.psi < 0.0 or self.alpha < 0.0:
            raise ValueError(f"dist_psi and dist_alpha must be non-negative ({self.psi=}, {self.alpha=})")
        if not (0.0 <= self.mu <= 1.0):
            raise ValueError(f"dist_mu must be in [0, 1] ({self.mu=})")
        self.calculation_threshold = float(get_param(params, "dist_calculation_threshold")) / SECONDS_PER_HOUR
        self.curve = (
            curve
            if curve is not None
            else ViralLoadCurve(
                L=float(get_param(params, "dist_L")) * HOURS_PER_DAY,
                I=float(get_param(params, "dist_I")) * HOURS_PER_DAY,
                C=float(get_param(params, "dist_C")) * HOURS_PER_DAY,
                v_max=float(get_param(params, "dist_v_max")),
                r=float(get_param(params, "dist_r")),
                v0=float(get_param(params, "dist_v_0")),
            )
        )

        return

    def set_parameter(self, name: str, value: float) -> bool:
        if name not in self.PARAMETERS:
            logger.error("Unrecognized parameter name %r for the distance transmission model", name)
            return False
        if name == "mu" and not (0.0 <= value <= 1.0):
            logger.error("Ignoring mu=%r, mask effectiveness must be in [0, 1]", value)
            return False
        if name == "psi" and value < 0.0:
            logger.error("Ignoring psi=%r, social distancing must be non-negative", value)
            return False
        setattr(self, name, float(value))

        return True

    def distance(self, location: Location, npresent: int) -> float:
        """Mean spacing between the agents present, floored by the social distancing parameter."""
        return max(math.sqrt(location.effective_area / npresent), self.psi)

    @staticmethod
    def sigma(distance: float) -> float:
        return 1.0 - 1.0 / (1.0 + math.exp(-3.0 * (distance - 1.5)))

    def infect(self, location: Location, agent_ids, duration: float) -> InfectionRecord:
        record = InfectionRecord(location)

        if duration < self.calculation_threshold:
            return record
        record.calculated = True

        agents = _as_ids(agent_ids)
        if len(agents) == 0:
            return record

        factor = self.sigma(self.distance(location, len(agents))) * self.alpha * (1.0 - self.mu) ** 2
        if factor == 0.0:
            return record

        people = self.model.people
        now = self.model.scheduler.now
        phases = people.phase[agents]
        ill = agents[phase_mask(phases, DiseaseState.ILL)]
        if len(ill) == 0:
            return record
        record.infectious = ill

        loads = self.curve.load(now - people.exposure_time[ill])
        total = factor * duration * float(np.sum(self.curve.dose_response(loads)))
        if total == 0.0:
            return record

        # First agent with the highest load, for attribution.
        record.infector = int(ill[np.argmax(loads)])
        record.probability = -math.expm1(-total)

        susceptible = agents[phase_mask(phases, DiseaseState.SUSCEPTIBLE)]
        draws = self.model.prng.random(len(susceptible))
        record.exposed = susceptible[draws < record.probability]

        progression = self.model.progression
        monitor = self.model.monitor
        for agent in record.exposed:
            people.exposure_time[agent] = now
            monitor.report_exposure(agent, location, record.infector)
            progression.expose(int(agent))

        return record


TRANSMISSION_MODELS = {
    "area": AreaTransmission,
    "distance": DistanceTransmission,
}


def create_transmission(model, name: str, **kwargs):
    """Instantiate the transmission model registered under ``name``."""
    if name not in TRANSMISSION_MODELS:
        raise ValueError(f"Unknown transmission model {name!r} (known: {sorted(TRANSMISSION_MODELS)})")

    return TRANSMISSION_MODELS[name](model, **kwargs)
