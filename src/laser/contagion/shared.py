from enum import Enum

import numpy as np

__all__ = ["ABSORBING", "DISEASE_STATE", "ILL_PHASES", "DiseaseState", "Phase", "PhaseCensus", "phase_mask"]


class DiseaseState(Enum):
    SUSCEPTIBLE = 0
    ILL = 1
    RECOVERED = 2
    DEAD = 3


class Phase(Enum):
    SUSCEPTIBLE = 0
    EXPOSED = 1
    INFECTED_ASYMPTOMATIC = 2
    INFECTED_SYMPTOMATIC = 3
    HOSPITALIZED = 4
    ICU = 5
    RECOVERED = 6
    DEAD = 7

    def __new__(cls, value):
        obj = object.__new__(cls)
        obj._value_ = np.int8(value)
        return obj

    @property
    def state(self) -> DiseaseState:
        return DISEASE_STATE[self]

    @property
    def absorbing(self) -> bool:
        return self in ABSORBING


DISEASE_STATE = {
    Phase.SUSCEPTIBLE: DiseaseState.SUSCEPTIBLE,
    Phase.EXPOSED: DiseaseState.ILL,
    Phase.INFECTED_ASYMPTOMATIC: DiseaseState.ILL,
    Phase.INFECTED_SYMPTOMATIC: DiseaseState.ILL,
    Phase.HOSPITALIZED: DiseaseState.ILL,
    Phase.ICU: DiseaseState.ILL,
    Phase.RECOVERED: DiseaseState.RECOVERED,
    Phase.DEAD: DiseaseState.DEAD,
}

ILL_PHASES = tuple(phase for phase, state in DISEASE_STATE.items() if state is DiseaseState.ILL)
ABSORBING = (Phase.RECOVERED, Phase.DEAD)

# phase value -> DiseaseState value, for vectorized eligibility checks on the people frame
_STATE_LUT = np.array([DISEASE_STATE[phase].value for phase in Phase], dtype=np.int8)


def phase_mask(phases: np.ndarray, state: DiseaseState) -> np.ndarray:
    """Boolean mask of the entries of `phases` (int8 phase values) belonging to `state`."""
    return _STATE_LUT[phases] == state.value


class PhaseCensus:
    """
    Live count of agents per phase for one simulation run.

    The census is created once per run and is the only place phase counts are kept, so
    every transition must go through `move()` to keep the total equal to the population size.
    """

    def __init__(self, population: int):
        self.counts = np.zeros(len(Phase), dtype=np.int64)
        self.counts[Phase.SUSCEPTIBLE.value] = population

        return

    def __getitem__(self, phase: Phase) -> int:
        return int(self.counts[phase.value])

    @property
    def total(self) -> int:
        return int(self.counts.sum())

    def move(self, source: Phase, target: Phase) -> None:
        assert self.counts[source.value] > 0, f"No agents left in {source.name} to move to {target.name}"
        self.counts[source.value] -= 1
        self.counts[target.value] += 1

        return

    def to_dict(self) -> dict:
        return {phase.name: int(self.counts[phase.value]) for phase in Phase}

    def snapshot(self) -> np.ndarray:
        return self.counts.copy()
