import numpy as np

from laser.contagion import Location
from laser.contagion import LocationType
from laser.contagion import Model
from laser.contagion.shared import Phase

__all__ = ["build_model", "make_ill", "room"]


def build_model(npeople=100, ages=None, validating=False, **overrides):
    """Model with `npeople` agents (all aged 40 unless `ages` is given) and parameter overrides."""
    if ages is None:
        ages = np.full(npeople, 40, dtype=np.int16)

    return Model(ages, params=overrides, validating=validating)


def make_ill(model, agent, phase=Phase.INFECTED_SYMPTOMATIC, exposure_time=0.0):
    """Put `agent` into an ill phase without scheduling anything, keeping the census consistent."""
    current = Phase(model.people.phase[agent])
    model.census.move(current, phase)
    model.people.phase[agent] = phase.value
    model.people.exposure_time[agent] = exposure_time

    return


def room(area=10.0, nsublocations=1, infect_in_sublocation=True, correction_factor_area=1.0, id=0):  # noqa: A002
    kind = LocationType("room", infect_in_sublocation=infect_in_sublocation, correction_factor_area=correction_factor_area)
    return Location(id, kind, area, nsublocations)
