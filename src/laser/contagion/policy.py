import logging

import pandas as pd

__all__ = ["DiseasePolicy", "load_policies"]

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24.0

# Configuration key or bare name -> transmission parameter name
POLICY_PARAMETERS = {
    "dist_psi": "psi",
    "dist_mu": "mu",
    "psi": "psi",
    "mu": "mu",
}


class DiseasePolicy:
    """
    Change a transmission parameter at a fixed simulated time.

    Args:
        model: the model whose transmission engine is changed.
        time (float): absolute simulated time in hours.
        parameter (str): ``"dist_psi"``/``"psi"`` or ``"dist_mu"``/``"mu"``.
        value (float): the new value.

    Raises:
        ValueError: for a parameter name that no transmission model accepts.
    """

    def __init__(self, model, time: float, parameter: str, value: float):
        if parameter not in POLICY_PARAMETERS:
            raise ValueError(f"Unrecognized policy parameter {parameter!r} (known: {sorted(POLICY_PARAMETERS)})")
        self.model = model
        self.time = float(time)
        self.parameter = POLICY_PARAMETERS[parameter]
        self.value = float(value)
        self.applied = False

        model.scheduler.schedule_abs(self.time, self.apply)

        return

    def apply(self) -> None:
        self.applied = self.model.transmission.set_parameter(self.parameter, self.value)
        if self.applied:
            logger.info("DiseasePolicy changed parameter %s to %f at t=%.2f h", self.parameter, self.value, self.model.scheduler.now)
        else:
            logger.warning("DiseasePolicy could not change parameter %s to %f at t=%.2f h", self.parameter, self.value, self.model.scheduler.now)

        return

    def __repr__(self):
        return f"DiseasePolicy(time={self.time}, {self.parameter}={self.value})"


def load_policies(model, path) -> list:
    """
    Read disease policies from a CSV file with columns ``time`` (days), ``parameter`` and ``value``.

    An empty path means no policies.
    """
    if not path:
        return []

    frame = pd.read_csv(path, skipinitialspace=True)
    missing = {"time", "parameter", "value"} - set(frame.columns)
    if missing:
        raise ValueError(f"Disease policy file {path} is missing column(s) {sorted(missing)}")

    return [
        DiseasePolicy(model, row.time * HOURS_PER_DAY, str(row.parameter).strip(), row.value)
        for row in frame.itertuples(index=False)
    ]
