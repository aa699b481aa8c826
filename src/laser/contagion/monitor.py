from collections import Counter

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .shared import Phase

__all__ = ["PersonMonitor"]


class PersonMonitor:
    """
    Collects infection and death notifications and census snapshots for one run.

    Nothing in the disease engines reads back from the monitor; it only observes.
    """

    def __init__(self, model):
        self.model = model
        self.exposures = []  # (time, agent, location id, infector or -1)
        self.infections = []  # (time, agent)
        self.deaths = []  # (time, agent)
        self.transitions = []  # (time, agent, source phase name, target phase name)
        self.infections_by_location_type = Counter()
        self.census_times = []
        self.census_counts = []

        return

    @property
    def now(self) -> float:
        return self.model.scheduler.now

    def report_exposure(self, agent: int, location, infector) -> None:
        location_id = location.id if location is not None else -1
        self.exposures.append((self.now, int(agent), location_id, -1 if infector is None else int(infector)))
        if location is not None:
            self.infections_by_location_type[location.type.name] += 1

        return

    def report_infection(self, agent: int) -> None:
        self.infections.append((self.now, int(agent)))

        return

    def report_death(self, agent: int) -> None:
        self.deaths.append((self.now, int(agent)))

        return

    def report_transition(self, agent: int, source, target) -> None:
        self.transitions.append((self.now, int(agent), source.name, target.name))

        return

    def record_census(self) -> None:
        self.census_times.append(self.now)
        self.census_counts.append(self.model.census.snapshot())

        return

    def census_frame(self) -> pd.DataFrame:
        """Census snapshots as a DataFrame indexed by time (hours), one column per phase."""
        counts = np.array(self.census_counts, dtype=np.int64).reshape(-1, len(Phase))
        return pd.DataFrame(counts, index=pd.Index(self.census_times, name="time"), columns=[phase.name for phase in Phase])

    def exposure_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.exposures, columns=["time", "agent", "location", "infector"])

    def transition_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.transitions, columns=["time", "agent", "source", "target"])

    def plot(self):
        frame = self.census_frame()
        _fig, ax1 = plt.subplots()
        for phase in Phase:
            if phase is not Phase.SUSCEPTIBLE:
                ax1.plot(frame.index / 24.0, frame[phase.name], label=phase.name.replace("_", " ").title())
        ax1.set_xlabel("Day")
        ax1.set_ylabel("Agents")
        ax1.set_title("Agents by Disease Phase")
        ax1.legend(loc="upper left")

        ax2 = ax1.twinx()
        ax2.plot(frame.index / 24.0, frame[Phase.SUSCEPTIBLE.name], color="black", linestyle="--", label="Susceptible")
        ax2.set_ylabel("Susceptible")
        ax2.legend(loc="upper right")

        plt.show()

        return
