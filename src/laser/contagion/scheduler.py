"""
Minimal discrete-event scheduler.

Events are kept in a priority queue keyed on ``(time, sequence)`` so that callbacks fire
in non-decreasing simulated time and, for equal times, in the order they were scheduled.
Simulated time is in hours.
"""

import heapq
import math

__all__ = ["EventScheduler"]


class EventScheduler:
    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue = []
        self._sequence = 0
        self.executed = 0

        return

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return len(self._queue)

    def __len__(self):
        return len(self._queue)

    def schedule_abs(self, time: float, callback, *args) -> bool:
        """Schedule ``callback(*args)`` at absolute simulated ``time``."""
        if math.isnan(time) or time < self._now:
            raise ValueError(f"Cannot schedule an event in the past ({time=}, now={self._now})")
        heapq.heappush(self._queue, (float(time), self._sequence, callback, args))
        self._sequence += 1

        return True

    def schedule_rel(self, delay: float, callback, *args) -> bool:
        """Schedule ``callback(*args)`` ``delay`` hours from now."""
        if delay < 0.0:
            raise ValueError(f"Cannot schedule an event with negative delay ({delay=})")

        return self.schedule_abs(self._now + delay, callback, *args)

    def schedule_now(self, callback, *args) -> bool:
        return self.schedule_abs(self._now, callback, *args)

    def peek(self) -> float:
        """Time of the next event, ``inf`` when the queue is empty."""
        return self._queue[0][0] if self._queue else math.inf

    def step(self) -> bool:
        """Execute the next event. Returns False when there was nothing to execute."""
        if not self._queue:
            return False
        time, _sequence, callback, args = heapq.heappop(self._queue)
        self._now = time
        callback(*args)
        self.executed += 1

        return True

    def run(self, until: float = math.inf) -> int:
        """
        Execute events with time <= ``until``.

        The clock is advanced to ``until`` afterwards (when finite) so that events
        scheduled from outside continue from there.

        Returns:
            int: number of events executed.
        """
        count = 0
        while self._queue and self._queue[0][0] <= until:
            self.step()
            count += 1
        if math.isfinite(until) and until > self._now:
            self._now = float(until)

        return count
