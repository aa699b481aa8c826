import math
import unittest

from laser.contagion.scheduler import EventScheduler


class TestEventScheduler(unittest.TestCase):
    def test_time_order(self):
        scheduler = EventScheduler()
        fired = []
        for time in (5.0, 1.0, 3.0, 2.0):
            scheduler.schedule_abs(time, lambda t=time: fired.append((t, scheduler.now)))

        assert scheduler.peek() == 1.0
        assert scheduler.run() == 4
        assert fired == [(1.0, 1.0), (2.0, 2.0), (3.0, 3.0), (5.0, 5.0)]
        assert scheduler.executed == 4
        assert scheduler.peek() == math.inf

        return

    def test_ties_fire_in_scheduling_order(self):
        scheduler = EventScheduler()
        fired = []
        for label in "abcde":
            scheduler.schedule_abs(2.0, fired.append, label)
        scheduler.run()
        assert fired == list("abcde")

        return

    def test_relative_and_nested_scheduling(self):
        scheduler = EventScheduler(start=10.0)
        fired = []

        def first():
            fired.append(("first", scheduler.now))
            scheduler.schedule_rel(2.5, second)
            scheduler.schedule_now(fired.append, ("now", scheduler.now))

        def second():
            fired.append(("second", scheduler.now))

        scheduler.schedule_rel(1.0, first)
        scheduler.run()
        assert fired == [("first", 11.0), ("now", 11.0), ("second", 13.5)]

        return

    def test_run_until(self):
        scheduler = EventScheduler()
        fired = []
        for time in (1.0, 2.0, 3.0):
            scheduler.schedule_abs(time, fired.append, time)

        assert scheduler.run(until=2.0) == 2
        assert fired == [1.0, 2.0]
        assert scheduler.now == 2.0
        assert scheduler.pending == 1

        # the clock moves to `until` even when nothing is due
        assert scheduler.run(until=2.5) == 0
        assert scheduler.now == 2.5

        assert scheduler.step()
        assert scheduler.now == 3.0
        assert not scheduler.step()

        return

    def test_rejects_past_events(self):
        scheduler = EventScheduler(start=5.0)
        with self.assertRaises(ValueError):
            scheduler.schedule_abs(4.0, print)
        with self.assertRaises(ValueError):
            scheduler.schedule_rel(-1.0, print)
        with self.assertRaises(ValueError):
            scheduler.schedule_abs(math.nan, print)
        assert len(scheduler) == 0

        return


if __name__ == "__main__":
    unittest.main()
