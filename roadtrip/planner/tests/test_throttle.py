from django.test import SimpleTestCase

from roadtrip.planner.throttle import ThrottledTask


class FakeTime:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def clock(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class ThrottledTaskTests(SimpleTestCase):

    def setUp(self):
        self.time = FakeTime()

    def _task(self, items, interval=1.0):
        return ThrottledTask(items, interval, clock=self.time.clock, sleep=self.time.sleep)

    def test_consecutive_steps_are_spaced(self):
        stamps = [self.time.now for _ in self._task(range(4))]

        self.assertEqual(stamps, [0.0, 1.0, 2.0, 3.0])
        self.assertEqual(self.time.sleeps, [1.0, 1.0, 1.0])

    def test_processing_time_counts_towards_the_gap(self):
        task = self._task(["a", "b", "c"])
        seen = []

        for item in task:
            seen.append(item)
            self.time.now += 0.75

        self.assertEqual(seen, ["a", "b", "c"])
        self.assertEqual(self.time.sleeps, [0.25, 0.25])
        self.assertEqual(task.steps, 3)

    def test_slow_steps_do_not_sleep(self):
        for _ in self._task(range(3)):
            self.time.now += 2.0

        self.assertEqual(self.time.sleeps, [])

    def test_rejects_negative_interval(self):
        with self.assertRaises(ValueError):
            ThrottledTask([], -1)
