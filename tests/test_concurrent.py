import threading
import time

import pytest

from olake.concurrent import (
    CxGroup,
    concurrent,
    concurrent_functions,
    concurrent_in_group,
    concurrent_iter,
    yield_values,
)


class Tracker:
    def __init__(self):
        self.lock = threading.Lock()
        self.active = 0
        self.peak = 0
        self.seen = []

    def __call__(self, item, number=None):
        with self.lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
            self.seen.append((item, number))
        time.sleep(0.01)
        with self.lock:
            self.active -= 1


def test_concurrent_numbers_from_one():
    tracker = Tracker()
    items = ["a", "b", "c", "d"]
    concurrent(items, 2, tracker)
    assert sorted(tracker.seen) == list(zip(items, range(1, len(items) + 1)))


def test_concurrent_respects_limit():
    tracker = Tracker()
    concurrent(range(10), 2, tracker)
    assert tracker.peak <= 2
    assert len(tracker.seen) == 10


def test_concurrent_raises_first_error():
    def execute(item, number):
        if item == 3:
            raise ValueError("bad item")

    with pytest.raises(ValueError, match="bad item"):
        concurrent(range(5), 2, execute)


def test_concurrent_functions():
    results = []
    lock = threading.Lock()

    def add(n):
        with lock:
            results.append(n)

    concurrent_functions(*(lambda n=n: add(n) for n in range(4)))
    assert sorted(results) == list(range(4))


def test_concurrent_functions_error():
    def fail():
        raise RuntimeError("stop")

    with pytest.raises(RuntimeError, match="stop"):
        concurrent_functions(lambda: None, fail)


def test_yield_values_stops_on_exit():
    values = list(yield_values(lambda prev: (prev >= 5, prev + 1), 0))
    assert values == list(range(1, 6))


def test_concurrent_iter_with_generator():
    tracker = Tracker()
    concurrent_iter(yield_values(lambda prev: (prev >= 6, prev + 1), 0), 3, tracker)
    assert sorted(item for item, _ in tracker.seen) == list(range(1, 7))
    assert sorted(seq for _, seq in tracker.seen) == list(range(1, 7))
    assert tracker.peak <= 3


def test_concurrent_iter_propagates_iterator_error():
    def step(prev):
        if prev == 2:
            raise LookupError("source failed")
        return False, prev + 1

    tracker = Tracker()
    with pytest.raises(LookupError, match="source failed"):
        concurrent_iter(yield_values(step, 0), 2, tracker)
    assert sorted(item for item, _ in tracker.seen) == [1, 2]


def test_group_block_raises_and_sets_cancelled():
    group = CxGroup(2)

    def fail():
        raise KeyError("broken")

    group.add(lambda: None)
    group.add(fail)
    with pytest.raises(KeyError):
        group.block()
    assert group.cancelled.is_set()


def test_concurrent_in_group():
    group = CxGroup(3)
    collected = []
    lock = threading.Lock()

    def execute(item):
        with lock:
            collected.append(item)

    concurrent_in_group(group, ["x", "y", "z"], execute)
    group.block()
    assert sorted(collected) == ["x", "y", "z"]
    assert group.cancelled.is_set() is False