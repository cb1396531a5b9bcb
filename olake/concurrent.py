"""Bounded concurrent execution of callables with first-error propagation."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Iterator
from functools import partial
from typing import Any, TypeVar

T = TypeVar("T")


class CxGroup:
    """A group of tasks run in threads, at most `limit` at once (0 means unlimited).

    The first failure is remembered and raised by block(); `cancelled` is set
    as soon as a task fails.
    """

    def __init__(self, limit: int = 0) -> None:
        self._slots = threading.BoundedSemaphore(limit) if limit > 0 else None
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._error: BaseException | None = None
        self.cancelled = threading.Event()

    def add(self, execute: Callable[[], Any]) -> None:
        """Schedule execute, waiting for a free slot if the group is full."""
        if self._slots is not None:
            self._slots.acquire()
        thread = threading.Thread(target=self._run, args=(execute,), daemon=True)
        with self._lock:
            self._threads.append(thread)
        thread.start()

    def _run(self, execute: Callable[[], Any]) -> None:
        try:
            execute()
        except Exception as err:  # noqa: BLE001 - re-raised from block()
            with self._lock:
                if self._error is None:
                    self._error = err
            self.cancelled.set()
        finally:
            if self._slots is not None:
                self._slots.release()

    def block(self) -> None:
        """Wait for every scheduled task and raise the first failure, if any."""
        while True:
            with self._lock:
                pending, self._threads = self._threads, []
            if not pending:
                break
            for thread in pending:
                thread.join()
        with self._lock:
            error = self._error
        if error is not None:
            raise error


def concurrent(
    items: Iterable[T], concurrency: int, execute: Callable[[T, int], Any]
) -> None:
    """Run execute(item, number) for every item, numbering from 1, at most concurrency at once."""
    group = CxGroup(concurrency)
    for number, item in enumerate(items, start=1):
        if group.cancelled.is_set():
            break
        group.add(partial(execute, item, number))
    group.block()


def concurrent_functions(*functions: Callable[[], Any]) -> None:
    """Run all functions concurrently and raise the first failure."""
    group = CxGroup()
    for function in functions:
        group.add(function)
    group.block()


def concurrent_iter(
    values: Iterable[T], concurrency: int, execute: Callable[[T, int], Any]
) -> None:
    """Consume values lazily, running execute(value, sequence) for each.

    An error raised by the iterator itself is raised once running tasks finish.
    """
    group = CxGroup(concurrency)
    iterator = iter(values)
    sequence = 0
    while not group.cancelled.is_set():
        try:
            value = next(iterator)
        except StopIteration:
            break
        except Exception:
            try:
                group.block()
            except Exception:  # noqa: BLE001 - the iterator's error takes precedence
                pass
            raise
        sequence += 1
        group.add(partial(execute, value, sequence))
    group.block()


def yield_values(step: Callable[[T], tuple[bool, T]], initial: T) -> Iterator[T]:
    """Generate values by calling step(previous) until it reports exit."""
    previous = initial
    while True:
        done, value = step(previous)
        if done:
            return
        yield value
        previous = value


def concurrent_in_group(
    group: CxGroup, items: Iterable[T], execute: Callable[[T], Any]
) -> None:
    """Schedule execute(item) for every item on an existing group."""
    for item in items:
        group.add(partial(execute, item))