"""Helpers that run groups of callables and gather their failures."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed


def err_exec(*functions: Callable[[], object]) -> None:
    """Run all functions concurrently and raise the first failure to occur."""
    if not functions:
        return
    first: BaseException | None = None
    with ThreadPoolExecutor(max_workers=len(functions)) as pool:
        futures = [pool.submit(function) for function in functions]
        for future in as_completed(futures):
            error = future.exception()
            if error is not None and first is None:
                first = error
    if first is not None:
        raise first


def err_exec_sequential(*functions: Callable[[], object]) -> None:
    """Run all functions in order and raise every failure together."""
    errors: list[Exception] = []
    for function in functions:
        try:
            function()
        except Exception as err:  # noqa: BLE001 - failures are collected
            errors.append(err)
    if errors:
        raise ExceptionGroup(f"{len(errors)} errors occurred", errors)


def err_exec_format(template: str, function: Callable[[], object]) -> Callable[[], None]:
    """Wrap function so that a failure is re-raised with a formatted message."""

    def wrapped() -> None:
        try:
            function()
        except Exception as err:
            raise RuntimeError(template.replace("%v", "%s") % (err,)) from err

    return wrapped