import threading

import pytest

from olake.errexec import err_exec, err_exec_format, err_exec_sequential


def test_err_exec_runs_all_functions():
    seen = []
    lock = threading.Lock()

    def make(n):
        def run():
            with lock:
                seen.append(n)
        return run

    err_exec(*(make(n) for n in range(5)))
    assert sorted(seen) == list(range(5))


def test_err_exec_raises_failure():
    def boom():
        raise KeyError("missing")

    with pytest.raises(KeyError):
        err_exec(lambda: None, boom)


def test_err_exec_sequential_collects_all_errors():
    calls = []

    def fail(message):
        def run():
            calls.append(message)
            raise ValueError(message)
        return run

    with pytest.raises(ExceptionGroup) as info:
        err_exec_sequential(fail("one"), lambda: calls.append("ok"), fail("two"))
    assert [str(e) for e in info.value.exceptions] == ["one", "two"]
    assert calls == ["one", "ok", "two"]


def test_err_exec_format_wraps_message():
    def fail():
        raise ValueError("bad input")

    wrapped = err_exec_format("failed to validate: %s", fail)
    with pytest.raises(RuntimeError, match="failed to validate: bad input") as info:
        wrapped()
    assert isinstance(info.value.__cause__, ValueError)


def test_err_exec_format_passes_through_success():
    calls = []
    wrapped = err_exec_format("oops: %v", lambda: calls.append(1))
    wrapped()
    assert calls == [1]