import queue

from olake.safego import DEFAULT_RESTART_TIMEOUT, Execution, run, safe_insert


class ClosedQueue:
    def put(self, value):
        raise RuntimeError("closed")


def test_run_executes_function():
    seen = []
    execution = run(lambda: seen.append("done"))
    assert execution.join(timeout=5)
    assert seen == ["done"]


def test_failure_goes_to_handler_without_restart():
    errors = []
    attempts = []

    def failing():
        attempts.append(1)
        raise ValueError("boom")

    execution = Execution(failing, recover_handler=errors.append).start()
    assert execution.join(timeout=5)
    assert len(attempts) == 1
    assert [str(e) for e in errors] == ["boom"]


def test_restart_until_success():
    errors = []
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise RuntimeError("retry")

    execution = Execution(flaky, recover_handler=errors.append, restart_timeout=0.01).start()
    assert execution.join(timeout=5)
    assert len(attempts) == 3
    assert len(errors) == 2


def test_with_restart_timeout_returns_self():
    execution = Execution(lambda: None, restart_timeout=DEFAULT_RESTART_TIMEOUT)
    assert execution.with_restart_timeout(0.5) is execution
    assert execution.restart_timeout == 0.5


def test_safe_insert_success():
    target = queue.Queue()
    assert safe_insert(target, 7) is True
    assert target.get_nowait() == 7


def test_safe_insert_failure():
    assert safe_insert(ClosedQueue(), 7) is False