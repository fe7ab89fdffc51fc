from __future__ import annotations

import threading

from scheduler import ThreadingScheduler


def test_call_later_runs_callback() -> None:
    fired = threading.Event()
    ThreadingScheduler().call_later(0.01, fired.set)

    assert fired.wait(timeout=2.0)


def test_cancelled_callback_never_runs() -> None:
    fired = threading.Event()
    handle = ThreadingScheduler().call_later(0.2, fired.set)
    handle.cancel()

    assert not fired.wait(timeout=0.4)


def test_callback_exception_is_contained() -> None:
    after = threading.Event()

    def _boom() -> None:
        try:
            raise RuntimeError("boom")
        finally:
            after.set()

    ThreadingScheduler().call_later(0.0, _boom)

    assert after.wait(timeout=2.0)
