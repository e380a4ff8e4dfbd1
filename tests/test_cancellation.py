from __future__ import annotations

import threading

from hashsafe.engine.cancellation import CancellationToken


def test_token_starts_clear() -> None:
    assert not CancellationToken().is_cancelled


def test_first_cancel_wins() -> None:
    token = CancellationToken()
    assert token.cancel() is True
    assert token.cancel() is False
    assert token.is_cancelled


def test_concurrent_cancel_reports_once() -> None:
    token = CancellationToken()
    results: list[bool] = []
    lock = threading.Lock()

    def worker() -> None:
        outcome = token.cancel()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == 1
    assert token.is_cancelled
