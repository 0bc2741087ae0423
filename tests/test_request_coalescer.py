"""Tests for single-flight request coalescing."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.catalog.coalescer import RequestCoalescer


def _wait_until(predicate, timeout=5.0):
    done = threading.Event()
    for _ in range(int(timeout / 0.01)):
        if predicate():
            return
        done.wait(0.01)
    raise AssertionError("condition not reached")


class TestRequestCoalescer:

    @pytest.fixture
    def coalescer(self):
        return RequestCoalescer()

    def test_runs_function_and_returns_value(self, coalescer):
        assert coalescer.run("k", lambda: 42) == 42
        assert coalescer.in_flight() == 0

    def test_sequential_calls_each_run(self, coalescer):
        calls = []

        coalescer.run("k", lambda: calls.append(1))
        coalescer.run("k", lambda: calls.append(2))

        assert calls == [1, 2]

    def test_concurrent_same_key_runs_once(self, coalescer):
        release = threading.Event()
        calls = []

        def slow():
            calls.append(1)
            release.wait(timeout=5)
            return {"fdcId": 42}

        with ThreadPoolExecutor(max_workers=2) as pool:
            first = pool.submit(coalescer.run, 42, slow)
            _wait_until(lambda: coalescer.is_pending(42))
            second = pool.submit(coalescer.run, 42, lambda: calls.append("duplicate"))
            _wait_until(lambda: coalescer.followers(42) == 1)
            release.set()

            assert first.result() == {"fdcId": 42}
            assert second.result() == {"fdcId": 42}

        assert calls == [1]
        assert coalescer.in_flight() == 0

    def test_different_keys_run_independently(self, coalescer):
        release = threading.Event()
        calls = []

        def slow(name):
            calls.append(name)
            release.wait(timeout=5)
            return name

        with ThreadPoolExecutor(max_workers=2) as pool:
            a = pool.submit(coalescer.run, "a", lambda: slow("a"))
            b = pool.submit(coalescer.run, "b", lambda: slow("b"))
            _wait_until(lambda: coalescer.in_flight() == 2)
            release.set()

            assert (a.result(), b.result()) == ("a", "b")

        assert sorted(calls) == ["a", "b"]

    def test_failure_is_delivered_to_all_callers_and_cleared(self, coalescer):
        release = threading.Event()

        def failing():
            release.wait(timeout=5)
            raise RuntimeError("boom")

        with ThreadPoolExecutor(max_workers=2) as pool:
            first = pool.submit(coalescer.run, "k", failing)
            _wait_until(lambda: coalescer.is_pending("k"))
            second = pool.submit(coalescer.run, "k", lambda: "unused")
            _wait_until(lambda: coalescer.followers("k") == 1)
            release.set()

            with pytest.raises(RuntimeError, match="boom"):
                first.result()
            with pytest.raises(RuntimeError, match="boom"):
                second.result()

        assert not coalescer.is_pending("k")
        assert coalescer.run("k", lambda: "retried") == "retried"

    def test_registration_removed_before_result_delivered(self, coalescer):
        seen_pending = []

        def check():
            seen_pending.append(coalescer.is_pending("k"))
            return "v"

        coalescer.run("k", check)

        assert seen_pending == [True]
        assert not coalescer.is_pending("k")

    def test_reset_forgets_registrations(self, coalescer):
        release = threading.Event()

        with ThreadPoolExecutor(max_workers=1) as pool:
            leader = pool.submit(coalescer.run, "k", lambda: release.wait(timeout=5) and "v")
            _wait_until(lambda: coalescer.is_pending("k"))

            coalescer.reset()
            assert coalescer.in_flight() == 0

            release.set()
            assert leader.result() == "v"

    def test_followers_counted_until_settled(self, coalescer):
        release = threading.Event()

        with ThreadPoolExecutor(max_workers=3) as pool:
            leader = pool.submit(coalescer.run, "k", lambda: release.wait(timeout=5) and "v")
            _wait_until(lambda: coalescer.is_pending("k"))
            assert coalescer.followers("k") == 0

            joined = [pool.submit(coalescer.run, "k", lambda: "unused") for _ in range(2)]
            _wait_until(lambda: coalescer.followers("k") == 2)
            release.set()

            assert leader.result() == "v"
            assert [f.result() for f in joined] == ["v", "v"]

        assert coalescer.followers("k") == 0
