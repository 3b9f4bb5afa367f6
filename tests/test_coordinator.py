"""Tests for the initialization coordinator."""

import threading
import time

import pytest

from csvquery.core import CsvLoader, InitializationCoordinator, InitializationState
from csvquery.exceptions import LoadFailureException, LoadTimeoutException, NotFoundException


class RecordingLoader:
    """Wraps a real loader, counting calls and optionally stalling or failing."""

    def __init__(self, inner: CsvLoader, delay: float = 0.0, fail_times: int = 0, gate: threading.Event | None = None):
        self.inner = inner
        self.delay = delay
        self.fail_times = fail_times
        self.gate = gate
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def load(self, file_path, table_name):
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            should_fail = self.calls <= self.fail_times
        try:
            if self.gate is not None:
                self.gate.wait(timeout=5)
            time.sleep(self.delay)
            if should_fail:
                raise LoadFailureException(table_name, "simulated engine error")
            return self.inner.load(file_path, table_name)
        finally:
            with self._lock:
                self.active -= 1


def _wait_for_state(coordinator, table, state, timeout=5.0):
    deadline = time.time() + timeout
    while coordinator.get_state(table) is not state:
        if time.time() > deadline:
            raise AssertionError(f"state never became {state}")
        time.sleep(0.005)


@pytest.fixture
def csv_path(write_csv):
    return write_csv("a,b\n1,x\n2,y\n")


def _coordinator(loader, inspector, **kwargs):
    kwargs.setdefault("poll_interval", 0.01)
    return InitializationCoordinator(loader, inspector, **kwargs)


class TestStateMachine:
    def test_initial_state(self, loader, inspector):
        coordinator = _coordinator(loader, inspector)
        assert coordinator.get_state("orders") is InitializationState.NOT_STARTED
        assert coordinator.is_ready("orders") is False
        assert coordinator.cached_info("orders") is None

    def test_successful_load_publishes_ready(self, loader, inspector, csv_path):
        coordinator = _coordinator(loader, inspector)

        info = coordinator.ensure_loaded(csv_path, "orders")

        assert info.row_count == 2
        assert info.cached is False
        assert [c.name for c in info.schema] == ["a", "b"]
        assert coordinator.get_state("orders") is InitializationState.READY
        assert coordinator.cached_info("orders") == info
        assert coordinator.load_count("orders") == 1

    def test_fast_path_does_not_reload(self, loader, inspector, csv_path):
        recording = RecordingLoader(loader)
        coordinator = _coordinator(recording, inspector)

        first = coordinator.ensure_loaded(csv_path, "orders")
        second = coordinator.ensure_loaded(csv_path, "orders")

        assert recording.calls == 1
        assert second.cached is True
        assert second.row_count == first.row_count
        assert second.schema == first.schema

    def test_fast_path_reads_live_table(self, database, loader, inspector, csv_path):
        coordinator = _coordinator(loader, inspector)
        coordinator.ensure_loaded(csv_path, "orders")

        database.query("DELETE FROM orders WHERE a = '1'")

        assert coordinator.ensure_loaded(csv_path, "orders").row_count == 1

    def test_tables_are_tracked_independently(self, loader, inspector, csv_path):
        coordinator = _coordinator(loader, inspector)
        coordinator.ensure_loaded(csv_path, "orders")

        assert coordinator.is_ready("orders") is True
        assert coordinator.get_state("archive") is InitializationState.NOT_STARTED


class TestFailure:
    def test_failure_resets_state_and_allows_retry(self, loader, inspector, csv_path):
        recording = RecordingLoader(loader, fail_times=1)
        coordinator = _coordinator(recording, inspector)

        with pytest.raises(LoadFailureException):
            coordinator.ensure_loaded(csv_path, "orders")

        assert coordinator.get_state("orders") is InitializationState.NOT_STARTED
        assert "simulated engine error" in coordinator.last_error("orders")

        info = coordinator.ensure_loaded(csv_path, "orders")

        assert info.row_count == 2
        assert recording.calls == 2
        assert coordinator.last_error("orders") is None

    def test_missing_source_leaves_state_not_started(self, loader, inspector, tmp_path):
        coordinator = _coordinator(loader, inspector)

        with pytest.raises(NotFoundException):
            coordinator.ensure_loaded(tmp_path / "missing.csv", "orders")

        assert coordinator.get_state("orders") is InitializationState.NOT_STARTED


class TestConcurrency:
    def test_concurrent_callers_trigger_a_single_load(self, loader, inspector, csv_path):
        recording = RecordingLoader(loader, delay=0.2)
        coordinator = _coordinator(recording, inspector)
        results, errors = [], []

        def call():
            try:
                results.append(coordinator.ensure_loaded(csv_path, "orders"))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=call) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []
        assert recording.calls == 1
        assert recording.max_active == 1
        assert len(results) == 8
        assert {r.row_count for r in results} == {2}
        assert sum(1 for r in results if not r.cached) == 1

    def test_followers_retry_after_leader_fails(self, loader, inspector, csv_path):
        gate = threading.Event()
        recording = RecordingLoader(loader, fail_times=1, gate=gate)
        coordinator = _coordinator(recording, inspector)
        results, errors = [], []

        def call():
            try:
                results.append(coordinator.ensure_loaded(csv_path, "orders"))
            except LoadFailureException as e:
                errors.append(e)

        leader = threading.Thread(target=call)
        leader.start()
        _wait_for_state(coordinator, "orders", InitializationState.IN_PROGRESS)

        followers = [threading.Thread(target=call) for _ in range(4)]
        for t in followers:
            t.start()
        time.sleep(0.05)
        gate.set()

        for t in [leader, *followers]:
            t.join(timeout=10)

        # Only the caller that ran the failed load sees its error.
        assert len(errors) == 1
        assert len(results) == 4
        assert recording.calls == 2
        assert recording.max_active == 1
        assert coordinator.is_ready("orders")

    def test_follower_wait_timeout(self, loader, inspector, csv_path):
        gate = threading.Event()
        recording = RecordingLoader(loader, gate=gate)
        coordinator = _coordinator(recording, inspector, wait_timeout=0.05)

        leader = threading.Thread(target=coordinator.ensure_loaded, args=(csv_path, "orders"))
        leader.start()
        _wait_for_state(coordinator, "orders", InitializationState.IN_PROGRESS)

        try:
            with pytest.raises(LoadTimeoutException) as exc_info:
                coordinator.ensure_loaded(csv_path, "orders")
            assert exc_info.value.status_code == 503
        finally:
            gate.set()
            leader.join(timeout=10)

        assert coordinator.is_ready("orders")
        assert recording.calls == 1
