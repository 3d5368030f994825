"""Tests for bounded chunk dispatch."""

import threading
import time

import pytest

from seeder.lib.backend import WriteTarget, WriteVariant
from seeder.lib.dispatch import dispatch_all

TARGET = WriteTarget("Users", WriteVariant.DOCUMENT)


class Recorder:
    """Write callable that records starts/finishes and tracks concurrency."""

    def __init__(self, delay=0.0, fail=None, slow=None):
        self.delay = delay
        self.fail = fail or {}
        self.slow = slow or {}
        self.started = []
        self.finished = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def __call__(self, target, group, index):
        with self._lock:
            self.started.append(index)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.slow.get(index, self.delay))
            if index in self.fail:
                raise self.fail[index]
            with self._lock:
                self.finished.append(index)
            return 1
        finally:
            with self._lock:
                self.active -= 1


class TestDispatchAll:
    """Tests for dispatch_all()."""

    def test_no_chunks(self):
        """Zero chunks should complete without calling write."""
        write = Recorder()
        assert dispatch_all([], TARGET, 5, write) == 0
        assert write.started == []

    def test_concurrency_one_writes_each_chunk_once(self):
        chunks = [[i] for i in range(7)]
        write = Recorder()

        written = dispatch_all(chunks, TARGET, 1, write)

        assert written == 7
        assert sorted(write.started) == list(range(7))
        assert write.max_active == 1

    @pytest.mark.parametrize("max_concurrency", [1, 2, 3, 5])
    def test_never_exceeds_max_concurrency(self, max_concurrency):
        chunks = [[i] for i in range(12)]
        write = Recorder(delay=0.01)

        written = dispatch_all(chunks, TARGET, max_concurrency, write)

        assert written == 12
        assert 1 <= write.max_active <= max_concurrency

    def test_passes_target_and_chunk(self):
        seen = []

        def write(target, group, index):
            seen.append((target, group, index))

        dispatch_all([["a"], ["b"]], TARGET, 1, write)

        assert seen == [(TARGET, ["a"], 0), (TARGET, ["b"], 1)]

    def test_no_chunk_admitted_after_failure(self):
        """Fail-fast admission: later chunks are never started."""
        chunks = [[i] for i in range(5)]
        error = RuntimeError("chunk 1 failed")
        write = Recorder(fail={1: error})

        with pytest.raises(RuntimeError) as exc_info:
            dispatch_all(chunks, TARGET, 1, write)

        assert exc_info.value is error
        assert write.started == [0, 1]

    def test_in_flight_writes_finish_after_failure(self):
        """A write already running when another fails is allowed to complete."""
        chunks = [[i] for i in range(6)]
        write = Recorder(fail={0: RuntimeError("boom")}, slow={1: 0.2})

        with pytest.raises(RuntimeError, match="boom"):
            dispatch_all(chunks, TARGET, 2, write)

        assert sorted(write.started) == [0, 1]
        assert write.finished == [1]

    def test_reports_first_failure_observed(self):
        """With one write at a time, the earlier failure is the one raised."""
        chunks = [[i] for i in range(4)]
        first = RuntimeError("first")
        write = Recorder(fail={2: first, 3: RuntimeError("second")})

        with pytest.raises(RuntimeError) as exc_info:
            dispatch_all(chunks, TARGET, 1, write)

        assert exc_info.value is first
        assert 3 not in write.started

    def test_first_failure_by_detection_not_index(self):
        """A fast failure on a later chunk wins over a slow earlier one."""
        chunks = [[0], [1]]
        slow_failure = RuntimeError("slow")
        fast_failure = RuntimeError("fast")
        write = Recorder(
            fail={0: slow_failure, 1: fast_failure},
            slow={0: 0.3, 1: 0.0},
        )

        with pytest.raises(RuntimeError) as exc_info:
            dispatch_all(chunks, TARGET, 2, write)

        assert exc_info.value is fast_failure

    @pytest.mark.parametrize("value", [0, -2, True, 1.5, None])
    def test_invalid_max_concurrency(self, value):
        with pytest.raises(ValueError, match="max_concurrency"):
            dispatch_all([[1]], TARGET, value, Recorder())
