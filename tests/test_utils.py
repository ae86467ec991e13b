import threading
import time
from types import SimpleNamespace

import pytest

from services.utils import ConfigManager, ReadWriteLock, RetryConfig, is_transient_error, performance_timer, with_retry


class TestRetry:

    def test_retries_transient_failures_with_backoff(self):
        delays = []
        attempts = []

        @with_retry(RetryConfig(max_retries=3, base_delay=1.0, exponential_base=2.0), sleep=delays.append)
        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise RuntimeError("Rate limit exceeded")
            return "done"

        assert flaky() == "done"
        assert delays == [1.0, 2.0]

    def test_non_transient_failures_raise_immediately(self):
        delays = []

        @with_retry(RetryConfig(max_retries=5), sleep=delays.append)
        def broken():
            raise KeyError("missing field")

        with pytest.raises(KeyError):
            broken()
        assert delays == []

    def test_final_failure_is_reraised(self):
        calls = []

        @with_retry(RetryConfig(max_retries=2, base_delay=0.0), sleep=lambda _: None)
        def always_busy():
            calls.append(1)
            raise RuntimeError("server at capacity")

        with pytest.raises(RuntimeError, match="capacity"):
            always_busy()
        assert len(calls) == 2

    def test_delay_is_capped(self):
        config = RetryConfig(base_delay=10.0, exponential_base=10.0, max_delay=30.0)
        assert config.delay_for(0) == 10.0
        assert config.delay_for(3) == 30.0

    def test_invalid_retry_count(self):
        with pytest.raises(ValueError):
            RetryConfig(max_retries=0)

    def test_transient_markers(self):
        assert is_transient_error(Exception("Request timed out"))
        assert is_transient_error(Exception("HTTP 429"))
        assert not is_transient_error(Exception("Invalid model name"))


def test_performance_timer_records_duration():
    stats = {}
    with performance_timer("phase", stats):
        pass
    with performance_timer("phase", stats):
        pass
    assert len(stats["phase"]) == 2
    assert all(d >= 0 for d in stats["phase"])


class TestConfigManager:

    def test_defaults_apply_for_missing_and_none(self):
        manager = ConfigManager(SimpleNamespace(CHUNK_SIZE='750', PROCESSING_TIMEOUT=None))
        assert manager.get_int('CHUNK_SIZE', 1000) == 750
        assert manager.get('PROCESSING_TIMEOUT', 300) == 300
        assert manager.get_float('TEMPERATURE', 0.1) == 0.1

    def test_without_config(self):
        retry = ConfigManager().get_retry_config()
        assert retry.max_retries == 3
        assert retry.base_delay == 1.0


class TestReadWriteLock:

    def test_readers_share_the_lock(self):
        lock = ReadWriteLock()
        both_inside = threading.Barrier(2, timeout=2)

        def reader():
            with lock.read_locked():
                both_inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
        assert not any(t.is_alive() for t in threads)

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        events = []

        lock.acquire_write()

        def reader():
            with lock.read_locked():
                events.append("read")

        thread = threading.Thread(target=reader)
        thread.start()
        time.sleep(0.05)
        events.append("write done")
        lock.release_write()
        thread.join(timeout=5)

        assert events == ["write done", "read"]

    def test_unbalanced_release(self):
        lock = ReadWriteLock()
        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()
