"""
Unit tests for the request counter
"""

import os
import sys
import threading

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from cache_server.counter import RequestCounter


class TestRequestCounter:
    """Test cases for RequestCounter"""

    def test_starts_at_zero(self):
        assert RequestCounter().value == 0

    def test_next_increments_by_one(self):
        c = RequestCounter()
        assert [c.next() for _ in range(100)] == list(range(1, 101))
        assert c.value == 100

    def test_value_does_not_increment(self):
        c = RequestCounter()
        c.next()
        assert c.value == 1
        assert c.value == 1

    def test_negative_start_rejected(self):
        with pytest.raises(ValueError):
            RequestCounter(start=-1)

    def test_concurrent_next_never_repeats(self):
        """Values handed to concurrent callers are unique and contiguous"""
        c = RequestCounter()
        seen = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            local = [c.next() for _ in range(250)]
            with lock:
                seen.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(seen) == 2000
        assert sorted(seen) == list(range(1, 2001))
        assert c.value == 2000
