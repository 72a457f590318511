"""Tests del buffer circular BoundedHistory.

Ejecutar:
    pytest tests/test_history.py -v
"""

import threading

import pytest

from monitor_api.core.history import BoundedHistory


# =============================================================================
# CAPACIDAD Y EXPULSIÓN
# =============================================================================

class TestEviction:
    """Nunca supera la capacidad y expulsa primero el más antiguo."""

    @pytest.mark.parametrize("capacity,pushes", [(1, 5), (3, 10), (500, 501), (7, 7)])
    def test_keeps_last_items_in_order(self, capacity, pushes):
        history = BoundedHistory(capacity)
        for i in range(pushes):
            history.push(i)

        expected = list(range(pushes))[-capacity:]
        assert history.slice() == expected
        assert len(history) == min(capacity, pushes)

    def test_rejects_invalid_capacity(self):
        with pytest.raises(ValueError):
            BoundedHistory(0)

    def test_capacity_property(self):
        assert BoundedHistory(42).capacity == 42


# =============================================================================
# CONSULTAS
# =============================================================================

class TestQueries:
    """latest / slice / clear."""

    def test_latest_empty_is_none(self):
        assert BoundedHistory(3).latest() is None

    def test_latest_returns_last_pushed(self):
        history = BoundedHistory(3)
        for item in ("a", "b", "c", "d"):
            history.push(item)
        assert history.latest() == "d"

    def test_slice_limit_returns_most_recent_oldest_first(self):
        history = BoundedHistory(10)
        for i in range(6):
            history.push(i)

        assert history.slice(3) == [3, 4, 5]
        assert history.slice(100) == [0, 1, 2, 3, 4, 5]

    def test_slice_non_positive_limit_is_empty(self):
        history = BoundedHistory(10)
        history.push(1)
        assert history.slice(0) == []
        assert history.slice(-5) == []

    def test_slice_returns_copy(self):
        history = BoundedHistory(10)
        history.push(1)
        snapshot = history.slice()
        snapshot.append(99)
        assert history.slice() == [1]

    def test_clear(self):
        history = BoundedHistory(3)
        history.push(1)
        history.push(2)
        history.clear()

        assert history.count() == 0
        assert history.latest() is None
        assert history.slice() == []


# =============================================================================
# CONCURRENCIA
# =============================================================================

class TestConcurrentReaders:
    """Un escritor y varios lectores nunca ven un snapshot roto."""

    def test_reader_sees_contiguous_window(self):
        history = BoundedHistory(50)
        stop = threading.Event()
        errors = []

        def reader():
            while not stop.is_set():
                window = history.slice()
                if len(window) > 50:
                    errors.append(f"len={len(window)}")
                for a, b in zip(window, window[1:]):
                    if b != a + 1:
                        errors.append(f"gap {a}->{b}")

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for i in range(20_000):
            history.push(i)
        stop.set()
        for t in threads:
            t.join()

        assert errors == []
        assert history.slice() == list(range(20_000 - 50, 20_000))
