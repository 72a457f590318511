from __future__ import annotations

import threading
from collections import deque
from itertools import islice
from typing import Deque, Generic, List, Optional, TypeVar

T = TypeVar("T")


class BoundedHistory(Generic[T]):
    """Buffer circular en memoria con capacidad fija.

    - Mantiene los últimos ``capacity`` elementos en orden de inserción.
    - Al superar la capacidad descarta primero el más antiguo.
    - Un único productor por instancia; los lectores (endpoints REST en el
      threadpool) pueden solaparse con él, por eso lecturas y escrituras
      comparten un lock y las lecturas devuelven copias.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = int(capacity)
        self._items: Deque[T] = deque()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, item: T) -> None:
        with self._lock:
            self._items.append(item)
            while len(self._items) > self._capacity:
                self._items.popleft()

    def latest(self) -> Optional[T]:
        with self._lock:
            return self._items[-1] if self._items else None

    def slice(self, limit: Optional[int] = None) -> List[T]:
        """Devuelve hasta ``limit`` elementos recientes, del más viejo al más nuevo.

        Sin ``limit`` devuelve el buffer completo.
        """
        with self._lock:
            if limit is None:
                return list(self._items)
            if limit <= 0:
                return []
            skip = max(len(self._items) - int(limit), 0)
            return list(islice(self._items, skip, None))

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def __len__(self) -> int:
        return self.count()
