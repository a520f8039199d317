"""Single-flight memoization for per-coordinate computations.

At most one computation runs per key. Concurrent requesters for the same key
block until the owner finishes and then share its result, including a raised
error. Caches of one run share a ``WaitGraph`` so that a requester about to
wait on a computation that is (transitively) waiting on the requester gets
``ReentrantComputationError`` instead of a deadlock.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

from common.errors import ReentrantComputationError
from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Flight:
    owner: int
    event: threading.Event = field(default_factory=threading.Event)


class WaitGraph:
    """Who computes what, and who waits for what, across caches of one run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owners: Dict[Hashable, int] = {}
        self._waiting: Dict[int, Hashable] = {}

    def claim(self, key: Hashable, thread_id: int) -> None:
        with self._lock:
            self._owners[key] = thread_id

    def release(self, key: Hashable) -> None:
        with self._lock:
            self._owners.pop(key, None)

    def begin_wait(self, key: Hashable, thread_id: int) -> None:
        """Register ``thread_id`` as waiting on ``key``.

        Raises:
            ReentrantComputationError: when the owner of ``key`` already
                waits, directly or through other owners, on ``thread_id``.
        """
        with self._lock:
            chain: List[Hashable] = [key]
            owner = self._owners.get(key)
            seen = set()
            while owner is not None and owner not in seen:
                if owner == thread_id:
                    raise ReentrantComputationError(key, chain)
                seen.add(owner)
                next_key = self._waiting.get(owner)
                if next_key is None:
                    break
                chain.append(next_key)
                owner = self._owners.get(next_key)
            self._waiting[thread_id] = key

    def end_wait(self, thread_id: int) -> None:
        with self._lock:
            self._waiting.pop(thread_id, None)


class SingleFlightCache(Generic[T]):
    """Memoize ``compute(key)`` so that it runs once per key.

    Args:
        name: Label used in logs and as the wait-graph namespace.
        waits: Wait graph shared with the other caches of the same run.
    """

    def __init__(self, name: str, waits: Optional[WaitGraph] = None):
        self.name = name
        self._waits = waits or WaitGraph()
        self._lock = threading.Lock()
        self._results: Dict[Hashable, Tuple[Optional[T], Optional[BaseException]]] = {}
        self._inflight: Dict[Hashable, _Flight] = {}

    def get(self, key: Hashable, compute: Callable[[Hashable], T]) -> T:
        """Return the memoized value for ``key``, computing it at most once.

        Raises:
            ReentrantComputationError: the calling thread is already computing
                ``key`` or the wait would close a cycle.
            Exception: whatever ``compute`` raised, for every requester.
        """
        me = threading.get_ident()
        wait_key = (self.name, key)
        with self._lock:
            if key in self._results:
                return self._unwrap(self._results[key])
            flight = self._inflight.get(key)
            owner = flight is None
            if owner:
                flight = _Flight(owner=me)
                self._inflight[key] = flight
                self._waits.claim(wait_key, me)
            elif flight.owner == me:
                raise ReentrantComputationError(key, (key,))

        if owner:
            return self._run(key, wait_key, flight, compute)

        self._waits.begin_wait(wait_key, me)
        try:
            flight.event.wait()
        finally:
            self._waits.end_wait(me)
        with self._lock:
            return self._unwrap(self._results[key])

    def _run(self, key: Hashable, wait_key: Hashable, flight: _Flight, compute: Callable[[Hashable], T]) -> T:
        value: Optional[T] = None
        error: Optional[BaseException] = None
        try:
            value = compute(key)
        except Exception as e:  # cached and re-raised to every requester
            error = e
        with self._lock:
            self._results[key] = (value, error)
            del self._inflight[key]
        self._waits.release(wait_key)
        flight.event.set()
        if error is not None:
            if is_debug_enabled(logger):
                logger.debug("Cached failure", extra=extra_context(
                    event="cache_store", component=self.name, target=str(key),
                    outcome="error", error=type(error).__name__
                ))
            raise error
        return value

    @staticmethod
    def _unwrap(entry: Tuple[Optional[T], Optional[BaseException]]) -> T:
        value, error = entry
        if error is not None:
            raise error
        return value

    def peek(self, key: Hashable) -> Optional[Any]:
        """Return a finished value without computing; None when absent or failed."""
        with self._lock:
            entry = self._results.get(key)
        if entry is None or entry[1] is not None:
            return None
        return entry[0]

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._results

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
