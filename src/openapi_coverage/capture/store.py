import logging
import threading
from collections.abc import Callable, Iterable

from openapi_coverage.capture.extractor import endpoint_key
from openapi_coverage.capture.observation import Observation

logger = logging.getLogger(__name__)

Listener = Callable[[Observation], None]


class ObservationStore:
    """Thread-safe, append-only sequence of observations.

    Appends and clears are serialized by a lock, so observations recorded from
    concurrent threads or asyncio tasks are never lost or interleaved. Readers
    get snapshot copies.
    """

    def __init__(self) -> None:
        self._observations: list[Observation] = []
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    @classmethod
    def seeded(cls, observations: Iterable[Observation]) -> "ObservationStore":
        """Build a store pre-populated with observations, for test setup."""
        store = cls()
        store._observations.extend(observations)
        return store

    def append(self, obs: Observation) -> None:
        with self._lock:
            self._observations.append(obs)
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(obs)
            except Exception:
                logger.warning("openapi-coverage: observation listener failed", exc_info=True)

    def snapshot(self) -> list[Observation]:
        with self._lock:
            return list(self._observations)

    def clear(self) -> None:
        with self._lock:
            self._observations = []

    def unique_endpoints(self) -> set[str]:
        return {endpoint_key(obs.method, obs.url) for obs in self.snapshot()}

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener`` with every observation appended from now on."""
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def __len__(self) -> int:
        with self._lock:
            return len(self._observations)


_shared_store: ObservationStore | None = None
_shared_lock = threading.Lock()


def get_shared_store() -> ObservationStore:
    """Return the process-wide store, creating it on first use."""
    global _shared_store
    with _shared_lock:
        if _shared_store is None:
            _shared_store = ObservationStore()
        return _shared_store


def reset_shared_store(store: ObservationStore | None = None) -> ObservationStore:
    """Replace the process-wide store (a fresh one unless ``store`` is given).

    Interceptors built earlier keep the store they were given.
    """
    global _shared_store
    with _shared_lock:
        _shared_store = store if store is not None else ObservationStore()
        return _shared_store
