import logging
import threading
import time
from collections.abc import Callable

from openapi_coverage.capture.observation import Observation
from openapi_coverage.capture.store import ObservationStore

logger = logging.getLogger(__name__)

FlushFn = Callable[[list[Observation]], None]


class ObservationBuffer:
    """Batches observations for a sink and flushes them on a background thread.

    Attach it to a store to mirror everything appended there into the sink
    (e.g. DynamoDB) so several worker processes can be analysed as one run.
    """

    def __init__(
        self,
        flush_fn: FlushFn,
        max_size: int = 100,
        flush_interval: float = 30.0,
    ) -> None:
        self._flush_fn = flush_fn
        self.max_size = max_size
        self.flush_interval = flush_interval
        self._pending: list[Observation] = []
        self._lock = threading.Lock()
        self._last_flush = time.monotonic()
        self._workers: list[threading.Thread] = []
        self._store: ObservationStore | None = None

    def add(self, obs: Observation) -> None:
        with self._lock:
            self._pending.append(obs)
            if self._due():
                self._flush_in_background()

    def flush(self) -> None:
        """Flush pending observations synchronously and wait for background flushes."""
        with self._lock:
            batch = self._drain()
            workers, self._workers = self._workers, []
        for worker in workers:
            worker.join()
        if batch:
            self._safe_flush(batch)

    def attach(self, store: ObservationStore) -> "ObservationBuffer":
        store.subscribe(self.add)
        self._store = store
        return self

    def close(self) -> None:
        """Detach from the store and flush what is left."""
        if self._store is not None:
            self._store.unsubscribe(self.add)
            self._store = None
        self.flush()

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def _due(self) -> bool:
        return (
            len(self._pending) >= self.max_size
            or time.monotonic() - self._last_flush >= self.flush_interval
        )

    def _flush_in_background(self) -> None:
        batch = self._drain()
        if batch:
            worker = threading.Thread(target=self._safe_flush, args=(batch,), daemon=True)
            self._workers = [w for w in self._workers if w.is_alive()]
            self._workers.append(worker)
            worker.start()

    def _drain(self) -> list[Observation]:
        batch = self._pending
        self._pending = []
        self._last_flush = time.monotonic()
        return batch

    def _safe_flush(self, batch: list[Observation]) -> None:
        try:
            self._flush_fn(batch)
        except Exception:
            logger.warning("openapi-coverage: failed to flush %d observation(s)", len(batch), exc_info=True)
