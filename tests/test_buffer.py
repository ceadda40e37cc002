from unittest.mock import MagicMock

from openapi_coverage.capture.buffer import ObservationBuffer
from openapi_coverage.capture.observation import Observation
from openapi_coverage.capture.store import ObservationStore


def _obs(n: int = 0) -> Observation:
    return Observation(method="GET", url=f"https://api.example.com/items/{n}", timestamp=1_000 + n)


class TestObservationBuffer:
    def test_holds_until_full(self):
        flush_fn = MagicMock()
        buffer = ObservationBuffer(flush_fn, max_size=3)
        buffer.add(_obs(1))
        buffer.add(_obs(2))
        assert len(buffer) == 2
        flush_fn.assert_not_called()

    def test_flushes_when_full(self):
        flush_fn = MagicMock()
        buffer = ObservationBuffer(flush_fn, max_size=2)
        buffer.add(_obs(1))
        buffer.add(_obs(2))
        buffer.flush()  # waits for the background flush
        flush_fn.assert_called_once_with([_obs(1), _obs(2)])
        assert len(buffer) == 0

    def test_flushes_when_interval_elapsed(self):
        flush_fn = MagicMock()
        buffer = ObservationBuffer(flush_fn, max_size=100, flush_interval=0)
        buffer.add(_obs(1))
        buffer.flush()
        flush_fn.assert_called_once_with([_obs(1)])

    def test_explicit_flush(self):
        flush_fn = MagicMock()
        buffer = ObservationBuffer(flush_fn)
        buffer.add(_obs(1))
        buffer.flush()
        flush_fn.assert_called_once_with([_obs(1)])

    def test_flush_empty_is_noop(self):
        flush_fn = MagicMock()
        ObservationBuffer(flush_fn).flush()
        flush_fn.assert_not_called()

    def test_flush_failure_is_swallowed(self):
        flush_fn = MagicMock(side_effect=Exception("DynamoDB down"))
        buffer = ObservationBuffer(flush_fn)
        buffer.add(_obs(1))
        buffer.flush()
        assert len(buffer) == 0

    def test_attach_and_close(self):
        flush_fn = MagicMock()
        store = ObservationStore()
        buffer = ObservationBuffer(flush_fn).attach(store)
        store.append(_obs(1))
        store.append(_obs(2))
        buffer.close()
        store.append(_obs(3))

        flush_fn.assert_called_once_with([_obs(1), _obs(2)])
        assert len(store) == 3
