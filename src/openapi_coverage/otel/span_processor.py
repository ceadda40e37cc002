import logging
from urllib.parse import urlsplit

from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor
from opentelemetry.trace import SpanKind

from openapi_coverage.capture.extractor import extract_query_params
from openapi_coverage.capture.observation import Observation
from openapi_coverage.capture.store import ObservationStore, get_shared_store

logger = logging.getLogger(__name__)

# Semantic convention keys: old (v1.x) and new (v1.21+) names are both accepted
_METHOD_KEYS = ("http.request.method", "http.method")
_STATUS_KEYS = ("http.response.status_code", "http.status_code")
_URL_KEYS = ("url.full", "http.url")
_HOST_KEYS = ("server.address", "net.peer.name", "http.host")
_PATH_KEYS = ("url.path", "http.target")

_NS_PER_MS = 1_000_000


def _get_attr(attributes: dict, *keys: str) -> str | None:
    """Return the first non-empty value found among the given attribute keys."""
    for key in keys:
        value = attributes.get(key)
        if value is not None and str(value) != "":
            return str(value)
    return None


def _extract_url(attributes: dict) -> str | None:
    url = _get_attr(attributes, *_URL_KEYS)
    if url:
        return url
    # Fall back to host + path when the full URL was not captured
    path = _get_attr(attributes, *_PATH_KEYS)
    if not path:
        return None
    host = _get_attr(attributes, *_HOST_KEYS)
    scheme = _get_attr(attributes, "url.scheme", "http.scheme") or "http"
    return f"{scheme}://{host}{path}" if host else path


class CoverageSpanProcessor(SpanProcessor):
    """
    OpenTelemetry SpanProcessor that records outbound HTTP calls as observations.

    Use this instead of wrapping the client in a ``CallInterceptor`` when the
    test suite already instruments its HTTP client with OpenTelemetry.

    Usage::

        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
        from openapi_coverage.otel import CoverageSpanProcessor

        provider = TracerProvider()
        provider.add_span_processor(CoverageSpanProcessor())
        HTTPXClientInstrumentor().instrument(tracer_provider=provider)

    Observations land in the process-wide shared store unless a store is given.
    """

    def __init__(self, store: ObservationStore | None = None) -> None:
        self._store = store if store is not None else get_shared_store()

    @property
    def store(self) -> ObservationStore:
        return self._store

    def on_start(self, span, parent_context=None) -> None:
        pass  # Nothing to do at span start

    def on_end(self, span: ReadableSpan) -> None:
        try:
            self._process(span)
        except Exception:
            logger.warning("openapi-coverage: failed to process span", exc_info=True)

    def shutdown(self) -> None:
        pass

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True

    def _process(self, span: ReadableSpan) -> None:
        # Only outbound calls made by the test suite
        if span.kind != SpanKind.CLIENT:
            return

        attributes = dict(span.attributes or {})

        method = _get_attr(attributes, *_METHOD_KEYS)
        if not method:
            return

        url = _extract_url(attributes)
        if not url:
            return

        status_raw = _get_attr(attributes, *_STATUS_KEYS)
        status = int(status_raw) if status_raw else None

        start, end = span.start_time, span.end_time
        if start is not None:
            timestamp = start // _NS_PER_MS
        else:
            timestamp = (end or 0) // _NS_PER_MS
        duration = (end - start) // _NS_PER_MS if start is not None and end is not None else None

        query = urlsplit(url).query
        obs = Observation(
            method=method.upper(),
            url=url,
            timestamp=timestamp,
            query_params=extract_query_params(query) if query else None,
            status=status,
            duration_ms=duration,
        )
        self._store.append(obs)
