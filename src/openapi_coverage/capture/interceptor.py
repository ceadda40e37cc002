import time
from collections.abc import Mapping
from typing import Any

from openapi_coverage.capture.extractor import extract_query_params, extract_status_code, group_query_pairs
from openapi_coverage.capture.observation import Observation, Scope
from openapi_coverage.capture.store import ObservationStore, get_shared_store
from openapi_coverage.errors import TransportError


def _now_ms() -> int:
    return int(time.time() * 1000)


def _copy_params(params: Any) -> dict[str, Any] | None:
    if params is None:
        return None
    if isinstance(params, str):
        return extract_query_params(params.lstrip("?"))
    # httpx.QueryParams is a Mapping that hides repeated keys behind dict()
    if hasattr(params, "multi_items"):
        return group_query_pairs(params.multi_items())
    if isinstance(params, Mapping):
        return dict(params)
    try:
        return group_query_pairs(params)
    except (TypeError, ValueError):
        return None


def _copy_headers(headers: Any) -> dict[str, str] | None:
    if headers is None:
        return None
    try:
        return {str(k): str(v) for k, v in dict(headers).items()}
    except (TypeError, ValueError):
        return None


class _BaseInterceptor:
    def __init__(
        self,
        collaborator,
        *,
        track_shared: bool = True,
        shared_store: ObservationStore | None = None,
        raise_for_status: bool = False,
    ) -> None:
        self._collaborator = collaborator
        self._local = ObservationStore()
        self._shared = shared_store if shared_store is not None else get_shared_store()
        # Read on every call, so toggling only affects future observations
        self.track_shared = track_shared
        self.raise_for_status = raise_for_status

    @property
    def collaborator(self):
        return self._collaborator

    @property
    def local_store(self) -> ObservationStore:
        return self._local

    @property
    def shared_store(self) -> ObservationStore:
        return self._shared

    def _store(self, scope: Scope | str) -> ObservationStore:
        return self._shared if Scope(scope) is Scope.SHARED else self._local

    def observations(self, scope: Scope | str = Scope.LOCAL) -> list[Observation]:
        return self._store(scope).snapshot()

    def count(self, scope: Scope | str = Scope.LOCAL) -> int:
        return len(self._store(scope))

    def unique_endpoints(self, scope: Scope | str = Scope.LOCAL) -> set[str]:
        return self._store(scope).unique_endpoints()

    def clear_local(self) -> None:
        self._local.clear()

    def clear_shared(self) -> None:
        """Empty the shared sequence. Affects every interceptor using the same store."""
        self._shared.clear()

    def _record(
        self,
        method: str,
        url: str,
        options: dict[str, Any],
        started_at: int,
        started: float,
        status: int | None,
    ) -> Observation:
        obs = Observation(
            method=method,
            url=str(url),
            timestamp=started_at,
            query_params=_copy_params(options.get("params")),
            headers=_copy_headers(options.get("headers")),
            status=status,
            duration_ms=int(round((time.monotonic() - started) * 1000)),
        )
        self._local.append(obs)
        if self.track_shared:
            self._shared.append(obs)
        return obs

    def _check_status(self, method: str, url: str, status: int | None) -> None:
        if self.raise_for_status and status is not None and status >= 400:
            raise TransportError(method, str(url), status)


class CallInterceptor(_BaseInterceptor):
    """Wraps a synchronous HTTP client and records every call it makes.

    The collaborator must expose ``request(method, url, **options)``, which
    ``httpx.Client``, ``requests.Session`` and Starlette's ``TestClient`` do.
    Responses and exceptions pass through untouched; the observation is
    recorded before either reaches the caller.
    """

    def request(self, method: str, url: str, **options: Any):
        method = method.upper()
        started_at = _now_ms()
        started = time.monotonic()
        try:
            response = self._collaborator.request(method, url, **options)
        except BaseException:
            self._record(method, url, options, started_at, started, None)
            raise
        status = extract_status_code(response)
        self._record(method, url, options, started_at, started, status)
        self._check_status(method, url, status)
        return response

    def fetch(self, url: str, method: str = "GET", **options: Any):
        return self.request(method, url, **options)

    def get(self, url: str, **options: Any):
        return self.request("GET", url, **options)

    def post(self, url: str, **options: Any):
        return self.request("POST", url, **options)

    def put(self, url: str, **options: Any):
        return self.request("PUT", url, **options)

    def patch(self, url: str, **options: Any):
        return self.request("PATCH", url, **options)

    def delete(self, url: str, **options: Any):
        return self.request("DELETE", url, **options)

    def head(self, url: str, **options: Any):
        return self.request("HEAD", url, **options)

    def options(self, url: str, **options: Any):
        return self.request("OPTIONS", url, **options)


class AsyncCallInterceptor(_BaseInterceptor):
    """Async counterpart of :class:`CallInterceptor` for ``httpx.AsyncClient``.

    A cancelled or timed-out call still records an observation (without a
    status) before the cancellation propagates.
    """

    async def request(self, method: str, url: str, **options: Any):
        method = method.upper()
        started_at = _now_ms()
        started = time.monotonic()
        try:
            response = await self._collaborator.request(method, url, **options)
        except BaseException:
            self._record(method, url, options, started_at, started, None)
            raise
        status = extract_status_code(response)
        self._record(method, url, options, started_at, started, status)
        self._check_status(method, url, status)
        return response

    async def fetch(self, url: str, method: str = "GET", **options: Any):
        return await self.request(method, url, **options)

    async def get(self, url: str, **options: Any):
        return await self.request("GET", url, **options)

    async def post(self, url: str, **options: Any):
        return await self.request("POST", url, **options)

    async def put(self, url: str, **options: Any):
        return await self.request("PUT", url, **options)

    async def patch(self, url: str, **options: Any):
        return await self.request("PATCH", url, **options)

    async def delete(self, url: str, **options: Any):
        return await self.request("DELETE", url, **options)

    async def head(self, url: str, **options: Any):
        return await self.request("HEAD", url, **options)

    async def options(self, url: str, **options: Any):
        return await self.request("OPTIONS", url, **options)
