from openapi_coverage.capture.interceptor import AsyncCallInterceptor, CallInterceptor
from openapi_coverage.capture.observation import Observation, Scope
from openapi_coverage.capture.store import ObservationStore, get_shared_store, reset_shared_store

__all__ = [
    "AsyncCallInterceptor",
    "CallInterceptor",
    "Observation",
    "ObservationStore",
    "Scope",
    "get_shared_store",
    "reset_shared_store",
]
