from openapi_coverage.analysis import InsightEngine, Insights
from openapi_coverage.capture import (
    AsyncCallInterceptor,
    CallInterceptor,
    Observation,
    ObservationStore,
    Scope,
    get_shared_store,
    reset_shared_store,
)
from openapi_coverage.coverage import CoverageEngine, CoverageReport, analyze_observations
from openapi_coverage.errors import (
    CoverageError,
    SpecLoadError,
    SpecNotLoadedError,
    TransportError,
    UnsupportedExportFormatError,
)
from openapi_coverage.session import CoverageSession
from openapi_coverage.spec import DeclaredOperation, PathMatcher, SpecCatalog

__all__ = [
    "AsyncCallInterceptor",
    "CallInterceptor",
    "CoverageEngine",
    "CoverageError",
    "CoverageReport",
    "CoverageSession",
    "DeclaredOperation",
    "InsightEngine",
    "Insights",
    "Observation",
    "ObservationStore",
    "PathMatcher",
    "Scope",
    "SpecCatalog",
    "SpecLoadError",
    "SpecNotLoadedError",
    "TransportError",
    "UnsupportedExportFormatError",
    "analyze_observations",
    "get_shared_store",
    "reset_shared_store",
]
