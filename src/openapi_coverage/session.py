import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from openapi_coverage.analysis.insights import InsightEngine, Insights, export_insights
from openapi_coverage.capture.interceptor import CallInterceptor
from openapi_coverage.capture.observation import Observation, Scope
from openapi_coverage.capture.store import ObservationStore
from openapi_coverage.coverage.engine import CoverageEngine
from openapi_coverage.coverage.report import CoverageReport
from openapi_coverage.export.formats import ExportFormat, export_observations
from openapi_coverage.reporting.console import render_report
from openapi_coverage.spec.catalog import SpecCatalog

logger = logging.getLogger(__name__)


class CoverageSession:
    """One test suite's view of API coverage.

    Wraps an HTTP client in a :class:`CallInterceptor` (exposed as ``http``),
    holds the loaded spec, and reports on either this session's calls
    (``Scope.LOCAL``) or every session in the process (``Scope.SHARED``).

    Usage::

        session = CoverageSession(httpx.Client(base_url="https://api.example.com"))
        session.load_spec_from_url("https://api.example.com/openapi.json")
        session.http.get("/users")
        print(session.render())
    """

    def __init__(
        self,
        collaborator,
        *,
        track_shared: bool = True,
        shared_store: ObservationStore | None = None,
        raise_for_status: bool = False,
        catalog: SpecCatalog | None = None,
    ) -> None:
        self._interceptor = CallInterceptor(
            collaborator,
            track_shared=track_shared,
            shared_store=shared_store,
            raise_for_status=raise_for_status,
        )
        self._coverage = CoverageEngine(self._interceptor, catalog)
        self._insights = InsightEngine(self._coverage)

    @property
    def http(self) -> CallInterceptor:
        return self._interceptor

    @property
    def catalog(self) -> SpecCatalog | None:
        return self._coverage.catalog

    @property
    def track_shared(self) -> bool:
        return self._interceptor.track_shared

    @track_shared.setter
    def track_shared(self, enabled: bool) -> None:
        self._interceptor.track_shared = enabled

    def load_spec(self, document: dict[str, Any]) -> SpecCatalog:
        return self._attach(SpecCatalog(document))

    def load_spec_from_file(self, path: str | Path) -> SpecCatalog:
        # A SpecLoadError leaves the previously attached catalog in place
        return self._attach(SpecCatalog.from_file(path))

    def load_spec_from_url(self, url: str, **kwargs: Any) -> SpecCatalog:
        return self._attach(SpecCatalog.from_url(url, **kwargs))

    def _attach(self, catalog: SpecCatalog) -> SpecCatalog:
        self._coverage.attach(catalog)
        logger.info("openapi-coverage: loaded spec with %d operation(s)", len(catalog))
        return catalog

    def observations(self, scope: Scope | str = Scope.LOCAL) -> list[Observation]:
        return self._interceptor.observations(scope)

    def clear_local(self) -> None:
        self._interceptor.clear_local()

    def clear_shared(self) -> None:
        self._interceptor.clear_shared()

    def report(self, scope: Scope | str = Scope.LOCAL) -> CoverageReport:
        return self._coverage.analyze(scope)

    def insights(self, scope: Scope | str = Scope.LOCAL, now: datetime | None = None) -> Insights:
        return self._insights.summarize(scope, now=now)

    def render(self, scope: Scope | str = Scope.LOCAL, with_insights: bool = True) -> str:
        if with_insights:
            insights = self.insights(scope)
            return render_report(insights.coverage, insights)
        return render_report(self.report(scope))

    def export(
        self,
        fmt: ExportFormat | str,
        file_path: str | Path,
        scope: Scope | str = Scope.LOCAL,
        **kwargs: Any,
    ) -> Path:
        return export_observations(self.observations(scope), fmt, file_path, **kwargs)

    def export_insights(self, file_path: str | Path, scope: Scope | str = Scope.LOCAL) -> Path:
        return export_insights(self.insights(scope), file_path)
