import logging
from collections import Counter
from collections.abc import Iterable
from typing import Protocol

from openapi_coverage.capture.extractor import endpoint_key, extract_path, status_class
from openapi_coverage.capture.observation import Observation, Scope
from openapi_coverage.coverage.report import CoverageReport, RequestSummary
from openapi_coverage.errors import SpecNotLoadedError
from openapi_coverage.spec.catalog import DeclaredOperation, SpecCatalog

logger = logging.getLogger(__name__)


class ObservationSource(Protocol):
    def observations(self, scope: Scope | str = Scope.LOCAL) -> list[Observation]: ...


def match_observation(obs: Observation, catalog: SpecCatalog) -> DeclaredOperation | None:
    """Return the first declared operation (catalog order) matching the call's path and method."""
    return catalog.matcher.match(obs.method, extract_path(obs.url))


def summarize_observations(observations: list[Observation]) -> RequestSummary:
    methods: Counter[str] = Counter()
    classes: Counter[str] = Counter()
    endpoints: set[str] = set()

    for obs in observations:
        methods[obs.method.upper()] += 1
        if obs.status is not None:
            classes[status_class(obs.status)] += 1
        endpoints.add(endpoint_key(obs.method, obs.url))

    return RequestSummary(
        total_observations=len(observations),
        unique_endpoints=len(endpoints),
        method_counts=dict(methods),
        status_class_counts=dict(classes),
    )


def analyze_observations(observations: Iterable[Observation], catalog: SpecCatalog) -> CoverageReport:
    """Compare observed calls with the catalog's declared operations."""
    observations = list(observations)
    declared = catalog.list_operations()

    covered: set[tuple[str, str]] = set()
    undeclared: set[str] = set()
    for obs in observations:
        operation = match_observation(obs, catalog)
        if operation is None:
            undeclared.add(endpoint_key(obs.method, obs.url))
        else:
            # Counted whatever the response status was
            covered.add(operation.key)

    total = len(declared)
    return CoverageReport(
        total_declared=total,
        covered_count=len(covered),
        coverage_pct=(len(covered) / total * 100) if total else 0.0,
        uncovered=[op for op in declared if op.key not in covered],
        undeclared_observed=undeclared,
        summary=summarize_observations(observations),
    )


class CoverageEngine:
    """Produces coverage reports for an observation source against an attached catalog."""

    def __init__(self, source: ObservationSource, catalog: SpecCatalog | None = None) -> None:
        self._source = source
        self._catalog = catalog

    @property
    def catalog(self) -> SpecCatalog | None:
        return self._catalog

    def attach(self, catalog: SpecCatalog) -> None:
        self._catalog = catalog

    def require_catalog(self) -> SpecCatalog:
        if self._catalog is None:
            raise SpecNotLoadedError()
        return self._catalog

    def observations(self, scope: Scope | str = Scope.LOCAL) -> list[Observation]:
        return self._source.observations(Scope(scope))

    def analyze(self, scope: Scope | str = Scope.LOCAL) -> CoverageReport:
        catalog = self.require_catalog()
        observations = self.observations(scope)
        report = analyze_observations(observations, catalog)
        logger.debug(
            "openapi-coverage: %s scope: %d/%d operations covered by %d observation(s)",
            Scope(scope).value,
            report.covered_count,
            report.total_declared,
            report.summary.total_observations,
        )
        return report
