import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from openapi_coverage.analysis.aggregator import aggregate
from openapi_coverage.analysis.error_rates import ErrorAnalysis, analyze_errors
from openapi_coverage.analysis.performance import LatencyMetrics, analyze_latency
from openapi_coverage.analysis.recommendations import recommend
from openapi_coverage.capture.observation import EndpointUsage, Observation, Scope
from openapi_coverage.coverage.engine import CoverageEngine, analyze_observations
from openapi_coverage.coverage.report import CoverageReport
from openapi_coverage.export.formats import iso_timestamp

GENERATED_BY = "openapi-coverage"
SUMMARY_VERSION = "1.0.0"


@dataclass(frozen=True)
class Insights:
    """Coverage report plus the analytics derived from the same observations."""

    generated_at: datetime
    coverage: CoverageReport
    time_range: tuple[int, int] | None
    endpoint_usage: list[EndpointUsage]
    latency: LatencyMetrics | None
    errors: ErrorAnalysis
    recommendations: list[str] = field(default_factory=list)

    @property
    def session_duration(self) -> int:
        """Seconds between the first and last observation."""
        if self.time_range is None:
            return 0
        start, end = self.time_range
        # Halves round up
        return math.floor((end - start) / 1000 + 0.5)

    def to_dict(self) -> dict[str, Any]:
        summary = self.coverage.summary.to_dict()
        summary["timeRange"] = (
            {"start": iso_timestamp(self.time_range[0]), "end": iso_timestamp(self.time_range[1])}
            if self.time_range is not None
            else None
        )
        return {
            "metadata": {
                "generatedAt": self.generated_at.isoformat(),
                "generatedBy": GENERATED_BY,
                "version": SUMMARY_VERSION,
                "sessionDuration": self.session_duration,
            },
            "coverage": self.coverage.to_dict(),
            "requestSummary": summary,
            "endpointUsage": [usage.to_dict() for usage in self.endpoint_usage],
            "performanceMetrics": self.latency.to_dict() if self.latency is not None else None,
            "errorAnalysis": self.errors.to_dict(),
            "recommendations": list(self.recommendations),
        }


def build_insights(
    observations: list[Observation],
    report: CoverageReport,
    now: datetime | None = None,
) -> Insights:
    """Derive insights for observations already analysed into ``report``."""
    errors = analyze_errors(observations)
    timestamps = [obs.timestamp for obs in observations]
    return Insights(
        generated_at=now or datetime.now(timezone.utc),
        coverage=report,
        time_range=(min(timestamps), max(timestamps)) if timestamps else None,
        endpoint_usage=aggregate(observations),
        latency=analyze_latency(observations),
        errors=errors,
        recommendations=recommend(report, errors.error_rate),
    )


def export_insights(insights: Insights, file_path: str | Path, indent: int | None = 2) -> Path:
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(insights.to_dict(), indent=indent), encoding="utf-8")
    return path


class InsightEngine:
    """Analytics over the same scopes a :class:`CoverageEngine` reports on.

    Every method recomputes from the current observations and never mutates
    stored state.
    """

    def __init__(self, coverage: CoverageEngine) -> None:
        self._coverage = coverage

    def latency(self, scope: Scope | str = Scope.LOCAL) -> LatencyMetrics | None:
        return analyze_latency(self._coverage.observations(scope))

    def errors(self, scope: Scope | str = Scope.LOCAL) -> ErrorAnalysis:
        return analyze_errors(self._coverage.observations(scope))

    def endpoint_usage(self, scope: Scope | str = Scope.LOCAL) -> list[EndpointUsage]:
        return aggregate(self._coverage.observations(scope))

    def recommendations(self, scope: Scope | str = Scope.LOCAL) -> list[str]:
        return self.summarize(scope).recommendations

    def summarize(self, scope: Scope | str = Scope.LOCAL, now: datetime | None = None) -> Insights:
        catalog = self._coverage.require_catalog()
        # One snapshot feeds both the report and the analytics
        observations = self._coverage.observations(scope)
        report = analyze_observations(observations, catalog)
        return build_insights(observations, report, now=now)
