from dataclasses import dataclass, field
from typing import Any

from openapi_coverage.spec.catalog import DeclaredOperation


@dataclass(frozen=True)
class RequestSummary:
    total_observations: int = 0
    unique_endpoints: int = 0
    method_counts: dict[str, int] = field(default_factory=dict)
    status_class_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total_requests(self) -> int:
        return self.total_observations

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRequests": self.total_observations,
            "uniqueEndpoints": self.unique_endpoints,
            "methodDistribution": dict(self.method_counts),
            "statusDistribution": dict(self.status_class_counts),
        }


@dataclass(frozen=True)
class CoverageReport:
    total_declared: int
    covered_count: int
    coverage_pct: float
    uncovered: list[DeclaredOperation]
    undeclared_observed: set[str]
    summary: RequestSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalEndpoints": self.total_declared,
            "coveredEndpoints": self.covered_count,
            "coveragePercentage": self.coverage_pct,
            "uncoveredEndpoints": [op.to_dict() for op in self.uncovered],
            "extraEndpoints": sorted(self.undeclared_observed),
            "requestSummary": self.summary.to_dict(),
        }
