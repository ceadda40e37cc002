from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from openapi_coverage.capture.observation import Observation

ERROR_STATUS = 400
TOP_ERRORS = 5


@dataclass(frozen=True)
class ErrorFrequency:
    status: str
    count: int
    percentage: float


@dataclass(frozen=True)
class ErrorAnalysis:
    total_errors: int = 0
    error_rate: float = 0.0
    errors_by_status: dict[str, int] = field(default_factory=dict)
    most_common: list[ErrorFrequency] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalErrors": self.total_errors,
            "errorRate": self.error_rate,
            "errorsByStatus": dict(self.errors_by_status),
            "mostCommonErrors": [
                {"status": e.status, "count": e.count, "percentage": e.percentage}
                for e in self.most_common
            ],
        }


def error_rate(observations: list[Observation]) -> float:
    """Percentage of observations with status >= 400; 0 when there are none."""
    if not observations:
        return 0.0
    errors = sum(1 for obs in observations if obs.status is not None and obs.status >= ERROR_STATUS)
    return errors / len(observations) * 100


def analyze_errors(observations: list[Observation]) -> ErrorAnalysis:
    errors = [obs for obs in observations if obs.status is not None and obs.status >= ERROR_STATUS]
    by_status = Counter(str(obs.status) for obs in errors)

    # Counter.most_common keeps first-seen order among equal counts
    most_common = [
        ErrorFrequency(status=status, count=count, percentage=round(count / len(errors) * 100, 2))
        for status, count in by_status.most_common(TOP_ERRORS)
    ]
    return ErrorAnalysis(
        total_errors=len(errors),
        error_rate=error_rate(observations),
        errors_by_status=dict(by_status),
        most_common=most_common,
    )
