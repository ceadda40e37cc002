import math
from dataclasses import dataclass
from typing import Any

from openapi_coverage.capture.observation import Observation


def percentile(values: list[int], p: float) -> int:
    """Nearest-rank percentile: the value at index ceil(p/100 * n) - 1 of the sorted values."""
    if not values:
        raise ValueError("percentile of an empty sequence")
    ordered = sorted(values)
    index = math.ceil(p / 100 * len(ordered)) - 1
    index = min(max(index, 0), len(ordered) - 1)
    return ordered[index]


@dataclass(frozen=True)
class LatencyMetrics:
    average: float
    minimum: int
    maximum: int
    p50: int
    p95: int
    p99: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "averageResponseTime": self.average,
            "minResponseTime": self.minimum,
            "maxResponseTime": self.maximum,
            "p50ResponseTime": self.p50,
            "p95ResponseTime": self.p95,
            "p99ResponseTime": self.p99,
        }


def analyze_latency(observations: list[Observation]) -> LatencyMetrics | None:
    """Latency statistics over observations carrying a duration; None if there are none."""
    durations = [obs.duration_ms for obs in observations if obs.duration_ms is not None]
    if not durations:
        return None
    return LatencyMetrics(
        average=sum(durations) / len(durations),
        minimum=min(durations),
        maximum=max(durations),
        p50=percentile(durations, 50),
        p95=percentile(durations, 95),
        p99=percentile(durations, 99),
    )
