from openapi_coverage.analysis.insights import InsightEngine, Insights, build_insights, export_insights
from openapi_coverage.analysis.performance import LatencyMetrics, percentile

__all__ = [
    "InsightEngine",
    "Insights",
    "LatencyMetrics",
    "build_insights",
    "export_insights",
    "percentile",
]
