from openapi_coverage.coverage.engine import CoverageEngine, analyze_observations
from openapi_coverage.coverage.report import CoverageReport, RequestSummary

__all__ = ["CoverageEngine", "CoverageReport", "RequestSummary", "analyze_observations"]
