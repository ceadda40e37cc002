from openapi_coverage.otel.span_processor import CoverageSpanProcessor

__all__ = ["CoverageSpanProcessor"]
