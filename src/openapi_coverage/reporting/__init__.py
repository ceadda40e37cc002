from openapi_coverage.reporting.console import render_report

__all__ = ["render_report"]
