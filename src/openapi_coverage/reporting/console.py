import math

from openapi_coverage.analysis.insights import Insights
from openapi_coverage.coverage.report import CoverageReport
from openapi_coverage.spec.catalog import DeclaredOperation

RULE = "=" * 57
UNTAGGED = "untagged"


def progress_bar(percentage: float, width: int = 20) -> str:
    filled = min(width, max(0, math.ceil(percentage / 100 * width)))
    return "█" * filled + "░" * (width - filled)


def coverage_status(percentage: float) -> str:
    if percentage >= 90:
        return "Excellent coverage!"
    if percentage >= 80:
        return "Good coverage"
    if percentage >= 60:
        return "Moderate coverage - consider adding more tests"
    if percentage >= 40:
        return "Low coverage - more tests needed"
    return "Very low coverage - significant testing gaps"


def group_by_tag(operations: list[DeclaredOperation]) -> dict[str, list[DeclaredOperation]]:
    """Group operations under each of their tags (sorted), keeping catalog order within a tag."""
    grouped: dict[str, list[DeclaredOperation]] = {}
    for operation in operations:
        for tag in sorted(operation.tags) or [UNTAGGED]:
            bucket = grouped.setdefault(tag, [])
            if operation not in bucket:
                bucket.append(operation)
    return grouped


def _distribution(title: str, counts: dict[str, int], total: int) -> list[str]:
    if not counts:
        return []
    lines = ["", title]
    width = max(len(key) for key in counts)
    for key, count in sorted(counts.items(), key=lambda item: (-item[1], item[0])):
        pct = count / total * 100 if total else 0.0
        lines.append(f"   {key.ljust(width)}: {count:>3} ({pct:5.1f}%) {progress_bar(pct)}")
    return lines


def render_report(report: CoverageReport, insights: Insights | None = None) -> str:
    """Render a coverage report (and optional insights) as plain text."""
    summary = report.summary
    lines = [
        RULE,
        "API COVERAGE REPORT",
        RULE,
        "",
        "COVERAGE OVERVIEW",
        f"   Coverage: {report.coverage_pct:.2f}% ({report.covered_count}/{report.total_declared} endpoints)",
        f"   Status: {coverage_status(report.coverage_pct)}",
        "",
        "REQUEST SUMMARY",
        f"   Total requests: {summary.total_observations}",
        f"   Unique endpoints: {summary.unique_endpoints}",
    ]
    lines += _distribution("HTTP METHOD DISTRIBUTION", summary.method_counts, summary.total_observations)
    lines += _distribution("STATUS CODE DISTRIBUTION", summary.status_class_counts, summary.total_observations)

    if report.uncovered:
        lines += ["", "UNCOVERED ENDPOINTS"]
        for tag, operations in group_by_tag(report.uncovered).items():
            lines.append(f"   {tag.upper()} ({len(operations)} endpoints)")
            for op in operations:
                lines.append(f"      {op.method:<7} {op.path_template:<30} - {op.summary or 'No description'}")
    else:
        lines += ["", "ALL ENDPOINTS COVERED"]

    if report.undeclared_observed:
        lines += ["", "EXTRA ENDPOINTS (not in OpenAPI spec)"]
        lines += [f"   {endpoint}" for endpoint in sorted(report.undeclared_observed)]

    if insights is not None:
        if insights.latency is not None:
            latency = insights.latency
            lines += [
                "",
                "PERFORMANCE METRICS",
                f"   Average response time: {math.floor(latency.average + 0.5)}ms",
                f"   Min response time: {latency.minimum}ms",
                f"   Max response time: {latency.maximum}ms",
                f"   50th percentile: {latency.p50}ms",
                f"   95th percentile: {latency.p95}ms",
                f"   99th percentile: {latency.p99}ms",
            ]
        if insights.errors.total_errors:
            lines += [
                "",
                "ERROR ANALYSIS",
                f"   Total errors: {insights.errors.total_errors}",
                f"   Error rate: {insights.errors.error_rate:.2f}%",
            ]
            lines += [
                f"     {e.status}: {e.count} occurrences ({e.percentage}%)"
                for e in insights.errors.most_common
            ]
        if insights.recommendations:
            lines += ["", "RECOMMENDATIONS"]
            lines += [f"   {i}. {rec}" for i, rec in enumerate(insights.recommendations, start=1)]

    lines += ["", RULE]
    return "\n".join(lines)
