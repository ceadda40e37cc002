from openapi_coverage.coverage.report import CoverageReport

LOW_COVERAGE = 50.0
GOOD_COVERAGE = 80.0
HIGH_ERROR_RATE = 10.0
MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
ADMIN_TAG = "admin"


def recommend(report: CoverageReport, error_rate: float) -> list[str]:
    """Rule-based advice derived from a coverage report and the scope's error rate."""
    recommendations: list[str] = []

    if report.coverage_pct < LOW_COVERAGE:
        recommendations.append(
            "Low API coverage detected. Consider adding more test cases to cover untested endpoints."
        )
    elif report.coverage_pct < GOOD_COVERAGE:
        recommendations.append(
            "Good coverage achieved. Focus on edge cases and error scenarios for remaining endpoints."
        )
    else:
        recommendations.append(
            "Excellent coverage! Consider performance testing and load testing scenarios."
        )

    if error_rate > HIGH_ERROR_RATE:
        recommendations.append(
            f"High error rate ({error_rate:.2f}%). Review failing endpoints and fix underlying issues."
        )

    if report.undeclared_observed:
        recommendations.append(
            f"{len(report.undeclared_observed)} endpoints are not documented in the OpenAPI spec. "
            "Consider updating documentation."
        )

    mutating = [op for op in report.uncovered if op.method in MUTATING_METHODS]
    if mutating:
        recommendations.append(
            f"{len(mutating)} critical endpoints (POST/PUT/PATCH/DELETE) are untested. "
            "Prioritize testing these operations."
        )

    admin = [op for op in report.uncovered if any(tag.lower() == ADMIN_TAG for tag in op.tags)]
    if admin:
        recommendations.append(
            f"{len(admin)} admin endpoints are untested. Ensure admin functionality is properly tested."
        )

    return recommendations
