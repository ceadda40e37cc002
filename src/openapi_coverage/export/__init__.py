from openapi_coverage.export.formats import (
    ExportFormat,
    export_observations,
    observations_from_json,
    render,
    to_csv,
    to_json,
    to_junit_xml,
)

__all__ = [
    "ExportFormat",
    "export_observations",
    "observations_from_json",
    "render",
    "to_csv",
    "to_json",
    "to_junit_xml",
]
