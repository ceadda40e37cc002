"""Serialization of an observation sequence into JSON, CSV and JUnit XML.

The output mirrors what existing dashboards and CI parsers already consume:
numbers are written the way a JavaScript runtime would print them (``1`` not
``1.0``) and timestamps as ``YYYY-MM-DDTHH:MM:SS.mmmZ``.
"""

import json
import logging
import math
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any
from xml.sax.saxutils import escape

from openapi_coverage.capture.extractor import endpoint_key
from openapi_coverage.capture.observation import Observation
from openapi_coverage.errors import UnsupportedExportFormatError

logger = logging.getLogger(__name__)

CSV_HEADERS = ("Method", "URL", "Status", "Duration(ms)", "Timestamp")
DEFAULT_SUITE_NAME = "API Tests"
_MISSING = "N/A"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    JUNIT = "junit"

    @classmethod
    def parse(cls, value: "ExportFormat | str") -> "ExportFormat":
        try:
            return cls(str(value.value if isinstance(value, ExportFormat) else value).lower())
        except ValueError:
            raise UnsupportedExportFormatError(str(value)) from None


def iso_timestamp(epoch_ms: int) -> str:
    dt = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def js_number(value: float) -> int | float:
    """Collapse integral floats to int so they print as ``100`` rather than ``100.0``."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _round2(value: float) -> float:
    # Half-up, not banker's rounding
    return math.floor(value * 100 + 0.5) / 100


def success_rate(observations: list[Observation]) -> float:
    if not observations:
        return 0
    successful = sum(1 for obs in observations if obs.status and obs.status < 400)
    return _round2(successful / len(observations) * 100)


def average_duration(observations: list[Observation]) -> float:
    if not observations:
        return 0
    total = sum(obs.duration_ms or 0 for obs in observations)
    return _round2(total / len(observations))


def to_json(observations: list[Observation], now: datetime | None = None, indent: int | None = 2) -> str:
    summary = {
        "totalRequests": len(observations),
        "uniqueEndpoints": len({endpoint_key(obs.method, obs.url) for obs in observations}),
        "successRate": js_number(success_rate(observations)),
        "averageDuration": js_number(average_duration(observations)),
        "timestamp": iso_timestamp(int((now or datetime.now(timezone.utc)).timestamp() * 1000)),
    }
    return json.dumps(
        {"summary": summary, "requests": [obs.to_dict() for obs in observations]},
        indent=indent,
    )


def observations_from_json(text: str) -> list[Observation]:
    """Parse the ``requests`` array of a JSON export back into observations."""
    data = json.loads(text)
    requests = data.get("requests", []) if isinstance(data, dict) else data
    return [Observation.from_dict(item) for item in requests]


def to_csv(observations: list[Observation], include_headers: bool = True) -> str:
    lines: list[str] = []
    if include_headers:
        lines.append(",".join(CSV_HEADERS))
    for obs in observations:
        url = obs.url.replace('"', '""')
        lines.append(",".join([
            obs.method.upper(),
            f'"{url}"',
            str(obs.status) if obs.status is not None else _MISSING,
            str(obs.duration_ms) if obs.duration_ms is not None else _MISSING,
            iso_timestamp(obs.timestamp),
        ]))
    return "".join(f"{line}\n" for line in lines)


def _attr(value: str) -> str:
    return escape(value, {'"': "&quot;"})


def to_junit_xml(observations: list[Observation], suite_name: str = DEFAULT_SUITE_NAME) -> str:
    failures = sum(1 for obs in observations if obs.status is not None and obs.status >= 400)
    total_time = sum(obs.duration_ms or 0 for obs in observations) / 1000

    xml = '<?xml version="1.0" encoding="UTF-8"?>\n'
    xml += (
        f'<testsuite name="{_attr(suite_name)}" tests="{len(observations)}" '
        f'failures="{failures}" time="{js_number(total_time)}">\n'
    )
    for obs in observations:
        name = _attr(endpoint_key(obs.method, obs.url))
        time_s = js_number((obs.duration_ms or 0) / 1000)
        xml += f'  <testcase name="{name}" time="{time_s}" classname="API.{_attr(obs.method.upper())}"'
        if obs.status is not None and obs.status >= 400:
            xml += (
                f'>\n    <failure message="HTTP {obs.status}" type="HttpError">'
                f"Request failed with status {obs.status}</failure>\n  </testcase>\n"
            )
        else:
            xml += " />\n"
    xml += "</testsuite>"
    return xml


def render(
    observations: list[Observation],
    fmt: ExportFormat | str,
    *,
    include_headers: bool = True,
    suite_name: str = DEFAULT_SUITE_NAME,
    now: datetime | None = None,
) -> str:
    export_format = ExportFormat.parse(fmt)
    if export_format is ExportFormat.JSON:
        return to_json(observations, now=now)
    if export_format is ExportFormat.CSV:
        return to_csv(observations, include_headers=include_headers)
    return to_junit_xml(observations, suite_name=suite_name)


def export_observations(
    observations: list[Observation],
    fmt: ExportFormat | str,
    file_path: str | Path,
    **kwargs: Any,
) -> Path:
    """Render observations and write them to ``file_path``; nothing is written on failure."""
    content = render(observations, fmt, **kwargs)
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info("openapi-coverage: exported %d observation(s) to %s", len(observations), path)
    return path
