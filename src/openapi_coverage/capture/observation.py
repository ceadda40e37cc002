from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Scope(str, Enum):
    """Selects which observation sequence an operation reads."""

    LOCAL = "local"
    SHARED = "shared"


@dataclass(frozen=True)
class Observation:
    method: str
    url: str
    timestamp: int  # epoch milliseconds
    query_params: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    status: int | None = None
    duration_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the wire field names, omitting absent values."""
        data: dict[str, Any] = {
            "method": self.method,
            "url": self.url,
            "timestamp": self.timestamp,
        }
        if self.query_params is not None:
            data["queryParams"] = dict(self.query_params)
        if self.headers is not None:
            data["headers"] = dict(self.headers)
        if self.status is not None:
            data["status"] = self.status
        if self.duration_ms is not None:
            data["durationMs"] = self.duration_ms
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Observation":
        status = data.get("status")
        duration = data.get("durationMs")
        return cls(
            method=str(data["method"]).upper(),
            url=str(data["url"]),
            timestamp=int(data["timestamp"]),
            query_params=data.get("queryParams"),
            headers=data.get("headers"),
            status=int(status) if status is not None else None,
            duration_ms=int(duration) if duration is not None else None,
        )


@dataclass
class EndpointUsage:
    endpoint: str
    call_count: int = 0
    total_duration: int = 0
    average_duration: float = 0.0
    status_codes: set[int] = field(default_factory=set)
    first_called: int = 0
    last_called: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "callCount": self.call_count,
            "totalDuration": self.total_duration,
            "averageDuration": self.average_duration,
            "statusCodes": sorted(self.status_codes),
            "firstCalled": self.first_called,
            "lastCalled": self.last_called,
        }
