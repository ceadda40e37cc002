import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from openapi_coverage.spec.loader import load_from_file, load_from_url
from openapi_coverage.spec.matcher import PathMatcher, compile_template

logger = logging.getLogger(__name__)

# Declaration order within a path item is ignored; operations come out in this order
HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


@dataclass(frozen=True)
class DeclaredOperation:
    path_template: str
    method: str
    operation_id: str | None = None
    summary: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)

    @property
    def key(self) -> tuple[str, str]:
        return (self.method, self.path_template)

    @property
    def label(self) -> str:
        return f"{self.method} {self.path_template}"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path_template, "method": self.method}
        if self.operation_id is not None:
            data["operationId"] = self.operation_id
        if self.summary is not None:
            data["summary"] = self.summary
        data["tags"] = sorted(self.tags)
        return data


def _parse_tags(raw: Any) -> frozenset[str]:
    if isinstance(raw, str):
        return frozenset({raw})
    if isinstance(raw, (list, tuple, set, frozenset)):
        return frozenset(str(tag) for tag in raw if tag is not None)
    return frozenset()


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


class SpecCatalog:
    """The operations declared by an OpenAPI/Swagger document.

    Parsing happens once at construction; the catalog is read-only afterwards.
    """

    def __init__(self, document: Mapping[str, Any] | None) -> None:
        self._document: Mapping[str, Any] = document if isinstance(document, Mapping) else {}
        self._compiled: list[tuple[DeclaredOperation, re.Pattern[str]]] = []

        paths = self._document.get("paths") or {}
        if not isinstance(paths, Mapping):
            logger.debug("openapi-coverage: 'paths' is not a mapping, ignoring it")
            paths = {}

        for template, path_item in paths.items():
            if not isinstance(path_item, Mapping):
                logger.debug("openapi-coverage: skipping non-mapping path item %r", template)
                continue
            pattern = compile_template(str(template))
            for method in HTTP_METHODS:
                operation = path_item.get(method.lower())
                if operation is None:
                    continue
                if not isinstance(operation, Mapping):
                    operation = {}
                declared = DeclaredOperation(
                    path_template=str(template),
                    method=method,
                    operation_id=_optional_str(operation.get("operationId")),
                    summary=_optional_str(operation.get("summary")),
                    tags=_parse_tags(operation.get("tags")),
                )
                self._compiled.append((declared, pattern))

        self._operations = [op for op, _ in self._compiled]
        self._matcher = PathMatcher(self)

    @classmethod
    def from_file(cls, path: str | Path) -> "SpecCatalog":
        return cls(load_from_file(path))

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "SpecCatalog":
        return cls(load_from_url(url, **kwargs))

    @property
    def document(self) -> Mapping[str, Any]:
        return self._document

    def list_operations(self) -> list[DeclaredOperation]:
        return list(self._operations)

    def compiled_operations(self) -> list[tuple[DeclaredOperation, re.Pattern[str]]]:
        return self._compiled

    def base_url(self) -> str | None:
        servers = self._document.get("servers")
        if isinstance(servers, list) and servers:
            first = servers[0]
            if isinstance(first, Mapping) and first.get("url"):
                return str(first["url"])
        return None

    def info(self) -> dict[str, str]:
        raw = self._document.get("info")
        if not isinstance(raw, Mapping):
            return {}
        return {key: str(raw[key]) for key in ("title", "version") if raw.get(key) is not None}

    def match_path(self, path: str) -> list[DeclaredOperation]:
        return self._matcher.match_path(path)

    @property
    def matcher(self) -> PathMatcher:
        return self._matcher

    def __len__(self) -> int:
        return len(self._operations)
