import json
import logging
from pathlib import Path
from typing import Any

import httpx
import yaml

from openapi_coverage.errors import SpecLoadError

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = (".yaml", ".yml")


def _require_mapping(document: Any, source: str) -> dict[str, Any]:
    if not isinstance(document, dict):
        raise SpecLoadError(f"Spec at {source} is not a JSON object")
    return document


def parse_document(text: str, source: str, prefer_yaml: bool = False) -> dict[str, Any]:
    """Parse spec text as JSON (or YAML when preferred, or when JSON fails)."""
    if not prefer_yaml:
        try:
            return _require_mapping(json.loads(text), source)
        except json.JSONDecodeError:
            logger.debug("openapi-coverage: %s is not JSON, trying YAML", source)
    try:
        return _require_mapping(yaml.safe_load(text), source)
    except yaml.YAMLError as exc:
        raise SpecLoadError(f"Failed to parse OpenAPI spec {source}: {exc}") from exc


def load_from_file(path: str | Path) -> dict[str, Any]:
    """Read and parse a JSON or YAML spec file."""
    spec_path = Path(path)
    try:
        text = spec_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SpecLoadError(f"Failed to read OpenAPI spec {spec_path}: {exc}") from exc

    if spec_path.suffix.lower() in _YAML_SUFFIXES:
        return parse_document(text, str(spec_path), prefer_yaml=True)
    try:
        return _require_mapping(json.loads(text), str(spec_path))
    except json.JSONDecodeError as exc:
        raise SpecLoadError(f"Failed to parse OpenAPI spec {spec_path}: {exc}") from exc


def load_from_url(
    url: str,
    *,
    timeout: float = 10.0,
    client: httpx.Client | None = None,
) -> dict[str, Any]:
    """Fetch and parse a spec over HTTP. Non-2xx and transport failures raise SpecLoadError."""
    try:
        if client is not None:
            response = client.get(url, timeout=timeout)
        else:
            with httpx.Client(follow_redirects=True) as owned:
                response = owned.get(url, timeout=timeout)
    except httpx.HTTPError as exc:
        raise SpecLoadError(f"Failed to fetch OpenAPI spec from {url}: {exc}") from exc

    if not response.is_success:
        raise SpecLoadError(
            f"Failed to fetch OpenAPI spec from {url}: HTTP {response.status_code} {response.reason_phrase}"
        )
    logger.debug("openapi-coverage: fetched spec from %s (%d bytes)", url, len(response.content))
    return parse_document(response.text, url)


def load(source: str | Path, **kwargs: Any) -> dict[str, Any]:
    """Load from a URL when ``source`` looks like one, otherwise from a file."""
    if isinstance(source, str) and source.startswith(("http://", "https://")):
        return load_from_url(source, **kwargs)
    return load_from_file(source)
