from collections.abc import Iterable
from typing import Any
from urllib.parse import parse_qsl, urlsplit


def extract_path(url: str) -> str:
    """Return the path component of a URL, ignoring scheme, host, query and fragment."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.path:
        # "https://h" and "https://h?x=1" both address the root
        return "/" if parts.netloc else url.split("?", 1)[0]
    return parts.path


def endpoint_key(method: str, url: str) -> str:
    """Return the "METHOD /path" key used for endpoint grouping."""
    return f"{method.upper()} {extract_path(url)}"


def group_query_pairs(pairs: Iterable[tuple[Any, Any]]) -> dict[str, Any]:
    """Collect (key, value) pairs into a mapping; repeated keys collect into a list."""
    params: dict[str, Any] = {}
    for key, value in pairs:
        key = str(key)
        if key in params:
            existing = params[key]
            params[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            params[key] = value
    return params


def extract_query_params(query_string: str) -> dict[str, Any]:
    """Parse a query string into a mapping; repeated keys collect into a list."""
    if not query_string:
        return {}
    return group_query_pairs(parse_qsl(query_string, keep_blank_values=True))


def status_class(status: int) -> str:
    """Bucket a status code into its class, e.g. 404 -> "4xx"."""
    return f"{status // 100}xx"


def extract_status_code(response: Any) -> int | None:
    """Read the status code off an httpx/requests/TestClient or any response with a status() method."""
    for attr in ("status_code", "status"):
        value = getattr(response, attr, None)
        if callable(value):
            value = value()
        if value is not None:
            try:
                return int(value)
            except (TypeError, ValueError):
                return None
    return None
