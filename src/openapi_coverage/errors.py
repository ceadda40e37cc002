class CoverageError(Exception):
    """Base class for every error raised by openapi-coverage."""


class SpecLoadError(CoverageError):
    """The OpenAPI document was unreachable or could not be parsed."""


class SpecNotLoadedError(CoverageError):
    """Analysis was requested before an OpenAPI document was attached."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "OpenAPI spec not loaded. Call load_spec_from_url() or load_spec_from_file() first."
        )


class TransportError(CoverageError):
    """The wrapped HTTP call failed or returned a non-success status."""

    def __init__(self, method: str, url: str, status: int | None = None, message: str | None = None) -> None:
        self.method = method
        self.url = url
        self.status = status
        if message is None:
            message = f"{method} {url} failed" if status is None else f"{method} {url} returned HTTP {status}"
        super().__init__(message)


class UnsupportedExportFormatError(CoverageError):
    """An export was requested in a format that is not supported."""

    def __init__(self, fmt: str) -> None:
        self.format = fmt
        super().__init__(f"Unsupported export format: {fmt}")
