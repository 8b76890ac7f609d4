"""Errors raised by the search proxy and the cached result client."""


class PdfChooserError(Exception):
    """Base exception for the PDF chooser."""


class ConfigurationError(PdfChooserError):
    """Raised when no HubSpot credential is available."""


class UpstreamError(PdfChooserError):
    """A non-success HTTP response, carried with its status and body verbatim."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"upstream error {status_code}: {body}")


class CacheCorruptionError(PdfChooserError):
    """A stored cache entry could not be parsed."""


class NetworkError(PdfChooserError):
    """The request never produced an HTTP response."""


class InvalidResponseError(PdfChooserError):
    """A success response whose body is not the expected JSON shape."""
