"""Exceptions raised inside the metadata pipeline."""


class MetadataError(Exception):
    """Base class for metadata pipeline errors."""


class ConfigurationIncomplete(MetadataError):
    """Endpoint settings are missing or still hold sample values. Not retried."""


class TransportError(MetadataError):
    """A request to the provider failed."""

    def __init__(self, message: str, status_code: int | None = None, attempts: int = 0):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.attempts = attempts

    def __str__(self) -> str:
        return self.message


class NetworkOrTimeoutError(TransportError):
    """Connection failure or per-attempt timeout. Retried."""


class HttpStatusError(TransportError):
    """Provider answered with a non-2xx status. Retried."""


class ResponseShapeError(MetadataError):
    """Response carries no usable content field. Degrades to a raw-response record."""


class ParseFailure(MetadataError):
    """Content is not a JSON object. Degrades to plain text."""
