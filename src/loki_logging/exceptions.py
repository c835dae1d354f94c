"""
Exception hierarchy for the Loki logging client
"""

from typing import Optional


class LokiLoggingError(Exception):
    """Base class for all client errors"""


class ConfigurationError(LokiLoggingError, ValueError):
    """Raised when a client configuration value is invalid"""


class RenderError(LokiLoggingError):
    """Raised when a record payload cannot be rendered to a line"""


class SerializationError(LokiLoggingError):
    """Raised when a batch cannot be encoded into a push payload"""


class TransportError(LokiLoggingError):
    """Raised when the push request cannot be completed"""


class ProtocolError(LokiLoggingError):
    """Raised when the endpoint answers with an unexpected status"""

    def __init__(self, status: int, body: Optional[str] = None):
        self.status = status
        self.body = body or ""
        super().__init__(f"Unexpected HTTP status code: {status}, message: {self.body}")
