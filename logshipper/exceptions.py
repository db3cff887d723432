"""
Custom exceptions for the Log Analytics shipper.
"""


class LogShipperError(Exception):
    """Base exception for log shipper errors."""
    pass


class ConfigurationError(LogShipperError):
    """Raised when client configuration is invalid."""
    pass


class SigningKeyError(ConfigurationError):
    """Raised when the workspace secret is not a usable base64 key."""
    pass


class DeliveryError(LogShipperError):
    """Raised when a batch of log records could not be delivered."""
    pass


class TransportError(DeliveryError):
    """Raised when the request could not be sent or no response arrived."""
    pass


class HTTPStatusError(DeliveryError):
    """Raised when the ingestion endpoint answers with a non-200 status."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Post log request failed with status: {status_code} {body}".rstrip())
