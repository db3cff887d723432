"""
Log Analytics Shipper

A Python client library that posts log messages to the Azure Monitor
HTTP Data Collector API, signing every request with the workspace
shared key.

Example usage:
    from logshipper import LogShipperClient

    client = LogShipperClient("workspace-id", "base64-key", "MyAppLogs")
    client.post_message("service started")
"""

from .client import LogShipperClient
from .exceptions import (
    LogShipperError,
    ConfigurationError,
    SigningKeyError,
    DeliveryError,
    TransportError,
    HTTPStatusError
)
from .retry import RetryPolicy, RetryWorker
from .signer import build_string_to_sign, sign
from .constants import (
    API_VERSION,
    DEFAULT_CONFIG
)

__version__ = "1.0.0"
__all__ = [
    "LogShipperClient",
    "LogShipperError",
    "ConfigurationError",
    "SigningKeyError",
    "DeliveryError",
    "TransportError",
    "HTTPStatusError",
    "RetryPolicy",
    "RetryWorker",
    "build_string_to_sign",
    "sign",
    "API_VERSION",
    "DEFAULT_CONFIG"
]
