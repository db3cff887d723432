"""
Log Analytics client for the Azure Monitor HTTP Data Collector API.

This module posts batches of log messages as JSON records, signing each
request with the workspace shared key, and hands batches rejected by the
service to a background retry worker.
"""

import datetime
import logging
import re
from typing import Callable, Dict, Mapping, Optional, Sequence

import requests

from .constants import (
    API_URL_TEMPLATE,
    CONTENT_TYPE,
    DEFAULT_CONFIG,
    FIELD_TIMESTAMP,
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_TYPE,
    HEADER_LOG_TYPE,
    HEADER_MS_DATE,
    HEADER_TIME_GENERATED_FIELD,
    MAX_LOG_TYPE_LENGTH
)
from .exceptions import (
    ConfigurationError,
    HTTPStatusError,
    TransportError
)
from .records import (
    build_records,
    format_rfc1123,
    resolve_timestamp,
    serialize_records,
    utc_now
)
from .retry import RetryPolicy, RetryWorker
from .signer import (
    build_authorization,
    build_string_to_sign,
    decode_signing_key,
    sign
)

logger = logging.getLogger(__name__)

LOG_TYPE_PATTERN = re.compile(r'^[A-Za-z0-9_]+$')


class LogShipperClient:
    """
    Client for shipping log messages to a Log Analytics workspace.

    One instance holds a single ``requests`` session and may be shared by
    concurrent callers; identity, key and metadata never change after
    construction.
    """

    def __init__(self, workspace_id: str, workspace_secret: str, log_type: str,
                 metadata: Optional[Mapping[str, str]] = None,
                 clock: Optional[Callable[[], datetime.datetime]] = None,
                 **config):
        """
        Initialize the client.

        Args:
            workspace_id: Workspace identifier (URL host and signature key id)
            workspace_secret: Base64 workspace shared key
            log_type: Custom log name sent as the Log-Type header
            metadata: Static fields merged into every record
            clock: Callable returning the current aware UTC datetime
            **config: Configuration options (timeout, retry_delay, max_retries,
                backoff_factor, max_pending_retries, api_url)

        Raises:
            ConfigurationError: If any argument or option is invalid
            SigningKeyError: If workspace_secret is not valid base64
        """
        self.workspace_id = workspace_id
        self.log_type = log_type
        self.metadata: Dict[str, str] = dict(metadata or {})
        self.clock = clock or utc_now

        # Merge default config with user overrides
        self.config = {**DEFAULT_CONFIG, **config}
        self._validate_config()

        self._signing_key = decode_signing_key(workspace_secret)
        self.api_url = self.config['api_url'] or API_URL_TEMPLATE.format(workspace_id=workspace_id)

        self.session = requests.Session()
        self._retry_worker = RetryWorker(
            self._send_batch,
            RetryPolicy(
                max_retries=self.config['max_retries'],
                delay=self.config['retry_delay'],
                backoff_factor=self.config['backoff_factor']
            ),
            max_pending=self.config['max_pending_retries']
        )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None, **kwargs) -> "LogShipperClient":
        """Create a client from LOG_ANALYTICS_* environment variables."""
        from .config import load_settings

        settings = load_settings(dotenv_path)
        return cls(
            settings['workspace_id'],
            settings['workspace_secret'],
            settings['log_type'],
            metadata=settings['metadata'],
            **kwargs
        )

    def _validate_config(self):
        """Validate client configuration."""
        if not self.workspace_id:
            raise ConfigurationError("workspace_id cannot be empty")

        if not self.log_type:
            raise ConfigurationError("log_type cannot be empty")

        if len(self.log_type) > MAX_LOG_TYPE_LENGTH or not LOG_TYPE_PATTERN.match(self.log_type):
            raise ConfigurationError(
                f"log_type must be at most {MAX_LOG_TYPE_LENGTH} letters, digits or underscores"
            )

        for key, value in self.metadata.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise ConfigurationError(f"metadata entry {key!r} must map a string to a string")

        if self.config['timeout'] <= 0:
            raise ConfigurationError("timeout must be positive")

        if self.config['retry_delay'] <= 0:
            raise ConfigurationError("retry_delay must be positive")

        if self.config['backoff_factor'] <= 0:
            raise ConfigurationError("backoff_factor must be positive")

        if self.config['max_retries'] < 0:
            raise ConfigurationError("max_retries cannot be negative")

        if self.config['max_pending_retries'] < 0:
            raise ConfigurationError("max_pending_retries cannot be negative")

    @property
    def pending_retries(self) -> int:
        """Number of batches waiting for a retry."""
        return self._retry_worker.pending

    def build_headers(self, content_length: int, date: str) -> Dict[str, str]:
        """
        Build signed request headers.

        Args:
            content_length: Byte length of the request body
            date: RFC1123 date, used for both the signature and x-ms-date

        Returns:
            Header mapping for the POST request
        """
        string_to_sign = build_string_to_sign(content_length, date)
        signature = sign(string_to_sign, self._signing_key)

        return {
            HEADER_AUTHORIZATION: build_authorization(self.workspace_id, signature),
            HEADER_CONTENT_TYPE: CONTENT_TYPE,
            HEADER_LOG_TYPE: self.log_type,
            HEADER_MS_DATE: date,
            HEADER_TIME_GENERATED_FIELD: FIELD_TIMESTAMP
        }

    def _send_batch(self, messages: Sequence[str], timestamp: datetime.datetime):
        """
        Serialize, sign and POST one batch.

        Raises:
            TransportError: If no response was received
            HTTPStatusError: If the response status is not 200
        """
        records = build_records(self.metadata, messages, timestamp)
        body = serialize_records(records)
        date = format_rfc1123(self.clock())
        headers = self.build_headers(len(body), date)

        try:
            response = self.session.request(
                'POST', self.api_url, data=body, headers=headers,
                timeout=self.config['timeout']
            )
        except requests.RequestException as e:
            raise TransportError(f"Failed to post request: {e}") from e

        if response.status_code != 200:
            raise HTTPStatusError(response.status_code, response.text)

        logger.info("Posted %d messages", len(records))

    def post_messages(self, messages: Sequence[str], timestamp: Optional[datetime.datetime] = None):
        """
        Post a batch of messages to Log Analytics.

        Args:
            messages: Log messages, one record each
            timestamp: Time of the messages; defaults to now (UTC)

        Raises:
            TypeError: If messages is a single str
            TransportError: If the request could not be sent (not retried)
            HTTPStatusError: If the service rejected the batch; a retry of
                the same batch has been scheduled
        """
        if isinstance(messages, str):
            raise TypeError("messages must be a sequence of strings, not a single str")

        messages = list(messages)
        if not messages:
            logger.debug("No messages to post")
            return

        timestamp = resolve_timestamp(timestamp, self.clock)

        try:
            self._send_batch(messages, timestamp)
        except HTTPStatusError as e:
            logger.warning("Post of %d messages failed with status %d", len(messages), e.status_code)
            self._retry_worker.schedule(messages, timestamp)
            raise

    def post_message(self, message: str, timestamp: Optional[datetime.datetime] = None):
        """Post a single message to Log Analytics."""
        self.post_messages([message], timestamp)

    def close(self, drain: bool = False, timeout: Optional[float] = None):
        """
        Stop the retry worker and close the HTTP session.

        Args:
            drain: Attempt every pending retry once before closing
            timeout: Seconds to wait for the retry worker
        """
        self._retry_worker.shutdown(drain=drain, timeout=timeout)
        if self.session:
            self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
