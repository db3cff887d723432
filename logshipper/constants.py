"""
Constants for the Log Analytics shipper.
Values follow the Azure Monitor HTTP Data Collector API.
"""

# HTTP Headers
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_LOG_TYPE = "Log-Type"
HEADER_MS_DATE = "x-ms-date"
HEADER_TIME_GENERATED_FIELD = "time-generated-field"

# Request signing
SIGNING_METHOD = "POST"
CONTENT_TYPE = "application/json"
RESOURCE = "/api/logs"
AUTH_SCHEME = "SharedKey"

# Endpoint
INGESTION_HOST = "ods.opinsights.azure.com"
API_VERSION = "2016-04-01"
API_URL_TEMPLATE = "https://{workspace_id}." + INGESTION_HOST + RESOURCE + "?api-version=" + API_VERSION

# Record fields
FIELD_MESSAGE = "message"
FIELD_TIMESTAMP = "Timestamp"

# Log-Type may only contain letters, numbers and underscores
MAX_LOG_TYPE_LENGTH = 100

# Default configuration values
DEFAULT_CONFIG = {
    'timeout': 30,                # HTTP timeout in seconds
    'retry_delay': 15,            # seconds before the first retry
    'max_retries': 3,             # retries per failed batch, 0 disables
    'backoff_factor': 2.0,        # delay multiplier between retries
    'max_pending_retries': 100,   # queued retry jobs before new ones are dropped
    'api_url': None,              # override of the ingestion URL
}
