"""Environment configuration for the Log Analytics shipper."""

import os
from typing import Dict, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

ENV_WORKSPACE_ID = "LOG_ANALYTICS_WORKSPACE_ID"
ENV_SHARED_KEY = "LOG_ANALYTICS_SHARED_KEY"
ENV_LOG_TYPE = "LOG_ANALYTICS_LOG_TYPE"
ENV_METADATA = "LOG_ANALYTICS_METADATA"


def parse_metadata(raw: Optional[str]) -> Dict[str, str]:
    """Parse ``key=value,key2=value2`` into a dict."""
    metadata = {}
    if not raw:
        return metadata

    for pair in raw.split(','):
        pair = pair.strip()
        if not pair:
            continue
        key, sep, value = pair.partition('=')
        if not sep or not key.strip():
            raise ConfigurationError(f"{ENV_METADATA} entry {pair!r} is not key=value")
        metadata[key.strip()] = value.strip()
    return metadata


def load_settings(dotenv_path: Optional[str] = None) -> Dict:
    """
    Read client settings from the environment, loading a .env file first.

    Variables already set in the environment take precedence over .env.

    Raises:
        ConfigurationError: If a required variable is missing
    """
    load_dotenv(dotenv_path)

    settings = {
        'workspace_id': os.getenv(ENV_WORKSPACE_ID),
        'workspace_secret': os.getenv(ENV_SHARED_KEY),
        'log_type': os.getenv(ENV_LOG_TYPE),
    }
    missing = [name for name, key in (
        (ENV_WORKSPACE_ID, 'workspace_id'),
        (ENV_SHARED_KEY, 'workspace_secret'),
        (ENV_LOG_TYPE, 'log_type'),
    ) if not settings[key]]
    if missing:
        raise ConfigurationError(f"missing environment variables: {', '.join(missing)}")

    settings['metadata'] = parse_metadata(os.getenv(ENV_METADATA))
    return settings
