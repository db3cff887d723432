"""
Log record construction, serialization and time formatting.
"""

import datetime
import json
from email.utils import format_datetime
from typing import Dict, List, Mapping, Optional, Sequence

from .constants import FIELD_MESSAGE, FIELD_TIMESTAMP


def utc_now() -> datetime.datetime:
    """Default clock: current aware UTC time."""
    return datetime.datetime.now(datetime.timezone.utc)


def to_utc(value: datetime.datetime) -> datetime.datetime:
    """Convert to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def format_rfc3339(value: datetime.datetime) -> str:
    """Format as RFC3339 with second precision, e.g. 2024-01-02T15:04:05Z."""
    return to_utc(value).strftime('%Y-%m-%dT%H:%M:%SZ')


def format_rfc1123(value: datetime.datetime) -> str:
    """Format as an RFC1123 GMT date, e.g. Tue, 02 Jan 2024 15:04:05 GMT."""
    return format_datetime(to_utc(value), usegmt=True)


def build_record(metadata: Mapping[str, str], message: str, timestamp: str) -> Dict[str, str]:
    """Merge static metadata with the message and its timestamp."""
    record = dict(metadata)
    record[FIELD_MESSAGE] = message
    record[FIELD_TIMESTAMP] = timestamp
    return record


def build_records(metadata: Mapping[str, str], messages: Sequence[str],
                  timestamp: datetime.datetime) -> List[Dict[str, str]]:
    """Build one record per message, keeping input order."""
    formatted = format_rfc3339(timestamp)
    return [build_record(metadata, message, formatted) for message in messages]


def serialize_records(records: List[Dict[str, str]]) -> bytes:
    """Serialize records to a compact UTF-8 JSON array; unencodable text becomes '?'."""
    return json.dumps(
        records,
        separators=(',', ':'),
        sort_keys=True,
        ensure_ascii=False
    ).encode('utf-8', 'replace')


def resolve_timestamp(timestamp: Optional[datetime.datetime], clock) -> datetime.datetime:
    """Return the given timestamp in UTC, or the clock's current time."""
    if timestamp is None:
        return to_utc(clock())
    return to_utc(timestamp)
