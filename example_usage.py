#!/usr/bin/env python3
"""
Basic usage examples for the Log Analytics shipper.

Reads LOG_ANALYTICS_WORKSPACE_ID, LOG_ANALYTICS_SHARED_KEY and
LOG_ANALYTICS_LOG_TYPE from the environment or a .env file, then posts a
few messages to the workspace.
"""

import datetime
import logging
import sys

from logshipper import LogShipperClient, LogShipperError, HTTPStatusError


def main():
    """Run basic usage examples."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    print("=== Log Analytics Shipper Usage Examples ===\n")

    print("1. Creating client from environment...")
    try:
        client = LogShipperClient.from_env()
    except LogShipperError as e:
        print(f"   ✗ Could not create client: {e}")
        return 1
    print(f"   Workspace: {client.workspace_id}")
    print(f"   Log type: {client.log_type}")
    print(f"   Endpoint: {client.api_url}\n")

    with client:
        print("2. Posting a single message...")
        try:
            client.post_message("example_usage started")
            print("   ✓ Posted")
        except HTTPStatusError as e:
            print(f"   ✗ Rejected with {e.status_code}, retry scheduled")
        except LogShipperError as e:
            print(f"   ✗ Failed: {e}")
        print()

        print("3. Posting a batch with an explicit timestamp...")
        timestamp = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(minutes=5)
        try:
            client.post_messages(["batch line 1", "batch line 2", "batch line 3"], timestamp)
            print("   ✓ Posted 3 messages")
        except HTTPStatusError as e:
            print(f"   ✗ Rejected with {e.status_code}, retry scheduled")
        except LogShipperError as e:
            print(f"   ✗ Failed: {e}")
        print()

        if client.pending_retries:
            print(f"4. Draining {client.pending_retries} pending retries...")
            client.close(drain=True, timeout=60)

    print("=== Done ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
