#!/usr/bin/env python3
"""
Affinity Webhook Simulator

Posts a sample Affinity "field_value.updated" webhook to a running instance
so the EV recomputation can be checked end to end.

Usage:
    python scripts/send_test_webhook.py <list_entry_id> [base_url]

The list id in the sample payload is taken from AFFINITY_LIST_ID (.env is
loaded), defaulting to the configured target list.
"""

import asyncio
import json
import sys
from pathlib import Path

# Add parent directory to path so we can import from app
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from app.config import Settings

DEFAULT_BASE_URL = "http://localhost:8000"


def build_payload(list_entry_id: str, list_id: int) -> dict:
    # Same envelope Affinity sends: the event sits under "body"
    return {
        "type": "field_value.updated",
        "body": {
            "list_entry_id": list_entry_id,
            "field": {"list_id": list_id},
        },
    }


async def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    list_entry_id = sys.argv[1]
    base_url = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_BASE_URL
    settings = Settings()

    payload = build_payload(list_entry_id, settings.affinity_list_id)

    print("=" * 60)
    print("Affinity Webhook Simulator")
    print("=" * 60)
    print()
    print(f"POST {base_url}/webhooks/affinity-ev")
    print(json.dumps(payload, indent=2))
    print()

    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        response = await client.post(f"{base_url}/webhooks/affinity-ev", json=payload)

    print(f"Status: {response.status_code}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


if __name__ == "__main__":
    asyncio.run(main())
