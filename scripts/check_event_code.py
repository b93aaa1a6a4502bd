#!/usr/bin/env python3
"""Look up a join code and print its state and linked events.

Usage:
    python scripts/check_event_code.py [CODE]
"""

import asyncio
import sys

from app.core.database import get_session_context
from app.services.codes import get_code_by_value, list_codes


async def check(code: str) -> int:
    async with get_session_context() as session:
        record = await get_code_by_value(code, session)
        if record is None:
            print(f"No event code {code.upper()!r}")
            return 1
        info = next(c for c in await list_codes(session) if c["id"] == record.id)

    print(f"Code:     {info['code']}")
    print(f"Active:   {info['is_active']}")
    print(f"Master:   {info['is_master']}")
    print(f"Expires:  {info['expires_at'] or '-'}")
    for event in info["events"]:
        print(f"  - {event['name']} ({event['id']})")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(check(sys.argv[1] if len(sys.argv) > 1 else "NOEL-2025-SOIR")))
