"""Release unpaid pending holds older than PENDING_BOOKING_TTL_MIN.

Run from cron / a scheduler:
  python -m narcisse.jobs.cleanup_pending [--ttl-minutes 15]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from narcisse.db.base import async_session_factory, engine, session_scope
from narcisse.services.holds import HoldService

logger = logging.getLogger(__name__)


async def cleanup_pending(ttl_minutes: Optional[int] = None, session_factory=async_session_factory) -> int:
    """Release stale holds in one transaction; returns how many were released."""
    async with session_scope(session_factory) as session:
        return await HoldService(session).cleanup_stale(ttl_minutes)


async def _main(ttl_minutes: Optional[int]) -> int:
    try:
        return await cleanup_pending(ttl_minutes)
    finally:
        await engine.dispose()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Release stale pending bookings")
    parser.add_argument("--ttl-minutes", type=int, default=None, help="Override the hold lifetime")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    released = asyncio.run(_main(args.ttl_minutes))
    print(f"Released {released} pending booking(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
