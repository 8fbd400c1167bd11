#!/usr/bin/env python3
"""Delete session audit events older than the retention window.

Usage:
    python scripts/prune_session_audit_events.py [retentionDays]

Defaults to SESSION_AUDIT_RETENTION_DAYS. Non-numeric values fall back to the default.
"""

import argparse
import asyncio
import sys

import _common


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Prune session audit events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("retention_days", nargs="?", default=None, help="Days to keep")
    args = parser.parse_args()

    _common.setup_logging()
    from src.depends import init_db
    from src.jobs import prune_session_audit_events

    async def run():
        await init_db()
        return await prune_session_audit_events(args.retention_days)

    try:
        return _common.finish(asyncio.run(run()))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
