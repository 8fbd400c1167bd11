#!/usr/bin/env python3
"""Collect one security metrics snapshot.

Usage:
    python scripts/collect_security_metrics_snapshot.py [windowHours] [topN]

Defaults come from SECURITY_METRICS_WINDOW_HOURS / SECURITY_METRICS_TOP_N.
"""

import argparse
import asyncio
import sys

import _common


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Collect a security metrics snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("window_hours", nargs="?", default=None, help="Trailing window in hours")
    parser.add_argument("top_n", nargs="?", default=None, help="Entries per ranking")
    args = parser.parse_args()

    _common.setup_logging()
    from src.depends import init_db
    from src.jobs import collect_security_metrics_snapshot

    async def run():
        await init_db()
        return await collect_security_metrics_snapshot(args.window_hours, args.top_n)

    try:
        return _common.finish(asyncio.run(run()))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
