#!/usr/bin/env python3
"""Delete security metrics snapshots older than the retention window.

Usage:
    python scripts/prune_security_metrics_snapshots.py [retentionDays]

Defaults to SECURITY_METRICS_SNAPSHOT_RETENTION_DAYS. Non-numeric values fall back to the default.
"""

import argparse
import asyncio
import sys

import _common


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Prune security metrics snapshots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("retention_days", nargs="?", default=None, help="Days to keep")
    args = parser.parse_args()

    _common.setup_logging()
    from src.depends import init_db
    from src.jobs import prune_security_metrics_snapshots

    async def run():
        await init_db()
        return await prune_security_metrics_snapshots(args.retention_days)

    try:
        return _common.finish(asyncio.run(run()))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
