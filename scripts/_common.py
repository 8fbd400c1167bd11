"""Shared bootstrapping for the maintenance scripts."""

import json
import logging
import sys
from pathlib import Path

# Add project root to path for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def setup_logging():
    from config import ApplicationConfig

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def finish(result) -> int:
    """Print the JSON summary (or error) of a Result and return an exit code."""
    if result.is_err():
        print(json.dumps({"error": {"code": result.error.code, "message": result.error.message}}))
        return 1
    print(result.value.model_dump_json(by_alias=True))
    return 0
