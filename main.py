"""
Command-line entry point.

Runs the offline console demo or prints a single price preview.

Usage:
    Console demo:  python main.py console [--scenario booking|cancel|extend]
    Price preview: python main.py quote LOT_ID START END [SERVICE_ID ...]
                   (START/END in ISO 8601, e.g. 2026-10-20T10:00+05:30)
"""

import logging
import sys
from datetime import datetime

from parkspot.config import settings
from parkspot.schemas.pricing_schema import ServiceSelection

logger = logging.getLogger(__name__)

USAGE = (
    "usage: python main.py console [--scenario NAME]\n"
    "       python main.py quote LOT_ID START END [SERVICE_ID ...]"
)


def _run_console_mode() -> None:
    """Start the offline console demo."""
    from console_demo import main as console_main

    sys.argv = [sys.argv[0]] + sys.argv[2:]
    console_main()


def _run_quote(args: list[str]) -> int:
    """Print a price preview for one window at one lot."""
    from parkspot.tools.booking import quote_price

    if len(args) < 3:
        print(USAGE)
        return 2
    lot_id, start_raw, end_raw, *service_ids = args
    try:
        start = datetime.fromisoformat(start_raw)
        end = datetime.fromisoformat(end_raw)
    except ValueError as exc:
        print(f"Invalid timestamp: {exc}")
        return 2

    result = quote_price(lot_id, start, end, [ServiceSelection(service_id=s) for s in service_ids])
    if not result["success"]:
        print(f"Error ({result['error']}): {result['message']}")
        return 1
    print(result["quote"].model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    logger.debug("Starting %s", settings.app_name)
    command = sys.argv[1] if len(sys.argv) > 1 else ""
    if command == "console":
        _run_console_mode()
    elif command == "quote":
        sys.exit(_run_quote(sys.argv[2:]))
    else:
        print(USAGE)
        sys.exit(2)
