"""
Multi-Timeframe Confluence Engine - Command Line Interface

Evaluates one snapshot file and prints the decision and the market regime.

Usage:
    mtf-confluence snapshot.json
    mtf-confluence snapshot.json --format json
    mtf-confluence snapshot.json --symbol XAUUSD --output decision.json

The snapshot file maps period ids to {"price": ..., "candles": [...]}, where
each candle has open/high/low/close and optional volume/timestamp keys. The
map can also sit under a "periods" key next to an optional "symbol".
"""

import argparse
import json
import sys
from dataclasses import asdict
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

from rich.console import Console

from .formatter import OutputFormatter
from ..signal_generation.core import to_jsonable
from ..utils.logging import configure_logging, configure_verbosity, get_logger

console = Console()
formatter = OutputFormatter()
logger = get_logger(__name__)


def parse_arguments(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Multi-Timeframe Confluence Engine - Decision CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s snapshot.json                          # Evaluate a snapshot
  %(prog)s snapshot.json --format json            # JSON output
  %(prog)s snapshot.json --symbol R_75            # Apply an asset profile
  %(prog)s snapshot.json --output decision.json   # Save to file
  %(prog)s snapshot.json --corroborate            # Add dual trend and market weights

Verbosity Levels:
  %(prog)s snapshot.json --verbose=0              # Warnings and errors only
  %(prog)s snapshot.json --verbose=1              # Normal
  %(prog)s snapshot.json --verbose=2              # Debug
        """,
    )

    parser.add_argument(
        "snapshot",
        help="JSON file with period snapshots",
    )

    parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )

    parser.add_argument(
        "--symbol",
        type=str,
        help="Symbol used to pick the asset profile (overrides the file)",
    )

    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Save JSON output to file",
    )

    parser.add_argument(
        "--no-regime",
        action="store_true",
        help="Skip the market regime path",
    )

    parser.add_argument(
        "--corroborate",
        action="store_true",
        help="Corroborate with the dual trend and market weights of the reference period",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        nargs="?",
        const=1,
        type=int,
        choices=[0, 1, 2],
        default=None,
        help="Verbosity level: 0=warnings, 1=normal, 2=debug (default: LOG_LEVEL)",
    )

    return parser.parse_args(argv)


def load_snapshots(filepath: str) -> Tuple[Optional[str], Dict[str, Any]]:
    """
    Load period snapshots from a JSON file.

    Args:
        filepath: Path to the snapshot file

    Returns:
        Tuple of the symbol found in the file (or None) and the snapshots
        keyed by period

    Raises:
        ValueError: If the file does not hold a period map
    """
    from ..signal_generation.core import PeriodSnapshot

    with open(filepath, "r") as f:
        payload = json.load(f)

    if not isinstance(payload, dict):
        raise ValueError("Snapshot file must contain a JSON object")

    symbol = payload.get("symbol")
    periods = payload.get("periods", payload)
    if not isinstance(periods, dict):
        raise ValueError("'periods' must map period ids to snapshots")

    snapshots = {}
    for period, data in periods.items():
        if period == "symbol" or not isinstance(data, dict):
            continue
        snapshots[period] = PeriodSnapshot.from_candles(
            period, data.get("candles", []), data.get("price")
        )
    return symbol, snapshots


def main(argv=None) -> int:
    """Main CLI entry point."""
    # Load environment variables before reading settings
    load_dotenv()

    from ..config.settings import settings
    from ..signal_generation.signal_generator import MultiTimeframeSignalGenerator

    args = parse_arguments(argv)

    if args.verbose is None:
        configure_logging(settings.logging.LEVEL, settings.logging.JSON)
    else:
        configure_verbosity(args.verbose)

    try:
        file_symbol, snapshots = load_snapshots(args.snapshot)
    except FileNotFoundError:
        formatter.print_error(f"Snapshot file not found: {args.snapshot}")
        return 1
    except (json.JSONDecodeError, ValueError) as e:
        formatter.print_error(f"Invalid snapshot file: {e}")
        return 1

    symbol = args.symbol or file_symbol or settings.engine.DEFAULT_SYMBOL
    generator = MultiTimeframeSignalGenerator.from_settings(symbol)

    try:
        cycle = generator.run_cycle(
            snapshots,
            run_regime=settings.engine.RUN_REGIME_PATH and not args.no_regime,
            corroborate=args.corroborate,
        )
    except Exception as e:
        logger.exception("Cycle failed", error=str(e))
        formatter.print_error(f"Error: {e}")
        return 1

    result = formatter.build_result(
        symbol,
        cycle.decision.to_dict(),
        cycle.regime.summary() if cycle.regime else None,
        to_jsonable(asdict(cycle.corroboration)) if cycle.corroboration else None,
    )

    if args.format == "json":
        console.print_json(formatter.format_json(result))
    else:
        formatter.format_table(result)

    if args.output:
        with open(args.output, "w") as f:
            f.write(formatter.format_json(result))
        formatter.print_success(f"Results saved to {args.output}")

    return 1 if cycle.decision.error else 0


if __name__ == "__main__":
    sys.exit(main())
