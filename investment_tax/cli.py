"""
Investment Tax Engine - command line interface.

Usage:
    investment-tax asset disposal.json
    investment-tax sip sip.json --prices nav_history.xlsx --as-of 2025-06-30
    investment-tax --rules fy2026_27.json --json asset disposal.json
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .calculator import AssetTaxCalculator, SIPTaxCalculator
from .lots import PriceSeries
from .models import InvalidInputError
from .parsers import AssetInputParser, SIPInputParser, load_price_history, load_request_file
from .reports import ConsoleReporter
from .rules import BUILTIN_RULES, RulesStore, load_rules_file
from .utils import parse_date


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="investment-tax",
        description="Capital gains tax engine for Indian investments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  investment-tax asset disposal.json
    (Classify and tax a single disposal)

  investment-tax sip sip.json --prices nav_history.xlsx
    (FIFO redemption of a SIP using a NAV history workbook)

  investment-tax --fiscal-year 2024-25 --json asset disposal.json
    (Use the built-in FY 2024-25 rules and print JSON)
""",
    )
    parser.add_argument("--rules", dest="rules_file",
                        help="Path to a JSON tax rules file (overrides --fiscal-year)")
    parser.add_argument("--fiscal-year", dest="fiscal_year", default="2025-26",
                        choices=sorted(BUILTIN_RULES),
                        help="Built-in rule set to use (default: 2025-26)")
    parser.add_argument("--json", dest="as_json", action="store_true",
                        help="Print the result as JSON instead of the console report")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    asset = subparsers.add_parser("asset", help="Tax a single asset disposal")
    asset.add_argument("input_file", help="JSON file describing the disposal")

    sip = subparsers.add_parser("sip", help="Tax a SIP / lump-sum fund redemption")
    sip.add_argument("input_file", help="JSON file describing the investment")
    sip.add_argument("--prices", "-p", dest="prices_file",
                     help="NAV history (.xlsx or .json); overrides any history in the input")
    sip.add_argument("--as-of", dest="as_of",
                     help="Date used as 'today' for exit simulations (YYYY-MM-DD)")
    sip.add_argument("--workers", dest="max_workers", type=int, default=None,
                     help="Threads used for exit simulations")

    return parser


def _rules_store(args) -> RulesStore:
    if args.rules_file:
        return RulesStore(load_rules_file(args.rules_file))
    return RulesStore(BUILTIN_RULES[args.fiscal_year])


def _run_asset(args, store: RulesStore):
    asset = AssetInputParser().parse(load_request_file(args.input_file))
    return AssetTaxCalculator(rules_provider=store).calculate(asset)


def _run_sip(args, store: RulesStore):
    sip = SIPInputParser().parse(load_request_file(args.input_file))
    prices = None
    if args.prices_file:
        history = load_price_history(args.prices_file)
        if not history:
            raise InvalidInputError(f"No prices found in {args.prices_file}")
        prices = PriceSeries(history=history)
    as_of = parse_date(args.as_of) if args.as_of else None
    calculator = SIPTaxCalculator(rules_provider=store, max_workers=args.max_workers)
    return calculator.calculate(sip, as_of=as_of, prices=prices)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to run the investment tax engine."""
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")

    parser = create_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        store = _rules_store(args)
        if args.command == "asset":
            result = _run_asset(args, store)
        else:
            result = _run_sip(args, store)
    except FileNotFoundError as e:
        print(f"[ERROR] {e}")
        return 1
    except (InvalidInputError, ValueError) as e:
        print(f"[ERROR] Invalid input: {e}")
        return 2

    if args.as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        ConsoleReporter().generate(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
