#!/usr/bin/env python3
# PURPOSE: Command-line runner for one StockPro flow.
# CONTEXT: Lets you exercise a flow locally without the web front end.
#          Set USE_BEDROCK=0 to use the deterministic stub model.
# CREDITS: Original work — no reused or adapted external code.
#
# usage:
#   python scripts/flow_cli.py portfolio_suggestion '{"investmentAmount": 10000, "riskTolerance": "Medium"}'
#   echo '{"marketIndicators": "...", "pastStockData": "..."}' | python scripts/flow_cli.py market_insights

import argparse
import json
import sys

from stockpro.flows import FLOWS
from stockpro.logging_setup import configure_logging
from stockpro.request_handler import invoke_flow


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run one StockPro flow and print the JSON response.")
    parser.add_argument("flow", choices=sorted(FLOWS))
    parser.add_argument("payload", nargs="?", help="JSON object with the form fields (default: read stdin)")
    args = parser.parse_args(argv)

    configure_logging()

    text = args.payload if args.payload is not None else sys.stdin.read()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        print(f"Invalid JSON payload: {e}", file=sys.stderr)
        return 2

    out = invoke_flow(args.flow, payload)
    print(json.dumps(out, indent=2))
    return 0 if out["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
