#!/usr/bin/env python3
"""
Gap Analysis Report (command line)
==================================
Runs one analysis and prints the summary plus the bin, direction and
weekday tables, or the full JSON payload.

Usage:
    python scripts/analyze_gaps.py SPY
    python scripts/analyze_gaps.py QQQ --years 5 --min-gap 0.5
    python scripts/analyze_gaps.py AAPL --intraday --json > aapl_gaps.json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import AppConfig, GAP_ANALYSIS, SUPPORTED_PROVIDERS, parse_analysis_params
from observability.logger import get_logger, setup_logging
from research.gap_analyzer import GapAnalyzer
from utils.errors import ConfigurationError, DataFetchError, ValidationError

logger = get_logger('cli')

TABLE_COLUMNS = ['label', 'count', 'continuation_rate', 'gap_fill_rate',
                 'fade_avg', 'follow_avg', 'recommendation']


def groups_frame(groups: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(groups, columns=TABLE_COLUMNS).set_index('label')


def format_layer(record: Dict[str, Any], title: str) -> str:
    """Plain-text rendering of one layer (daily or 0-15m)."""
    s = record["summary"]
    lines = [
        title,
        "=" * len(title),
        f"Sessions:        {s['sessions']} ({s['gap_ups']} up / {s['gap_downs']} down)",
        f"Continuation:    {s['continuation_rate']:.1f}%",
        f"Gap filled:      {s['gap_fill_rate']:.1f}%",
        f"Mean |gap|:      {s['mean_gap']:.2f}%  (max up {s['max_gap_up']:+.2f}, "
        f"max down {s['max_gap_down']:+.2f})",
        f"Fade avg:        {s['fade_avg']:+.3f}%",
        f"Follow avg:      {s['follow_avg']:+.3f}%",
        f"Best strategy:   {s['best_strategy']} ({s['expected_return']:+.3f}% per session)",
        "",
        "By gap size:",
        groups_frame(record["bins"]).to_string(),
        "",
        "By direction:",
        groups_frame([record["gap_up"], record["gap_down"]]).to_string(),
        "",
        "By weekday:",
        groups_frame(list(record["by_dow"].values())).to_string(),
    ]
    if record.get("cum_fade"):
        lines += [
            "",
            f"Cumulative fade {record['cum_fade'][-1]:+.3f}% / "
            f"follow {record['cum_follow'][-1]:+.3f}% "
            f"({record['cum_dates'][0]} -> {record['cum_dates'][-1]})",
        ]
    return "\n".join(lines)


def format_report(payload: Dict[str, Any]) -> str:
    header = (f"{payload['ticker']}: {payload['years']}y, min gap {payload['min_gap']}%")
    parts = [format_layer(payload, f"Daily gaps - {header}")]

    intraday = payload.get("intraday") or {}
    if intraday.get("enabled"):
        if intraday.get("error"):
            parts.append(f"0-15m overlay unavailable: {intraday['error']}")
        elif "summary" in intraday:
            parts.append(format_layer(intraday, f"First 15 minutes - {intraday['sessions']} sessions"))
    return "\n\n".join(parts)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Opening gap statistics for one ticker')
    parser.add_argument('ticker', help='Stock symbol, e.g. SPY')
    parser.add_argument('--years', type=int, default=GAP_ANALYSIS["default_years"],
                        help='Lookback in years, 1-5 (default: 3)')
    parser.add_argument('--min-gap', type=float, default=GAP_ANALYSIS["default_min_gap"],
                        help='Minimum |gap| in percent (default: 0.3)')
    parser.add_argument('--intraday', action='store_true',
                        help='Add the 09:30-09:45 ET overlay')
    parser.add_argument('--json', action='store_true',
                        help='Print the JSON payload instead of tables')
    parser.add_argument('--apikey', default=None, help='Bar provider API key')
    parser.add_argument('--provider', choices=SUPPORTED_PROVIDERS, default=None)
    parser.add_argument('--log-level', default='WARNING')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = AppConfig.from_env(api_key=args.apikey, provider=args.provider,
                                    log_level=args.log_level)
        params = parse_analysis_params({
            "ticker": args.ticker,
            "years": str(args.years),
            "minGap": str(args.min_gap),
            "intraday": "1" if args.intraday else "0",
        })
    except (ConfigurationError, ValidationError) as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2

    setup_logging(level=config.log_level, log_to_file=False)
    logger.info(f"Analyzing {params.ticker}: {params.years}y, min gap {params.min_gap}% ({config.provider})")

    try:
        result = GapAnalyzer.from_config(config).analyze(params)
    except DataFetchError as e:
        print(f"Data provider error: {e.message}", file=sys.stderr)
        return 1

    payload = result.to_dict()
    if args.json:
        print(json.dumps(payload, indent=2))
    elif not payload["success"]:
        print(f"{params.ticker}: {payload['error']}")
    else:
        print(format_report(payload))
    return 0 if payload["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
