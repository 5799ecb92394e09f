#!/usr/bin/env python3
"""
Gap Analyzer Server
===================
Starts the dashboard (/), the JSON API (/api/gaps) and the health check
(/health) on one port, then opens the dashboard in a browser.

Usage:
    python scripts/run_gap_dashboard.py
    python scripts/run_gap_dashboard.py --apikey YOUR_KEY --port 8083
    python scripts/run_gap_dashboard.py --provider alpaca --no-browser

API key and port fall back to POLYGON_API_KEY / PORT from the environment
(or .env). A missing key stops the server before it starts.
"""

import argparse
import sys
import threading
import webbrowser
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import AppConfig, BROWSER_OPEN_DELAY, SUPPORTED_PROVIDERS
from observability.logger import get_logger, setup_logging
from utils.errors import ConfigurationError

logger = get_logger('server')

# Preferred browsers, tried in order before the system default
PREFERRED_BROWSERS = ("google-chrome", "chrome", "chromium-browser", "chromium")


def open_browser(url: str) -> bool:
    """Open `url` in a new tab, Chrome first, then the system default."""
    for name in PREFERRED_BROWSERS:
        try:
            browser = webbrowser.get(name)
        except webbrowser.Error:
            continue
        if browser.open_new_tab(url):
            return True
    return webbrowser.open_new_tab(url)


def schedule_browser(url: str, delay: float = BROWSER_OPEN_DELAY) -> threading.Timer:
    """Open the browser once the server has had time to bind."""
    timer = threading.Timer(delay, open_browser, args=(url,))
    timer.daemon = True
    timer.start()
    return timer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Opening Gap Analyzer dashboard')
    parser.add_argument('--apikey', default=None,
                        help='Bar provider API key (default: POLYGON_API_KEY / ALPACA_API_KEY)')
    parser.add_argument('--port', type=int, default=None,
                        help='Port to run on (default: PORT or 8083)')
    parser.add_argument('--provider', choices=SUPPORTED_PROVIDERS, default=None,
                        help='Bar provider (default: BAR_PROVIDER or polygon)')
    parser.add_argument('--no-browser', action='store_true',
                        help='Do not open a browser tab')
    parser.add_argument('--log-level', default=None,
                        help='DEBUG, INFO, WARNING or ERROR (default: LOG_LEVEL or INFO)')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = AppConfig.from_env(
            api_key=args.apikey,
            port=args.port,
            provider=args.provider,
            log_level=args.log_level,
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 2

    setup_logging(level=config.log_level)

    # Import after logging is configured
    from observability.dashboard.app import create_app

    app = create_app(config)
    url = f"http://localhost:{config.port}"

    print("=" * 60)
    print("OPENING GAP ANALYZER")
    print("=" * 60)
    print(f"Dashboard: {url}")
    print(f"API:       {url}/api/gaps?ticker=SPY&years=3&minGap=0.3")
    print(f"Health:    {url}/health")
    print("Press Ctrl+C to stop")
    print("=" * 60)

    if not args.no_browser:
        schedule_browser(url)

    logger.info(f"Gap Analyzer running on {url}")
    app.run(debug=False, host=config.host, port=config.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
