"""
Gap Analyzer Configuration
==========================
THE ONLY PLACE PATHS AND CORE SETTINGS ARE DEFINED.

Module-level constants are defaults. The running server builds a single
AppConfig from these defaults, the environment (.env) and command-line
overrides, and passes it down explicitly:

    config = AppConfig.from_env(api_key=args.apikey, port=args.port)
    app = create_app(config)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional
import os

from dotenv import load_dotenv

from utils.errors import ConfigurationError, ValidationError

# Look for .env in the same directory as config.py, then fall back to the
# default search (current directory and parents)
_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)
else:
    load_dotenv()

# ============================================================================
# ENVIRONMENT DETECTION
# ============================================================================

# Check for environment variable override (useful for testing)
_env_root = os.environ.get("GAP_ANALYZER_ROOT")

if _env_root:
    DATA_ROOT = Path(_env_root)
else:
    # Development: everything lives next to the code
    DATA_ROOT = Path(__file__).parent.resolve()

# ============================================================================
# DIRECTORY STRUCTURE
# ============================================================================

DIRS = {
    "logs":          DATA_ROOT / "logs",
}

# ============================================================================
# API CONFIGURATION
# ============================================================================

# Bar provider: "polygon" (default) or "alpaca"
BAR_PROVIDER = os.environ.get("BAR_PROVIDER", "polygon").lower()
SUPPORTED_PROVIDERS = ("polygon", "alpaca")

# Polygon.io
POLYGON_API_KEY = os.environ.get("POLYGON_API_KEY", "")
POLYGON_BASE_URL = "https://api.polygon.io"
# Unadjusted bars give the literal print-to-print gap (prior close -> open)
POLYGON_ADJUSTED = os.environ.get("POLYGON_ADJUSTED", "false").lower() == "true"

# Alpaca - load from environment or .env file
ALPACA_API_KEY = os.environ.get("ALPACA_API_KEY", "")
ALPACA_SECRET_KEY = os.environ.get("ALPACA_SECRET_KEY", "")

# ============================================================================
# HTTP SERVER
# ============================================================================

DEFAULT_PORT = 8083
DEFAULT_HOST = "0.0.0.0"
BROWSER_OPEN_DELAY = 0.5         # Seconds to wait before opening the dashboard

# ============================================================================
# GAP ANALYSIS PARAMETERS
# ============================================================================

GAP_ANALYSIS = {
    "default_years": 3,
    "min_years": 1,
    "max_years": 5,
    "default_min_gap": 0.3,          # Percent, inclusive lower bound on |gap|
    "max_min_gap": 20.0,             # Exclusive upper bound for minGap
}

# ============================================================================
# INTRADAY DATA (0-15 minute overlay)
# ============================================================================

INTRADAY_DATA_CONFIG = {
    "enabled": os.environ.get("INTRADAY_ENABLED", "true").lower() == "true",
    "timespan": "minute",              # "minute" or "15minute"
    "window_minutes": 15,              # 09:30 -> 09:45 ET
    "rate_limit_seconds": 0.25,        # Delay between API calls
    "max_parallel_downloads": 4,       # Bounded fan-out per request
}

# ============================================================================
# REQUEST TIMEOUTS
# ============================================================================

REQUEST_TIMEOUT = 30.0           # Individual HTTP request timeout (seconds)

# ============================================================================
# LOGGING
# ============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log rotation
LOG_MAX_BYTES = 10_000_000       # 10 MB
LOG_BACKUP_COUNT = 5


# ============================================================================
# RUNTIME CONFIGURATION
# ============================================================================

@dataclass(frozen=True)
class AppConfig:
    """
    Process-wide settings, constructed once at start-up.

    Nothing in the analysis code reads this directly; the HTTP boundary and
    the bar fetchers receive it as a parameter.
    """
    provider: str = BAR_PROVIDER
    polygon_api_key: str = ""
    alpaca_api_key: str = ""
    alpaca_secret_key: str = ""
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    polygon_adjusted: bool = POLYGON_ADJUSTED
    intraday_enabled: bool = True
    intraday_timespan: str = "minute"
    rate_limit_seconds: float = 0.25
    max_parallel_downloads: int = 4
    request_timeout: float = REQUEST_TIMEOUT
    log_level: str = LOG_LEVEL

    @classmethod
    def from_env(
        cls,
        api_key: Optional[str] = None,
        port: Optional[int] = None,
        provider: Optional[str] = None,
        log_level: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AppConfig":
        """
        Build the configuration. Command-line values win over the environment,
        which wins over the module defaults.

        Args:
            api_key: API key for the selected provider (overrides .env)
            port: HTTP port (overrides PORT)
            provider: "polygon" or "alpaca" (overrides BAR_PROVIDER)
            log_level: Log level name (overrides LOG_LEVEL)
            environ: Environment mapping (defaults to os.environ)

        Raises:
            ConfigurationError: unknown provider, bad port, or missing credentials
        """
        env = os.environ if environ is None else environ

        provider = (provider or env.get("BAR_PROVIDER") or "polygon").lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unknown bar provider: {provider}. Options: {list(SUPPORTED_PROVIDERS)}",
                config_key="BAR_PROVIDER",
            )

        polygon_key = env.get("POLYGON_API_KEY", "")
        alpaca_key = env.get("ALPACA_API_KEY", "")
        alpaca_secret = env.get("ALPACA_SECRET_KEY", "")
        if api_key:
            if provider == "polygon":
                polygon_key = api_key
            else:
                alpaca_key = api_key

        if provider == "polygon" and not polygon_key:
            raise ConfigurationError("Missing POLYGON_API_KEY (flag or .env)",
                                     config_key="POLYGON_API_KEY")
        if provider == "alpaca" and not (alpaca_key and alpaca_secret):
            raise ConfigurationError("Missing ALPACA_API_KEY / ALPACA_SECRET_KEY (flag or .env)",
                                     config_key="ALPACA_API_KEY")

        if not port:
            env_port = env.get("PORT", "")
            if env_port:
                try:
                    port = int(env_port)
                except ValueError:
                    raise ConfigurationError(f"Invalid PORT: {env_port}", config_key="PORT")
        port = port or DEFAULT_PORT
        if not 0 < port < 65536:
            raise ConfigurationError(f"Port out of range: {port}", config_key="PORT")

        timespan = env.get("INTRADAY_TIMESPAN", INTRADAY_DATA_CONFIG["timespan"])
        if timespan not in ("minute", "15minute"):
            raise ConfigurationError(f"Invalid INTRADAY_TIMESPAN: {timespan}",
                                     config_key="INTRADAY_TIMESPAN")

        return cls(
            provider=provider,
            polygon_api_key=polygon_key,
            alpaca_api_key=alpaca_key,
            alpaca_secret_key=alpaca_secret,
            port=port,
            polygon_adjusted=env.get("POLYGON_ADJUSTED", "false").lower() == "true",
            intraday_enabled=env.get("INTRADAY_ENABLED", "true").lower() == "true",
            intraday_timespan=timespan,
            rate_limit_seconds=INTRADAY_DATA_CONFIG["rate_limit_seconds"],
            max_parallel_downloads=INTRADAY_DATA_CONFIG["max_parallel_downloads"],
            log_level=(log_level or env.get("LOG_LEVEL") or LOG_LEVEL).upper(),
        )


@dataclass(frozen=True)
class AnalysisParams:
    """Validated per-request parameters."""
    ticker: str
    years: int = GAP_ANALYSIS["default_years"]
    min_gap: float = GAP_ANALYSIS["default_min_gap"]
    intraday: bool = True


def parse_analysis_params(query: Mapping[str, Any],
                          intraday_default: bool = True) -> AnalysisParams:
    """
    Parse and validate request parameters (ticker, years, minGap, intraday).

    Blank values fall back to defaults. Anything present but malformed or out
    of range is rejected so the analysis never runs on bad input.

    Raises:
        ValidationError: missing ticker or invalid parameter
    """
    ticker = str(query.get("ticker") or "").strip().upper()
    if not ticker:
        raise ValidationError("ticker required", field="ticker")
    if not all(c.isalnum() or c in ".-" for c in ticker) or len(ticker) > 12:
        raise ValidationError(f"invalid ticker: {ticker}", field="ticker", value=ticker)

    years = GAP_ANALYSIS["default_years"]
    raw_years = str(query.get("years") or "").strip()
    if raw_years:
        try:
            years = int(raw_years)
        except ValueError:
            raise ValidationError(f"years must be an integer: {raw_years}",
                                  field="years", value=raw_years)
        if not GAP_ANALYSIS["min_years"] <= years <= GAP_ANALYSIS["max_years"]:
            raise ValidationError(
                f"years must be between {GAP_ANALYSIS['min_years']} and {GAP_ANALYSIS['max_years']}",
                field="years", value=years,
            )

    min_gap = GAP_ANALYSIS["default_min_gap"]
    raw_gap = str(query.get("minGap") or query.get("min_gap") or "").strip()
    if raw_gap:
        try:
            min_gap = float(raw_gap)
        except ValueError:
            raise ValidationError(f"minGap must be a number: {raw_gap}",
                                  field="minGap", value=raw_gap)
        # NaN fails both comparisons
        if not 0 < min_gap < GAP_ANALYSIS["max_min_gap"]:
            raise ValidationError(
                f"minGap must be > 0 and < {GAP_ANALYSIS['max_min_gap']:g}",
                field="minGap", value=min_gap,
            )

    intraday = intraday_default
    raw_intraday = str(query.get("intraday") or "").strip().lower()
    if raw_intraday:
        if raw_intraday in ("1", "true", "yes", "on"):
            intraday = True
        elif raw_intraday in ("0", "false", "no", "off"):
            intraday = False
        else:
            raise ValidationError(f"intraday must be a boolean: {raw_intraday}",
                                  field="intraday", value=raw_intraday)

    return AnalysisParams(ticker=ticker, years=years, min_gap=min_gap, intraday=intraday)


if __name__ == "__main__":
    print(f"Gap Analyzer Configuration")
    print(f"=" * 50)
    print(f"DATA_ROOT: {DATA_ROOT}")
    print(f"BAR_PROVIDER: {BAR_PROVIDER}")
    print()
    print("API Keys:")
    print(f"  POLYGON_API_KEY: {'✓ Set' if POLYGON_API_KEY else '✗ Not set'}")
    print(f"  ALPACA_API_KEY: {'✓ Set' if ALPACA_API_KEY else '✗ Not set'}")
    print(f"  ALPACA_SECRET_KEY: {'✓ Set' if ALPACA_SECRET_KEY else '✗ Not set'}")
    print()
    print("Directories:")
    for name, path in DIRS.items():
        status = "✓" if path.exists() else "✗"
        print(f"  {status} {name}: {path}")
