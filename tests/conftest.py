"""
Shared pytest fixtures for the gap analyzer test suite.

This file is automatically loaded by pytest and provides fixtures
that can be used across all tests.

Fixture Categories:
    - Configuration fixtures: app_config, test_env
    - Market data fixtures: literal_gap_bars, sample_daily_bars, gap_week_bars
    - Bar source fixtures: fake_daily_fetcher, fake_intraday_fetcher
    - Service fixtures: analyzer, dash_app, client

Design Principles:
    - Fixtures are composable (depend on each other cleanly)
    - Named consistently: test_*, sample_*, fake_*
    - No network access: every bar source is a fake
"""

import os
import sys
import tempfile
from datetime import date
from pathlib import Path
from typing import Dict, List

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Set test environment before importing config
os.environ["GAP_ANALYZER_ROOT"] = str(Path(tempfile.gettempdir()) / "gap_analyzer_tests")

from config import AppConfig
from core.types import Bar
from tests.mocks import FakeDailyFetcher, FakeIntradayFetcher, generate_mock_daily_bars
from tests.utils import daily_bar, flat_bar, make_daily_bars, opening_window_bars


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def test_env() -> Dict[str, str]:
    """Environment mapping with Polygon credentials and nothing else."""
    return {"POLYGON_API_KEY": "test-polygon-key"}


@pytest.fixture
def app_config(test_env) -> AppConfig:
    """AppConfig built from the test environment (no real keys, no .env)."""
    return AppConfig.from_env(environ=test_env)


# =============================================================================
# Market Data Fixtures
# =============================================================================

@pytest.fixture
def literal_gap_bars() -> List[Bar]:
    """prev close 100, then open 101 / high 102 / low 100.5 / close 99."""
    return [
        flat_bar(date(2024, 3, 4), 100.0),
        daily_bar(date(2024, 3, 5), 101.0, 102.0, 100.5, 99.0),
    ]


@pytest.fixture
def gap_week_bars() -> List[Bar]:
    """
    Six sessions (Mon 2024-03-04 .. Mon 2024-03-11) with known gaps:

        Tue  +1.00%  up,   closes higher  (continuation, not filled)
        Wed  -0.60%  down, closes higher  (reversal, filled)
        Thu  +2.00%  up,   closes lower   (reversal, filled)
        Fri  +0.10%  below 0.3, skipped
        Mon  -0.40%  down, closes lower   (continuation, not filled)
    """
    return make_daily_bars([
        (100.0, 100.0, 100.0, 100.0),     # Mon: reference close 100
        (101.0, 103.0, 100.8, 102.0),     # Tue: gap +1.00%
        (101.388, 102.6, 101.3, 102.5),   # Wed: gap -0.60% from 102
        (104.55, 104.6, 102.0, 103.0),    # Thu: gap +2.00% from 102.5
        (103.103, 103.5, 102.9, 103.2),   # Fri: gap +0.10%
        (102.7872, 102.8, 101.5, 101.9),  # Mon: gap -0.40% from 103.2
    ])


@pytest.fixture
def sample_daily_bars() -> List[Bar]:
    """A year of seeded synthetic daily bars."""
    return generate_mock_daily_bars(n_days=252, seed=42)


# =============================================================================
# Bar Source Fixtures
# =============================================================================

@pytest.fixture
def fake_daily_fetcher(gap_week_bars) -> FakeDailyFetcher:
    return FakeDailyFetcher(gap_week_bars)


@pytest.fixture
def opening_sessions() -> Dict[date, List[Bar]]:
    """Opening-window bars for Tue/Wed/Thu of gap_week_bars (Mon is missing)."""
    return {
        # Gap up, keeps rising to 09:45
        date(2024, 3, 5): opening_window_bars(date(2024, 3, 5), [101.0 + 0.05 * i for i in range(15)]),
        # Gap down, bounces to the prior close (102) by 09:45
        date(2024, 3, 6): opening_window_bars(date(2024, 3, 6), [101.4 + 0.05 * i for i in range(15)]),
        # Gap up, drifts lower
        date(2024, 3, 7): opening_window_bars(date(2024, 3, 7), [104.5 - 0.05 * i for i in range(15)]),
    }


@pytest.fixture
def fake_intraday_fetcher(opening_sessions) -> FakeIntradayFetcher:
    return FakeIntradayFetcher(opening_sessions)


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def analyzer(fake_daily_fetcher, fake_intraday_fetcher):
    from research.gap_analyzer import GapAnalyzer
    return GapAnalyzer(fake_daily_fetcher, fake_intraday_fetcher)


@pytest.fixture
def dash_app(app_config, analyzer):
    from observability.dashboard.app import create_app
    return create_app(app_config, analyzer=analyzer)


@pytest.fixture
def client(dash_app):
    """Flask test client for the Dash server."""
    return dash_app.server.test_client()


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom settings."""
    config.addinivalue_line(
        "markers", "unit: Fast, isolated unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring multiple components"
    )
    config.addinivalue_line(
        "markers", "live_api: Tests requiring live API connection"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection - add markers based on location."""
    for item in items:
        # Auto-mark tests in unit/ as unit tests
        if "/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        # Auto-mark tests in integration/ as integration tests
        elif "/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


def pytest_runtest_setup(item):
    """Called before each test - can skip tests based on markers."""
    # Skip live_api tests unless explicitly requested
    if 'live_api' in [marker.name for marker in item.iter_markers()]:
        if not item.config.getoption("--run-live-api", default=False):
            pytest.skip("Live API tests disabled (use --run-live-api to enable)")


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-live-api",
        action="store_true",
        default=False,
        help="Run tests that require live API connection"
    )


def pytest_report_header(config):
    """Add custom header to test report."""
    return [
        "Gap Analyzer Test Suite",
        f"Project Root: {PROJECT_ROOT}",
    ]
