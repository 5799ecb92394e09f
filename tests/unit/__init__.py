"""
Unit Tests for the Gap Analyzer
===============================

Unit tests are:
- Fast (< 1 second each)
- Isolated (no network; HTTP sessions and SDK clients are mocks)
- Deterministic (seeded synthetic bars)

Test Categories:
    - test_gap_bins.py - Binning, rates, recommendation thresholds, rounding
    - test_gap_events.py - Daily gap extraction
    - test_gap_aggregation.py - Summary, bin, side and weekday statistics
    - test_gap_intraday.py - 09:30-09:45 ET overlay
    - test_gap_report.py - JSON payload serialization
    - test_fetchers.py - Polygon / Alpaca clients and bar fetchers
    - test_config.py, test_utils.py, test_logger.py, test_scripts.py

Running Unit Tests:
    pytest tests/unit/ -m unit
    pytest tests/unit/test_gap_events.py -k "threshold"

All tests in this directory are automatically marked with @pytest.mark.unit
"""
