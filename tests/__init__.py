"""
Gap Analyzer Test Suite
=======================

pytest infrastructure for the gap analyzer.

Directory Structure:
    tests/
    ├── __init__.py         # This file
    ├── conftest.py         # Shared fixtures
    ├── utils.py            # Bar builders and comparison helpers
    ├── unit/               # Unit tests (fast, isolated)
    ├── integration/        # Service and HTTP tests over fake bar sources
    └── mocks/              # Fake fetchers and synthetic bars

Usage:
    # Run all tests
    pytest

    # Run only unit tests
    pytest -m unit

    # Include tests that call a real bar provider
    pytest --run-live-api
"""

__version__ = "1.0.0"
