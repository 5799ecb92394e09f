"""
Integration Tests for the Gap Analyzer
======================================

Integration tests run several components together:
- GapAnalyzer end to end (daily pass, 0-15m overlay, payload)
- /api/gaps and /health through the Flask test client
- Dashboard layout and rendering of real payloads

Bar sources are always fakes (tests/mocks), so no API keys are needed.

Running Integration Tests:
    pytest tests/integration/ -m integration

All tests in this directory are automatically marked with @pytest.mark.integration
"""
