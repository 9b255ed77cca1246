"""
Unit Tests for Policy Engine

This package contains unit tests for all policy engine components.

Running Tests:
    # Run all tests
    pytest tests/

    # Run specific test file
    pytest tests/test_selector.py

    # Run with coverage
    pytest tests/ --cov=policy_engine --cov-report=html

    # Run specific test
    pytest tests/test_elo.py::TestEloToCategory::test_boundaries

Dependencies:
    - pytest: Test framework
    - pytest-cov: Coverage reporting
"""
