"""
Pytest configuration and shared fixtures for merkledrop tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_claims = importlib.import_module("fixtures.claims")

make_address = _claims.make_address
make_records = _claims.make_records
make_rows = _claims.make_rows
make_claim = _claims.make_claim
make_claim_set = _claims.make_claim_set
make_tree = _claims.make_tree
make_manifest = _claims.make_manifest
write_csv = _claims.write_csv


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def claim_set():
    """Provide a default four-claim ClaimSet."""
    return make_claim_set(4)


@pytest.fixture
def manifest():
    """Provide a self-consistent five-claim manifest (odd count)."""
    return make_manifest(5)


@pytest.fixture
def sample_csv(tmp_path):
    """A CSV with two good rows and one of each soft error."""
    return write_csv(tmp_path / "rewards.csv", [
        (make_address(0), "500.50"),
        (make_address(1), "1001.00"),
        ("not-an-address", "10"),
        (make_address(2), "abc"),
        (make_address(0).lower(), "3"),
    ])


@pytest.fixture(autouse=True)
def _clean_merkledrop_env(monkeypatch):
    """Keep MERKLEDROP_* variables from the host out of every test."""
    import os
    for key in list(os.environ):
        if key.startswith("MERKLEDROP_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

@pytest.fixture
def assert_check_passed():
    """Helper to assert a specific check passed in VerificationResult."""
    def _assert(result, check_id: str):
        checks = [c for c in result.checks if c.check_id == check_id]
        assert len(checks) >= 1, f"Expected check '{check_id}' not found in {[c.check_id for c in result.checks]}"
        assert all(c.ok for c in checks), f"Check '{check_id}' failed: {checks[0].message}"
    return _assert


@pytest.fixture
def assert_check_failed():
    """Helper to assert a specific check failed in VerificationResult."""
    def _assert(result, check_id: str):
        checks = [c for c in result.checks if c.check_id == check_id]
        assert len(checks) >= 1, f"Expected check '{check_id}' not found in {[c.check_id for c in result.checks]}"
        assert any(not c.ok for c in checks), f"Check '{check_id}' unexpectedly passed"
    return _assert
