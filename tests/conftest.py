"""
Shared pytest fixtures for the assembly tests.

This module provides:
- Settings isolation (no ASSEMBLY_* env vars or .env files leak into tests)
- An in-memory Ed25519 crypto provider and its public key
- Diagnosis key factories, including the 2021-01-05 reference scenario
"""

import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest
import structlog

# Ensure assembly package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from assembly.core.settings import load_settings, reset_settings
from assembly.crypto.provider import CryptoProvider, generate_key_pair
from assembly.diagnosiskeys.model import DiagnosisKey


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark all tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Run every test in an empty cwd with no ASSEMBLY_* environment."""
    import os

    for name in list(os.environ):
        if name.startswith("ASSEMBLY_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


# =============================================================================
# Crypto
# =============================================================================


@pytest.fixture(scope="session")
def key_pair() -> tuple[bytes, bytes]:
    """Ed25519 (private_pem, public_pem), generated once per session."""
    return generate_key_pair("ed25519")


@pytest.fixture
def crypto(key_pair) -> CryptoProvider:
    return CryptoProvider.from_pem(key_pair[0], "ed25519")


@pytest.fixture
def public_pem(key_pair) -> bytes:
    return key_pair[1]


@pytest.fixture
def settings(tmp_path):
    return load_settings(output_dir=tmp_path / "out")


# =============================================================================
# Diagnosis keys
# =============================================================================


def hours_since_epoch(moment: datetime) -> int:
    """Coarse submission timestamp for an instant (floors to the hour)."""
    return int(moment.timestamp()) // 3600


def make_key(moment: datetime, seed: int = 0, risk: int = 5) -> DiagnosisKey:
    return DiagnosisKey(
        key_data=bytes([seed % 256]) * 16,
        rolling_start_interval_number=int(moment.timestamp()) // 600,
        rolling_period=144,
        transmission_risk_level=risk,
        submission_timestamp=hours_since_epoch(moment),
    )


@pytest.fixture
def key_factory():
    """Build a DiagnosisKey submitted at the given instant."""
    return make_key


@pytest.fixture
def scenario_keys() -> list[DiagnosisKey]:
    """Keys at 2021-01-05T03:12, 03:47 and 09:00 UTC."""
    return [
        make_key(datetime(2021, 1, 5, 3, 12, tzinfo=UTC), seed=1),
        make_key(datetime(2021, 1, 5, 3, 47, tzinfo=UTC), seed=2),
        make_key(datetime(2021, 1, 5, 9, 0, tzinfo=UTC), seed=3),
    ]
