"""
Shared pytest fixtures for the Passlock test suite.

Autouse fixtures below isolate tests from the live environment:
  - Audit logger   -> temp directory  (no test events in real audit logs)
  - Reference engine -> cheap KDF      (PBKDF2 at 1k iterations, not 600k)
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parent.parent / "src"

TEST_KDF_ITERATIONS = "1000"
MASTER_PASSWORD = "correct horse battery"


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path):
    """Point the global AuditLogger at a temp directory for every test.

    Without this, any VaultManager created in a test writes into
    ``~/.passlock_audit/`` of whoever runs the suite.
    """
    import passlock.core.audit_log as audit_mod

    old_logger = audit_mod._audit_logger
    audit_mod.configure_audit_logger(tmp_path / "audit_logs")

    yield

    audit_mod._audit_logger = old_logger


@pytest.fixture(autouse=True)
def _fast_engine(monkeypatch):
    """Make the reference engine subprocess cheap and importable."""
    monkeypatch.setenv("PASSLOCK_KDF_ITERATIONS", TEST_KDF_ITERATIONS)
    existing = os.environ.get("PYTHONPATH")
    pythonpath = str(SRC_DIR) if not existing else str(SRC_DIR) + os.pathsep + existing
    monkeypatch.setenv("PYTHONPATH", pythonpath)


@pytest.fixture
def home(tmp_path):
    """Working directory shared by the session and the engine."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def config(home):
    from passlock.core import PasslockConfig

    return PasslockConfig(home=home)


@pytest.fixture
def manager(config):
    from passlock.vault import VaultManager

    mgr = VaultManager.from_config(config)
    yield mgr
    mgr.close()


@pytest.fixture
def make_vault(home):
    """Create an on-disk vault with the reference engine, out of process."""

    def _make(password: str = MASTER_PASSWORD) -> Path:
        result = subprocess.run(
            [sys.executable, "-m", "passlock.engine", "create", password, password],
            cwd=str(home),
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0, result.stderr
        # Tests start from a clean slate: no plaintext left behind
        (home / ".passlock.temp").unlink(missing_ok=True)
        return home / ".passlock.vault"

    return _make


@pytest.fixture
def unlocked(manager, make_vault):
    """A manager unlocked against a fresh, empty vault."""
    make_vault()
    manager.unlock(MASTER_PASSWORD)
    return manager


@pytest.fixture
def master_password():
    return MASTER_PASSWORD
