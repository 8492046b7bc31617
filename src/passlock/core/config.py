# Configuration - environment-driven settings
#
# Every setting has a sane local default; override via environment variables
# (or a .env file, loaded by the CLI through python-dotenv).

import os
import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

VAULT_FILENAME = ".passlock.vault"
HANDOFF_FILENAME = ".passlock.temp"
AUDIT_DIRNAME = ".passlock_audit"


def default_engine_command() -> List[str]:
    """The bundled reference engine, run with the current interpreter."""
    return [sys.executable, "-m", "passlock.engine"]


@dataclass
class PasslockConfig:
    """
    Runtime settings for a passlock session.

    home is the working directory shared with the vault engine: both the
    on-disk vault and the handoff file live there, and the engine subprocess
    is started with it as its cwd.
    """

    home: Path = field(default_factory=Path.home)
    engine_command: List[str] = field(default_factory=default_engine_command)
    engine_timeout: Optional[float] = None
    audit_dir: Optional[Path] = None

    def __post_init__(self):
        self.home = Path(self.home).expanduser()
        if self.audit_dir is None:
            self.audit_dir = self.home / AUDIT_DIRNAME
        else:
            self.audit_dir = Path(self.audit_dir).expanduser()

    @property
    def vault_path(self) -> Path:
        return self.home / VAULT_FILENAME

    @property
    def handoff_path(self) -> Path:
        return self.home / HANDOFF_FILENAME

    @classmethod
    def from_env(cls, home: Optional[str] = None) -> "PasslockConfig":
        """
        Build config from PASSLOCK_* environment variables.

        Args:
            home: Explicit home directory (wins over PASSLOCK_HOME)
        """
        home_dir = home or os.environ.get("PASSLOCK_HOME") or str(Path.home())

        engine = os.environ.get("PASSLOCK_ENGINE", "").strip()
        engine_command = shlex.split(engine) if engine else default_engine_command()

        timeout_raw = os.environ.get("PASSLOCK_ENGINE_TIMEOUT", "").strip()
        try:
            engine_timeout = float(timeout_raw) if timeout_raw else None
        except ValueError:
            raise ValueError(
                f"PASSLOCK_ENGINE_TIMEOUT must be a number of seconds, got {timeout_raw!r}"
            )
        if engine_timeout is not None and engine_timeout <= 0:
            engine_timeout = None

        audit_dir = os.environ.get("PASSLOCK_AUDIT_DIR") or None

        return cls(
            home=Path(home_dir),
            engine_command=engine_command,
            engine_timeout=engine_timeout,
            audit_dir=Path(audit_dir) if audit_dir else None,
        )
