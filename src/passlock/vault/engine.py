# Vault Engine Adapter - narrow synchronous client for the external engine
#
# The engine is a separate process that alone owns encryption, key
# derivation and the on-disk vault format. Contract:
#
#   <engine> create <password> <confirmation>
#   <engine> unlock <password>
#   <engine> sync   <password>
#
# run with cwd = the session home (where the vault and handoff files live).
# Exit code 0 = success; anything else = failure. Output is combined
# stdout+stderr, kept for diagnostics only and never parsed.

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import AlreadyExists, EngineInvocationFailed, InvalidInput

logger = logging.getLogger(__name__)

MIN_MASTER_PASSWORD_LENGTH = 4


@dataclass(frozen=True)
class EngineResult:
    """Outcome of one engine invocation."""
    ok: bool
    output: str
    returncode: int


class VaultEngineAdapter:
    """
    Invokes the vault engine subprocess, one method per action.

    Calls block until the engine exits. The adapter does not distinguish a
    wrong password from any other decryption failure: it only reports the
    exit status.
    """

    def __init__(
        self,
        command: Sequence[str],
        workdir: Path,
        vault_path: Path,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            command: Engine executable plus any fixed leading arguments
            workdir: Working directory the engine runs in
            vault_path: On-disk vault path (for the local create check)
            timeout: Seconds before the engine is killed (None = wait forever)
        """
        if not command:
            raise ValueError("Engine command must not be empty")
        self.command: List[str] = list(command)
        self.workdir = Path(workdir)
        self.vault_path = Path(vault_path)
        self.timeout = timeout

    def vault_exists(self) -> bool:
        return self.vault_path.exists()

    def create(self, password: str, confirmation: str) -> EngineResult:
        """
        Create a new on-disk vault.

        Raises:
            AlreadyExists: A vault is already present (engine not invoked)
            InvalidInput: Empty, mismatched or too-short password
            EngineInvocationFailed: The engine could not be run
        """
        if self.vault_exists():
            raise AlreadyExists()
        if not password or not confirmation:
            raise InvalidInput("Password and confirmation are required")
        if password != confirmation:
            raise InvalidInput("Passwords do not match")
        if len(password) < MIN_MASTER_PASSWORD_LENGTH:
            raise InvalidInput(
                f"Master password must be at least {MIN_MASTER_PASSWORD_LENGTH} characters long"
            )

        return self._run("create", password, confirmation)

    def unlock(self, password: str) -> EngineResult:
        """Decrypt the on-disk vault into the handoff file."""
        return self._run("unlock", password)

    def sync(self, password: str) -> EngineResult:
        """Re-encrypt the handoff file into the on-disk vault."""
        return self._run("sync", password)

    def _run(self, action: str, *credentials: str) -> EngineResult:
        argv = self.command + [action, *credentials]
        logger.debug("Invoking vault engine: %s %s", " ".join(self.command), action)

        try:
            completed = subprocess.run(
                argv,
                cwd=str(self.workdir),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error("Vault engine '%s' timed out after %ss", action, self.timeout)
            raise EngineInvocationFailed(
                f"Vault engine did not finish '{action}' within {self.timeout} seconds"
            )
        except OSError as e:
            # Missing executable, permission denied, bad cwd
            logger.error("Vault engine could not be started: %s", e)
            raise EngineInvocationFailed(f"Vault engine could not be started: {e}")

        output = (completed.stdout or "").strip()
        ok = completed.returncode == 0
        if ok:
            logger.debug("Vault engine '%s' succeeded", action)
        else:
            logger.warning(
                "Vault engine '%s' failed with exit code %d", action, completed.returncode
            )
        return EngineResult(ok=ok, output=output, returncode=completed.returncode)
