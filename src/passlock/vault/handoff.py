# Handoff Store - plaintext vault snapshot shared with the vault engine
#
# The handoff file is the ONLY channel through which vault contents cross the
# process boundary:
#   - the engine writes it after a successful unlock (we read it)
#   - we write it after every mutation and before every sync (engine reads it)
#
# It holds plaintext secrets, so:
#   - it is always created with mode 0600 (owner read/write only)
#   - writes go to a temp file first, then os.replace() for atomicity
#   - discard() overwrites the content with zeros before unlinking

import json
import logging
import os
from pathlib import Path
from typing import Optional

from .errors import HandoffCorrupt, HandoffUnavailable
from .models import Vault

logger = logging.getLogger(__name__)

HANDOFF_MODE = 0o600


class HandoffStore:
    """Reads, writes and removes the plaintext handoff file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def write(self, vault: Vault) -> None:
        """
        Serialize ``vault`` into the handoff file (atomic, mode 0600).

        Raises:
            OSError: If the file cannot be written
        """
        payload = json.dumps(vault.to_dict())
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        try:
            fd = os.open(str(tmp_path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, HANDOFF_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            # O_CREAT mode is ignored when the temp file already existed
            os.chmod(str(tmp_path), HANDOFF_MODE)
            os.replace(str(tmp_path), str(self.path))
        except Exception:
            if tmp_path.exists():
                tmp_path.unlink()
            raise

        logger.debug("Handoff file written (%d entries)", len(vault.entries))

    def read(self) -> Vault:
        """
        Parse the handoff file into a Vault.

        Raises:
            HandoffUnavailable: If the file does not exist or cannot be read
            HandoffCorrupt: If the content is not a valid vault document
        """
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            raise HandoffUnavailable()
        except OSError as e:
            raise HandoffUnavailable(f"Handoff file unreadable: {e}")

        # UnicodeDecodeError is a ValueError
        try:
            data = json.loads(raw.decode("utf-8"))
            return Vault.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            raise HandoffCorrupt(f"Handoff file could not be parsed into a vault: {e}")

    def discard(self) -> bool:
        """
        Best-effort secure removal: zero-fill, then unlink.

        Returns:
            True if a file was removed
        """
        removed = False
        for path in (self.path, self.path.with_name(self.path.name + ".tmp")):
            if not path.exists():
                continue
            try:
                size = path.stat().st_size
                with open(path, "r+b") as f:
                    f.write(b"\0" * size)
                    f.flush()
                    os.fsync(f.fileno())
            except OSError as e:
                logger.warning("Could not overwrite handoff file %s: %s", path, e)
            try:
                path.unlink()
                removed = True
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.error("Could not remove handoff file %s: %s", path, e)

        if removed:
            logger.debug("Handoff file discarded")
        return removed

    def permissions(self) -> Optional[int]:
        """Permission bits of the handoff file, or None if absent."""
        try:
            return self.path.stat().st_mode & 0o777
        except FileNotFoundError:
            return None
