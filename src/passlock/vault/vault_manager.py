# Vault Manager - the unlocked session
#
# Owns the single in-memory Vault and the master password for the life of a
# session and keeps it in step with the encrypted on-disk vault:
#
#   unlock  -> engine decrypts the vault into the handoff file -> we load it
#   add/update/delete -> memory changes, mirrored into the handoff file
#   save    -> we write the handoff file -> engine re-encrypts it
#
# State machine: LOCKED (initial) <-> UNLOCKED. Every operation runs under one
# re-entrant lock, including any engine subprocess, so at most one engine
# invocation is in flight and the handoff file is never read/written
# concurrently by this process.

import logging
import threading
import uuid
from collections import Counter
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core import EventSeverity, EventType, PasslockConfig, get_audit_logger
from .engine import VaultEngineAdapter
from .errors import (
    InvalidInput,
    NotFound,
    NotUnlocked,
    PersistFailed,
    VaultError,
    VaultMissing,
    VaultUnreadable,
    WrongCredential,
)
from .generator import generate_password
from .handoff import HandoffStore
from .models import (
    MAX_PASSWORD_HISTORY,
    Entry,
    PasswordHistory,
    Vault,
    normalize_tag,
    normalize_tags,
    utc_now,
)
from .strength import PasswordStrength, score_password

logger = logging.getLogger(__name__)

VAULT_DELIMITER = ":"

EDITABLE_FIELDS = ("name", "username", "password", "url", "notes", "tags")
REQUIRED_FIELDS = ("name", "username", "password")


class SessionState(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class VaultManager:
    """
    Manages the unlocked vault session.

    Security:
    - Master password lives only in memory and is dropped on logout
    - Passwords are never logged (audit events carry ids and names only)
    - Handoff file is 0600 and is zero-filled and removed on logout/close

    Usage:
        with VaultManager(engine, HandoffStore(path), vault_path) as manager:
            manager.unlock("master password")
            manager.add("github", "bob", "s3cret")
            manager.save()
    """

    def __init__(self, engine: VaultEngineAdapter, handoff: HandoffStore, vault_path: Path):
        """
        Args:
            engine: Adapter for the external vault engine
            handoff: Store for the plaintext handoff file
            vault_path: On-disk vault file (existence and metadata only)
        """
        self.engine = engine
        self.handoff = handoff
        self.vault_path = Path(vault_path)

        self._lock = threading.RLock()
        self._vault: Optional[Vault] = None
        self._master_password: Optional[str] = None

        self.audit = get_audit_logger()

    @classmethod
    def from_config(cls, config: PasslockConfig) -> "VaultManager":
        engine = VaultEngineAdapter(
            command=config.engine_command,
            workdir=config.home,
            vault_path=config.vault_path,
            timeout=config.engine_timeout,
        )
        return cls(engine, HandoffStore(config.handoff_path), config.vault_path)

    # ── Lifecycle ───────────────────────────────────────────────────

    def __enter__(self) -> "VaultManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Process shutdown: lock the session and remove the handoff file."""
        self.logout()

    @property
    def state(self) -> SessionState:
        return SessionState.UNLOCKED if self._vault is not None else SessionState.LOCKED

    @property
    def is_unlocked(self) -> bool:
        return self._vault is not None

    # ── Pre-unlock operations ───────────────────────────────────────

    def check_exists(self) -> bool:
        """Whether an on-disk vault is present."""
        return self.vault_path.exists()

    def vault_info(self) -> Dict[str, Any]:
        """
        Read-only metadata of the locked vault file.

        Returns:
            {"salt": str, "encrypted_bytes": int}

        Raises:
            VaultMissing, VaultUnreadable
        """
        with self._lock:
            try:
                data = self.vault_path.read_text(encoding="utf-8")
            except FileNotFoundError:
                raise VaultMissing()
            except (OSError, UnicodeDecodeError) as e:
                raise VaultUnreadable(f"Cannot read vault file: {e}")

            salt, sep, ciphertext = data.partition(VAULT_DELIMITER)
            if not sep:
                raise VaultUnreadable()

            return {"salt": salt, "encrypted_bytes": len(ciphertext)}

    def create_vault(self, password: str, confirmation: str) -> None:
        """
        Create a new, empty on-disk vault through the engine.

        Does not unlock it; call unlock() afterwards.

        Raises:
            AlreadyExists, InvalidInput: Local checks (engine not invoked)
            PersistFailed: Engine reported failure
            EngineInvocationFailed: Engine could not be run
        """
        with self._lock:
            result = self.engine.create(password, confirmation)
            # The engine also leaves a plaintext snapshot behind on create
            self.handoff.discard()

            if not result.ok:
                self.audit.log_event(
                    event_type=EventType.VAULT_ERROR,
                    severity=EventSeverity.CRITICAL,
                    message="Vault creation failed",
                    details={"returncode": result.returncode}
                )
                raise PersistFailed(result.output)

            self.audit.log_event(
                event_type=EventType.VAULT_CREATED,
                severity=EventSeverity.INFO,
                message="Vault created"
            )
            logger.info("Vault created at %s", self.vault_path)

    def unlock(self, password: str) -> None:
        """
        Unlock the vault with a candidate master password.

        Raises:
            VaultMissing: No on-disk vault
            WrongCredential: Engine could not decrypt (any reason)
            HandoffUnavailable: Engine succeeded but left no handoff file
            HandoffCorrupt: Handoff file is not a valid vault
            EngineInvocationFailed: Engine could not be run
        """
        with self._lock:
            if not self.check_exists():
                raise VaultMissing()

            # Never confuse a stale snapshot with the engine's fresh output
            self.handoff.discard()

            try:
                result = self.engine.unlock(password)
                if not result.ok:
                    self.audit.log_event(
                        event_type=EventType.VAULT_UNLOCK_FAILED,
                        severity=EventSeverity.ALERT,
                        message="Vault unlock failed",
                        details={"returncode": result.returncode}
                    )
                    raise WrongCredential()

                try:
                    vault = self.handoff.read()
                except VaultError as e:
                    self.audit.log_event(
                        event_type=EventType.VAULT_ERROR,
                        severity=EventSeverity.CRITICAL,
                        message=f"Handoff after unlock rejected: {e.code}"
                    )
                    self.handoff.discard()
                    raise
            except VaultError:
                # A failed re-unlock keeps the current session intact
                if self._vault is not None:
                    self._mirror(self._vault)
                raise

            self._vault = vault
            self._master_password = password

            self.audit.log_event(
                event_type=EventType.VAULT_UNLOCKED,
                severity=EventSeverity.INFO,
                message="Vault unlocked",
                details={"entries": len(vault.entries)}
            )
            logger.info("Vault unlocked (%d entries)", len(vault.entries))

    # ── Read operations ─────────────────────────────────────────────

    def list(self) -> List[Entry]:
        """All entries in stored order (copies)."""
        with self._lock:
            vault = self._require_unlocked()
            return [entry.copy() for entry in vault.entries]

    def get(self, entry_id: str) -> Entry:
        with self._lock:
            vault = self._require_unlocked()
            _, entry = vault.find(entry_id)
            if entry is None:
                raise NotFound()
            return entry.copy()

    def filter_by_tag(self, tag: Optional[str]) -> List[Entry]:
        """Entries carrying ``tag``; an empty tag means no filter."""
        with self._lock:
            vault = self._require_unlocked()
            wanted = normalize_tag(tag or "")
            if not wanted:
                return [entry.copy() for entry in vault.entries]
            return [entry.copy() for entry in vault.entries if entry.has_tag(wanted)]

    def search(self, query: Optional[str]) -> List[Entry]:
        """Entries whose name, username or url contains ``query`` (any case)."""
        with self._lock:
            vault = self._require_unlocked()
            return [entry.copy() for entry in vault.entries if entry.matches(query or "")]

    def query(self, text: Optional[str] = None, tag: Optional[str] = None) -> List[Entry]:
        """search() and filter_by_tag() combined over a single snapshot."""
        with self._lock:
            vault = self._require_unlocked()
            wanted = normalize_tag(tag or "")
            return [
                entry.copy() for entry in vault.entries
                if entry.matches(text or "") and (not wanted or entry.has_tag(wanted))
            ]

    def tags(self) -> List[Tuple[str, int]]:
        """(tag, entry count), most used first, ties by name."""
        with self._lock:
            vault = self._require_unlocked()
            counts = Counter(tag for entry in vault.entries for tag in entry.tags)
            return sorted(counts.items(), key=lambda item: (-item[1], item[0]))

    # ── Mutations ───────────────────────────────────────────────────

    def add(
        self,
        name: str,
        username: str,
        password: str,
        url: Optional[str] = None,
        notes: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Entry:
        """
        Append a new entry and mirror the vault into the handoff file.

        Returns:
            The new entry (copy)

        Raises:
            NotUnlocked, InvalidInput, PersistFailed (handoff not writable)
        """
        with self._lock:
            vault = self._require_unlocked()
            if not name or not username or not password:
                raise InvalidInput("Name, username and password are required")

            entry = Entry(
                id=self._new_id(vault),
                name=name,
                username=username,
                password=password,
                url=url or "",
                notes=notes or "",
                tags=normalize_tags(tags),
                created_at=utc_now(),
            )

            self._commit(replace(vault, entries=vault.entries + [entry]))

            self.audit.log_vault_event(
                EventType.VAULT_ENTRY_ADDED,
                f"entry added: {name}",
                details={"entry_id": entry.id}
            )
            return entry.copy()

    def update(self, entry_id: str, **changes: Any) -> Entry:
        """
        Edit fields of an existing entry.

        Accepts name, username, password, url, notes, tags. A changed password
        pushes the previous one onto the entry history (last 5 kept).

        Raises:
            NotUnlocked, NotFound, InvalidInput, PersistFailed
        """
        with self._lock:
            vault = self._require_unlocked()

            unknown = set(changes) - set(EDITABLE_FIELDS)
            if unknown:
                raise InvalidInput(f"Unknown entry fields: {', '.join(sorted(unknown))}")

            index, current = vault.find(entry_id)
            if current is None:
                raise NotFound()

            updates = {k: v for k, v in changes.items() if v is not None}
            for required in REQUIRED_FIELDS:
                if required in updates and not updates[required]:
                    raise InvalidInput(f"{required.capitalize()} must not be empty")
            if "tags" in updates:
                updates["tags"] = normalize_tags(updates["tags"])

            now = utc_now()
            history = list(current.history)
            if "password" in updates and updates["password"] != current.password:
                history.append(PasswordHistory(password=current.password, changed_at=now))
                history = history[-MAX_PASSWORD_HISTORY:]

            edited = replace(current, **updates, history=history, updated_at=now)
            entries = list(vault.entries)
            entries[index] = edited

            self._commit(replace(vault, entries=entries))

            self.audit.log_vault_event(
                EventType.VAULT_ENTRY_UPDATED,
                f"entry updated: {edited.name}",
                details={"entry_id": entry_id, "fields": sorted(updates)}
            )
            return edited.copy()

    def delete(self, entry_id: str) -> None:
        """
        Remove the entry with ``entry_id``.

        Raises:
            NotUnlocked, NotFound (missing id is an error, never a no-op),
            PersistFailed
        """
        with self._lock:
            vault = self._require_unlocked()
            index, entry = vault.find(entry_id)
            if entry is None:
                raise NotFound()

            entries = vault.entries[:index] + vault.entries[index + 1:]
            self._commit(replace(vault, entries=entries))

            self.audit.log_vault_event(
                EventType.VAULT_ENTRY_DELETED,
                "entry deleted",
                details={"entry_id": entry_id}
            )

    def save(self) -> None:
        """
        Persist the session through the engine.

        On failure the in-memory vault is left as is (no rollback); retry
        save() or logout().

        Raises:
            NotUnlocked, PersistFailed(detail), EngineInvocationFailed
        """
        with self._lock:
            vault = self._require_unlocked()
            self._mirror(vault)

            result = self.engine.sync(self._master_password)
            if not result.ok:
                self.audit.log_event(
                    event_type=EventType.VAULT_SAVE_FAILED,
                    severity=EventSeverity.CRITICAL,
                    message="Vault save failed",
                    details={"returncode": result.returncode}
                )
                raise PersistFailed(result.output)

            self.audit.log_vault_event(
                EventType.VAULT_SAVED,
                "vault saved",
                details={"entries": len(vault.entries)}
            )
            logger.info("Vault saved (%d entries)", len(vault.entries))

    def logout(self) -> None:
        """Drop the vault and master password, remove the handoff. Idempotent."""
        with self._lock:
            was_unlocked = self._vault is not None
            self._vault = None
            self._master_password = None
            self.handoff.discard()

            if was_unlocked:
                self.audit.log_event(
                    event_type=EventType.VAULT_LOCKED,
                    severity=EventSeverity.INFO,
                    message="Vault locked"
                )
                logger.info("Vault locked")

    # ── Stateless helpers ───────────────────────────────────────────

    @staticmethod
    def score_strength(password: str) -> PasswordStrength:
        return score_password(password)

    @staticmethod
    def generate_password(length: Optional[int] = None) -> str:
        return generate_password(length)

    # ── Private helpers ─────────────────────────────────────────────

    def _require_unlocked(self) -> Vault:
        if self._vault is None:
            raise NotUnlocked()
        return self._vault

    @staticmethod
    def _new_id(vault: Vault) -> str:
        taken = vault.ids()
        while True:
            entry_id = uuid.uuid4().hex
            if entry_id not in taken:
                return entry_id

    def _commit(self, vault: Vault) -> None:
        """Mirror ``vault`` to the handoff file, then make it current."""
        self._mirror(vault)
        self._vault = vault

    def _mirror(self, vault: Vault) -> None:
        try:
            self.handoff.write(vault)
        except OSError as e:
            logger.error("Could not write handoff file: %s", e)
            raise PersistFailed(f"handoff file not writable: {e}")
