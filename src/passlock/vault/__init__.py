# Vault Module - session layer over an external vault engine
#
# The engine subprocess owns encryption and the on-disk format; this package
# keeps the unlocked vault in memory and synchronizes it through the
# plaintext handoff file.

from .engine import EngineResult, VaultEngineAdapter
from .errors import (
    AlreadyExists,
    EngineInvocationFailed,
    HandoffCorrupt,
    HandoffUnavailable,
    InvalidInput,
    NotFound,
    NotUnlocked,
    PersistFailed,
    VaultError,
    VaultMissing,
    VaultUnreadable,
    WrongCredential,
)
from .generator import ALPHABET, generate_password
from .handoff import HandoffStore
from .models import Entry, PasswordHistory, Vault
from .strength import PasswordStrength, score_password
from .vault_manager import SessionState, VaultManager

__all__ = [
    "VaultManager",
    "SessionState",
    "VaultEngineAdapter",
    "EngineResult",
    "HandoffStore",
    "Entry",
    "PasswordHistory",
    "Vault",
    "PasswordStrength",
    "score_password",
    "generate_password",
    "ALPHABET",
    # Errors
    "VaultError",
    "VaultMissing",
    "VaultUnreadable",
    "AlreadyExists",
    "WrongCredential",
    "InvalidInput",
    "NotUnlocked",
    "NotFound",
    "HandoffUnavailable",
    "HandoffCorrupt",
    "PersistFailed",
    "EngineInvocationFailed",
]
