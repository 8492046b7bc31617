# Vault Errors
#
# Every failure the session layer can report. Each class carries a stable
# machine-readable ``code`` so the API layer can return a structured failure
# instead of a crash. Nothing here is retried automatically.


class VaultError(Exception):
    """Base class for all vault session failures."""

    code = "vault_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = str(self.args[0])

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class VaultMissing(VaultError):
    """No vault found - create one first."""

    code = "vault_missing"


class VaultUnreadable(VaultError):
    """Vault file exists but is not in SALT:CIPHERTEXT format."""

    code = "vault_unreadable"


class AlreadyExists(VaultError):
    """Vault already exists."""

    code = "already_exists"


class WrongCredential(VaultError):
    """Unlock failed: wrong master password or undecryptable vault."""

    code = "wrong_credential"


class InvalidInput(VaultError):
    """Invalid input."""

    code = "invalid_input"


class NotUnlocked(VaultError):
    """Vault is locked. Unlock vault first."""

    code = "not_unlocked"


class NotFound(VaultError):
    """Entry not found."""

    code = "not_found"


class HandoffUnavailable(VaultError):
    """Engine reported success but the handoff file is missing."""

    code = "handoff_unavailable"


class HandoffCorrupt(VaultError):
    """Handoff file could not be parsed into a vault."""

    code = "handoff_corrupt"


class PersistFailed(VaultError):
    """Vault engine failed to persist the vault."""

    code = "persist_failed"

    def __init__(self, detail: str = ""):
        self.detail = detail
        message = "Failed to save vault"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["detail"] = self.detail
        return data


class EngineInvocationFailed(VaultError):
    """Vault engine could not be run."""

    code = "engine_invocation_failed"
