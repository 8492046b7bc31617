# Reference Vault Engine - command line entry point
#
#   python -m passlock.engine create <password> [confirmation]
#   python -m passlock.engine unlock <password>
#   python -m passlock.engine sync   <password>
#
# Files are resolved relative to the current working directory:
#   .passlock.vault  encrypted vault (SALT:CIPHERTEXT)
#   .passlock.temp   plaintext handoff (JSON)
# Exit code 0 on success, 1 on any failure (message on stderr).

import json
import os
import sys
from pathlib import Path
from typing import List, Optional

from ..core.config import HANDOFF_FILENAME, VAULT_FILENAME
from .encryption import DecryptionError, EncryptionService

PRIVATE_MODE = 0o600

USAGE = "usage: passlock-engine <create|unlock|sync> <password> [confirmation]"


class EngineError(Exception):
    pass


def _write_private(path: Path, content: str) -> None:
    """Atomic write with owner-only permissions."""
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        fd = os.open(str(tmp_path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, PRIVATE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(str(tmp_path), PRIVATE_MODE)
        os.replace(str(tmp_path), str(path))
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink()
        raise


def _load_document(text: str) -> dict:
    try:
        document = json.loads(text)
    except ValueError as e:
        raise EngineError(f"vault document is not valid JSON: {e}")
    if not isinstance(document, dict) or not isinstance(document.get("entries", []), list):
        raise EngineError("vault document has the wrong shape")
    document.setdefault("entries", [])
    return document


def _iterations() -> int:
    raw = os.environ.get("PASSLOCK_KDF_ITERATIONS", "").strip()
    if not raw:
        return EncryptionService.DEFAULT_ITERATIONS
    try:
        return int(raw)
    except ValueError:
        raise EngineError(f"PASSLOCK_KDF_ITERATIONS must be an integer, got {raw!r}")


def create(service: EncryptionService, workdir: Path, password: str, confirmation: Optional[str]) -> str:
    vault_path = workdir / VAULT_FILENAME
    if vault_path.exists():
        raise EngineError("vault already exists")
    if not password:
        raise EngineError("password must not be empty")
    if confirmation is not None and confirmation != password:
        raise EngineError("passwords do not match")

    salt = EncryptionService.generate_salt()
    document = json.dumps({"entries": [], "salt": salt})
    _write_private(vault_path, service.seal(document, password, salt))
    _write_private(workdir / HANDOFF_FILENAME, document)
    return "vault created"


def unlock(service: EncryptionService, workdir: Path, password: str) -> str:
    vault_path = workdir / VAULT_FILENAME
    if not vault_path.exists():
        raise EngineError("no vault found")

    try:
        salt, plaintext = service.open(vault_path.read_text(encoding="utf-8"), password)
    except DecryptionError as e:
        raise EngineError(str(e))

    document = _load_document(plaintext)
    document["salt"] = salt
    _write_private(workdir / HANDOFF_FILENAME, json.dumps(document))
    return "vault unlocked"


def sync(service: EncryptionService, workdir: Path, password: str) -> str:
    vault_path = workdir / VAULT_FILENAME
    handoff_path = workdir / HANDOFF_FILENAME

    try:
        document = _load_document(handoff_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise EngineError("failed to read temp file")

    salt = document.get("salt")
    if vault_path.exists():
        # Refuse to re-key the vault with a password that cannot open it
        try:
            salt, _ = service.open(vault_path.read_text(encoding="utf-8"), password)
        except DecryptionError as e:
            raise EngineError(str(e))
    if not isinstance(salt, str) or not salt:
        salt = EncryptionService.generate_salt()

    document["salt"] = salt
    _write_private(vault_path, service.seal(json.dumps(document), password, salt))
    return "synced to vault"


def main(argv: Optional[List[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2 or args[0] not in ("create", "unlock", "sync"):
        print(USAGE, file=sys.stderr)
        return 1

    action, password = args[0], args[1]
    workdir = Path.cwd()

    try:
        service = EncryptionService(iterations=_iterations())
        if action == "create":
            confirmation = args[2] if len(args) > 2 else None
            message = create(service, workdir, password, confirmation)
        elif action == "unlock":
            message = unlock(service, workdir, password)
        else:
            message = sync(service, workdir, password)
    except (EngineError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"ok: {message}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
