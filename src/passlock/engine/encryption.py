# Reference Engine - Encryption Service
#
# Master password -> key (PBKDF2-HMAC-SHA256)
# Vault document   -> AES-256-GCM ciphertext
#
# On-disk format:  <salt_b64>:<b64(nonce || ciphertext)>

import base64
import os
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

VAULT_DELIMITER = ":"


class DecryptionError(Exception):
    """Wrong password, tampered data or malformed vault file."""


class EncryptionService:
    """
    Handles encryption/decryption of the whole vault document.

    Flow:
    1. PBKDF2 derives a 256-bit key from master password + vault salt
    2. AES-256-GCM encrypts the JSON document with a fresh nonce
    3. The GCM tag rejects wrong passwords at decrypt time
    """

    # PBKDF2 parameters (OWASP 2023: 600k iterations for PBKDF2-SHA256)
    DEFAULT_ITERATIONS = 600_000
    KEY_LENGTH = 32  # 256 bits for AES-256
    SALT_LENGTH = 32  # 256-bit salt
    NONCE_LENGTH = 12  # 96-bit nonce for GCM (recommended)

    def __init__(self, iterations: int = DEFAULT_ITERATIONS):
        if iterations < 1:
            raise ValueError("iterations must be positive")
        self.iterations = iterations

    def derive_key(self, master_password: str, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=self.KEY_LENGTH,
            salt=salt,
            iterations=self.iterations,
        )
        return kdf.derive(master_password.encode('utf-8'))

    @classmethod
    def generate_salt(cls) -> str:
        """Random salt, base64-encoded (never contains the ':' delimiter)."""
        return base64.b64encode(os.urandom(cls.SALT_LENGTH)).decode('ascii')

    def seal(self, plaintext: str, master_password: str, salt: str) -> str:
        """
        Encrypt ``plaintext`` into the on-disk vault format.

        Returns:
            "<salt>:<base64(nonce || ciphertext)>"
        """
        key = self.derive_key(master_password, base64.b64decode(salt))
        nonce = os.urandom(self.NONCE_LENGTH)
        ciphertext = AESGCM(key).encrypt(nonce, plaintext.encode('utf-8'), None)
        blob = base64.b64encode(nonce + ciphertext).decode('ascii')
        return f"{salt}{VAULT_DELIMITER}{blob}"

    def open(self, sealed: str, master_password: str) -> Tuple[str, str]:
        """
        Decrypt an on-disk vault.

        Returns:
            (salt, plaintext)

        Raises:
            DecryptionError: Malformed file, wrong password or tampering
        """
        salt, sep, blob = sealed.strip().partition(VAULT_DELIMITER)
        if not sep or not salt or not blob:
            raise DecryptionError("invalid vault format")

        try:
            raw_salt = base64.b64decode(salt, validate=True)
            data = base64.b64decode(blob, validate=True)
        except ValueError:
            raise DecryptionError("invalid vault encoding")

        if len(data) <= self.NONCE_LENGTH:
            raise DecryptionError("invalid vault data")

        nonce, ciphertext = data[:self.NONCE_LENGTH], data[self.NONCE_LENGTH:]
        key = self.derive_key(master_password, raw_salt)
        try:
            plaintext = AESGCM(key).decrypt(nonce, ciphertext, None)
        except InvalidTag:
            raise DecryptionError("decryption failed - wrong password?")

        try:
            return salt, plaintext.decode('utf-8')
        except UnicodeDecodeError:
            raise DecryptionError("vault content is not text")
