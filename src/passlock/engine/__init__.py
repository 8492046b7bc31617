# Reference Vault Engine
#
# A standalone process implementing the engine contract the session layer
# talks to. Never imported by the session layer itself; it is only ever
# executed as a subprocess (python -m passlock.engine / passlock-engine).

from .encryption import DecryptionError, EncryptionService

__all__ = ["EncryptionService", "DecryptionError"]
