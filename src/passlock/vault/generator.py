# Password Generator (CSPRNG via the secrets module)

import secrets
import string
from typing import Optional

GENERATOR_SYMBOLS = "!@#$%^&*-"
ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits + GENERATOR_SYMBOLS

DEFAULT_LENGTH = 16
MIN_LENGTH = 4
MAX_LENGTH = 64


def clamp_length(length: Optional[int]) -> int:
    """None or <= 0 means the default; everything else is clamped to [4, 64]."""
    if length is None or length <= 0:
        return DEFAULT_LENGTH
    return max(MIN_LENGTH, min(MAX_LENGTH, int(length)))


def generate_password(length: Optional[int] = DEFAULT_LENGTH) -> str:
    """Random password, each character chosen uniformly from ALPHABET."""
    return "".join(secrets.choice(ALPHABET) for _ in range(clamp_length(length)))
