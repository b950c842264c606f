"""
keystretch - password-based key derivation.

PBKDF2-HMAC-SHA256 and scrypt, built on hashlib's SHA-256.

    >>> from keystretch import pbkdf2_hmac_sha256, scrypt
    >>> len(scrypt(b"password", b"salt", 16, 1, 1, 32))
    32
"""

from .errors import (
    KeyDerivationError,
    InvalidParameterError,
    ResourceExhaustedError,
    CancelledError,
)

from .kdf.pbkdf2 import PBKDF2Engine, pbkdf2_hmac_sha256
from .kdf.scrypt import ScryptParams, scrypt
from .kdf.hasher import ScryptKDF, PBKDF2KDF, generate_salt

__version__ = "1.0.0"

__all__ = [
    'KeyDerivationError',
    'InvalidParameterError',
    'ResourceExhaustedError',
    'CancelledError',
    'PBKDF2Engine',
    'pbkdf2_hmac_sha256',
    'ScryptParams',
    'scrypt',
    'ScryptKDF',
    'PBKDF2KDF',
    'generate_salt',
]
