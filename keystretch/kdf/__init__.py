# Key Derivation Module
"""
Password-based key derivation functions:
- PBKDF2-HMAC-SHA256, resumable in chunks - pbkdf2.py
- BlockMix / ROMix memory-hard mixing - smix.py
- scrypt (RFC 7914) - scrypt.py
- Configured derivers with salt generation - hasher.py

The pbkdf2() and scrypt() functions are not re-exported here so that the
submodules of the same name stay reachable as package attributes; import
them from keystretch or from their modules.
"""

from .pbkdf2 import (
    PBKDF2Engine,
    pbkdf2_hmac_sha256,
    validate_pbkdf2_params,
    DEFAULT_CHUNK_SIZE,
    HASH_LENGTH,
    MAX_DKLEN,
)

from .smix import (
    blockmix_salsa8,
    blockmix_words,
    romix,
    integerify,
)

from .scrypt import (
    ScryptParams,
    scrypt_params,
    MAX_RP,
)

from .hasher import (
    ScryptKDF,
    PBKDF2KDF,
    generate_salt,
    keys_equal,
    SCRYPT_CONFIG,
    PBKDF2_CONFIG,
)

__all__ = [
    # PBKDF2
    'PBKDF2Engine',
    'pbkdf2_hmac_sha256',
    'validate_pbkdf2_params',
    'DEFAULT_CHUNK_SIZE',
    'HASH_LENGTH',
    'MAX_DKLEN',
    # ROMix
    'blockmix_salsa8',
    'blockmix_words',
    'romix',
    'integerify',
    # scrypt
    'ScryptParams',
    'scrypt_params',
    'MAX_RP',
    # Derivers
    'ScryptKDF',
    'PBKDF2KDF',
    'generate_salt',
    'keys_equal',
    'SCRYPT_CONFIG',
    'PBKDF2_CONFIG',
]
