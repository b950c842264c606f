"""
Configured Key Derivers

Wraps PBKDF2 and scrypt behind objects that hold a parameter set, generate
salts and verify candidate passwords.

Features:
- Default parameter sets that can be overridden per instance
- Cryptographically secure random salt generation
- Constant-time comparison for key verification

Security considerations:
- Salts must be unique per password; derive() generates one when omitted
- Parameters are validated when the deriver is built, not on first use
"""

import hmac
import logging
import secrets
from typing import Optional, Tuple

from ..core_crypto.hmac_sha256 import BytesLike, ensure_bytes
from .pbkdf2 import pbkdf2_hmac_sha256, validate_pbkdf2_params, check_positive_int
from .scrypt import ScryptParams, scrypt


logger = logging.getLogger(__name__)


# scrypt configuration (RFC 7914 interactive-login parameters)
# - n: CPU/memory cost, power of two
# - r: block size
# - p: parallelization
# - dklen: derived key length in bytes
# - salt_len: length of generated salts
SCRYPT_CONFIG = {
    'n': 2 ** 14,            # 16 MiB with r=8
    'r': 8,
    'p': 1,
    'dklen': 32,             # 256-bit key
    'salt_len': 16,          # 128-bit salt
    'maxmem': None,
    'workers': 1,
}

PBKDF2_CONFIG = {
    'iterations': 600_000,
    'dklen': 32,
    'salt_len': 16,
}


def generate_salt(length: int = 16) -> bytes:
    """
    Generate a cryptographically secure random salt.

    Args:
        length: Salt length in bytes (default 16 = 128 bits)

    Returns:
        Random bytes suitable for use as salt
    """
    check_positive_int("length", length)
    return secrets.token_bytes(length)


def keys_equal(a: bytes, b: bytes) -> bool:
    """Constant-time comparison of two derived keys."""
    return hmac.compare_digest(a, b)


class ScryptKDF:
    """
    scrypt key deriver with a fixed parameter set.

    Example:
        >>> kdf = ScryptKDF(n=16, r=1, p=1)
        >>> salt, key = kdf.derive("correct horse")
        >>> kdf.verify("correct horse", salt, key)
        True
    """

    def __init__(self, **kwargs):
        """
        Initialize the deriver.

        Args:
            **kwargs: Override default scrypt parameters

        Raises:
            KeyError: On an unknown parameter name
            InvalidParameterError: If the parameters are invalid
        """
        config = SCRYPT_CONFIG.copy()
        for name in kwargs:
            if name not in config:
                raise KeyError(f"Unknown scrypt parameter: {name}")
        config.update(kwargs)

        self._params = ScryptParams(
            n=config['n'],
            r=config['r'],
            p=config['p'],
            dklen=config['dklen'],
            maxmem=config['maxmem'],
        ).validate()
        self._salt_len = check_positive_int("salt_len", config['salt_len'])
        self._workers = check_positive_int("workers", config['workers'])

    @property
    def params(self) -> ScryptParams:
        return self._params

    def derive_key(self, password: BytesLike, salt: BytesLike) -> bytes:
        """Derive a key for an explicit salt."""
        p = self._params
        return scrypt(password, salt, p.n, p.r, p.p, p.dklen,
                      maxmem=p.maxmem, workers=self._workers)

    def derive(self, password: BytesLike, salt: Optional[BytesLike] = None) -> Tuple[bytes, bytes]:
        """
        Derive a key, generating a salt if none is given.

        Returns:
            (salt, key) tuple
        """
        salt = ensure_bytes(salt, "salt") if salt is not None else generate_salt(self._salt_len)
        return salt, self.derive_key(password, salt)

    def verify(self, password: BytesLike, salt: BytesLike, expected: bytes) -> bool:
        """
        Check a password against a previously derived key.

        Uses constant-time comparison to prevent timing attacks.

        Returns:
            True if the password derives the expected key

        Raises:
            ResourceExhaustedError: If the scratch array cannot be allocated
        """
        candidate = self.derive_key(password, salt)
        matched = keys_equal(candidate, bytes(expected))
        if not matched:
            logger.debug("scrypt verification failed")
        return matched


class PBKDF2KDF:
    """
    PBKDF2-HMAC-SHA256 key deriver with a fixed parameter set.

    Example:
        >>> kdf = PBKDF2KDF(iterations=1000)
        >>> salt, key = kdf.derive(b"secret")
        >>> len(key)
        32
    """

    def __init__(self, **kwargs):
        config = PBKDF2_CONFIG.copy()
        for name in kwargs:
            if name not in config:
                raise KeyError(f"Unknown PBKDF2 parameter: {name}")
        config.update(kwargs)

        validate_pbkdf2_params(config['iterations'], config['dklen'])
        self._iterations = config['iterations']
        self._dklen = config['dklen']
        self._salt_len = check_positive_int("salt_len", config['salt_len'])

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def dklen(self) -> int:
        return self._dklen

    def derive_key(self, password: BytesLike, salt: BytesLike) -> bytes:
        """Derive a key for an explicit salt."""
        return pbkdf2_hmac_sha256(password, salt, self._iterations, self._dklen)

    def derive(self, password: BytesLike, salt: Optional[BytesLike] = None) -> Tuple[bytes, bytes]:
        """
        Derive a key, generating a salt if none is given.

        Returns:
            (salt, key) tuple
        """
        salt = ensure_bytes(salt, "salt") if salt is not None else generate_salt(self._salt_len)
        return salt, self.derive_key(password, salt)

    def verify(self, password: BytesLike, salt: BytesLike, expected: bytes) -> bool:
        """Check a password against a previously derived key in constant time."""
        return keys_equal(self.derive_key(password, salt), bytes(expected))
