"""
scrypt Key Derivation Function

Implements scrypt as defined in RFC 7914:

    B   = PBKDF2-HMAC-SHA256(P, S, 1, p * 128 * r)
    B_i = ROMix(B_i, N)            for i in 0 .. p-1
    DK  = PBKDF2-HMAC-SHA256(P, B, 1, dkLen)

Features:
- Parameter validation before any hashing or allocation
- Optional memory limit (maxmem), checked before allocating
- The p blocks are independent and may be mixed on worker threads;
  each worker owns its own scratch array

Memory use is roughly 128 * r * (N + p) bytes.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from ..core_crypto.hmac_sha256 import HMACKey, BytesLike, ensure_bytes
from ..errors import InvalidParameterError, ResourceExhaustedError
from .pbkdf2 import pbkdf2, check_positive_int, MAX_DKLEN
from .smix import romix, block_size, check_power_of_two


logger = logging.getLogger(__name__)


# PBKDF2 can produce at most (2^32 - 1) * 32 bytes, and the stretch step
# asks for p * 128 * r of them
MAX_RP = 1 << 30


@dataclass(frozen=True)
class ScryptParams:
    """
    scrypt cost parameters.

    Attributes:
        n: CPU/memory cost (power of two > 1)
        r: Block size
        p: Parallelization
        dklen: Derived key length in bytes
        maxmem: Optional limit in bytes on 128 * r * (N + p)
    """
    n: int
    r: int
    p: int
    dklen: int
    maxmem: Optional[int] = None

    @property
    def memory_cost(self) -> int:
        """Bytes of scratch and block memory the derivation needs."""
        return block_size(self.r) * (self.n + self.p)

    def validate(self) -> 'ScryptParams':
        """
        Check every parameter.

        Raises:
            InvalidParameterError: If a parameter is out of range
            ResourceExhaustedError: If memory_cost exceeds maxmem
        """
        check_power_of_two(self.n)
        check_positive_int("r", self.r)
        check_positive_int("p", self.p)
        check_positive_int("dklen", self.dklen)

        if self.r * self.p >= MAX_RP:
            raise InvalidParameterError(f"r * p must be less than 2^30, got {self.r * self.p}")
        if self.dklen > MAX_DKLEN:
            raise InvalidParameterError(f"Derived key too long: {self.dklen} > {MAX_DKLEN} bytes")
        # RFC 7914 section 6: N < 2^(128 * r / 8)
        if self.n.bit_length() - 1 >= 16 * self.r:
            raise InvalidParameterError(f"N must be less than 2^(16 * r) for r={self.r}")

        if self.maxmem is not None:
            check_positive_int("maxmem", self.maxmem)
            if self.memory_cost > self.maxmem:
                raise ResourceExhaustedError(
                    f"scrypt needs {self.memory_cost} bytes, limit is {self.maxmem}"
                )
        return self


def scrypt(
    password: BytesLike,
    salt: BytesLike,
    n: int,
    r: int,
    p: int,
    dklen: int,
    maxmem: Optional[int] = None,
    workers: int = 1,
) -> bytes:
    """
    Derive a key with scrypt.

    Args:
        password: Password (str is UTF-8 encoded)
        salt: Salt (str is UTF-8 encoded)
        n: CPU/memory cost parameter N (power of two > 1)
        r: Block size parameter (>= 1)
        p: Parallelization parameter (>= 1)
        dklen: Derived key length in bytes (>= 1)
        maxmem: Optional memory limit in bytes
        workers: Threads used to mix the p blocks

    Returns:
        dklen bytes of key material

    Raises:
        InvalidParameterError: If any parameter is out of range
        ResourceExhaustedError: If the memory limit is exceeded or the
            scratch array cannot be allocated

    Example:
        >>> scrypt(b"", b"", 16, 1, 1, 64).hex()[:16]
        '77d6576238657b20'
    """
    params = ScryptParams(n=n, r=r, p=p, dklen=dklen, maxmem=maxmem).validate()
    check_positive_int("workers", workers)
    password = ensure_bytes(password, "password")
    salt = ensure_bytes(salt, "salt")

    logger.debug(
        "scrypt: N=%d r=%d p=%d dklen=%d memory=%d bytes workers=%d",
        n, r, p, dklen, params.memory_cost, workers
    )

    stride = block_size(r)
    b = pbkdf2(HMACKey, password, salt, 1, p * stride)
    chunks = [b[i * stride:(i + 1) * stride] for i in range(p)]

    if workers == 1 or p == 1:
        mixed = [romix(chunk, n, r) for chunk in chunks]
    else:
        with ThreadPoolExecutor(max_workers=min(workers, p)) as executor:
            mixed = list(executor.map(lambda chunk: romix(chunk, n, r), chunks))

    return pbkdf2(HMACKey, password, b''.join(mixed), 1, dklen)


def scrypt_params(params: ScryptParams, password: BytesLike, salt: BytesLike, workers: int = 1) -> bytes:
    """Derive a key from a ScryptParams instance."""
    return scrypt(
        password, salt,
        params.n, params.r, params.p, params.dklen,
        maxmem=params.maxmem,
        workers=workers,
    )


# Self-test when run directly
if __name__ == "__main__":
    expected = (
        "77d6576238657b203b19ca42c18a0497f16b4844e3074ae8dfdffa3fede21442"
        "fcd0069ded0948f8326a753a0fc81f17e8d3e0fb2e0d3628cf35e20c38d18906"
    )

    print("scrypt Test")
    print("=" * 60)
    result = scrypt(b"", b"", 16, 1, 1, 64).hex()
    passed = result == expected
    print(f"Expected: {expected}")
    print(f"Got:      {result}")
    print(f"Status:   {'✓ PASS' if passed else '✗ FAIL'}")
