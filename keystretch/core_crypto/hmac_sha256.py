"""
HMAC-SHA256 Primitive

Implements the HMAC construction (RFC 2104) over the host's SHA-256 from
hashlib. This is the single PRF used by both PBKDF2 and scrypt.

Components:
- Key blocks: the key is zero-padded to the 64-byte SHA-256 block size
  (or hashed first if longer), then XOR-ed with 0x36 (ipad) and 0x5c (opad)
- Precomputed inner/outer hash states, copied for every message so the
  padded key is absorbed only once per password
- Output: 256-bit (32-byte) digest
"""

import hashlib
from typing import Union


# SHA-256 block size and digest size in bytes
BLOCK_SIZE = 64
DIGEST_SIZE = 32

IPAD_BYTE = 0x36
OPAD_BYTE = 0x5C

BytesLike = Union[bytes, bytearray, memoryview, str]


def ensure_bytes(data: BytesLike, name: str = "value", encoding: str = 'utf-8') -> bytes:
    """
    Normalise a password or salt to bytes.

    Strings are encoded (UTF-8 by default); bytes-like objects are copied.

    Raises:
        TypeError: If data is not str or bytes-like
    """
    if isinstance(data, str):
        return data.encode(encoding)
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"{name} must be bytes or str, not {type(data).__name__}")


class HMACKey:
    """
    HMAC-SHA256 keyed with a fixed password.

    The ipad/opad key blocks are derived once at construction and never
    change afterwards. Calling the instance computes HMAC(key, message).

    Example:
        >>> mac = HMACKey(b"key")
        >>> mac(b"The quick brown fox jumps over the lazy dog").hex()[:16]
        'f7bc83f430538424'
    """

    __slots__ = ('_ipad', '_opad', '_inner', '_outer')

    def __init__(self, key: BytesLike):
        key = ensure_bytes(key, "key")

        # Long keys are replaced by their digest
        if len(key) > BLOCK_SIZE:
            key = hashlib.sha256(key).digest()
        key = key.ljust(BLOCK_SIZE, b'\x00')

        self._ipad = bytes(b ^ IPAD_BYTE for b in key)
        self._opad = bytes(b ^ OPAD_BYTE for b in key)

        self._inner = hashlib.sha256(self._ipad)
        self._outer = hashlib.sha256(self._opad)

    @property
    def ipad(self) -> bytes:
        """Key block XOR 0x36."""
        return self._ipad

    @property
    def opad(self) -> bytes:
        """Key block XOR 0x5c."""
        return self._opad

    def digest(self, message: bytes) -> bytes:
        """
        Compute HMAC-SHA256 of a message under this key.

        Args:
            message: Bytes to authenticate

        Returns:
            32-byte MAC
        """
        inner = self._inner.copy()
        inner.update(message)
        outer = self._outer.copy()
        outer.update(inner.digest())
        return outer.digest()

    __call__ = digest


def hmac_sha256(key: BytesLike, message: bytes) -> bytes:
    """
    One-shot HMAC-SHA256.

    Args:
        key: HMAC key (str is UTF-8 encoded)
        message: Message bytes

    Returns:
        32-byte digest
    """
    return HMACKey(key).digest(message)


def hmac_sha256_hex(key: BytesLike, message: bytes) -> str:
    """HMAC-SHA256 as a hexadecimal string."""
    return hmac_sha256(key, message).hex()


# Self-test when run directly
if __name__ == "__main__":
    # RFC 4231 test cases 1 and 2
    test_cases = [
        (b"\x0b" * 20, b"Hi There",
         "b0344c61d8db38535ca8afceaf0bf12b881dc200c9833da726e9376c2e32cff7"),
        (b"Jefe", b"what do ya want for nothing?",
         "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"),
    ]

    print("HMAC-SHA256 Implementation Test")
    print("=" * 60)

    all_passed = True
    for key, data, expected in test_cases:
        result = hmac_sha256_hex(key, data)
        passed = result == expected
        all_passed = all_passed and passed

        status = "✓ PASS" if passed else "✗ FAIL"
        print(f"\nKey:      {key!r}")
        print(f"Expected: {expected}")
        print(f"Got:      {result}")
        print(f"Status:   {status}")

    print("\n" + "=" * 60)
    print(f"Overall: {'All tests passed!' if all_passed else 'Some tests failed!'}")
