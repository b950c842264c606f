"""
Salsa20/8 Core (From Scratch)

Implements the Salsa20/8 core function used by scrypt's BlockMix, as
described in RFC 7914 section 3. This is the hash function, not the
Salsa20 stream cipher: there is no key, nonce or counter.

Components:
- Decode: 64 bytes -> 16 little-endian 32-bit words
- 4 double rounds (8 rounds): column quarter-rounds then row quarter-rounds,
  rotations 7, 9, 13, 18
- Feed-forward: add the round output to the input words (mod 2^32)
- Encode: 16 words -> 64 little-endian bytes

No branch depends on the input values.
"""

import struct
from typing import List, Sequence

from ..errors import InvalidParameterError


# Mask for 32-bit arithmetic
MASK_32 = 0xFFFFFFFF

SALSA_BLOCK_SIZE = 64
SALSA_WORDS = 16
DOUBLE_ROUNDS = 4  # Salsa20/8

_WORDS_STRUCT = struct.Struct('<16I')

# Each step is (target, a, b, rotation): x[target] ^= rotl(x[a] + x[b], rotation)
# Columns of the 4x4 matrix
COLUMN_ROUND = (
    (4, 0, 12, 7), (8, 4, 0, 9), (12, 8, 4, 13), (0, 12, 8, 18),
    (9, 5, 1, 7), (13, 9, 5, 9), (1, 13, 9, 13), (5, 1, 13, 18),
    (14, 10, 6, 7), (2, 14, 10, 9), (6, 2, 14, 13), (10, 6, 2, 18),
    (3, 15, 11, 7), (7, 3, 15, 9), (11, 7, 3, 13), (15, 11, 7, 18),
)

# Rows of the 4x4 matrix
ROW_ROUND = (
    (1, 0, 3, 7), (2, 1, 0, 9), (3, 2, 1, 13), (0, 3, 2, 18),
    (6, 5, 4, 7), (7, 6, 5, 9), (4, 7, 6, 13), (5, 4, 7, 18),
    (11, 10, 9, 7), (8, 11, 10, 9), (9, 8, 11, 13), (10, 9, 8, 18),
    (12, 15, 14, 7), (13, 12, 15, 9), (14, 13, 12, 13), (15, 14, 13, 18),
)

DOUBLE_ROUND = COLUMN_ROUND + ROW_ROUND


def _left_rotate(value: int, amount: int) -> int:
    """Left rotate a 32-bit integer by the specified amount."""
    value &= MASK_32
    return ((value << amount) | (value >> (32 - amount))) & MASK_32


def salsa20_8_words(words: Sequence[int]) -> List[int]:
    """
    Apply the Salsa20/8 core to 16 32-bit words.

    Args:
        words: 16 unsigned 32-bit integers

    Returns:
        New list of 16 unsigned 32-bit integers
    """
    x = list(words)
    rotl = _left_rotate

    for _ in range(DOUBLE_ROUNDS):
        for target, a, b, rotation in DOUBLE_ROUND:
            x[target] ^= rotl(x[a] + x[b], rotation)

    return [(w + xi) & MASK_32 for w, xi in zip(words, x)]


def bytes_to_words(block: bytes) -> List[int]:
    """Convert a 64-byte block into 16 little-endian 32-bit words."""
    return list(_WORDS_STRUCT.unpack(block))


def words_to_bytes(words: Sequence[int]) -> bytes:
    """Convert 16 32-bit words into a 64-byte little-endian block."""
    return _WORDS_STRUCT.pack(*words)


def salsa20_8(block: bytes) -> bytes:
    """
    Apply the Salsa20/8 core to a 64-byte block.

    Args:
        block: 64 input bytes

    Returns:
        64 output bytes

    Raises:
        InvalidParameterError: If block is not exactly 64 bytes

    Example:
        >>> salsa20_8(bytes(64)) == bytes(64)
        True
    """
    if len(block) != SALSA_BLOCK_SIZE:
        raise InvalidParameterError(
            f"Salsa20/8 block must be {SALSA_BLOCK_SIZE} bytes, got {len(block)}"
        )
    return words_to_bytes(salsa20_8_words(bytes_to_words(block)))


# Self-test when run directly
if __name__ == "__main__":
    # RFC 7914 section 8
    rfc_input = bytes.fromhex(
        "7e879a214f3ec9867ca940e641718f26"
        "baee555b8c61c1b50df846116dcd3b1d"
        "ee24f319df9b3d8514121e4b5ac5aa32"
        "76021d2909c74829edebc68db8b8c25e"
    )
    rfc_output = (
        "a41f859c6608cc993b81cacb020cef05"
        "044b2181a2fd337dfd7b1c6396682f29"
        "b4393168e3c9e6bcfe6bc5b7a06d96ba"
        "e424cc102c91745c24ad673dc7618f81"
    )

    print("Salsa20/8 Core Test")
    print("=" * 60)
    result = salsa20_8(rfc_input).hex()
    passed = result == rfc_output
    print(f"Expected: {rfc_output}")
    print(f"Got:      {result}")
    print(f"Status:   {'✓ PASS' if passed else '✗ FAIL'}")
