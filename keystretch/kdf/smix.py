"""
scrypt BlockMix and ROMix

Implements the memory-hard mixing layer of scrypt (RFC 7914 sections 4-5).

BlockMix (r):
    X = B_{2r-1}
    for i in 0 .. 2r-1:  X = Salsa20/8(X ^ B_i);  Y_i = X
    B' = (Y_0, Y_2, ..., Y_{2r-2}, Y_1, Y_3, ..., Y_{2r-1})

ROMix (N, r):
    X = B
    for i in 0 .. N-1:   V_i = X;  X = BlockMix(X)          (fill)
    for i in 0 .. N-1:   j = Integerify(X) & (N-1)
                         X = BlockMix(X ^ V_j)              (mix)
    B' = X

Blocks are handled internally as lists of 32*r little-endian 32-bit words.
The scratch array V is a single contiguous bytearray of N * 128 * r bytes
owned by one romix() call and addressed by byte offset.

The fill loop is a sequential dependency chain: V_i is only known after
V_{i-1} has been mixed. It must stay serial.
"""

import logging
import struct
from functools import lru_cache
from typing import List, Optional, Sequence

from ..core_crypto.salsa20 import salsa20_8_words, SALSA_WORDS
from ..errors import InvalidParameterError, ResourceExhaustedError
from .pbkdf2 import check_positive_int


logger = logging.getLogger(__name__)


def block_size(r: int) -> int:
    """Size in bytes of one scrypt block for block size parameter r."""
    return 128 * r


@lru_cache(maxsize=16)
def _block_struct(r: int) -> struct.Struct:
    return struct.Struct(f'<{32 * r}I')


def check_power_of_two(n: int) -> int:
    """
    Validate the CPU/memory cost parameter N.

    Raises:
        InvalidParameterError: If n is not a power of two greater than 1
    """
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidParameterError(f"N must be an integer, got {type(n).__name__}")
    if n <= 1 or n & (n - 1):
        raise InvalidParameterError(f"N must be a power of two greater than 1, got {n}")
    return n


def _check_block(block: bytes, r: Optional[int]) -> int:
    """Validate a block length and return r."""
    if r is None:
        if not block or len(block) % 128:
            raise InvalidParameterError(
                f"Block length must be a positive multiple of 128, got {len(block)}"
            )
        return len(block) // 128
    check_positive_int("r", r)
    if len(block) != block_size(r):
        raise InvalidParameterError(
            f"Block must be {block_size(r)} bytes for r={r}, got {len(block)}"
        )
    return r


def blockmix_words(words: Sequence[int], r: int) -> List[int]:
    """
    BlockMix over 32*r words.

    Args:
        words: Input block as 32*r 32-bit words
        r: Block size parameter

    Returns:
        New list of 32*r words
    """
    half = SALSA_WORDS * r
    x = list(words[(2 * r - 1) * SALSA_WORDS:])
    out = [0] * (2 * half)

    for i in range(2 * r):
        start = i * SALSA_WORDS
        x = salsa20_8_words([a ^ b for a, b in zip(x, words[start:start + SALSA_WORDS])])

        # Even Y blocks fill the first half, odd ones the second
        offset = (i >> 1) * SALSA_WORDS + (half if i & 1 else 0)
        out[offset:offset + SALSA_WORDS] = x

    return out


def blockmix_salsa8(block: bytes, r: Optional[int] = None) -> bytes:
    """
    Apply BlockMix-Salsa20/8 to a 128*r byte block.

    Args:
        block: Input block
        r: Block size parameter; inferred from the length if omitted

    Returns:
        Mixed 128*r byte block

    Raises:
        InvalidParameterError: If the block length does not match r
    """
    r = _check_block(block, r)
    packer = _block_struct(r)
    return packer.pack(*blockmix_words(packer.unpack(block), r))


def integerify(words: Sequence[int], r: int) -> int:
    """
    Read the first 8 bytes of the last 64-byte sub-block as a
    little-endian integer.
    """
    index = (2 * r - 1) * SALSA_WORDS
    return words[index] | (words[index + 1] << 32)


def allocate_scratch(n: int, r: int) -> bytearray:
    """
    Allocate the N * 128 * r byte scratch array V.

    Raises:
        ResourceExhaustedError: If the allocation fails
    """
    size = n * block_size(r)
    logger.debug("Allocating ROMix scratch array: %d bytes (N=%d, r=%d)", size, n, r)
    try:
        return bytearray(size)
    except (MemoryError, OverflowError) as exc:
        logger.warning("ROMix scratch allocation of %d bytes failed", size)
        raise ResourceExhaustedError(
            f"Cannot allocate {size} bytes of scratch memory for N={n}, r={r}"
        ) from exc


def romix(block: bytes, n: int, r: Optional[int] = None) -> bytes:
    """
    Apply scrypt ROMix (smix) to a single 128*r byte block.

    Args:
        block: Input block B
        n: CPU/memory cost parameter N (power of two > 1)
        r: Block size parameter; inferred from the length if omitted

    Returns:
        Mixed 128*r byte block

    Raises:
        InvalidParameterError: On a bad N or block length
        ResourceExhaustedError: If the scratch array cannot be allocated
    """
    check_power_of_two(n)
    r = _check_block(block, r)

    packer = _block_struct(r)
    stride = block_size(r)
    v = allocate_scratch(n, r)

    x = list(packer.unpack(block))

    # Fill: V_i = X, X = BlockMix(X)
    for i in range(n):
        packer.pack_into(v, i * stride, *x)
        x = blockmix_words(x, r)

    # Mix: data-dependent reads from V
    mask = n - 1
    for _ in range(n):
        j = integerify(x, r) & mask
        vj = packer.unpack_from(v, j * stride)
        x = blockmix_words([a ^ b for a, b in zip(x, vj)], r)

    return packer.pack(*x)
