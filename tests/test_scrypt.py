"""
Unit tests for scrypt and its mixing layer.

Tests:
- BlockMix output interleave
- ROMix against a step-by-step composition
- scrypt known vector and agreement with the cryptography library
- Parallel mixing of the p blocks
"""

import struct

import pytest
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from keystretch.core_crypto.salsa20 import salsa20_8
from keystretch.kdf.smix import blockmix_salsa8, blockmix_words, romix, integerify
from keystretch.kdf.scrypt import ScryptParams, scrypt, scrypt_params


def xor_bytes(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


def make_block(r: int, seed: int = 0) -> bytes:
    """Deterministic 128*r byte block with distinct sub-blocks."""
    return bytes((seed + i * 7 + (i >> 6) * 13) & 0xFF for i in range(128 * r))


def sub_blocks(block: bytes):
    return [block[i:i + 64] for i in range(0, len(block), 64)]


class TestBlockMix:
    """Unit tests for BlockMix-Salsa20/8."""

    def test_r1_structure(self):
        """r=1: Y_0 = H(B_1 ^ B_0), Y_1 = H(Y_0 ^ B_1)."""
        b0, b1 = sub_blocks(make_block(1))
        y0 = salsa20_8(xor_bytes(b1, b0))
        y1 = salsa20_8(xor_bytes(y0, b1))
        assert blockmix_salsa8(b0 + b1, 1) == y0 + y1

    def test_r2_interleave(self):
        """r=2: output order is Y_0, Y_2, Y_1, Y_3."""
        block = make_block(2, seed=5)
        b = sub_blocks(block)

        x = b[3]
        y = []
        for i in range(4):
            x = salsa20_8(xor_bytes(x, b[i]))
            y.append(x)

        result = blockmix_salsa8(block, 2)
        assert sub_blocks(result) == [y[0], y[2], y[1], y[3]]
        assert result != b"".join(y)

    def test_r3_interleave(self):
        block = make_block(3, seed=9)
        b = sub_blocks(block)

        x = b[5]
        y = []
        for i in range(6):
            x = salsa20_8(xor_bytes(x, b[i]))
            y.append(x)

        assert sub_blocks(blockmix_salsa8(block, 3)) == [y[0], y[2], y[4], y[1], y[3], y[5]]

    def test_r_inferred_from_length(self):
        block = make_block(2)
        assert blockmix_salsa8(block) == blockmix_salsa8(block, 2)

    def test_word_form_agrees(self):
        block = make_block(2, seed=1)
        words = struct.unpack("<64I", block)
        assert struct.pack("<64I", *blockmix_words(words, 2)) == blockmix_salsa8(block, 2)

    def test_output_length(self):
        for r in (1, 2, 4):
            assert len(blockmix_salsa8(make_block(r), r)) == 128 * r


class TestROMix:
    """Unit tests for ROMix."""

    def reference_romix(self, block: bytes, n: int, r: int) -> bytes:
        """Straightforward ROMix over byte strings."""
        x = block
        v = []
        for _ in range(n):
            v.append(x)
            x = blockmix_salsa8(x, r)
        for _ in range(n):
            j = integerify(struct.unpack(f"<{32 * r}I", x), r) % n
            x = blockmix_salsa8(xor_bytes(x, v[j]), r)
        return x

    @pytest.mark.parametrize("n,r", [(2, 1), (4, 1), (8, 2), (16, 1)])
    def test_matches_reference(self, n, r):
        block = make_block(r, seed=n)
        assert romix(block, n, r) == self.reference_romix(block, n, r)

    def test_integerify_reads_last_subblock(self):
        """Integerify is the little-endian 64-bit value at offset (2r-1)*64."""
        block = bytearray(256)
        block[192:200] = (0x0123456789ABCDEF).to_bytes(8, "little")
        words = struct.unpack("<64I", bytes(block))
        assert integerify(words, 2) == 0x0123456789ABCDEF

    def test_output_length(self):
        assert len(romix(make_block(2), 4, 2)) == 256

    def test_deterministic(self):
        block = make_block(1, seed=3)
        assert romix(block, 8) == romix(block, 8)

    def test_different_n_different_output(self):
        block = make_block(1, seed=3)
        assert romix(block, 8) != romix(block, 16)


class TestScrypt:
    """Known answers and reference comparisons for scrypt."""

    def test_rfc7914_vector_1(self):
        """scrypt("", "", N=16, r=1, p=1, dkLen=64)."""
        expected = bytes.fromhex(
            "77 d6 57 62 38 65 7b 20 3b 19 ca 42 c1 8a 04 97"
            "f1 6b 48 44 e3 07 4a e8 df df fa 3f ed e2 14 42"
            "fc d0 06 9d ed 09 48 f8 32 6a 75 3a 0f c8 1f 17"
            "e8 d3 e0 fb 2e 0d 36 28 cf 35 e2 0c 38 d1 89 06"
        )
        assert scrypt(b"", b"", 16, 1, 1, 64) == expected

    @pytest.mark.parametrize("n,r,p,dklen", [
        (16, 1, 1, 32),
        (32, 2, 1, 33),
        (16, 1, 3, 64),
        (64, 2, 2, 10),
    ])
    def test_matches_cryptography(self, n, r, p, dklen):
        kdf = Scrypt(salt=b"NaCl", length=dklen, n=n, r=r, p=p)
        assert scrypt(b"password", b"NaCl", n, r, p, dklen) == kdf.derive(b"password")

    @pytest.mark.parametrize("dklen", [1, 31, 32, 33, 100])
    def test_length_contract(self, dklen):
        assert len(scrypt(b"pw", b"salt", 16, 1, 1, dklen)) == dklen

    def test_deterministic(self):
        assert scrypt(b"pw", b"salt", 16, 1, 2, 32) == scrypt(b"pw", b"salt", 16, 1, 2, 32)

    def test_salt_changes_key(self):
        assert scrypt(b"pw", b"salt1", 16, 1, 1, 32) != scrypt(b"pw", b"salt2", 16, 1, 1, 32)

    def test_str_inputs(self):
        assert scrypt("pw", "salt", 16, 1, 1, 32) == scrypt(b"pw", b"salt", 16, 1, 1, 32)

    def test_workers_same_result(self):
        """Mixing the p blocks on threads gives the same key."""
        serial = scrypt(b"pw", b"salt", 16, 1, 4, 48, workers=1)
        parallel = scrypt(b"pw", b"salt", 16, 1, 4, 48, workers=4)
        assert serial == parallel

    def test_maxmem_allows_exact_cost(self):
        params = ScryptParams(n=16, r=1, p=1, dklen=32)
        key = scrypt(b"pw", b"salt", 16, 1, 1, 32, maxmem=params.memory_cost)
        assert len(key) == 32

    def test_params_memory_cost(self):
        assert ScryptParams(n=1024, r=8, p=16, dklen=64).memory_cost == 128 * 8 * (1024 + 16)

    def test_scrypt_params_helper(self):
        params = ScryptParams(n=16, r=1, p=1, dklen=64)
        assert scrypt_params(params, b"", b"") == scrypt(b"", b"", 16, 1, 1, 64)
