"""
Integration tests for keystretch.

Tests the public API end to end:
- Configured derivers (salt generation, verification)
- Command line entry point
"""

import pytest

import keystretch
from keystretch import InvalidParameterError
from keystretch.kdf.hasher import ScryptKDF, PBKDF2KDF, generate_salt, keys_equal
from keystretch.main import main


class TestScryptKDF:
    """Tests for the configured scrypt deriver."""

    def test_derive_and_verify(self):
        kdf = ScryptKDF(n=16, r=1, p=1)
        salt, key = kdf.derive("correct horse battery staple")
        assert len(salt) == 16
        assert len(key) == 32
        assert kdf.verify("correct horse battery staple", salt, key)

    def test_wrong_password_rejected(self):
        kdf = ScryptKDF(n=16, r=1, p=1)
        salt, key = kdf.derive("right")
        assert not kdf.verify("wrong", salt, key)

    def test_unique_salts(self):
        kdf = ScryptKDF(n=16, r=1, p=1)
        salt1, key1 = kdf.derive("same")
        salt2, key2 = kdf.derive("same")
        assert salt1 != salt2
        assert key1 != key2

    def test_explicit_salt(self):
        kdf = ScryptKDF(n=16, r=1, p=1, dklen=64)
        salt, key = kdf.derive(b"", salt=b"")
        assert salt == b""
        assert key == keystretch.scrypt(b"", b"", 16, 1, 1, 64)

    def test_unknown_parameter(self):
        with pytest.raises(KeyError):
            ScryptKDF(cost=16)

    def test_invalid_config_rejected_early(self):
        with pytest.raises(InvalidParameterError):
            ScryptKDF(n=15)

    def test_default_params(self):
        params = ScryptKDF().params
        assert (params.n, params.r, params.p) == (16384, 8, 1)


class TestPBKDF2KDF:
    """Tests for the configured PBKDF2 deriver."""

    def test_derive_and_verify(self):
        kdf = PBKDF2KDF(iterations=100)
        salt, key = kdf.derive(b"secret")
        assert kdf.verify(b"secret", salt, key)
        assert not kdf.verify(b"Secret", salt, key)

    def test_truncated_key_rejected(self):
        kdf = PBKDF2KDF(iterations=10)
        salt, key = kdf.derive(b"secret")
        assert not kdf.verify(b"secret", salt, key[:-1])

    def test_matches_function(self):
        kdf = PBKDF2KDF(iterations=50, dklen=40)
        assert kdf.derive_key(b"p", b"s") == keystretch.pbkdf2_hmac_sha256(b"p", b"s", 50, 40)

    def test_invalid_iterations(self):
        with pytest.raises(InvalidParameterError):
            PBKDF2KDF(iterations=0)


class TestHelpers:

    def test_generate_salt_length(self):
        assert len(generate_salt(32)) == 32

    def test_generate_salt_random(self):
        assert generate_salt() != generate_salt()

    def test_keys_equal(self):
        assert keys_equal(b"abc", b"abc")
        assert not keys_equal(b"abc", b"abd")
        assert not keys_equal(b"abc", b"ab")


class TestCommandLine:
    """Tests for python -m keystretch."""

    def test_pbkdf2(self, capsys):
        code = main(["pbkdf2", "password", "salt", "-c", "1", "-l", "32"])
        out = capsys.readouterr().out.strip()
        assert code == 0
        assert out == "120fb6cffcf8b32c43e7225256c4f837a86548c92ccc35480805987cb70be17b"

    def test_pbkdf2_progress(self, capsys):
        code = main(["pbkdf2", "password", "salt", "-c", "20", "-l", "32",
                     "--chunk-size", "5", "--progress"])
        captured = capsys.readouterr()
        assert code == 0
        assert "100.00%" in captured.err

    def test_scrypt(self, capsys):
        code = main(["scrypt", "", "", "-N", "16", "-r", "1", "-p", "1", "-l", "64"])
        out = capsys.readouterr().out.strip()
        assert code == 0
        assert out.startswith("77d6576238657b203b19ca42c18a0497")

    def test_invalid_parameter_exit_code(self, capsys):
        code = main(["scrypt", "pw", "salt", "-N", "15", "-r", "1", "-p", "1"])
        assert code == 2
        assert "power of two" in capsys.readouterr().err

    def test_zero_iterations_exit_code(self, capsys):
        code = main(["pbkdf2", "pw", "salt", "-c", "0"])
        assert code == 2
