"""
PBKDF2-HMAC-SHA256 Engine

Implements PBKDF2 as defined in RFC 8018 (formerly RFC 2898) with
HMAC-SHA256 as the pseudorandom function.

    DK = T_1 || T_2 || ... || T_l    (truncated to dkLen bytes)
    T_i = U_1 ^ U_2 ^ ... ^ U_c
    U_1 = PRF(P, S || INT_32_BE(i))
    U_j = PRF(P, U_{j-1})

Features:
- Resumable execution: iterations run in bounded chunks through step(),
  so a caller can interleave other work between chunks
- Progress reporting after every chunk (percentage in [0, 100])
- Cancellation: cancel() discards the partial state
- Generic form over any PRF factory, used by scrypt with one iteration

State carried between chunks is the block index, the iteration counter,
the XOR accumulator and the previous PRF output. Nothing else survives.
"""

import logging
import struct
import threading
from typing import Callable, Iterator, Optional

from ..core_crypto.hmac_sha256 import HMACKey, BytesLike, ensure_bytes, DIGEST_SIZE
from ..errors import InvalidParameterError, CancelledError


logger = logging.getLogger(__name__)


# PRF output length (hLen) for HMAC-SHA256
HASH_LENGTH = DIGEST_SIZE

# RFC 8018: dkLen must not exceed (2^32 - 1) * hLen
MAX_DKLEN = (2 ** 32 - 1) * HASH_LENGTH

# Iterations computed per step(); adjust for slower or faster hosts
DEFAULT_CHUNK_SIZE = 10

_BLOCK_INDEX = struct.Struct('>I')

# prf_factory(password) -> prf(message) -> 32-byte digest
PRFFactory = Callable[[bytes], Callable[[bytes], bytes]]
StatusCallback = Callable[[float], None]
ResultCallback = Callable[[bytes], None]


def check_positive_int(name: str, value) -> int:
    """
    Validate that a parameter is an integer >= 1.

    Raises:
        InvalidParameterError: If value is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameterError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 1:
        raise InvalidParameterError(f"{name} must be at least 1, got {value}")
    return value


def validate_pbkdf2_params(iterations: int, dklen: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
    """
    Validate PBKDF2 parameters before any hashing takes place.

    Raises:
        InvalidParameterError: On a non-positive iteration count, chunk size
            or key length, or a key length beyond (2^32 - 1) * 32 bytes
    """
    check_positive_int("iterations", iterations)
    check_positive_int("dklen", dklen)
    check_positive_int("chunk_size", chunk_size)
    if dklen > MAX_DKLEN:
        raise InvalidParameterError(f"Derived key too long: {dklen} > {MAX_DKLEN} bytes")


class PBKDF2Engine:
    """
    Resumable PBKDF2 computation.

    Each call to step() runs at most chunk_size iterations and reports the
    overall progress. The result is identical however the work is split.

    Only one step() may run at a time on an instance, across threads as
    well. Abandoning the engine (or calling cancel(), from any thread) is
    the only form of cancellation.

    Example:
        >>> engine = PBKDF2Engine(b"password", b"salt", 1000, 32, chunk_size=100)
        >>> while not engine.step():
        ...     pass  # do other work here
        >>> len(engine.result)
        32
    """

    def __init__(
        self,
        password: BytesLike,
        salt: BytesLike,
        iterations: int,
        dklen: int,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        status_callback: Optional[StatusCallback] = None,
        prf_factory: PRFFactory = HMACKey,
    ):
        """
        Set up the PRF key blocks and the iteration state.

        Args:
            password: Password (str is UTF-8 encoded)
            salt: Salt (str is UTF-8 encoded)
            iterations: Iteration count c (>= 1)
            dklen: Derived key length in bytes (>= 1)
            chunk_size: Iterations per step() (>= 1)
            status_callback: Called with the percentage done after each chunk
            prf_factory: Builds the keyed PRF; HMAC-SHA256 by default

        Raises:
            InvalidParameterError: If any numeric parameter is out of range
            TypeError: If password or salt is not str or bytes-like
        """
        validate_pbkdf2_params(iterations, dklen, chunk_size)
        password = ensure_bytes(password, "password")
        self._salt = ensure_bytes(salt, "salt")

        self._prf = prf_factory(password)
        self._total_iterations = iterations
        self._key_length = dklen
        self._chunk_size = chunk_size
        self._status_callback = status_callback

        # Number of hLen blocks in the derived key ('l' in the RFC)
        self._total_blocks = -(-dklen // HASH_LENGTH)

        self._current_block = 1
        self._iterations_done = 0
        self._accumulator = 0
        self._last_output = b''
        self._key = bytearray()

        self._percent_done = 0.0
        self._done = False
        self._cancelled = False
        self._step_lock = threading.Lock()
        self._state_lock = threading.Lock()

        logger.debug(
            "PBKDF2 engine: %d iterations, %d block(s), dklen=%d, chunk=%d",
            iterations, self._total_blocks, dklen, chunk_size
        )

    @property
    def done(self) -> bool:
        """True once the derived key is complete."""
        return self._done

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def percent_done(self) -> float:
        """Progress reported after the most recent chunk."""
        return self._percent_done

    @property
    def total_blocks(self) -> int:
        return self._total_blocks

    @property
    def result(self) -> bytes:
        """
        The derived key.

        Raises:
            CancelledError: If the computation was cancelled
            RuntimeError: If the computation has not finished
        """
        if self._cancelled:
            raise CancelledError("PBKDF2 computation was cancelled")
        if not self._done:
            raise RuntimeError("PBKDF2 computation has not finished")
        return bytes(self._key)

    def cancel(self) -> None:
        """Abandon the computation and drop the partial state."""
        with self._state_lock:
            if self._done:
                return
            self._cancelled = True
            self._accumulator = 0
            self._last_output = b''
            for i in range(len(self._key)):
                self._key[i] = 0
        logger.debug("PBKDF2 cancelled at block %d/%d", self._current_block, self._total_blocks)

    def step(self) -> bool:
        """
        Run the next chunk of iterations.

        If the PRF raises partway through a chunk, none of that chunk's
        work is kept and the next step() repeats it.

        Returns:
            True when the derived key is complete

        Raises:
            CancelledError: If the computation was cancelled, including
                by a cancel() that arrives while this chunk is running
            RuntimeError: If another step() is already running
        """
        if self._cancelled:
            raise CancelledError("PBKDF2 computation was cancelled")
        if self._done:
            return True
        if not self._step_lock.acquire(blocking=False):
            raise RuntimeError("PBKDF2 step already in progress")

        try:
            committed = self._run_chunk()
        finally:
            self._step_lock.release()

        if not committed:
            raise CancelledError("PBKDF2 computation was cancelled")
        if self._status_callback is not None:
            self._status_callback(self._percent_done)
        return self._done

    def _run_chunk(self) -> bool:
        """
        Advance the iteration state by at most one chunk.

        The chunk works on local copies; counter, accumulator and previous
        output are written back together once the chunk completes.

        Returns:
            False if the engine was cancelled while the chunk ran
        """
        prf = self._prf
        done = self._iterations_done
        iterations = min(self._chunk_size, self._total_iterations - done)

        accumulator = self._accumulator
        u = self._last_output
        for _ in range(iterations):
            if done == 0:
                u = prf(self._salt + _BLOCK_INDEX.pack(self._current_block))
            else:
                u = prf(u)
            accumulator ^= int.from_bytes(u, 'big')
            done += 1

        with self._state_lock:
            if self._cancelled:
                return False
            self._commit(done, accumulator, u)
        return True

    def _commit(self, done: int, accumulator: int, u: bytes) -> None:
        self._iterations_done = done
        self._accumulator = accumulator
        self._last_output = u

        self._percent_done = (
            (self._current_block - 1 + done / self._total_iterations)
            / self._total_blocks * 100
        )

        if done < self._total_iterations:
            return

        # T_i is complete
        self._key += accumulator.to_bytes(HASH_LENGTH, 'big')

        if self._current_block < self._total_blocks:
            self._current_block += 1
            self._iterations_done = 0
            self._accumulator = 0
            self._last_output = b''
        else:
            # Truncate the final block T_l
            del self._key[self._key_length:]
            self._accumulator = 0
            self._last_output = b''
            self._done = True
            logger.debug("PBKDF2 finished: %d bytes derived", self._key_length)

    def iter_progress(self) -> Iterator[float]:
        """
        Drive the computation, yielding the percentage after each chunk.

        Suspending the generator suspends the computation; closing it
        without exhausting it leaves the engine resumable.
        """
        while not self._done:
            self.step()
            yield self._percent_done

    def derive_key(
        self,
        status_callback: Optional[StatusCallback] = None,
        result_callback: Optional[ResultCallback] = None,
    ) -> bytes:
        """
        Run the computation to completion.

        Args:
            status_callback: Replaces the progress observer, if given
            result_callback: Called once with the derived key

        Returns:
            The derived key
        """
        if status_callback is not None:
            self._status_callback = status_callback

        while not self.step():
            pass

        key = self.result
        if result_callback is not None:
            result_callback(key)
        return key


def pbkdf2(
    prf_factory: PRFFactory,
    password: BytesLike,
    salt: BytesLike,
    iterations: int,
    dklen: int,
) -> bytes:
    """
    PBKDF2 over an arbitrary 32-byte PRF, in a single call.

    Args:
        prf_factory: prf_factory(password) returns the keyed PRF
        password: Password
        salt: Salt
        iterations: Iteration count (>= 1)
        dklen: Derived key length in bytes

    Returns:
        dklen bytes of key material
    """
    check_positive_int("iterations", iterations)
    engine = PBKDF2Engine(
        password, salt, iterations, dklen,
        chunk_size=iterations,
        prf_factory=prf_factory,
    )
    return engine.derive_key()


def pbkdf2_hmac_sha256(password: BytesLike, salt: BytesLike, iterations: int, dklen: int) -> bytes:
    """
    Derive a key with PBKDF2-HMAC-SHA256.

    Args:
        password: Password (str is UTF-8 encoded)
        salt: Salt (str is UTF-8 encoded)
        iterations: Iteration count (>= 1)
        dklen: Derived key length in bytes (>= 1)

    Returns:
        dklen bytes of key material

    Raises:
        InvalidParameterError: On invalid iterations or dklen

    Example:
        >>> pbkdf2_hmac_sha256(b"password", b"salt", 1, 32).hex()[:16]
        '120fb6cffcf8b32c'
    """
    return pbkdf2(HMACKey, password, salt, iterations, dklen)


# Self-test when run directly
if __name__ == "__main__":
    test_cases = [
        (b"password", b"salt", 1, 32,
         "120fb6cffcf8b32c43e7225256c4f837a86548c92ccc35480805987cb70be17b"),
        (b"password", b"salt", 2, 32,
         "ae4d0c95af6b46d32d0adff928f06dd02a303f8ef3c251dfd6e2d85a95474c43"),
        (b"password", b"salt", 4096, 32,
         "c5e478d59288c841aa530db6845c4c8d962893a001ce4e11a4963873aa98134a"),
    ]

    print("PBKDF2-HMAC-SHA256 Test")
    print("=" * 60)

    all_passed = True
    for password, salt, c, dklen, expected in test_cases:
        result = pbkdf2_hmac_sha256(password, salt, c, dklen).hex()
        passed = result == expected
        all_passed = all_passed and passed
        status = "✓ PASS" if passed else "✗ FAIL"
        print(f"\nP={password!r} S={salt!r} c={c} dkLen={dklen}")
        print(f"Expected: {expected}")
        print(f"Got:      {result}")
        print(f"Status:   {status}")

    print("\n" + "=" * 60)
    print(f"Overall: {'All tests passed!' if all_passed else 'Some tests failed!'}")
