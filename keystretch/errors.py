"""
Key Derivation Errors

Every failure raised by keystretch derives from KeyDerivationError.

- InvalidParameterError: bad iteration count, cost parameters or key length.
  Raised before any hashing or memory allocation happens.
- ResourceExhaustedError: the ROMix scratch array could not be allocated,
  or would exceed the caller's memory limit.
- CancelledError: a cooperative PBKDF2 computation was abandoned.
"""


class KeyDerivationError(Exception):
    """Base class for key derivation failures."""
    pass


class InvalidParameterError(KeyDerivationError, ValueError):
    """Raised when derivation parameters are out of range."""
    pass


class ResourceExhaustedError(KeyDerivationError, MemoryError):
    """Raised when the scratch memory for ROMix cannot be obtained."""
    pass


class CancelledError(KeyDerivationError):
    """Raised when a result is requested from a cancelled computation."""
    pass
