# keystretch Test Suite
"""
Test suite including:
- Unit tests for each primitive (HMAC-SHA256, Salsa20/8, BlockMix, ROMix)
- Known-answer and reference-oracle tests (hashlib, cryptography)
- Security tests (invalid parameters, resource limits, cancellation)

Run with: pytest
Coverage: coverage run -m pytest && coverage report
"""
