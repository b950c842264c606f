# Core Cryptography Module
"""
Core primitives used by the key derivation functions:
- HMAC-SHA256 with precomputed key blocks (hashlib SHA-256)
- Salsa20/8 core
"""
