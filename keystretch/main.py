"""
keystretch - Command Line Entry Point

Derive a key from a password and print it as hex.

    python -m keystretch pbkdf2 PASSWORD SALT -c 4096 -l 32 --progress
    python -m keystretch scrypt PASSWORD SALT -N 16384 -r 8 -p 1 -l 64
"""

import argparse
import logging
import sys
from typing import List, Optional

from .errors import KeyDerivationError
from .kdf.pbkdf2 import PBKDF2Engine, DEFAULT_CHUNK_SIZE
from .kdf.scrypt import scrypt


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keystretch",
        description="Password-based key derivation (PBKDF2-HMAC-SHA256, scrypt)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_pbkdf2 = sub.add_parser("pbkdf2", help="PBKDF2-HMAC-SHA256")
    p_pbkdf2.add_argument("password")
    p_pbkdf2.add_argument("salt")
    p_pbkdf2.add_argument("-c", "--iterations", type=int, default=4096)
    p_pbkdf2.add_argument("-l", "--length", type=int, default=32, help="key length in bytes")
    p_pbkdf2.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE)
    p_pbkdf2.add_argument("--progress", action="store_true", help="print progress to stderr")

    p_scrypt = sub.add_parser("scrypt", help="scrypt (RFC 7914)")
    p_scrypt.add_argument("password")
    p_scrypt.add_argument("salt")
    p_scrypt.add_argument("-N", dest="n", type=int, default=16384)
    p_scrypt.add_argument("-r", type=int, default=8)
    p_scrypt.add_argument("-p", type=int, default=1)
    p_scrypt.add_argument("-l", "--length", type=int, default=64, help="key length in bytes")
    p_scrypt.add_argument("--maxmem", type=int, default=None, help="memory limit in bytes")
    p_scrypt.add_argument("--workers", type=int, default=1)

    return parser


def _print_progress(percent: float) -> None:
    print(f"\rComputed {percent:6.2f}%", end="", file=sys.stderr, flush=True)


def run(args: argparse.Namespace) -> bytes:
    """Run the selected derivation and return the key."""
    if args.command == "pbkdf2":
        engine = PBKDF2Engine(
            args.password, args.salt, args.iterations, args.length,
            chunk_size=args.chunk_size,
            status_callback=_print_progress if args.progress else None,
        )
        key = engine.derive_key()
        if args.progress:
            print(file=sys.stderr)
        return key

    return scrypt(
        args.password, args.salt, args.n, args.r, args.p, args.length,
        maxmem=args.maxmem, workers=args.workers,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for keystretch."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        key = run(args)
    except KeyDerivationError as e:
        logger.debug("Derivation failed", exc_info=True)
        print(f"keystretch: error: {e}", file=sys.stderr)
        return 2

    print(key.hex())
    return 0


if __name__ == "__main__":
    sys.exit(main())
