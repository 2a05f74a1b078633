from __future__ import annotations
import argparse
import logging
import sys
from getpass import getpass

from .errors import PBKDF2Error
from .kdf import KDFParams, derive_bytes, derive_key, new_salt
from .prf import supported_algorithms

# Known-answer check: PBKDF2-HMAC-SHA1, 1000 iterations, 16 bytes.
SELFTEST_SALT = bytes.fromhex("A009C1A485912C6AE630D3E744240B04")
SELFTEST_EXPECTED = bytes.fromhex("17EB4014C8C461C300E9B61518B9A18B")
# The long password hashes down to the short one, so both derive the same key.
SELFTEST_PASSWORDS = (
    "plnlrtfpijpuhqylxbgqiiyipieyxvfsavzgxbbcfusqkozwpngsyejqlmjsytrmd",
    "eBkXQTfuBqp'cTcar&g*",
)


def to_hex(data: bytes) -> str:
    return data.hex().upper()


def read_password(from_stdin: bool) -> str:
    if from_stdin:
        return sys.stdin.readline().rstrip("\r\n")
    password = getpass("Password: ")
    confirm = getpass("Confirm password: ")
    if password != confirm:
        raise ValueError("passwords do not match.")
    return password


def cmd_derive(args: argparse.Namespace) -> int:
    params = KDFParams(algorithm=args.hash, iterations=args.iterations, key_len=args.length)

    if args.salt is None:
        salt = new_salt(params)
    else:
        try:
            salt = bytes.fromhex(args.salt)
        except ValueError:
            print(f"Error: salt is not valid hex: {args.salt}", file=sys.stderr)
            return 2

    try:
        password = read_password(args.password_stdin)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    key = derive_key(password, salt, params)
    print(f"salt: {to_hex(salt)}")
    print(f"key: {to_hex(key)}")
    return 0


def cmd_selftest(args: argparse.Namespace) -> int:
    first, second = (
        derive_bytes("SHA1", SELFTEST_SALT, p.encode("utf-8"), 1000, 16) for p in SELFTEST_PASSWORDS
    )
    ok = True
    if first != second:
        print("ERROR: Results do not match but should", file=sys.stderr)
        ok = False
    print(f"Result: {to_hex(first)}")
    print(f"Expect: {to_hex(SELFTEST_EXPECTED)}")
    if first != SELFTEST_EXPECTED:
        print("ERROR: Result does not match expected value", file=sys.stderr)
        ok = False
    return 0 if ok else 1


def cmd_list(args: argparse.Namespace) -> int:
    for name in supported_algorithms():
        print(name)
    return 0


def build_parser() -> argparse.ArgumentParser:
    defaults = KDFParams()
    parser = argparse.ArgumentParser(
        prog="simplepbkdf2",
        description="SimplePBKDF2 - readable reference PBKDF2 built on HMAC.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    der = sub.add_parser("derive", help="Derive a key from a password")
    der.add_argument("--hash", default=defaults.algorithm, help=f"Hash family (default: {defaults.algorithm})")
    der.add_argument("-i", "--iterations", type=int, default=defaults.iterations, help="Iteration count")
    der.add_argument("-l", "--length", type=int, default=defaults.key_len, help="Output length in bytes")
    der.add_argument("--salt", help="Salt as hex (default: random, printed with the key)")
    der.add_argument("--password-stdin", action="store_true", help="Read the password from stdin")
    der.set_defaults(func=cmd_derive)

    st = sub.add_parser("selftest", help="Check the known SHA1 test vector")
    st.set_defaults(func=cmd_selftest)

    ls = sub.add_parser("list", help="List supported hash families")
    ls.set_defaults(func=cmd_list)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args)
    except PBKDF2Error as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
