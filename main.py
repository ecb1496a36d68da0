#!/usr/bin/env python3
"""
LearnLite auth -- operator CLI for credentials and bearer tokens.

Uses the same Settings (SECRET_KEY, TOKEN_TTL_SECONDS, BCRYPT_WORK_FACTOR) as
the API, so tokens minted here verify against a running server.

Usage:
  python main.py hash                       # prompts for the secret
  echo -n 'pw' | python main.py hash --stdin
  python main.py sign --id 1 --email a@b.com --role student
  python main.py sign --id 1 --email a@b.com --role admin --ttl 3600
  python main.py verify <token>
  python main.py inspect <token>

Exit status: 0 on success, 1 when a token fails verification or input is bad.
"""

import argparse
import getpass
import json
import sys
from typing import Optional

from auth.errors import InvalidInput, TokenError
from auth.hashing import CredentialHasher
from auth.models import Identity, Role
from auth.tokens import TokenCodec
from core.config import Settings, get_settings


def _cmd_hash(args: argparse.Namespace, settings: Settings) -> int:
    secret = sys.stdin.read().rstrip("\n") if args.stdin else getpass.getpass("Secret: ")
    work_factor = args.work_factor or settings.bcrypt_work_factor
    try:
        print(CredentialHasher(work_factor).hash(secret))
    except InvalidInput as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 1
    return 0


def _cmd_sign(args: argparse.Namespace, settings: Settings) -> int:
    if not Role.is_known(args.role):
        print(f"  [!] Unknown role '{args.role}'. Expected one of: {', '.join(r.value for r in Role)}", file=sys.stderr)
        return 1
    codec = TokenCodec(settings.auth_config().secret_key, settings.token_ttl_seconds)
    print(codec.sign(Identity(id=args.id, email=args.email, role=args.role), ttl_seconds=args.ttl))
    return 0


def _cmd_verify(args: argparse.Namespace, settings: Settings) -> int:
    codec = TokenCodec(settings.auth_config().secret_key, settings.token_ttl_seconds)
    try:
        principal = codec.verify(args.token)
    except TokenError as e:
        print(f"  [!] Token rejected: {type(e).__name__} ({e})", file=sys.stderr)
        return 1
    print(json.dumps(principal.to_dict(), indent=2))
    return 0


def _cmd_inspect(args: argparse.Namespace, settings: Settings) -> int:
    codec = TokenCodec(settings.auth_config().secret_key, settings.token_ttl_seconds)
    principal = codec.decode(args.token)
    report = {
        "principal": principal.to_dict() if principal else None,
        "expired": codec.is_expired(args.token),
        "verified": False,
    }
    print(json.dumps(report, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="learnlite-auth",
        description="Hash secrets and mint or inspect LearnLite bearer tokens.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  echo -n 'S3cret!' | python main.py hash --stdin --work-factor 10
  python main.py sign --id 42 --email instructor@example.com --role instructor
  python main.py verify eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p_hash = sub.add_parser("hash", help="Print a bcrypt hash of a secret")
    p_hash.add_argument("--stdin", action="store_true", help="Read the secret from stdin instead of prompting")
    p_hash.add_argument(
        "--work-factor",
        type=int,
        choices=range(1, 32),
        default=None,
        metavar="N",
        help="bcrypt work factor 1-31 (default: BCRYPT_WORK_FACTOR)",
    )
    p_hash.set_defaults(handler=_cmd_hash)

    p_sign = sub.add_parser("sign", help="Mint a signed bearer token")
    p_sign.add_argument("--id", type=int, required=True, help="Subject (user) id")
    p_sign.add_argument("--email", required=True)
    p_sign.add_argument("--role", required=True, help="admin, instructor or student")
    p_sign.add_argument("--ttl", type=int, default=None, metavar="SECONDS", help="Lifetime (default: TOKEN_TTL_SECONDS)")
    p_sign.set_defaults(handler=_cmd_sign)

    p_verify = sub.add_parser("verify", help="Verify signature and expiry; print the principal")
    p_verify.add_argument("token")
    p_verify.set_defaults(handler=_cmd_verify)

    p_inspect = sub.add_parser("inspect", help="Decode a token WITHOUT verifying it")
    p_inspect.add_argument("token")
    p_inspect.set_defaults(handler=_cmd_inspect)

    return parser


def main(argv: Optional[list[str]] = None, settings: Optional[Settings] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "handler", None):
        parser.print_help()
        return 1
    return args.handler(args, settings or get_settings())


if __name__ == "__main__":
    sys.exit(main())
