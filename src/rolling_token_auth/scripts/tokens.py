# src/rolling_token_auth/scripts/tokens.py
"""Generate or check rolling tokens from the command line.

Examples:
    python -m rolling_token_auth.scripts.tokens generate
    python -m rolling_token_auth.scripts.tokens generate --offset -1
    python -m rolling_token_auth.scripts.tokens validate <token>
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from rolling_token_auth.core.errors import RollingTokenConfigurationError
from rolling_token_auth.core.settings import Settings, settings
from rolling_token_auth.services.generator import RollingAuthorizationToken
from rolling_token_auth.services.validator import RollingTokenManager

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate or validate rolling tokens")
    parser.add_argument(
        "--secret",
        default=None,
        help="Shared secret (defaults to ROLLING_TOKEN_SECRET)",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Bucket size in seconds (defaults to ROLLING_TOKEN_INTERVAL_SECONDS)",
    )
    parser.add_argument(
        "--tolerance",
        type=int,
        default=None,
        help="Accepted buckets around now (defaults to ROLLING_TOKEN_TOLERANCE)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="Print the token for the current bucket")
    generate.add_argument("--offset", type=int, default=0, help="Bucket offset from now")

    validate = commands.add_parser("validate", help="Check a token against the current window")
    validate.add_argument("token", help="Token to check")
    return parser


def _resolve_secret(args: argparse.Namespace, config: Settings) -> bytes:
    if args.secret is not None:
        return args.secret.encode("utf-8")
    secret = config.secret_bytes
    if secret is None:
        raise RollingTokenConfigurationError(
            "no secret given; pass --secret or set ROLLING_TOKEN_SECRET"
        )
    return secret


def main(argv: Sequence[str] | None = None, config: Settings | None = None) -> int:
    config = config or settings
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=config.log_level)

    interval = args.interval if args.interval is not None else config.interval_seconds
    tolerance = args.tolerance if args.tolerance is not None else config.tolerance

    try:
        secret = _resolve_secret(args, config)
        if args.command == "generate":
            print(RollingAuthorizationToken(secret, interval).generate_token(args.offset).token)
            return EXIT_OK

        manager = RollingTokenManager(secret, interval, tolerance)
        if manager.is_valid(args.token):
            print("valid")
            return EXIT_OK
        print("invalid")
        return EXIT_INVALID
    except RollingTokenConfigurationError as exc:
        print(f"[tokens] ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
