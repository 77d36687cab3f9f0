import argparse
import getpass
import logging
import os
import sys
from datetime import timedelta

from feedstage.adapters.auth.crypto import hash_secret
from feedstage.api.auth_utils import ACCESS_TOKEN_EXPIRE_MINUTES, create_access_token

logger = logging.getLogger("cli")


def handle_serve(args: argparse.Namespace) -> None:
    import uvicorn

    if args.config:
        os.environ["FEEDSTAGE_CONFIG"] = args.config
    logger.info("Starting FeedStage API on %s:%d", args.host, args.port)
    uvicorn.run(
        "feedstage.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


def handle_hash_secret(args: argparse.Namespace) -> None:
    secret = args.secret or getpass.getpass("API secret: ")
    if not secret:
        logger.error("Empty secret, nothing to hash.")
        sys.exit(1)
    print(hash_secret(secret))


def handle_issue_token(args: argparse.Namespace) -> None:
    token = create_access_token(args.username, expires_delta=timedelta(minutes=args.minutes))
    print(token)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="FeedStage CLI")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("FEEDSTAGE_LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--config", help="Path to the YAML config file")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # hash-secret
    hash_parser = subparsers.add_parser(
        "hash-secret", help="Print the argon2 hash of an API secret for the config file"
    )
    hash_parser.add_argument("secret", nargs="?", help="Secret to hash (prompted if omitted)")

    # issue-token
    token_parser = subparsers.add_parser("issue-token", help="Print a bearer token for a user")
    token_parser.add_argument("username", help="Token subject")
    token_parser.add_argument(
        "--minutes",
        type=int,
        default=ACCESS_TOKEN_EXPIRE_MINUTES,
        help="Token lifetime in minutes",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    if args.command == "serve":
        handle_serve(args)
    elif args.command == "hash-secret":
        handle_hash_secret(args)
    elif args.command == "issue-token":
        handle_issue_token(args)


if __name__ == "__main__":
    main()
