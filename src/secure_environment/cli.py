"""
secure-environment command line.

Usage:
    secure-environment [--debug] export [--key K] [--url U] [--env-type T]
    secure-environment [--debug] import SOURCE PLACEHOLDER [--key K] [--url U] [--env-type T]

Typical use in a container entrypoint:
    eval "$(secure-environment export)"

Flags default to SECURE_ENVIRONMENT_KEY, SECURE_ENVIRONMENT_URL,
SECURE_ENVIRONMENT_TYPE and SECURE_ENVIRONMENT_DEBUG.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import IO, List, Mapping, Optional

from . import __version__
from .aws import AwsContext
from .config import Settings
from .errors import SecureEnvironmentError
from .flow import SecureEnvironment
from .logs import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser for both subcommands.

    Flags left unset stay None so the environment values apply.

    Returns:
        Parser with ``export`` and ``import`` subcommands
    """
    parser = argparse.ArgumentParser(prog="secure-environment")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Set debug logging on [$SECURE_ENVIRONMENT_DEBUG]",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--key", help="Sets the key arn [$SECURE_ENVIRONMENT_KEY]")
    common.add_argument("--url", help="url to the environment file [$SECURE_ENVIRONMENT_URL]")
    common.add_argument(
        "--env-type",
        dest="env_type",
        help="content type of the environment file [$SECURE_ENVIRONMENT_TYPE]",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True
    commands.add_parser(
        "export",
        parents=[common],
        help="Create a bash compatible export output via stdout",
    )
    import_cmd = commands.add_parser(
        "import",
        parents=[common],
        help="Transforms an env file into encrypted env",
    )
    import_cmd.add_argument("source", help="plaintext env file to encrypt")
    import_cmd.add_argument("placeholder", help="local output file, created or truncated")
    return parser


def default_flow() -> SecureEnvironment:
    """AWS-backed flow; the session is only resolved when a command needs it."""
    context = AwsContext()
    return SecureEnvironment(context.envelope_cipher, context.blob_store)


def main(
    argv: Optional[List[str]] = None,
    flow: Optional[SecureEnvironment] = None,
    environ: Optional[Mapping[str, str]] = None,
    stdout: Optional[IO[str]] = None,
) -> int:
    """
    Run the command line and return the process exit status.

    Args:
        argv: Arguments (defaults to sys.argv[1:])
        flow: Orchestrator to use (defaults to one backed by AWS)
        environ: Environment for flag defaults (defaults to os.environ + .env)
        stdout: Stream for export statements (defaults to sys.stdout)
    """
    args = build_parser().parse_args(argv)

    settings = Settings.from_env(environ).with_overrides(
        key=args.key,
        url=args.url,
        env_type=args.env_type,
        debug=args.debug,
    )
    configure_logging(settings.debug)

    if flow is None:
        flow = default_flow()

    try:
        if args.command == "export":
            flow.export_env(settings, stdout if stdout is not None else sys.stdout)
        else:
            flow.import_env(settings, args.source, args.placeholder)
    except SecureEnvironmentError as e:
        logger.error(str(e), extra={"error_type": type(e).__name__})
        return 1
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
