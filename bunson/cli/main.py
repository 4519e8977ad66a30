"""Entry point for the bunson command."""

import asyncio
import sys

from bunson.cli.arg_parser import parse_args
from bunson.cli.client_commands import cmd_call, cmd_notify
from bunson.cli.serve import run_serve


def main(argv: list[str] | None = None) -> None:
    """Run the bunson CLI."""
    args = parse_args(argv)

    try:
        if args.command == "serve":
            exit_code = asyncio.run(
                run_serve(
                    args.target,
                    port=args.port,
                    host=args.host,
                    config_path=args.config,
                    log_file=args.log_file,
                    verbose=args.verbose,
                )
            )
        elif args.command == "call":
            exit_code = asyncio.run(
                cmd_call(
                    args.method,
                    args.params,
                    args.id,
                    url=args.url,
                    timeout=args.timeout,
                    config_path=args.config,
                )
            )
        else:
            exit_code = asyncio.run(
                cmd_notify(
                    args.method,
                    args.params,
                    url=args.url,
                    timeout=args.timeout,
                    config_path=args.config,
                )
            )
    except KeyboardInterrupt:
        exit_code = 130

    sys.exit(exit_code)
