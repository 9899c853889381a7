#!/usr/bin/env python

# src/email_publisher/cli.py

"""
Command-line entry point for the Email Publisher.

- `manifest` prints the composition manifest and startup plan for one of the
  apphost variants.
- `send` is the client project: it publishes one email message to the queue.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

import pydantic
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from .apphost import VARIANTS
from .clients import SQSClient
from .config import AppConfig
from .exceptions import EmailPublisherError, InvalidEmailMessageError, get_error_context
from .schemas import EmailMessage


def build_message(to: str, body: str) -> EmailMessage:
    """
    Producer-side validation. The function itself accepts anything with both
    fields present, so this is the only place a blank recipient is rejected.
    """
    if not to or not to.strip():
        raise InvalidEmailMessageError("Recipient address must not be blank.")
    try:
        return EmailMessage(to=to, body=body)
    except pydantic.ValidationError as e:
        raise InvalidEmailMessageError(
            "Email message failed validation.",
            context={"errors": e.errors(include_url=False)},
        ) from e


def _producer_config(args: argparse.Namespace) -> AppConfig:
    """
    The client reads the same variables the apphost injects via references;
    flags given on the command line take precedence.
    """
    return AppConfig.load_for_producer(
        {
            "EMAIL_QUEUE_NAME": args.queue,
            "QUEUE_ENDPOINT_URL": args.endpoint_url,
            "AWS_REGION": args.region,
            "SEND_TIMEOUT_SECONDS": None if args.timeout is None else str(args.timeout),
        }
    )


def _configure_logging(level: str, console: Console) -> None:
    """Route library log records (e.g. from clients.py) through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def cmd_manifest(args: argparse.Namespace, console: Console) -> int:
    app = VARIANTS[args.variant]()
    manifest = json.dumps(app.to_manifest(), indent=2)

    if args.output:
        try:
            with open(args.output, "w") as f:
                f.write(manifest + "\n")
        except OSError as e:
            console.print("\n[bold red]❌ MANIFEST NOT WRITTEN[/bold red]\n")
            console.print(
                Panel(
                    f"Could not write '{args.output}': {e.strerror or e}",
                    title="File Error",
                    border_style="red",
                )
            )
            return 1
        console.log(f"[green]✓[/green] Manifest written to '{args.output}'")
    else:
        console.print_json(manifest)

    app.run(console)
    return 0


def cmd_send(args: argparse.Namespace, console: Console) -> int:
    message = build_message(args.to, args.body)
    config = _producer_config(args)
    _configure_logging(config.log_level, console)
    client = SQSClient.from_config(config)

    if args.create_queue:
        client.ensure_queue(config.email_queue_name)
        console.log(f"[green]✓[/green] Queue '{config.email_queue_name}' is ready.")

    message_id = client.send_email_message(config.email_queue_name, message)
    console.print(
        f"[bold green]✅ Enqueued message {message_id}[/bold green] "
        f"for {message.to} on '{config.email_queue_name}'"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    # Shared by every subcommand so `-v` works after the subcommand name.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output, including full exception tracebacks.",
    )

    parser = argparse.ArgumentParser(
        prog="email-publisher",
        description="Compose and exercise the Email Publisher application.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    manifest = subparsers.add_parser(
        "manifest", parents=[common], help="Print the composition manifest."
    )
    manifest.add_argument(
        "--variant",
        choices=sorted(VARIANTS),
        default="emulated",
        help="Which composition to describe.",
    )
    manifest.add_argument("-o", "--output", help="Write the manifest to this file.")
    manifest.set_defaults(func=cmd_manifest)

    send = subparsers.add_parser(
        "send", parents=[common], help="Publish one email message to the queue."
    )
    send.add_argument("--to", required=True, help="Recipient address.")
    send.add_argument("--body", default="", help="Message content.")
    send.add_argument("--queue", help="Queue name (default: $EMAIL_QUEUE_NAME or 'emails').")
    send.add_argument("--endpoint-url", help="Queue endpoint, e.g. a local emulator.")
    send.add_argument("--region", help="AWS region.")
    send.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Connect/read timeout in seconds (default: $SEND_TIMEOUT_SECONDS or 10).",
    )
    send.add_argument(
        "--create-queue",
        action="store_true",
        help="Create the queue first (useful against an emulator).",
    )
    send.set_defaults(func=cmd_send)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    console = Console()

    try:
        return args.func(args, console)
    except EmailPublisherError as e:
        details = get_error_context(e)
        console.print(
            Panel(
                f"{e.message}\n\nerror_code: {details['error_code']}\n"
                f"retryable: {details['retryable']}",
                title="Email Publisher Error",
                border_style="red",
            )
        )
        if args.verbose:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
