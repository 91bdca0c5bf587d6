"""CLI entry point for mailrouter."""

from __future__ import annotations

import argparse
import importlib
import inspect
import logging
import mailbox
import sys
from pathlib import Path

from .config import Config, load_config
from .errors import MailrouterError
from .maildir import MaildirReceiver
from .middleware import CallableMiddleware, Middleware, MiddlewareChain
from .poller import Poller
from .processor import MessageProcessor, Router
from .receiver import ImapReceiver
from .webhook import WebhookRouter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("mailrouter")


def import_object(path: str):
    """Import ``package.module:attribute``.

    Raises:
        ValueError: If the path is malformed or the attribute is missing
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Expected 'module:attribute', got {path!r}")
    module = importlib.import_module(module_name)
    obj = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise ValueError(f"{module_name!r} has no attribute {attr!r}") from None
    return obj


def load_router(path: str) -> Router:
    """Load a router object, instantiating it if the path names a class."""
    obj = import_object(path)
    if inspect.isclass(obj):
        obj = obj()
    if not isinstance(obj, Router):
        raise ValueError(f"{path!r} is not a router (no route method)")
    return obj


def load_middleware(path: str) -> Middleware:
    """Load middleware: an object with ``run``, a class, or a plain function."""
    obj = import_object(path)
    if inspect.isclass(obj):
        obj = obj()
    if isinstance(obj, Middleware):
        return obj
    if callable(obj):
        return CallableMiddleware(obj)
    raise ValueError(f"{path!r} is not a middleware")


def build_processor(config: Config, router_path: str | None = None) -> MessageProcessor:
    """Build a processor from the configured router and middleware.

    Router precedence: explicit path, then ``[router] path``, then a webhook
    router when ``[webhook] url`` is set.
    """
    router_path = router_path or config.router.path
    if router_path:
        router: Router = load_router(router_path)
    elif config.webhook.url:
        router = WebhookRouter(config.webhook)
    else:
        raise ValueError(
            "No router configured.\n"
            "Pass --router module:attribute, or set [router] path or [webhook] url in the config."
        )

    chain = MiddlewareChain([load_middleware(p) for p in config.router.middleware])
    return MessageProcessor(router, chain)


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=Path("config.toml"),
        help="Path to configuration file",
    )
    parser.add_argument(
        "--router",
        type=str,
        help="Router to dispatch messages to, as module:attribute",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        description="Poll a mailbox and route incoming messages",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    poll_parser = subparsers.add_parser("poll", help="Poll the IMAP folder for new messages")
    add_common_args(poll_parser)
    poll_parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single sweep and exit",
    )
    poll_parser.add_argument(
        "--interval",
        type=int,
        help="Override poll interval in seconds",
    )

    maildir_parser = subparsers.add_parser("maildir", help="Process new messages in a local maildir")
    add_common_args(maildir_parser)
    maildir_parser.add_argument(
        "--path",
        type=str,
        help="Override maildir path",
    )

    return parser


def run_poll(config: Config, processor: MessageProcessor, *, once: bool = False) -> int:
    """Run the IMAP poller. Returns messages handled (single sweep only)."""
    receiver = ImapReceiver(config.imap, processor)
    poller = Poller(receiver, interval=config.poll.interval_seconds)

    if once:
        try:
            handled = poller.poll_once()
        finally:
            receiver.disconnect(force=True)
        logger.info(f"Handled {handled} messages")
        return handled

    try:
        poller.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        poller.stop()
    finally:
        receiver.disconnect(force=True)
    return 0


def run_maildir(config: Config, processor: MessageProcessor, path: str | None = None) -> int:
    """Process the configured maildir once. Returns messages processed."""
    path = path or config.maildir.path
    if not path:
        raise ValueError("No maildir path configured. Pass --path or set [maildir] path.")
    receiver = MaildirReceiver(path, processor, create=config.maildir.create)
    processed = receiver.get_messages()
    logger.info(f"Processed {processed} messages from {path}")
    return processed


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Show help if no command specified
    if not args.command:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    if not args.config.exists():
        logger.error(f"Configuration file not found: {args.config}")
        sys.exit(1)

    config = load_config(args.config)
    if getattr(args, "interval", None):
        config.poll.interval_seconds = args.interval

    try:
        processor = build_processor(config, args.router)
    except (ImportError, ValueError) as e:
        logger.error(f"Could not load router: {e}")
        sys.exit(1)

    if args.command == "poll":
        if not config.imap.host:
            logger.error("No IMAP host configured. Add host to the [imap] section.")
            sys.exit(1)
        try:
            run_poll(config, processor, once=args.once)
        except MailrouterError as e:
            logger.error(f"Polling failed: {e}")
            sys.exit(1)
    elif args.command == "maildir":
        try:
            run_maildir(config, processor, getattr(args, "path", None))
        except (ValueError, mailbox.NoSuchMailboxError) as e:
            logger.error(str(e))
            sys.exit(1)


if __name__ == "__main__":
    main()
