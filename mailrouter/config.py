"""Configuration management for mailrouter."""

import logging
import os
import tomllib
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SEEN = "\\Seen"
DELETED = "\\Deleted"


@dataclass
class ImapConfig:
    """IMAP receiver configuration.

    Credentials can be overridden via environment variables:
    - MAILROUTER_IMAP_USERNAME: IMAP username
    - MAILROUTER_IMAP_PASSWORD: IMAP password

    ``on_login`` is called with the session after every fresh login and can
    only be set from code.
    """
    host: str
    port: int = 993
    username: str = ""
    password: str = field(default="", repr=False)
    use_ssl: bool = True
    folder: str = "INBOX"
    filter: str = "UNSEEN"
    done_flags: list[str] = field(default_factory=lambda: [SEEN])
    clear_flags: list[str] = field(default_factory=list)
    expunge: bool = True
    one_time_connect: bool = False
    on_login: Callable[[Any], None] | None = field(default=None, repr=False)
    timeout_seconds: float | None = None

    def __post_init__(self):
        """Load credentials from environment variables."""
        env_username = os.environ.get("MAILROUTER_IMAP_USERNAME")
        env_password = os.environ.get("MAILROUTER_IMAP_PASSWORD")

        if env_username:
            self.username = env_username
        if env_password:
            self.password = env_password


@dataclass
class MaildirConfig:
    path: str | None = None
    create: bool = False  # Create the maildir if it doesn't exist


@dataclass
class PollConfig:
    interval_seconds: int = 60


@dataclass
class WebhookConfig:
    """HTTP webhook router configuration.

    Bearer token can be set via MAILROUTER_WEBHOOK_TOKEN environment variable.
    """
    url: str | None = None
    timeout_seconds: int = 30
    auth_token: str = field(default="", repr=False)

    def __post_init__(self):
        """Load auth token from environment."""
        env_token = os.environ.get("MAILROUTER_WEBHOOK_TOKEN")
        if env_token:
            self.auth_token = env_token


@dataclass
class RouterConfig:
    path: str | None = None  # "package.module:attribute"
    middleware: list[str] = field(default_factory=list)


@dataclass
class Config:
    imap: ImapConfig
    maildir: MaildirConfig = field(default_factory=MaildirConfig)
    poll: PollConfig = field(default_factory=PollConfig)
    webhook: WebhookConfig = field(default_factory=WebhookConfig)
    router: RouterConfig = field(default_factory=RouterConfig)


def load_config(path: str | Path) -> Config:
    """Load configuration from a TOML file."""
    path = Path(path)
    with path.open("rb") as f:
        data = tomllib.load(f)

    imap_data = data.get("imap", {})
    imap_config = ImapConfig(
        host=imap_data.get("host", ""),
        port=imap_data.get("port", 993),
        username=imap_data.get("username", ""),
        use_ssl=imap_data.get("use_ssl", True),
        folder=imap_data.get("folder", "INBOX"),
        filter=imap_data.get("filter", "UNSEEN"),
        done_flags=imap_data.get("done_flags", [SEEN]),
        clear_flags=imap_data.get("clear_flags", []),
        expunge=imap_data.get("expunge", True),
        one_time_connect=imap_data.get("one_time_connect", False),
        timeout_seconds=imap_data.get("timeout_seconds"),
    )

    maildir_data = data.get("maildir", {})
    maildir_config = MaildirConfig(
        path=maildir_data.get("path"),
        create=maildir_data.get("create", False),
    )

    poll_data = data.get("poll", {})
    poll_config = PollConfig(
        interval_seconds=poll_data.get("interval_seconds", 60),
    )

    webhook_data = data.get("webhook", {})
    webhook_config = WebhookConfig(
        url=webhook_data.get("url"),
        timeout_seconds=webhook_data.get("timeout_seconds", 30),
    )

    router_data = data.get("router", {})
    router_config = RouterConfig(
        path=router_data.get("path"),
        middleware=router_data.get("middleware", []),
    )

    return Config(
        imap=imap_config,
        maildir=maildir_config,
        poll=poll_config,
        webhook=webhook_config,
        router=router_config,
    )
