"""Poll a mailbox and route incoming messages through middleware to a router."""

from .config import Config, ImapConfig, MaildirConfig, PollConfig, WebhookConfig, load_config
from .delivery import LOCAL, Delivery, Live, LocalDelivery
from .errors import (
    AuthenticationError,
    MailrouterError,
    MessageNotFoundError,
    MiddlewareError,
    ParseError,
    ReceiverConnectionError,
    RouterError,
)
from .imap_client import FetchedMessage, ImapSession
from .maildir import MaildirEntry, MaildirReceiver
from .message import ParsedMessage, parse_message
from .middleware import CallableMiddleware, Continuation, Middleware, MiddlewareChain
from .poller import Poller
from .processor import MessageProcessor, Router
from .receiver import ImapReceiver

__all__ = [
    # Config
    "Config",
    "ImapConfig",
    "MaildirConfig",
    "PollConfig",
    "WebhookConfig",
    "load_config",
    # Delivery
    "LOCAL",
    "Delivery",
    "Live",
    "LocalDelivery",
    # Errors
    "AuthenticationError",
    "MailrouterError",
    "MessageNotFoundError",
    "MiddlewareError",
    "ParseError",
    "ReceiverConnectionError",
    "RouterError",
    # Pipeline
    "CallableMiddleware",
    "Continuation",
    "FetchedMessage",
    "ImapReceiver",
    "ImapSession",
    "MaildirEntry",
    "MaildirReceiver",
    "MessageProcessor",
    "Middleware",
    "MiddlewareChain",
    "ParsedMessage",
    "Poller",
    "Router",
    "parse_message",
]
