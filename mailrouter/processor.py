"""Turn raw emails into parsed messages and hand them to the router."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .delivery import LOCAL, Delivery
from .message import ParsedMessage, parse_message
from .middleware import MiddlewareChain

if TYPE_CHECKING:
    from .maildir import MaildirEntry

logger = logging.getLogger("mailrouter")


@runtime_checkable
class Router(Protocol):
    """Application routing logic. Exceptions propagate to the caller."""

    def route(self, message: ParsedMessage, delivery: Delivery) -> None:
        ...


class MessageProcessor:
    """Single choke point between raw messages and the router.

    Every message, whether fetched by a poll or picked up from a maildir,
    goes through ``process``.
    """

    def __init__(self, router: Router, middleware: MiddlewareChain | None = None):
        self.router = router
        self.middleware = middleware if middleware is not None else MiddlewareChain()

    def process(self, raw: bytes | str, delivery: Delivery = LOCAL) -> None:
        """Parse a raw message and run it through middleware to the router.

        Raises:
            ParseError: If the raw content can't be parsed. Router and
                middleware exceptions propagate unchanged.
        """
        message = parse_message(raw)
        self._log_received(message)

        routed = False

        def route() -> None:
            nonlocal routed
            if routed:
                logger.warning(f"Ignoring repeated route call for {message.message_id}")
                return
            routed = True
            self.router.route(message, delivery)

        self.middleware.run(message, delivery, route)

    def _log_received(self, message: ParsedMessage) -> None:
        with contextlib.suppress(Exception):
            logger.info(
                f"Got new message from '{message.display_sender}' "
                f"with subject '{message.subject}'."
            )

    def process_maildir_message(self, entry: MaildirEntry) -> bool:
        """Process one maildir message, isolating any failure.

        The entry is moved to ``cur`` and marked seen only if processing
        succeeded.

        Returns:
            True if the message was processed and marked, False otherwise.
        """
        try:
            self.process(entry.data, LOCAL)
            entry.process()
            entry.seen()
        except Exception:
            logger.exception(f"Error encountered processing message: {entry!r}")
            return False
        return True
