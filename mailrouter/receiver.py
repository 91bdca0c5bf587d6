"""IMAP receiver: sweeps a mailbox and hands new messages to the processor."""

import logging

from .config import ImapConfig
from .delivery import Live
from .imap_client import ImapSession
from .processor import MessageProcessor

logger = logging.getLogger("mailrouter")


class ImapReceiver:
    """Polls an IMAP folder and passes matching messages to a processor.

    Messages are flagged with the configured done flags (and stripped of the
    clear flags) only after they have been processed successfully.
    """

    def __init__(
        self,
        config: ImapConfig,
        processor: MessageProcessor,
        session: ImapSession | None = None,
    ):
        self.config = config
        self.processor = processor
        self.session = session if session is not None else ImapSession(config)

    def connect(self) -> None:
        """Connect to the server and select the folder."""
        self.session.connect()

    def disconnect(self, force: bool = False) -> bool:
        """Disconnect from the server (kept open in one-time mode)."""
        return self.session.disconnect(force=force)

    def get_messages(self) -> int:
        """Run one sweep over the messages matching the search filter.

        The first failure ends the sweep: messages already handled keep
        their flags, the failing message and any after it stay untouched and
        are picked up again by the next sweep.

        Returns:
            Number of messages processed and flagged.
        """
        handled = 0
        try:
            uids = self.session.search(self.config.filter)
            if uids:
                logger.debug(f"Found {len(uids)} messages matching {self.config.filter!r}")

            for uid in uids:
                fetched = self.session.fetch(uid)
                self.processor.process(
                    fetched.body,
                    Live(receiver=self, metadata=fetched.metadata, uid=uid),
                )
                self.session.set_flags(uid, self.config.done_flags, self.config.clear_flags)
                handled += 1

            # Clears messages that have the \Deleted flag set
            if self.config.expunge:
                self.session.expunge()
        except Exception:
            logger.exception(
                f"Error encountered while receiving messages from "
                f"{self.config.host}/{self.config.folder}"
            )
        return handled
