"""Local delivery: pick up messages dropped into a Maildir."""

import logging
import mailbox
import os
from pathlib import Path

from .processor import MessageProcessor

logger = logging.getLogger("mailrouter")


class MaildirEntry:
    """One message in a maildir's ``new`` directory.

    Moving and flagging only rename the file; its bytes are never rewritten.
    """

    def __init__(
        self,
        maildir: mailbox.Maildir,
        key: str,
        path: Path | None = None,
        name: str | None = None,
    ):
        self.maildir = maildir
        self.key = key
        self.path = Path(path) if path is not None else None
        self.subpath = Path("new") / (name or key)

    @property
    def data(self) -> bytes:
        return (self.path / self.subpath).read_bytes()

    def _flags(self) -> str:
        _, _, info = self.subpath.name.partition(self.maildir.colon)
        return info[2:] if info.startswith("2,") else ""

    def _rename(self, flags: str) -> None:
        # Info suffix only lives in cur; flags are kept in ASCII order
        target = Path("cur") / f"{self.key}{self.maildir.colon}2,{''.join(sorted(set(flags)))}"
        os.replace(self.path / self.subpath, self.path / target)
        self.subpath = target

    def process(self) -> None:
        """Move the message from ``new`` to ``cur``."""
        self._rename(self._flags())

    def seen(self) -> None:
        """Add the seen (``S``) flag."""
        self._rename(self._flags() + "S")

    def __repr__(self) -> str:
        return f"<MaildirEntry {self.key} in {self.path}>"


class MaildirReceiver:
    """Feeds new messages from a Maildir to a processor."""

    def __init__(self, path: str | Path, processor: MessageProcessor, *, create: bool = False):
        self.path = Path(path)
        self.processor = processor
        self.maildir = mailbox.Maildir(self.path, factory=None, create=create)

    def new_entries(self) -> list[MaildirEntry]:
        """List messages still in ``new``."""
        entries = []
        for item in sorted((self.path / "new").iterdir()):
            if item.name.startswith("."):
                continue
            key = item.name.split(self.maildir.colon)[0]
            entries.append(MaildirEntry(self.maildir, key, self.path, item.name))
        return entries

    def get_messages(self) -> int:
        """Process every new message; failures are logged and skipped.

        Returns:
            Number of messages processed successfully.
        """
        entries = self.new_entries()
        if entries:
            logger.info(f"Found {len(entries)} new messages in {self.path}")

        processed = 0
        for entry in entries:
            if self.processor.process_maildir_message(entry):
                processed += 1
        return processed
