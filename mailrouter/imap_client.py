"""IMAP session used by the receiver."""

import contextlib
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientAbortError, IMAPClientError, LoginError

from .config import ImapConfig
from .errors import AuthenticationError, MessageNotFoundError, ReceiverConnectionError

logger = logging.getLogger("mailrouter")

# Use BODY.PEEK[] so fetching doesn't set \Seen; the done flags decide that
FETCH_ITEM = "BODY.PEEK[]"
BODY_KEY = b"BODY[]"


@dataclass
class FetchedMessage:
    uid: int
    body: bytes = field(repr=False)
    metadata: dict = field(default_factory=dict, repr=False)  # raw fetch response


class ImapSession:
    """A single authenticated connection to an IMAP mailbox.

    The session is not thread-safe; use one session per thread.
    """

    def __init__(self, config: ImapConfig):
        self.config = config
        self._client: IMAPClient | None = None

    @property
    def client(self) -> IMAPClient:
        if self._client is None:
            raise RuntimeError("Not connected to IMAP server")
        return self._client

    @property
    def connected(self) -> bool:
        return self._client is not None

    @property
    def one_time(self) -> bool:
        return self.config.one_time_connect

    def _is_alive(self) -> bool:
        """Check whether the current connection still answers."""
        if self._client is None:
            return False
        try:
            self._client.noop()
        except (IMAPClientError, OSError) as e:
            logger.info(f"IMAP connection to {self.config.host} dropped: {e}")
            return False
        return True

    def _open(self) -> IMAPClient:
        try:
            client = IMAPClient(
                self.config.host,
                port=self.config.port,
                ssl=self.config.use_ssl,
                timeout=self.config.timeout_seconds,
            )
        except (IMAPClientAbortError, OSError) as e:
            raise ReceiverConnectionError(
                f"Could not connect to {self.config.host}:{self.config.port}: {e}"
            ) from e

        try:
            client.login(self.config.username, self.config.password)
        except LoginError as e:
            with contextlib.suppress(Exception):
                client.shutdown()
            raise AuthenticationError(
                f"Login failed for {self.config.username!r} on {self.config.host}: {e}"
            ) from e
        except (IMAPClientAbortError, OSError) as e:
            with contextlib.suppress(Exception):
                client.shutdown()
            raise ReceiverConnectionError(
                f"Connection to {self.config.host} lost during login: {e}"
            ) from e
        return client

    def connect(self) -> None:
        """Connect (or reuse the live connection) and select the folder.

        The folder is selected on every call, so a reconnect never leaves
        the session unselected.

        Raises:
            AuthenticationError: If the server rejects the credentials
            ReceiverConnectionError: If the transport can't be established
        """
        if not self._is_alive():
            self._drop()
            self._client = self._open()
            logger.info(f"Connected to {self.config.host}:{self.config.port}")
            if self.config.on_login is not None:
                self.config.on_login(self)
        self.select_folder()

    def select_folder(self, folder: str | None = None) -> dict:
        """Select a folder (the configured one by default)."""
        return self.client.select_folder(folder or self.config.folder)

    def disconnect(self, force: bool = False) -> bool:
        """Log out from the server.

        In one-time-connect mode the connection stays open unless ``force``
        is set. A failed logout (typically a connection the server already
        dropped) is logged as a warning and not raised; the socket is closed
        and the session counts as disconnected either way.

        Returns:
            True if the session is disconnected afterwards, False if it was
            kept open.
        """
        if self._client is None:
            return True
        if self.one_time and not force:
            return False

        try:
            self._client.logout()
        except (IMAPClientError, OSError) as e:
            logger.warning(f"IMAP logout from {self.config.host} failed: {e}")
        self._drop()
        return True

    def _drop(self) -> None:
        """Close the socket if still open and forget the client."""
        if self._client is not None:
            with contextlib.suppress(Exception):
                self._client.shutdown()
            self._client = None

    def search(self, criteria: str | list | None = None) -> list[int]:
        """Search the selected folder.

        A server with nothing to report (no result set at all) and one that
        reports zero matches both yield an empty list.
        """
        uids = self.client.search(criteria or self.config.filter)
        if not uids:
            return []
        return list(uids)

    def fetch(self, uid: int) -> FetchedMessage:
        """Fetch the full content of one message.

        Raises:
            MessageNotFoundError: If the server returned nothing for the UID
        """
        response = self.client.fetch([uid], [FETCH_ITEM])
        data = response.get(uid)
        if not data or BODY_KEY not in data:
            raise MessageNotFoundError(uid)
        return FetchedMessage(uid=uid, body=data[BODY_KEY], metadata=data)

    def set_flags(self, uid: int, add: Iterable[str] = (), remove: Iterable[str] = ()) -> None:
        """Add then remove flags on a message. Empty sets send nothing."""
        add = list(add or ())
        remove = list(remove or ())
        if add:
            self.client.add_flags([uid], add)
        if remove:
            self.client.remove_flags([uid], remove)

    def expunge(self) -> None:
        """Remove messages flagged \\Deleted from the selected folder."""
        self.client.expunge()

    def __enter__(self) -> "ImapSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect(force=True)
