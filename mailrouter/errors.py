"""Exception hierarchy for mailrouter."""


class MailrouterError(Exception):
    """Base class for all mailrouter errors."""


class AuthenticationError(MailrouterError):
    """The IMAP server rejected the configured credentials."""


class ReceiverConnectionError(MailrouterError, ConnectionError):
    """The transport to the IMAP server could not be established."""


class MessageNotFoundError(MailrouterError):
    """A fetch returned no data for the requested UID."""

    def __init__(self, uid: int):
        super().__init__(f"No data returned for UID {uid}")
        self.uid = uid


class ParseError(MailrouterError):
    """Raw message content could not be turned into a structured message."""


class RouterError(MailrouterError):
    """Raised by routers when dispatching a message fails."""


class MiddlewareError(MailrouterError):
    """Raised by middleware that fails while wrapping the router call."""
