"""Structured representation of incoming email messages."""

import email
import email.message
from dataclasses import dataclass, field
from email.header import decode_header
from email.utils import getaddresses

from .errors import ParseError

UNKNOWN_SENDER = "unknown"


def decode_mime_header(header: str | None) -> str:
    """Decode a MIME-encoded email header."""
    if header is None:
        return ""
    decoded_parts = decode_header(str(header))
    result = []
    for part, charset in decoded_parts:
        if isinstance(part, bytes):
            try:
                result.append(part.decode(charset or "utf-8", errors="replace"))
            except LookupError:
                # Unknown charset name
                result.append(part.decode("latin-1"))
        else:
            result.append(part)
    return "".join(result)


def _decode_payload(part: email.message.Message) -> str | None:
    payload = part.get_payload(decode=True)
    if not isinstance(payload, bytes):
        return None
    charset = part.get_content_charset() or "utf-8"
    try:
        return payload.decode(charset, errors="replace")
    except LookupError:
        return payload.decode("latin-1")


def extract_body(msg: email.message.Message) -> str:
    """Extract the plain text body, falling back to HTML."""
    if not msg.is_multipart():
        return _decode_payload(msg) or ""

    for wanted in ("text/plain", "text/html"):
        for part in msg.walk():
            if part.get_content_type() != wanted:
                continue
            # Skip attachments - only get inline body text
            if "attachment" in part.get("Content-Disposition", ""):
                continue
            text = _decode_payload(part)
            if text is not None:
                return text
    return ""


@dataclass
class ParsedMessage:
    """An email parsed from raw RFC 5322 content.

    ``senders`` holds every address from the From header; ``sender`` is the
    first one or None. ``mail`` keeps the underlying stdlib message for
    routers that need more than the summary fields.
    """

    subject: str
    senders: list[str]
    message_id: str | None
    body_text: str
    headers: dict[str, str] = field(default_factory=dict)
    mail: email.message.Message | None = field(default=None, repr=False)

    @property
    def sender(self) -> str | None:
        return self.senders[0] if self.senders else None

    @property
    def display_sender(self) -> str:
        return self.sender or UNKNOWN_SENDER


def parse_message(raw: bytes | str) -> ParsedMessage:
    """Parse raw email content into a ParsedMessage.

    Raises:
        ParseError: If the payload is not text/bytes, is empty, or carries
            no header fields at all.
    """
    if isinstance(raw, str):
        raw = raw.encode("utf-8", errors="surrogateescape")
    if not isinstance(raw, (bytes, bytearray)):
        raise ParseError(f"Cannot parse message of type {type(raw).__name__}")
    if not raw.strip():
        raise ParseError("Empty message")

    try:
        msg = email.message_from_bytes(bytes(raw))
    except (TypeError, ValueError) as e:
        raise ParseError(f"Malformed message: {e}") from e

    if not msg.keys():
        raise ParseError("Message has no header fields")

    # Last occurrence wins for duplicated headers
    headers = {name: decode_mime_header(value) for name, value in msg.items()}
    from_values = [decode_mime_header(v) for v in msg.get_all("From", [])]
    senders = [addr for _name, addr in getaddresses(from_values) if addr]

    return ParsedMessage(
        subject=decode_mime_header(msg.get("Subject")),
        senders=senders,
        message_id=msg.get("Message-ID"),
        body_text=extract_body(msg),
        headers=headers,
        mail=msg,
    )
