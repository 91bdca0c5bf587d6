"""Helpers shared by tests."""


def make_raw_email(
    subject: str = "Test Subject",
    from_addr: str = "sender@example.com",
    body: str = "Hello there.",
    message_id: str = "<test1@example.com>",
) -> bytes:
    """Build a minimal RFC 5322 message."""
    return (
        f"Message-ID: {message_id}\r\n"
        f"From: {from_addr}\r\n"
        f"To: me@example.com\r\n"
        f"Subject: {subject}\r\n"
        f"Content-Type: text/plain; charset=utf-8\r\n"
        f"\r\n"
        f"{body}\r\n"
    ).encode()
