"""Tests for message parsing."""

import email
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import pytest

from mailrouter.errors import ParseError
from mailrouter.message import decode_mime_header, extract_body, parse_message

from helpers import make_raw_email


class TestDecodeMimeHeader:
    def test_decode_plain_header(self):
        assert decode_mime_header("Simple Subject") == "Simple Subject"

    def test_decode_none_header(self):
        assert decode_mime_header(None) == ""

    def test_decode_utf8_encoded_header(self):
        # RFC 2047 encoded header
        assert decode_mime_header("=?UTF-8?B?SGVsbG8gV29ybGQ=?=") == "Hello World"

    def test_decode_mixed_header(self):
        assert decode_mime_header("Re: =?UTF-8?B?SGVsbG8=?= World") == "Re: Hello World"

    def test_unknown_charset_does_not_raise(self):
        result = decode_mime_header("=?x-unknown?Q?caf=E9?=")
        assert result.startswith("caf")


class TestExtractBody:
    def test_extract_plain_text_body(self):
        msg = MIMEText("This is the body text.", "plain", "utf-8")
        assert extract_body(msg) == "This is the body text."

    def test_extract_empty_body(self):
        msg = email.message_from_bytes(b"Content-Type: text/plain\r\n\r\n")
        assert extract_body(msg) == ""

    def test_prefers_plain_over_html(self):
        msg = MIMEMultipart("alternative")
        msg.attach(MIMEText("<p>html</p>", "html"))
        msg.attach(MIMEText("plain", "plain"))
        assert extract_body(msg) == "plain"

    def test_falls_back_to_html(self):
        msg = MIMEMultipart("alternative")
        msg.attach(MIMEText("<p>html</p>", "html"))
        assert extract_body(msg) == "<p>html</p>"

    def test_skips_text_attachments(self):
        msg = MIMEMultipart()
        attachment = MIMEText("attached notes", "plain")
        attachment.add_header("Content-Disposition", "attachment", filename="notes.txt")
        msg.attach(attachment)
        msg.attach(MIMEText("real body", "plain"))
        assert extract_body(msg) == "real body"


class TestParseMessage:
    def test_parse_bytes(self):
        message = parse_message(make_raw_email(subject="Invoice", from_addr="Bob <bob@example.com>"))

        assert message.subject == "Invoice"
        assert message.senders == ["bob@example.com"]
        assert message.sender == "bob@example.com"
        assert message.display_sender == "bob@example.com"
        assert message.message_id == "<test1@example.com>"
        assert message.body_text.strip() == "Hello there."
        assert message.headers["To"] == "me@example.com"
        assert message.mail is not None

    def test_parse_str(self):
        message = parse_message("Subject: hi\n\nbody\n")
        assert message.subject == "hi"

    def test_missing_sender_displays_unknown(self):
        message = parse_message(b"Subject: anonymous\r\n\r\nbody\r\n")
        assert message.sender is None
        assert message.display_sender == "unknown"

    def test_multiple_senders(self):
        message = parse_message(b"From: a@example.com, b@example.com\r\nSubject: x\r\n\r\n")
        assert message.senders == ["a@example.com", "b@example.com"]

    def test_encoded_subject(self):
        message = parse_message(b"Subject: =?UTF-8?B?SGVsbG8=?=\r\n\r\n")
        assert message.subject == "Hello"

    @pytest.mark.parametrize("raw", ["", b"", b"   \r\n"])
    def test_empty_payload_raises(self, raw):
        with pytest.raises(ParseError, match="Empty"):
            parse_message(raw)

    def test_no_headers_raises(self):
        with pytest.raises(ParseError, match="no header"):
            parse_message(b"this is not an email at all")

    def test_wrong_type_raises(self):
        with pytest.raises(ParseError):
            parse_message(None)
