"""Tests for MessageProcessor."""

import logging
from unittest.mock import MagicMock

import pytest

from helpers import make_raw_email

from mailrouter.delivery import LOCAL, Live
from mailrouter.errors import ParseError, RouterError
from mailrouter.middleware import CallableMiddleware, MiddlewareChain
from mailrouter.processor import MessageProcessor


@pytest.fixture
def router():
    return MagicMock()


@pytest.fixture
def processor(router):
    return MessageProcessor(router)


class TestProcess:
    def test_routes_parsed_message(self, processor, router, raw_email):
        delivery = Live(receiver=MagicMock(), metadata={b"SEQ": 1}, uid=1)

        processor.process(raw_email, delivery)

        router.route.assert_called_once()
        message, routed_delivery = router.route.call_args.args
        assert message.subject == "Test Subject"
        assert routed_delivery is delivery

    def test_defaults_to_local_delivery(self, processor, router, raw_email):
        processor.process(raw_email)
        assert router.route.call_args.args[1] is LOCAL

    def test_logs_sender_and_subject(self, processor, caplog):
        with caplog.at_level(logging.INFO, logger="mailrouter"):
            processor.process(make_raw_email(subject="Quarterly report", from_addr="cfo@example.com"))

        assert "Got new message from 'cfo@example.com' with subject 'Quarterly report'." in caplog.text

    def test_logs_unknown_sender(self, processor, caplog):
        with caplog.at_level(logging.INFO, logger="mailrouter"):
            processor.process(b"Subject: no sender\r\n\r\nbody")

        assert "Got new message from 'unknown'" in caplog.text

    def test_unparsable_payload_raises_without_routing(self, processor, router):
        with pytest.raises(ParseError):
            processor.process("", MagicMock())
        router.route.assert_not_called()

    def test_router_error_propagates(self, processor, router, raw_email):
        router.route.side_effect = RouterError("no route")
        with pytest.raises(RouterError):
            processor.process(raw_email)

    def test_middleware_wraps_router(self, router, raw_email):
        log = []

        def audit(message, delivery, continuation):
            log.append("before")
            continuation()
            log.append("after")

        router.route.side_effect = lambda *args: log.append("route")
        processor = MessageProcessor(router, MiddlewareChain([CallableMiddleware(audit)]))

        processor.process(raw_email)

        assert log == ["before", "route", "after"]

    def test_middleware_can_drop_message(self, router, raw_email):
        drop = CallableMiddleware(lambda message, delivery, continuation: None)
        processor = MessageProcessor(router, MiddlewareChain([drop]))

        processor.process(raw_email)

        router.route.assert_not_called()

    def test_router_called_at_most_once(self, router, raw_email):
        def twice(message, delivery, continuation):
            continuation()
            continuation()

        processor = MessageProcessor(router, MiddlewareChain([CallableMiddleware(twice)]))
        processor.process(raw_email)

        router.route.assert_called_once()


class TestProcessMaildirMessage:
    def test_success_marks_entry(self, processor, router, raw_email):
        entry = MagicMock()
        entry.data = raw_email

        assert processor.process_maildir_message(entry) is True

        assert router.route.call_args.args[1] is LOCAL
        entry.process.assert_called_once()
        entry.seen.assert_called_once()

    def test_router_failure_is_logged_and_not_marked(self, processor, router, raw_email, caplog):
        router.route.side_effect = RouterError("downstream unavailable")
        entry = MagicMock()
        entry.data = raw_email

        with caplog.at_level(logging.ERROR, logger="mailrouter"):
            assert processor.process_maildir_message(entry) is False

        entry.process.assert_not_called()
        entry.seen.assert_not_called()
        assert "Error encountered processing message" in caplog.text
        assert "RouterError" in caplog.text
        assert "downstream unavailable" in caplog.text

    def test_parse_failure_is_isolated(self, processor, router):
        entry = MagicMock()
        entry.data = b""

        assert processor.process_maildir_message(entry) is False
        router.route.assert_not_called()
        entry.process.assert_not_called()

    def test_store_failure_is_isolated(self, processor, raw_email):
        entry = MagicMock()
        entry.data = raw_email
        entry.process.side_effect = OSError("read-only filesystem")

        assert processor.process_maildir_message(entry) is False
        entry.seen.assert_not_called()
