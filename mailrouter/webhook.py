"""Router that forwards messages to an HTTP endpoint."""

import logging

import httpx

from .config import WebhookConfig
from .delivery import Delivery
from .errors import RouterError
from .message import ParsedMessage

logger = logging.getLogger("mailrouter")


def message_payload(message: ParsedMessage, delivery: Delivery) -> dict:
    """Build the JSON document posted for a message."""
    return {
        "message_id": message.message_id,
        "from": message.senders,
        "subject": message.subject,
        "headers": message.headers,
        "body": message.body_text,
        "origin": delivery.source_type,
        "uid": delivery.uid,
    }


class WebhookRouter:
    """POST each routed message as JSON to a configured URL."""

    def __init__(self, config: WebhookConfig, transport: httpx.BaseTransport | None = None):
        if not config.url:
            raise ValueError("Webhook router requires a URL")
        self.config = config
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            headers = {}
            if self.config.auth_token:
                headers["Authorization"] = f"Bearer {self.config.auth_token}"
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.config.timeout_seconds),
                headers=headers,
                transport=self._transport,
            )
        return self._client

    def route(self, message: ParsedMessage, delivery: Delivery) -> None:
        """Post the message.

        Raises:
            RouterError: If the request fails or the endpoint returns an error
        """
        try:
            response = self.client.post(self.config.url, json=message_payload(message, delivery))
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise RouterError(f"Webhook delivery of {message.message_id} failed: {e}") from e
        logger.debug(f"Posted {message.message_id} to {self.config.url} ({response.status_code})")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "WebhookRouter":
        return self

    def __exit__(self, *args) -> None:
        self.close()
