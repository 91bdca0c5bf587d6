"""Drive a receiver: connect, sweep, disconnect, sleep, repeat."""

import contextlib
import logging
import time

from .receiver import ImapReceiver

logger = logging.getLogger("mailrouter")


class Poller:
    """Polls an IMAP receiver periodically.

    Includes automatic reconnection with exponential backoff on connection
    failures. Runs in the calling thread; use one poller per thread.
    """

    # Reconnection settings
    INITIAL_RETRY_DELAY = 5  # seconds
    MAX_RETRY_DELAY = 300  # 5 minutes max
    BACKOFF_MULTIPLIER = 2

    def __init__(self, receiver: ImapReceiver, interval: int = 60):
        self.receiver = receiver
        self.interval = interval
        self._running = False

    def _calculate_backoff(self, attempt: int) -> float:
        """Calculate exponential backoff delay."""
        delay = self.INITIAL_RETRY_DELAY * (self.BACKOFF_MULTIPLIER ** attempt)
        return min(delay, self.MAX_RETRY_DELAY)

    def poll_once(self) -> int:
        """Connect, run one sweep and disconnect.

        Returns:
            Number of messages handled in the sweep.
        """
        self.receiver.connect()
        try:
            return self.receiver.get_messages()
        finally:
            self.receiver.disconnect()

    def run(self, max_polls: int | None = None) -> None:
        """Poll until stopped (or ``max_polls`` sweeps have completed)."""
        self._running = True
        config = self.receiver.config
        logger.info(f"Polling {config.host}/{config.folder} every {self.interval}s")
        attempt = 0
        polls = 0

        while self._running:
            try:
                self.poll_once()
            except Exception as e:
                with contextlib.suppress(Exception):
                    self.receiver.disconnect(force=True)
                if not self._running:
                    break

                delay = self._calculate_backoff(attempt)
                logger.exception(f"IMAP poll error on {config.folder}: {type(e).__name__}: {e}")
                logger.info(f"Retrying in {delay:.0f}s (attempt {attempt + 1})...")
                time.sleep(delay)
                attempt += 1
                continue

            attempt = 0  # Reset on success
            polls += 1
            if max_polls is not None and polls >= max_polls:
                break
            time.sleep(self.interval)

        self._running = False

    def stop(self) -> None:
        """Stop the poller after the current sweep."""
        self._running = False
