"""Where a message came from when it reaches the router.

A message either arrives through a live receiver (an IMAP poll), in which
case the receiver and the raw fetch response travel with it, or through
local delivery (a maildir), in which case neither exists.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Live:
    """Message fetched by a network receiver."""

    receiver: Any
    metadata: Any = field(default=None, repr=False)
    uid: int | None = None

    @property
    def source_type(self) -> str:
        return "imap"

    @property
    def is_local(self) -> bool:
        return False


@dataclass(frozen=True)
class LocalDelivery:
    """Message handed over by local delivery (no receiver, no metadata)."""

    @property
    def receiver(self) -> None:
        return None

    @property
    def metadata(self) -> None:
        return None

    @property
    def uid(self) -> None:
        return None

    @property
    def source_type(self) -> str:
        return "local"

    @property
    def is_local(self) -> bool:
        return True


Delivery = Live | LocalDelivery

LOCAL = LocalDelivery()
