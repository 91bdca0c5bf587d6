"""Middleware chain wrapped around the router call.

Each middleware receives the message, its delivery, and a continuation that
runs the rest of the chain. Calling the continuation passes control on
(eventually reaching the router); returning without calling it drops the
message from routing.
"""

from collections.abc import Callable, Iterator
from typing import Protocol, runtime_checkable

from .delivery import Delivery
from .message import ParsedMessage


@runtime_checkable
class Middleware(Protocol):
    """Protocol for middleware objects."""

    def run(
        self,
        message: ParsedMessage,
        delivery: Delivery,
        continuation: "Continuation",
    ) -> None:
        ...


class CallableMiddleware:
    """Adapt a plain function ``fn(message, delivery, continuation)``."""

    def __init__(self, fn: Callable[[ParsedMessage, Delivery, "Continuation"], None]):
        self.fn = fn

    def run(self, message: ParsedMessage, delivery: Delivery, continuation: "Continuation") -> None:
        self.fn(message, delivery, continuation)

    def __repr__(self) -> str:
        return f"CallableMiddleware({getattr(self.fn, '__name__', self.fn)!r})"


class Continuation:
    """The remainder of a chain, bound to one message.

    Calling it runs the next middleware, or the terminal step once the chain
    is exhausted.
    """

    def __init__(
        self,
        middlewares: tuple[Middleware, ...],
        message: ParsedMessage,
        delivery: Delivery,
        terminal: Callable[[], None],
    ):
        self._middlewares = middlewares
        self._message = message
        self._delivery = delivery
        self._terminal = terminal

    def __call__(self) -> None:
        if not self._middlewares:
            self._terminal()
            return
        head, rest = self._middlewares[0], self._middlewares[1:]
        head.run(
            self._message,
            self._delivery,
            Continuation(rest, self._message, self._delivery, self._terminal),
        )


class MiddlewareChain:
    """Ordered list of middleware."""

    def __init__(self, middlewares: list[Middleware] | None = None):
        self._middlewares: list[Middleware] = list(middlewares or [])

    def __len__(self) -> int:
        return len(self._middlewares)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middlewares)

    def add(self, middleware: Middleware) -> None:
        """Append a middleware to the end of the chain."""
        self._middlewares.append(middleware)

    def insert_before(self, existing: Middleware, middleware: Middleware) -> None:
        """Insert a middleware immediately before ``existing``.

        Raises:
            ValueError: If ``existing`` is not in the chain
        """
        self._middlewares.insert(self._index(existing), middleware)

    def insert_after(self, existing: Middleware, middleware: Middleware) -> None:
        """Insert a middleware immediately after ``existing``.

        Raises:
            ValueError: If ``existing`` is not in the chain
        """
        self._middlewares.insert(self._index(existing) + 1, middleware)

    def remove(self, middleware: Middleware) -> None:
        """Remove a middleware from the chain. Missing entries are ignored."""
        self._middlewares = [m for m in self._middlewares if m is not middleware]

    def _index(self, middleware: Middleware) -> int:
        for i, m in enumerate(self._middlewares):
            if m is middleware:
                return i
        raise ValueError(f"Middleware not in chain: {middleware!r}")

    def run(
        self,
        message: ParsedMessage,
        delivery: Delivery,
        terminal: Callable[[], None],
    ) -> None:
        """Run the chain for one message, ending with ``terminal``."""
        # Snapshot so edits during a run don't affect it
        Continuation(tuple(self._middlewares), message, delivery, terminal)()
