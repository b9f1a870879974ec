"""
Request context: values, deadline and cancellation carried by a built request.
"""
import time
from typing import Any, Dict, Optional

CANCELED = "canceled"
DEADLINE_EXCEEDED = "deadline exceeded"


class Context:
    """
    Immutable carrier of request-scoped values plus an optional deadline.

    Derived contexts keep a link to their parent: values are looked up through
    the chain and cancelling a parent cancels every child.
    """

    def __init__(
        self,
        parent: Optional["Context"] = None,
        values: Optional[Dict[Any, Any]] = None,
        deadline: Optional[float] = None,
    ):
        self._parent = parent
        self._values: Dict[Any, Any] = dict(values or {})
        self._deadline = deadline
        self._canceled = False

    def with_value(self, key: Any, value: Any) -> "Context":
        return Context(parent=self, values={key: value})

    def with_timeout(self, seconds: float) -> "Context":
        return self.with_deadline(time.monotonic() + seconds)

    def with_deadline(self, deadline: float) -> "Context":
        """Derive a context expiring at `deadline` (time.monotonic() clock)."""
        return Context(parent=self, deadline=deadline)

    def value(self, key: Any, default: Any = None) -> Any:
        ctx: Optional[Context] = self
        while ctx is not None:
            if key in ctx._values:
                return ctx._values[key]
            ctx = ctx._parent
        return default

    @property
    def deadline(self) -> Optional[float]:
        """Earliest deadline along the chain."""
        deadlines = []
        ctx: Optional[Context] = self
        while ctx is not None:
            if ctx._deadline is not None:
                deadlines.append(ctx._deadline)
            ctx = ctx._parent
        return min(deadlines) if deadlines else None

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        deadline = self.deadline
        if deadline is None:
            return None
        return max(deadline - time.monotonic(), 0.0)

    def cancel(self) -> None:
        if self is BACKGROUND:
            raise ValueError("The background context cannot be cancelled")
        self._canceled = True

    def error(self) -> Optional[str]:
        """Why the context is done, or None while it is still live."""
        ctx: Optional[Context] = self
        while ctx is not None:
            if ctx._canceled:
                return CANCELED
            ctx = ctx._parent
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            return DEADLINE_EXCEEDED
        return None

    def done(self) -> bool:
        return self.error() is not None

    def __repr__(self) -> str:
        if self is BACKGROUND:
            return "Context(background)"
        return f"Context(values={self._values!r}, deadline={self.deadline!r})"


BACKGROUND = Context()


def background() -> Context:
    """The empty root context. Never cancelled, no deadline, no values."""
    return BACKGROUND
