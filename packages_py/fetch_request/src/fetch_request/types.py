"""
Core type definitions for fetch-request.
"""
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Protocol, runtime_checkable
from dataclasses import dataclass, field

import httpx

from .context import BACKGROUND, Context

# HTTP Methods
METHOD_GET = "GET"
METHOD_POST = "POST"
METHOD_PUT = "PUT"
METHOD_PATCH = "PATCH"
METHOD_DELETE = "DELETE"
METHOD_HEAD = "HEAD"
METHOD_CONNECT = "CONNECT"
METHOD_OPTIONS = "OPTIONS"
METHOD_TRACE = "TRACE"

CONTENT_TYPE = "Content-Type"
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"

FormValues = Dict[str, List[str]]


@dataclass
class RequestBody:
    """
    A request body ready for transmission.

    `get_body` is set only for replayable bodies; each call returns a fresh
    reader over the same bytes. `content_length` is None when unknown.
    """
    stream: Any  # BinaryIO or an iterable of bytes
    get_body: Optional[Callable[[], BinaryIO]] = None
    content_length: Optional[int] = None

    @property
    def replayable(self) -> bool:
        return self.get_body is not None


@dataclass
class PendingRequest:
    """Draft of an outbound request; also the finalized request record."""
    method: str
    url: httpx.URL
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Optional[RequestBody] = None
    form: Optional[FormValues] = None
    context: Context = BACKGROUND

    def form_value(self, key: str) -> Optional[str]:
        """First form value for `key`, or None."""
        if not self.form:
            return None
        values = self.form.get(key) or []
        return values[0] if values else None


@runtime_checkable
class Serializer(Protocol):
    """Protocol for serialization."""
    def serialize(self, data: Any) -> str: ...
    def deserialize(self, data: str) -> Any: ...
