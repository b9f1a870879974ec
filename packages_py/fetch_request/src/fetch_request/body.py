"""
Body materialization: turn a byte source into a RequestBody with replay metadata.

Replayable sources form a closed set:

- buffer-backed: io.BytesIO
- slice-backed: bytes, bytearray, memoryview
- string-backed: str, io.StringIO

For these the unread content is snapshotted, so replays never depend on the
caller's object. Everything else is opaque: unknown length and no replay, so
only the first attempt is guaranteed to see the whole body.
"""
import io
from typing import Any, Callable, Optional, Tuple

from .types import RequestBody

ENCODING = "utf-8"


class _NoBody(io.RawIOBase):
    """Shared, always-empty body stream. Closing it is a no-op."""

    def readable(self) -> bool:
        return True

    def readinto(self, b: Any) -> int:
        return 0

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return "NO_BODY"


NO_BODY = _NoBody()


def _snapshot(source: Any) -> Optional[bytes]:
    """Copy of the unread content of a replayable source, None if opaque."""
    if isinstance(source, io.BytesIO):
        return source.getvalue()[source.tell():]
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, str):
        return source.encode(ENCODING)
    if isinstance(source, io.StringIO):
        pos = source.tell()
        text = source.read()
        source.seek(pos)
        return text.encode(ENCODING)
    return None


def _replay(snapshot: bytes) -> Callable[[], io.BytesIO]:
    def get_body() -> io.BytesIO:
        return io.BytesIO(snapshot)
    return get_body


def materialize_body(source: Any) -> Optional[RequestBody]:
    """
    Build a RequestBody for `source`.

    Returns None for a None source (no body). A replayable source of zero
    length becomes NO_BODY with content_length 0, so an empty body stays
    distinguishable from an opaque one (content_length None).
    """
    if source is None:
        return None
    if isinstance(source, RequestBody):
        return source

    snapshot = _snapshot(source)
    if snapshot is None:
        return RequestBody(stream=source)

    if not snapshot:
        return RequestBody(stream=NO_BODY, get_body=lambda: NO_BODY, content_length=0)

    get_body = _replay(snapshot)
    return RequestBody(stream=get_body(), get_body=get_body, content_length=len(snapshot))


def read_chunks(stream: Any, chunk_size: int = 64 * 1024):
    """Yield bytes from a readable or an iterable of bytes/str."""
    if hasattr(stream, "read"):
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                return
            yield chunk.encode(ENCODING) if isinstance(chunk, str) else chunk
    else:
        for chunk in stream:
            yield chunk.encode(ENCODING) if isinstance(chunk, str) else chunk


def body_content(body: Optional[RequestBody]) -> Tuple[Any, Optional[int]]:
    """
    Content to hand to httpx for one attempt, plus its length if known.

    Replayable bodies yield fresh bytes each call; opaque bodies yield their
    original stream, which a previous attempt may already have drained.
    """
    if body is None:
        return None, None
    if body.get_body is not None:
        return body.get_body().read(), body.content_length
    return read_chunks(body.stream), body.content_length


def describe_body(body: Optional[RequestBody]) -> str:
    """Short summary of a body for logging; never includes the content."""
    if body is None:
        return "<empty>"
    if body.content_length == 0:
        return "<no body>"
    if body.replayable:
        return f"<replayable body: {body.content_length} bytes>"
    return "<streaming body: unknown length>"
