"""
multipart/form-data encoding for the request builder.
"""
import io
import os
import re
import shutil
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import MultipartEncodeError

DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"
MAX_BOUNDARY_LENGTH = 70

_BOUNDARY_CHARS = re.compile(r"[0-9A-Za-z'()+_,\-./:=? ]+")
_NEEDS_QUOTING = re.compile(r"[()<>@,;:\\\"/\[\]?= ]")


@dataclass
class FileHeader:
    """A file attachment: a filename plus a callable opening its bytes."""
    filename: str
    opener: Callable[[], BinaryIO]
    content_type: Optional[str] = None

    def open(self) -> BinaryIO:
        return self.opener()

    @classmethod
    def from_path(
        cls,
        path: Union[str, os.PathLike],
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> "FileHeader":
        return cls(
            filename=filename or os.path.basename(os.fspath(path)),
            opener=lambda: open(path, "rb"),
            content_type=content_type,
        )

    @classmethod
    def from_bytes(cls, filename: str, data: bytes, content_type: Optional[str] = None) -> "FileHeader":
        return cls(filename=filename, opener=lambda: io.BytesIO(data), content_type=content_type)


@dataclass
class MultipartForm:
    """Field values and file attachments, each keyed by form field name."""
    values: Mapping[str, Union[str, Sequence[str]]] = field(default_factory=dict)
    files: Mapping[str, Union[FileHeader, Sequence[FileHeader]]] = field(default_factory=dict)
    boundary: Optional[str] = None


def random_boundary() -> str:
    return os.urandom(30).hex()


def validate_boundary(boundary: str) -> str:
    if not 1 <= len(boundary) <= MAX_BOUNDARY_LENGTH:
        raise ValueError(f"boundary must be 1-{MAX_BOUNDARY_LENGTH} characters, got {len(boundary)}")
    if not _BOUNDARY_CHARS.fullmatch(boundary) or boundary.endswith(" "):
        raise ValueError(f"invalid boundary {boundary!r}")
    return boundary


def content_type_for(boundary: str) -> str:
    if _NEEDS_QUOTING.search(boundary):
        boundary = f'"{boundary}"'
    return f"multipart/form-data; boundary={boundary}"


def _escape_quotes(s: str) -> str:
    return s.replace("\\", "\\\\").replace('"', '\\"')


def _as_list(value):
    if isinstance(value, (str, bytes, FileHeader)):
        return [value]
    return list(value)


class _PartWriter:
    def __init__(self, boundary: str):
        self._boundary = boundary.encode("ascii")
        self._buf = io.BytesIO()
        self._parts = 0

    def create_part(self, headers: List[Tuple[str, str]]) -> BinaryIO:
        if self._parts:
            self._buf.write(b"\r\n")
        self._buf.write(b"--" + self._boundary + b"\r\n")
        for name, value in headers:
            self._buf.write(f"{name}: {value}\r\n".encode("utf-8"))
        self._buf.write(b"\r\n")
        self._parts += 1
        return self._buf

    def close(self) -> bytes:
        if self._parts:
            self._buf.write(b"\r\n")
        self._buf.write(b"--" + self._boundary + b"--\r\n")
        return self._buf.getvalue()


def encode_multipart(form: MultipartForm) -> Tuple[bytes, str]:
    """
    Serialize `form` into a complete multipart body.

    Fields are written first, one part per value, then files in input order.
    Each file is opened, copied into its part and closed before the next.
    Any failure raises MultipartEncodeError and no partial body is returned.

    Returns (body, content_type).
    """
    try:
        boundary = validate_boundary(form.boundary) if form.boundary else random_boundary()
    except ValueError as e:
        raise MultipartEncodeError("<boundary>", e) from e

    writer = _PartWriter(boundary)

    for name, values in (form.values or {}).items():
        for value in _as_list(values):
            if not isinstance(value, str):
                raise MultipartEncodeError(name, TypeError(f"field value must be str, got {type(value).__name__}"))
            part = writer.create_part([
                ("Content-Disposition", f'form-data; name="{_escape_quotes(name)}"'),
            ])
            part.write(value.encode("utf-8"))

    for name, files in (form.files or {}).items():
        for file_header in _as_list(files):
            part = writer.create_part([
                (
                    "Content-Disposition",
                    f'form-data; name="{_escape_quotes(name)}"; filename="{_escape_quotes(file_header.filename)}"',
                ),
                ("Content-Type", file_header.content_type or DEFAULT_FILE_CONTENT_TYPE),
            ])
            try:
                with file_header.open() as f:
                    shutil.copyfileobj(f, part)
            except Exception as e:
                raise MultipartEncodeError(name, e, filename=file_header.filename) from e

    return writer.close(), content_type_for(boundary)
