"""
Fetch Request - fluent HTTP request builder with fixed-count retry
"""

__version__ = "0.1.0"

from .body import NO_BODY, describe_body, materialize_body
from .config import DefaultSerializer, TimeoutConfig, TransportConfig
from .context import BACKGROUND, Context, background
from .core.request import RequestBuilder, new
from .core.retry import AsyncRetryExecutor, RetryExecutor
from .core.transport import AsyncHttpxTransport, AsyncTransport, HttpxTransport, Transport
from .errors import (
    BuildError,
    BuilderConsumedError,
    ConfigurationError,
    FetchRequestError,
    MultipartEncodeError,
    TransportError,
)
from .multipart import FileHeader, MultipartForm, encode_multipart
from .types import PendingRequest, RequestBody, Serializer

__all__ = [
    "RequestBuilder", "new",
    "PendingRequest", "RequestBody", "Serializer",
    "materialize_body", "describe_body", "NO_BODY",
    "MultipartForm", "FileHeader", "encode_multipart",
    "RetryExecutor", "AsyncRetryExecutor",
    "Transport", "AsyncTransport", "HttpxTransport", "AsyncHttpxTransport",
    "TransportConfig", "TimeoutConfig", "DefaultSerializer",
    "Context", "BACKGROUND", "background",
    "FetchRequestError", "BuildError", "ConfigurationError", "BuilderConsumedError",
    "MultipartEncodeError", "TransportError",
]
