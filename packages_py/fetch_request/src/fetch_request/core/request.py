"""
Request builder.

Configuration calls never raise for bad input. The first failure is latched,
every later configuration call becomes a no-op, and the terminal call
(build / build_with_context / do / do_async) raises that same error.
"""
import dataclasses
import logging
from typing import Any, Mapping, Optional, Sequence, Union
from urllib.parse import urlencode

import httpx

from ..body import materialize_body, describe_body
from ..config import DefaultSerializer
from ..context import BACKGROUND, Context
from ..errors import BuilderConsumedError, ConfigurationError, MultipartEncodeError
from ..multipart import MultipartForm, encode_multipart
from ..types import (
    CONTENT_TYPE,
    CONTENT_TYPE_FORM,
    CONTENT_TYPE_JSON,
    METHOD_CONNECT,
    METHOD_DELETE,
    METHOD_GET,
    METHOD_HEAD,
    METHOD_OPTIONS,
    METHOD_PATCH,
    METHOD_POST,
    METHOD_PUT,
    METHOD_TRACE,
    FormValues,
    PendingRequest,
    RequestBody,
    Serializer,
)
from .retry import AsyncRetryExecutor, RetryExecutor
from .transport import AsyncHttpxTransport, AsyncTransport, HttpxTransport, Transport

logger = logging.getLogger(__name__)

LOG_PREFIX = "[FetchRequest]"

Values = Mapping[str, Union[str, Sequence[str]]]


def _normalize_values(values: Values) -> FormValues:
    return {
        key: [value] if isinstance(value, str) else list(value)
        for key, value in values.items()
    }


class RequestBuilder:
    """Fluent builder for a PendingRequest, with fixed-count retry on do()."""

    def __init__(
        self,
        url: Union[str, httpx.URL] = "",
        transport: Optional[Transport] = None,
        async_transport: Optional[AsyncTransport] = None,
    ):
        self._error: Optional[ConfigurationError] = None
        self._retry_times = 0
        self._consumed = False
        # Content-Type was set by a body helper, not by the caller
        self._body_content_type = False
        self._transport = transport
        self._async_transport = async_transport

        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as e:
            parsed = httpx.URL()
            self._fail("new", e)
        self._request = PendingRequest(method=METHOD_GET, url=parsed)

    def _active(self, operation: str) -> bool:
        if self._consumed:
            raise BuilderConsumedError(operation)
        return self._error is None

    def _fail(self, operation: str, cause: Exception) -> "RequestBuilder":
        self._error = ConfigurationError(operation, cause)
        logger.debug(f"{LOG_PREFIX} {operation} failed, ignoring further configuration: {cause}")
        return self

    def _set_body(self, body: Optional[RequestBody], content_type: Optional[str]) -> "RequestBuilder":
        headers = self._request.headers
        if content_type is not None:
            headers[CONTENT_TYPE] = content_type
        elif self._body_content_type and CONTENT_TYPE in headers:
            del headers[CONTENT_TYPE]
        self._body_content_type = content_type is not None
        self._request.body = body
        return self

    @property
    def retry_times(self) -> int:
        return self._retry_times

    def err(self) -> Optional[ConfigurationError]:
        """The latched configuration error, if any."""
        return self._error

    def method(self, method: str) -> "RequestBuilder":
        if self._active("method"):
            self._request.method = method
        return self

    def get(self) -> "RequestBuilder":
        return self.method(METHOD_GET)

    def post(self) -> "RequestBuilder":
        return self.method(METHOD_POST)

    def put(self) -> "RequestBuilder":
        return self.method(METHOD_PUT)

    def patch(self) -> "RequestBuilder":
        return self.method(METHOD_PATCH)

    def delete(self) -> "RequestBuilder":
        return self.method(METHOD_DELETE)

    def head(self) -> "RequestBuilder":
        return self.method(METHOD_HEAD)

    def connect(self) -> "RequestBuilder":
        return self.method(METHOD_CONNECT)

    def options(self) -> "RequestBuilder":
        return self.method(METHOD_OPTIONS)

    def trace(self) -> "RequestBuilder":
        return self.method(METHOD_TRACE)

    def set_header(self, key: str, value: str) -> "RequestBuilder":
        if not self._active("set_header"):
            return self
        try:
            self._request.headers[key] = value
        except UnicodeEncodeError as e:
            return self._fail("set_header", e)
        if key.lower() == CONTENT_TYPE.lower():
            self._body_content_type = False
        return self

    def form(self, values: Values) -> "RequestBuilder":
        """Attach form values for inspection. They are not sent."""
        if self._active("form"):
            self._request.form = _normalize_values(values)
        return self

    def query(self, queries: Mapping[str, str]) -> "RequestBuilder":
        """
        Append `queries` to the URL's raw query string.

        Keys of one call are encoded in sorted order; do not rely on ordering.
        """
        if not self._active("query"):
            return self
        encoded = urlencode(sorted(queries.items()))
        if not encoded:
            return self
        url = self._request.url
        raw = url.query.decode("ascii")
        joined = f"{raw}&{encoded}" if raw else encoded
        self._request.url = url.copy_with(query=joined.encode("ascii"))
        return self

    def add_query(self, key: str, value: str) -> "RequestBuilder":
        return self.query({key: value})

    def body(self, source: Any) -> "RequestBuilder":
        """Use `source` as the raw body (bytes, str, a buffer or any readable)."""
        if self._active("body"):
            self._set_body(materialize_body(source), None)
        return self

    def json(self, value: Any, serializer: Optional[Serializer] = None) -> "RequestBuilder":
        if not self._active("json"):
            return self
        serializer = serializer or DefaultSerializer()
        try:
            data = serializer.serialize(value)
        except (TypeError, ValueError) as e:
            return self._fail("json", e)
        return self._set_body(materialize_body(data), CONTENT_TYPE_JSON)

    def post_form(self, values: Values) -> "RequestBuilder":
        if not self._active("post_form"):
            return self
        encoded = urlencode(sorted(_normalize_values(values).items()), doseq=True)
        return self._set_body(materialize_body(encoded), CONTENT_TYPE_FORM)

    def multipart_form(self, form: MultipartForm) -> "RequestBuilder":
        if not self._active("multipart_form"):
            return self
        try:
            content, content_type = encode_multipart(form)
        except MultipartEncodeError as e:
            return self._fail("multipart_form", e)
        return self._set_body(materialize_body(content), content_type)

    def retry(self, retry_times: int) -> "RequestBuilder":
        """Total number of attempts for do(); 0 and 1 both mean one."""
        if not self._active("retry"):
            return self
        if retry_times < 0:
            return self._fail("retry", ValueError(f"retry_times must be >= 0, got {retry_times}"))
        self._retry_times = retry_times
        return self

    def _finalize(self, operation: str, ctx: Context) -> PendingRequest:
        if self._consumed:
            raise BuilderConsumedError(operation)
        self._consumed = True

        if self._error is not None:
            raise self._error

        request = self._request
        logger.debug(f"{LOG_PREFIX} Built {request.method} {request.url} body={describe_body(request.body)}")
        if ctx is BACKGROUND:
            return request
        return dataclasses.replace(request, context=ctx)

    def build_with_context(self, ctx: Context) -> PendingRequest:
        return self._finalize("build_with_context", ctx)

    def build(self) -> PendingRequest:
        return self._finalize("build", BACKGROUND)

    def do(self, ctx: Optional[Context] = None) -> httpx.Response:
        """Build and send, retrying transport failures up to retry_times attempts."""
        request = self._finalize("do", ctx or BACKGROUND)
        if self._transport is not None:
            return RetryExecutor(self._transport, self._retry_times).execute(request)
        with HttpxTransport() as transport:
            return RetryExecutor(transport, self._retry_times).execute(request)

    async def do_async(self, ctx: Optional[Context] = None) -> httpx.Response:
        request = self._finalize("do_async", ctx or BACKGROUND)
        if self._async_transport is not None:
            return await AsyncRetryExecutor(self._async_transport, self._retry_times).execute(request)
        async with AsyncHttpxTransport() as transport:
            return await AsyncRetryExecutor(transport, self._retry_times).execute(request)


def new(
    url: Union[str, httpx.URL],
    transport: Optional[Transport] = None,
    async_transport: Optional[AsyncTransport] = None,
) -> RequestBuilder:
    """Start a GET request to `url`."""
    return RequestBuilder(url, transport=transport, async_transport=async_transport)
