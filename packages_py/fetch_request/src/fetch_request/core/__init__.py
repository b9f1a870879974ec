from .request import RequestBuilder, new
from .retry import AsyncRetryExecutor, RetryExecutor
from .transport import AsyncHttpxTransport, AsyncTransport, HttpxTransport, Transport
