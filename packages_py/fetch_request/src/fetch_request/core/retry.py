"""
Fixed-count retry over a transport.

Attempts run back to back: no backoff, no jitter, and every TransportError
is retried the same way. The request context is not re-checked between
attempts; the transport sees it on each send.
"""
import logging

import httpx

from ..errors import TransportError
from ..types import PendingRequest
from .transport import AsyncTransport, Transport

logger = logging.getLogger(__name__)

LOG_PREFIX = "[FetchRequest]"


def attempts_for(retry_times: int) -> int:
    """0 and 1 both mean a single attempt."""
    return max(retry_times, 1)


def _record_failure(error: TransportError, attempt: int, max_attempts: int) -> bool:
    """Tag `error` with its attempt and log it. True when attempts are exhausted."""
    error.attempt = attempt
    if attempt < max_attempts:
        logger.warning(f"{LOG_PREFIX} Attempt {attempt}/{max_attempts} failed: {error}")
        return False
    logger.error(f"{LOG_PREFIX} Giving up after {max_attempts} attempt(s): {error}")
    return True


class RetryExecutor:
    def __init__(self, transport: Transport, retry_times: int = 0):
        self.transport = transport
        self.max_attempts = attempts_for(retry_times)

    def execute(self, request: PendingRequest) -> httpx.Response:
        """Return the first response, or raise the last TransportError."""
        attempt = 1
        while True:
            logger.debug(f"{LOG_PREFIX} Attempt {attempt}/{self.max_attempts}: {request.method} {request.url}")
            try:
                return self.transport.execute(request)
            except TransportError as e:
                if _record_failure(e, attempt, self.max_attempts):
                    raise
            attempt += 1


class AsyncRetryExecutor:
    def __init__(self, transport: AsyncTransport, retry_times: int = 0):
        self.transport = transport
        self.max_attempts = attempts_for(retry_times)

    async def execute(self, request: PendingRequest) -> httpx.Response:
        attempt = 1
        while True:
            logger.debug(f"{LOG_PREFIX} Attempt {attempt}/{self.max_attempts}: {request.method} {request.url}")
            try:
                return await self.transport.execute(request)
            except TransportError as e:
                if _record_failure(e, attempt, self.max_attempts):
                    raise
            attempt += 1
