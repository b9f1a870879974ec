"""
Configuration models and validation for fetch-request transports.
"""
import json
from typing import Any, Dict, Optional, Union

import httpx
from pydantic import BaseModel, Field, field_validator

# Constants
DEFAULT_TIMEOUT_CONNECT = 5.0
DEFAULT_TIMEOUT_READ = 30.0
DEFAULT_TIMEOUT_WRITE = 10.0


class TimeoutConfig(BaseModel):
    """Timeout configuration."""
    connect: float = DEFAULT_TIMEOUT_CONNECT
    read: float = DEFAULT_TIMEOUT_READ
    write: float = DEFAULT_TIMEOUT_WRITE
    pool: Optional[float] = None

    def to_httpx(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect,
            read=self.read,
            write=self.write,
            pool=self.pool,
        )


class TransportConfig(BaseModel):
    """Settings for the httpx-backed default transports."""
    headers: Dict[str, str] = Field(default_factory=dict)
    timeout: TimeoutConfig = Field(default_factory=TimeoutConfig)
    follow_redirects: bool = True
    verify: bool = True

    @field_validator("timeout", mode="before")
    @classmethod
    def normalize_timeout(cls, v: Any) -> Any:
        return normalize_timeout(v)

    def to_httpx_kwargs(self) -> Dict[str, Any]:
        """Build kwargs for httpx.Client / httpx.AsyncClient."""
        return {
            "headers": self.headers,
            "timeout": self.timeout.to_httpx(),
            "follow_redirects": self.follow_redirects,
            "verify": self.verify,
        }


class DefaultSerializer:
    """Default JSON serializer: canonical form with sorted keys, compact separators, no NaN/Infinity."""
    def serialize(self, data: Any) -> str:
        return json.dumps(data, separators=(",", ":"), sort_keys=True, allow_nan=False)

    def deserialize(self, data: str) -> Any:
        return json.loads(data)


def normalize_timeout(timeout: Optional[Union[float, TimeoutConfig]]) -> TimeoutConfig:
    """Normalize timeout to TimeoutConfig object."""
    if timeout is None:
        return TimeoutConfig()
    if isinstance(timeout, (int, float)):
        return TimeoutConfig(connect=float(timeout), read=float(timeout), write=float(timeout))
    return timeout
