"""Pydantic models shared across restbase.

:class:`ClientConfig` is the validated form of a client's construction
arguments; :class:`RestClient <restbase.client.RestClient>` builds one in
its constructor so that a bad base URL or timeout fails before any network
activity.  :class:`HTTPMethod` enumerates the verbs the convenience
methods use; any other method string is accepted as a custom method.
"""

from __future__ import annotations

import enum
from datetime import timedelta
from typing import Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator


class HTTPMethod(str, enum.Enum):
    """HTTP methods with a dedicated convenience verb (plus HEAD and OPTIONS)."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ClientConfig(BaseModel):
    """Construction settings for a :class:`~restbase.client.RestClient`.

    Example::

        ClientConfig(base_url="https://api.example.com/v1/", timeout=2.5)
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(description="Absolute http(s) URL every call path is resolved against")
    timeout: Optional[float] = Field(
        default=None,
        description="Per-call deadline in seconds; None leaves it to the transport",
    )

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("base_url must not be empty")
        try:
            url = httpx.URL(value.strip())
        except httpx.InvalidURL as exc:
            raise ValueError(f"base_url is not a valid URL: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"base_url must be an absolute http(s) URL, got {value!r}")
        return str(url)

    @field_validator("timeout", mode="before")
    @classmethod
    def _timedelta_to_seconds(cls, value: Union[float, timedelta, None]) -> Union[float, None]:
        if isinstance(value, timedelta):
            return value.total_seconds()
        return value

    @field_validator("timeout")
    @classmethod
    def _check_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError(f"timeout must be positive, got {value!r}")
        return value
