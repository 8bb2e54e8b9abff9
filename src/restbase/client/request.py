"""Header helpers for outgoing requests.

Both setters replace rather than append, so calling them more than once
(for instance from a hook shared between calls) never produces duplicate
headers.  They are meant to be called from a pre-send hook::

    def sign(request: httpx.Request) -> None:
        set_authorization(request, f"Bearer {token}")
        set_user_agent(request, "acme-sdk/1.2")

    client.get("users", sign)
"""

from __future__ import annotations

from typing import Callable

import httpx

from restbase.constants import AUTHORIZATION, USER_AGENT


def set_authorization(request: httpx.Request, value: str) -> None:
    """Replace the ``Authorization`` header of *request* with *value*.

    Args:
        request: The outgoing request, mutated in place.
        value: The full header value including its scheme, e.g.
            ``"Bearer abc123"``.  Not validated.
    """
    _replace_header(request, AUTHORIZATION, value)


def set_user_agent(request: httpx.Request, value: str) -> None:
    """Replace the ``User-Agent`` header of *request* with *value*."""
    _replace_header(request, USER_AGENT, value)


def bearer(token: str) -> Callable[[httpx.Request], None]:
    """Build a pre-send hook that authenticates with a bearer *token*."""

    def hook(request: httpx.Request) -> None:
        set_authorization(request, f"Bearer {token}")

    return hook


def _replace_header(request: httpx.Request, name: str, value: str) -> None:
    # Headers.pop removes every occurrence of a multi-valued header.
    request.headers.pop(name, None)
    request.headers[name] = value
