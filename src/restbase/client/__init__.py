"""Request pipeline and request/response helpers.

:class:`RestClient` is the base class API clients derive from.  It owns one
lazily created :class:`httpx.AsyncClient`, resolves call paths against its
base URL, encodes bodies as JSON and exposes every verb both as a coroutine
(``get_async``) and as a blocking wrapper (``get``).

Helpers:
    :mod:`restbase.client.request` -- header setters usable from a
    pre-send hook.
    :mod:`restbase.client.response` -- typed body readers and the
    :func:`~restbase.client.response.inspect` pass-through.

Example::

    from restbase.client import RestClient
    from restbase.client.request import bearer

    client = RestClient("https://api.example.com/v1/", timeout=5)
    user = client.get("users/42", bearer(token), response_type=User)
"""

from restbase.client.base import PreRequestHook, RestClient

__all__ = ["PreRequestHook", "RestClient"]
