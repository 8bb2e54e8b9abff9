"""Typed readers for response bodies and an inline assertion helper.

The readers consume the whole body, release the connection and decode the
JSON into the requested type.  Decoding only ever happens here, so a
caller that keeps the raw :class:`httpx.Response` never sees a
:class:`~restbase.exceptions.DecodeError`.

Example::

    response = await client.get_async("users/42")
    user = await read_async(inspect(response, _expect_ok), User)
"""

from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

import httpx

from restbase.codec import DecodeOptions, decode

T = TypeVar("T")
R = TypeVar("R", bound=httpx.Response)


def read(
    response: httpx.Response,
    target: type[T] = Any,  # type: ignore[assignment]
    options: Optional[DecodeOptions] = None,
) -> T:
    """Read the full body of *response* and decode it as JSON into *target*.

    Works on any response whose body is already buffered (everything the
    blocking :class:`~restbase.client.RestClient` methods return) or
    backed by a synchronous stream.  Use :func:`read_async` for responses
    returned by the ``*_async`` methods.

    Args:
        response: The response to read.
        target: Expected shape of the body; ``Any`` returns plain JSON
            values.
        options: Validation settings forwarded to
            :func:`~restbase.codec.decode`.

    Returns:
        The decoded body.

    Raises:
        NullStreamError: If the body is empty.
        DecodeError: If the body is not JSON or does not match *target*.
    """
    return decode(response.read(), target, options)


async def read_async(
    response: httpx.Response,
    target: type[T] = Any,  # type: ignore[assignment]
    options: Optional[DecodeOptions] = None,
) -> T:
    """Asynchronously read the body of *response* and decode it into *target*.

    Only the body read suspends; decoding runs synchronously once the
    bytes are in memory.  The response is closed whether or not the read
    and decode succeed.

    Raises:
        NullStreamError: If the body is empty.
        DecodeError: If the body is not JSON or does not match *target*.
    """
    try:
        body = await response.aread()
    finally:
        await response.aclose()
    return decode(body, target, options)


def inspect(response: R, assertion: Callable[[R], Any]) -> R:
    """Run *assertion* against *response* and hand the same response back.

    Lets checks sit inline in a call chain::

        data = read(inspect(client.get("health"), lambda r: r.raise_for_status()))

    Exceptions raised by *assertion* propagate unchanged.
    """
    assertion(response)
    return response
