"""JSON content codec for request and response bodies.

Encoding goes straight from Python objects to UTF-8 bytes through
:func:`pydantic_core.to_json`, so no intermediate ``str`` of the whole
payload is built.  Decoding validates the raw JSON against any type a
:class:`pydantic.TypeAdapter` understands -- builtins such as ``dict`` or
``list[int]``, :class:`pydantic.BaseModel` subclasses, dataclasses,
``TypedDict`` -- in a single pass.

Example::

    body = encode({"name": "Ada"})          # b'{"name":"Ada"}'
    user = decode(response_bytes, User)     # -> User instance
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from restbase.exceptions import DecodeError, EncodeError, NullStreamError

T = TypeVar("T")


class DecodeOptions(BaseModel):
    """Validation settings applied when decoding a JSON body.

    Example::

        read(response, User, DecodeOptions(strict=True))
    """

    model_config = ConfigDict(frozen=True)

    strict: Optional[bool] = None
    """Reject type coercion (e.g. ``"1"`` for an ``int`` field) when True."""
    context: Optional[dict[str, Any]] = None
    """Extra context forwarded to custom pydantic validators."""


DEFAULT_DECODE_OPTIONS = DecodeOptions()


@lru_cache(maxsize=256)
def _cached_adapter(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


def _adapter(target: Any) -> TypeAdapter[Any]:
    # Annotated[...] metadata such as dicts or lists makes the target unhashable.
    try:
        hash(target)
    except TypeError:
        return TypeAdapter(target)
    return _cached_adapter(target)


def encode(value: Any) -> bytes:
    """Serialise *value* to compact UTF-8 JSON bytes.

    Args:
        value: Any JSON-compatible value, pydantic model, dataclass,
            datetime, UUID or enum (nested freely).

    Returns:
        The JSON document without insignificant whitespace.

    Raises:
        EncodeError: If *value* (or something nested in it) has no JSON
            representation.
    """
    try:
        return to_json(value)
    except PydanticSerializationError as exc:
        raise EncodeError(f"Cannot serialise {type(value).__name__} to JSON: {exc}") from exc


def decode(
    data: Union[bytes, str, None],
    target: type[T] = Any,  # type: ignore[assignment]
    options: Optional[DecodeOptions] = None,
) -> T:
    """Parse JSON *data* and validate it into *target*.

    Args:
        data: Raw body bytes (UTF-8) or text.
        target: The expected shape.  Defaults to ``Any``, which returns
            plain dicts, lists and scalars.
        options: Validation settings; :data:`DEFAULT_DECODE_OPTIONS` when
            omitted.

    Returns:
        The decoded value.

    Raises:
        NullStreamError: If *data* is ``None`` or empty.
        DecodeError: If *data* is not JSON or does not match *target*.
    """
    if data is None or len(data) == 0:
        raise NullStreamError("Cannot decode JSON from an absent body")

    opts = options or DEFAULT_DECODE_OPTIONS
    try:
        return _adapter(target).validate_json(data, strict=opts.strict, context=opts.context)
    except ValidationError as exc:
        raise DecodeError(f"Cannot decode JSON into {_type_name(target)}: {exc}") from exc


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)
