"""JSON decoding into caller-supplied types."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from homelab_httpkit.errors import BodyIOError

T = TypeVar("T")


def decode_json(content: bytes | str, target: type[T] | Any) -> T:
    """Decode a JSON document into ``target``.

    ``target`` may be anything pydantic can validate against: a BaseModel,
    a dataclass, a TypedDict or a plain annotation such as ``dict[str, int]``.
    Shape checking is delegated to that type and runs in strict mode, so a
    JSON string is never coerced into a number or a bool.

    Raises:
        BodyIOError: If the text is not valid JSON or does not fit ``target``.
    """
    try:
        return TypeAdapter(target).validate_json(content, strict=True)
    except ValidationError as e:
        text = content.decode("utf-8", errors="replace") if isinstance(content, bytes) else content
        raise BodyIOError(f"Failed to unmarshal json body: {e}", text=text) from e
