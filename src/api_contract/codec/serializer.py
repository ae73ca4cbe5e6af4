"""JSON payload serializer backed by pydantic type adapters."""

from functools import lru_cache
from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError

from api_contract.errors import DecodeFailure


class Serializer(Protocol):
    def encode(self, value: Any) -> bytes: ...

    def decode(self, tp: Any, data: bytes) -> Any: ...


@lru_cache(maxsize=256)
def _adapter(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


class JSONSerializer:
    """Encodes bodies as JSON; datetimes are written as ISO-8601."""

    def encode(self, value: Any) -> bytes:
        return _adapter(type(value)).dump_json(value)

    def decode(self, tp: Any, data: bytes) -> Any:
        """Decode ``data`` as ``tp``; ``None`` or a bare type name decode as plain JSON."""
        if tp is None or isinstance(tp, str):
            tp = Any
        try:
            return _adapter(tp).validate_json(data)
        except ValidationError as e:
            raise DecodeFailure(f"Malformed payload: {e.error_count()} validation error(s)") from e


DEFAULT_SERIALIZER = JSONSerializer()
