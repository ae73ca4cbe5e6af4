"""Parameter codec: endpoint values to wire strings and back.

Path and query values travel as plain text (decimal numbers, ``true`` /
``false``, ISO-8601 dates, enum raw values). The body is handed to a
``Serializer``.
"""

import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Mapping

from api_contract.codec.serializer import DEFAULT_SERIALIZER, Serializer
from api_contract.errors import MissingBody, MissingParameter
from api_contract.schema.base import EndpointSchema, ParameterSpec, ParamRole, ParamType

INTEGER_RE = re.compile(r"[+-]?[0-9]+")
FLOAT_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


def encode_date(value: datetime) -> str:
    """Full ISO-8601 timestamp in UTC, e.g. ``2024-05-01T12:30:00Z``.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def encode_date_only(value: date) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def encode_value(spec: ParameterSpec, value: Any) -> str:
    """Render one path or query value as wire text."""
    if spec.type is ParamType.STRING:
        return str(value)
    if spec.type is ParamType.BOOLEAN:
        return "true" if value else "false"
    if spec.type is ParamType.DATE:
        return encode_date(value)
    if spec.type is ParamType.DATE_ONLY:
        return encode_date_only(value)
    if spec.type is ParamType.ENUM:
        return str(value.value) if isinstance(value, Enum) else str(value)
    return str(value)


def decode_value(spec: ParameterSpec, text: str) -> Any:
    """Parse wire text into the parameter's type. Raises ``ValueError``."""
    if spec.type is ParamType.STRING:
        return text
    if spec.type is ParamType.INTEGER:
        if not INTEGER_RE.fullmatch(text):
            raise ValueError(f"not an integer: {text!r}")
        return int(text)
    if spec.type is ParamType.FLOAT:
        if not FLOAT_RE.fullmatch(text):
            raise ValueError(f"not a number: {text!r}")
        return float(text)
    if spec.type is ParamType.BOOLEAN:
        if text == "true":
            return True
        if text == "false":
            return False
        raise ValueError(f"not a boolean: {text!r}")
    if spec.type is ParamType.DATE:
        return datetime.fromisoformat(text)
    if spec.type is ParamType.DATE_ONLY:
        return date.fromisoformat(text)
    if spec.type is ParamType.ENUM:
        return spec.python_type(text) if spec.python_type is not None else text
    raise ValueError(f"{spec.type.value} parameters are not sent as text")


def _try_decode(spec: ParameterSpec, text: str | None) -> Any:
    if text is None:
        return None
    try:
        return decode_value(spec, text)
    except ValueError:
        return None


# -- client side --------------------------------------------------------------


def extract_path_parameters(schema: EndpointSchema, values: Mapping[str, Any]) -> dict[str, str]:
    params: dict[str, str] = {}
    for spec in schema.path_parameters:
        value = values.get(spec.name)
        if value is None:
            if spec.optional:
                continue
            raise MissingParameter(spec.name, "path")
        params[spec.name] = encode_value(spec, value)
    return params


def extract_query_parameters(schema: EndpointSchema, values: Mapping[str, Any]) -> dict[str, str] | None:
    """Query mapping keyed by external name, or ``None`` when nothing is set."""
    params: dict[str, str] = {}
    for spec in schema.query_parameters:
        value = values.get(spec.name, spec.default if spec.has_default else None)
        if value is None:
            if spec.optional:
                continue
            raise MissingParameter(spec.external_name, "query")
        params[spec.external_name] = encode_value(spec, value)
    return params or None


def encode_body(
    schema: EndpointSchema,
    values: Mapping[str, Any],
    serializer: Serializer = DEFAULT_SERIALIZER,
) -> bytes | None:
    spec = schema.body_parameter
    if spec is None:
        return None
    value = values.get(spec.name)
    if value is None:
        if spec.optional:
            return None
        raise MissingBody()
    return serializer.encode(value)


# -- server side --------------------------------------------------------------


def decode_input(
    schema: EndpointSchema,
    path_parameters: Mapping[str, str],
    query_parameters: Mapping[str, str],
    body: bytes | None,
    serializer: Serializer = DEFAULT_SERIALIZER,
) -> dict[str, Any]:
    """Rebuild endpoint values from raw request data.

    Required path and query parameters raise ``MissingParameter`` when
    absent or unparsable. Optional ones fall back to ``None`` and defaulted
    query parameters to their default; neither raises.
    """
    values: dict[str, Any] = {}
    for spec in schema.parameters:
        if spec.role is ParamRole.BODY:
            values[spec.name] = _decode_body(spec, body, serializer)
            continue

        is_path = spec.role is ParamRole.PATH
        source = path_parameters if is_path else query_parameters
        key = spec.name if is_path else spec.external_name
        decoded = _try_decode(spec, source.get(key))
        if decoded is not None:
            values[spec.name] = decoded
        elif spec.has_default:
            values[spec.name] = spec.default
        elif spec.optional:
            values[spec.name] = None
        else:
            raise MissingParameter(key, spec.role.value)
    return values


def _decode_body(spec: ParameterSpec, body: bytes | None, serializer: Serializer) -> Any:
    if body is None:
        if spec.optional:
            return None
        raise MissingBody()
    return serializer.decode(spec.python_type, body)
