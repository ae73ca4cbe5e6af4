"""Turn endpoint and group declarations into validated schemas."""

import logging
import types
from datetime import date, datetime
from enum import Enum
from typing import Any, Union, get_args, get_origin

from api_contract.codec.path import template_tokens
from api_contract.errors import InvalidArguments
from api_contract.schema.base import (
    NO_DEFAULT,
    ROLE_MARKERS,
    AuthRequirement,
    EndpointDeclaration,
    EndpointSchema,
    FieldDeclaration,
    GroupDeclaration,
    GroupSchema,
    HTTPMethod,
    ParameterSpec,
    ParamRole,
    ParamType,
    QueryParam,
)

logger = logging.getLogger(__name__)

TYPE_NAMES = {t.value: t for t in ParamType if t is not ParamType.ENUM}

PYTHON_TYPES = {
    str: ParamType.STRING,
    int: ParamType.INTEGER,
    float: ParamType.FLOAT,
    bool: ParamType.BOOLEAN,
    datetime: ParamType.DATE,
    date: ParamType.DATE_ONLY,
}


def classify_type(annotation: Any) -> tuple[ParamType, bool, Any]:
    """Return ``(param_type, optional, python_type)`` for a field annotation.

    Type names (``"integer"``, ``"date?"``) come from YAML documents; a
    trailing ``?`` marks them optional. Anything that is not a supported
    scalar is classified as ``JSON`` and only valid for a body parameter.
    """
    if isinstance(annotation, str):
        optional = annotation.endswith("?")
        name = annotation.rstrip("?").strip().lower()
        if name not in TYPE_NAMES:
            raise InvalidArguments(f"Unsupported parameter type: {annotation}")
        return TYPE_NAMES[name], optional, None

    optional = False
    if get_origin(annotation) in (Union, types.UnionType):
        args = get_args(annotation)
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1 and len(args) == 2:
            optional, annotation = True, rest[0]

    if isinstance(annotation, type) and annotation in PYTHON_TYPES:
        return PYTHON_TYPES[annotation], optional, annotation
    if isinstance(annotation, type) and issubclass(annotation, Enum):
        return ParamType.ENUM, optional, annotation
    return ParamType.JSON, optional, annotation


def classify_field(field: FieldDeclaration) -> ParameterSpec:
    """Classify one declared field into a path, query or body parameter."""
    markers = [m for m in field.markers if isinstance(m, ROLE_MARKERS)]
    roles = {m.role for m in markers}
    if len(roles) > 1:
        raise InvalidArguments(f"Field '{field.name}' has conflicting role markers")
    role = roles.pop() if roles else ParamRole.QUERY
    external_name = next((m.name for m in markers if isinstance(m, QueryParam) and m.name), None)

    param_type, optional, python_type = classify_type(field.annotation)
    if role is ParamRole.BODY:
        param_type = ParamType.JSON
    elif param_type is ParamType.JSON:
        raise InvalidArguments(
            f"Field '{field.name}' has unsupported {role.value} parameter type: {field.annotation!r}"
        )

    default = field.default
    if default is None and optional:
        default = NO_DEFAULT
    if default is not NO_DEFAULT and role is not ParamRole.QUERY:
        raise InvalidArguments(f"Only query parameters may declare a default value ('{field.name}')")

    return ParameterSpec(
        name=field.name,
        type=param_type,
        role=role,
        optional=optional,
        external_name=external_name or field.name,
        default=default,
        python_type=python_type,
    )


def parse_method(value: Any) -> HTTPMethod:
    if isinstance(value, HTTPMethod):
        return value
    if isinstance(value, str) and value.upper() in HTTPMethod.__members__:
        return HTTPMethod[value.upper()]
    raise InvalidArguments(f"Endpoint requires a valid HTTPMethod argument, got {value!r}")


def parse_auth(value: Any) -> AuthRequirement:
    if isinstance(value, AuthRequirement):
        return value
    try:
        return AuthRequirement(str(value).lower())
    except ValueError:
        raise InvalidArguments(f"Unknown auth requirement: {value!r}") from None


def extract_endpoint(declaration: EndpointDeclaration, group: GroupSchema | None = None) -> EndpointSchema:
    """Validate an endpoint declaration and build its schema."""
    method = parse_method(declaration.method)
    sub_path = declaration.path or ""
    if not isinstance(sub_path, str):
        raise InvalidArguments(f"Endpoint '{declaration.name}' path must be a string")

    parameters = tuple(classify_field(f) for f in declaration.fields)

    bodies = [p.name for p in parameters if p.role is ParamRole.BODY]
    if len(bodies) > 1:
        raise InvalidArguments(
            f"Endpoint '{declaration.name}' declares more than one body parameter: {', '.join(bodies)}"
        )

    seen: set[str] = set()
    for p in parameters:
        if p.role is ParamRole.QUERY:
            if p.external_name in seen:
                raise InvalidArguments(f"Duplicate query parameter name '{p.external_name}' in '{declaration.name}'")
            seen.add(p.external_name)

    if declaration.check_path and declaration.path_resolver is None:
        _check_path_tokens(declaration.name, sub_path, parameters)

    schema = EndpointSchema(
        name=declaration.name,
        method=method,
        sub_path=sub_path,
        parameters=parameters,
        output=declaration.output,
        group=group,
        streaming=declaration.streaming,
        path_resolver=declaration.path_resolver,
    )
    logger.debug("Extracted endpoint %s %s (%d parameters)", method.value, schema.path_template, len(parameters))
    return schema


def _check_path_tokens(name: str, sub_path: str, parameters: tuple[ParameterSpec, ...]) -> None:
    tokens = set(template_tokens(sub_path))
    declared = {p.name for p in parameters if p.role is ParamRole.PATH}
    missing = sorted(declared - tokens)
    if missing:
        raise InvalidArguments(f"Path parameter '{missing[0]}' of '{name}' does not appear in path '{sub_path}'")
    unbound = sorted(tokens - declared)
    if unbound:
        raise InvalidArguments(f"Path '{sub_path}' of '{name}' has no path parameter for ':{unbound[0]}'")


def new_group(declaration: GroupDeclaration) -> GroupSchema:
    """Validate group arguments and build an empty group schema."""
    if declaration.path is None:
        raise InvalidArguments(f"Group '{declaration.name}' requires a 'path' argument")
    if not isinstance(declaration.path, str):
        raise InvalidArguments(f"Group '{declaration.name}' path must be a string")
    if template_tokens(declaration.path):
        raise InvalidArguments(f"Group '{declaration.name}' base path may not contain placeholders")
    return GroupSchema(name=declaration.name, base_path=declaration.path, auth=parse_auth(declaration.auth))


def add_member(group: GroupSchema, schema: EndpointSchema) -> None:
    if schema.group is not group:
        raise InvalidArguments(f"Endpoint '{schema.name}' was not extracted for group '{group.name}'")
    if group.member(schema.name) is not None:
        raise InvalidArguments(f"Group '{group.name}' already has an endpoint named '{schema.name}'")
    group.members.append(schema)


def extract_group(declaration: GroupDeclaration) -> GroupSchema:
    """Validate a group declaration and extract all of its endpoints."""
    group = new_group(declaration)
    for endpoint_declaration in declaration.endpoints:
        add_member(group, extract_endpoint(endpoint_declaration, group))
    logger.debug("Extracted group %s at %r with %d endpoints", group.name, group.base_path, len(group.members))
    return group
