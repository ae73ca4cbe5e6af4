"""YAML contract document loader.

Document layout::

    groups:
      Users:
        path: /v1/users
        auth: required          # or none
        endpoints:
          GetUser:
            method: GET
            path: ":id"
            output: User
            params:
              id: {type: string, role: path}
              verbose: {type: boolean?, name: v}
              sort: {type: enum, values: [asc, desc], default: asc}
    endpoints:                  # endpoints outside any group
      Health:
        method: GET
        path: /health

Parameters without a ``role`` are query parameters.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from api_contract.errors import InvalidArguments, InvalidDeclarationShape
from api_contract.schema.base import (
    NO_DEFAULT,
    Body,
    EndpointDeclaration,
    EndpointSchema,
    FieldDeclaration,
    GroupDeclaration,
    GroupSchema,
    PathParam,
    QueryParam,
)
from api_contract.schema.extract import extract_endpoint, extract_group


@dataclass
class ContractDocument:
    groups: list[GroupSchema] = field(default_factory=list)
    endpoints: list[EndpointSchema] = field(default_factory=list)

    def all_endpoints(self) -> list[EndpointSchema]:
        result = [m for g in self.groups for m in g.members]
        return result + self.endpoints

    def find(self, ref: str) -> EndpointSchema:
        """Look up ``Group.Endpoint`` or an endpoint name that is unique."""
        matches = [e for e in self.all_endpoints() if ref in (e.qualified_name, e.name)]
        if not matches:
            raise KeyError(f"No endpoint named '{ref}'")
        if len(matches) > 1:
            raise KeyError(f"Endpoint name '{ref}' is ambiguous; use Group.Endpoint")
        return matches[0]


def load_contracts(file_path: Path) -> ContractDocument:
    """Load and validate a YAML contract document."""
    text = file_path.read_text(encoding="utf-8")
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidDeclarationShape(f"Invalid YAML: {e}") from e
    return parse_contracts(doc)


def parse_contracts(doc: Any) -> ContractDocument:
    if not isinstance(doc, dict):
        raise InvalidDeclarationShape("Contract document must be a mapping")

    result = ContractDocument()
    for name, group in (doc.get("groups") or {}).items():
        result.groups.append(extract_group(_parse_group(name, group)))
    for name, endpoint in (doc.get("endpoints") or {}).items():
        result.endpoints.append(extract_endpoint(_parse_endpoint(name, endpoint)))
    return result


def _parse_group(name: str, group: Any) -> GroupDeclaration:
    if not isinstance(group, dict):
        raise InvalidDeclarationShape(f"Group '{name}' must be a mapping")
    endpoints = tuple(_parse_endpoint(ep_name, ep) for ep_name, ep in (group.get("endpoints") or {}).items())
    return GroupDeclaration(
        name=name,
        path=group.get("path"),
        auth=group.get("auth", "required"),
        endpoints=endpoints,
    )


def _parse_endpoint(name: str, endpoint: Any) -> EndpointDeclaration:
    if not isinstance(endpoint, dict):
        raise InvalidDeclarationShape(f"Endpoint '{name}' must be a mapping")
    if "method" not in endpoint:
        raise InvalidArguments(f"Endpoint '{name}' requires a 'method'")
    fields = tuple(_parse_field(name, p_name, p) for p_name, p in (endpoint.get("params") or {}).items())
    return EndpointDeclaration(
        name=name,
        method=endpoint["method"],
        path=endpoint.get("path", ""),
        fields=fields,
        output=endpoint.get("output"),
        streaming=bool(endpoint.get("stream", False)),
        check_path=bool(endpoint.get("check_path", True)),
    )


def _parse_field(endpoint: str, name: str, param: Any) -> FieldDeclaration:
    if isinstance(param, str):
        param = {"type": param}
    if not isinstance(param, dict):
        raise InvalidDeclarationShape(f"Parameter '{endpoint}.{name}' must be a mapping or a type name")

    role = param.get("role", "query")
    if role == "path":
        markers = (PathParam(),)
    elif role == "body":
        markers = (Body(),)
    elif role == "query":
        markers = (QueryParam(name=param.get("name")),)
    else:
        raise InvalidArguments(f"Parameter '{endpoint}.{name}' has unknown role '{role}'")
    if param.get("name") and role != "query":
        raise InvalidArguments(f"Only query parameters may rename their wire name ('{endpoint}.{name}')")

    annotation = param.get("type", "json" if role == "body" else "string")
    default = param.get("default", NO_DEFAULT)
    if isinstance(annotation, str) and annotation.rstrip("?") == "enum":
        enum_type = _enum_type(endpoint, name, param.get("values"))
        if default is not NO_DEFAULT and default is not None:
            try:
                default = enum_type(default)
            except ValueError:
                raise InvalidArguments(f"Default '{default}' is not a value of '{endpoint}.{name}'") from None
        annotation = enum_type | None if annotation.endswith("?") else enum_type

    return FieldDeclaration(name=name, annotation=annotation, markers=markers, default=default)


def _enum_type(endpoint: str, name: str, values: Any) -> type[Enum]:
    if not values or not isinstance(values, list):
        raise InvalidArguments(f"Enum parameter '{endpoint}.{name}' requires a list of 'values'")
    return Enum(f"{endpoint}_{name}", [(str(v), str(v)) for v in values], type=str)
