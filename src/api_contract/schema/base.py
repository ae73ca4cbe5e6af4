"""Schema models for declared endpoints and groups.

Both declaration front-ends (contract classes and YAML documents) produce
the declaration models at the bottom of this module; the extractor turns
them into ``EndpointSchema`` / ``GroupSchema`` values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

from api_contract.codec.path import path_template


class HTTPMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class AuthRequirement(str, Enum):
    NONE = "none"
    REQUIRED = "required"


class ParamRole(str, Enum):
    PATH = "path"
    QUERY = "query"
    BODY = "body"


class ParamType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"  # full ISO-8601 timestamp
    DATE_ONLY = "date-only"
    ENUM = "enum"
    JSON = "json"  # body payloads only


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()


# -- role markers -------------------------------------------------------------


@dataclass(frozen=True)
class PathParam:
    """Marks a field as a path parameter: ``Annotated[str, PathParam()]``."""

    role = ParamRole.PATH


@dataclass(frozen=True)
class QueryParam:
    """Marks a field as a query parameter, optionally under another wire name."""

    name: str | None = None
    role = ParamRole.QUERY


@dataclass(frozen=True)
class Body:
    """Marks the field sent as the JSON request body."""

    role = ParamRole.BODY


ROLE_MARKERS = (PathParam, QueryParam, Body)


# -- schemas ------------------------------------------------------------------


@dataclass(frozen=True)
class ParameterSpec:
    """A single classified endpoint parameter."""

    name: str
    type: ParamType
    role: ParamRole
    optional: bool = False
    external_name: str = ""
    default: Any = NO_DEFAULT
    python_type: Any = None  # enum class or body type

    def __post_init__(self):
        if not self.external_name:
            object.__setattr__(self, "external_name", self.name)

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


@dataclass(frozen=True)
class EndpointDescriptor:
    name: str
    method: HTTPMethod
    sub_path: str

    @property
    def full_path(self) -> str:
        if not self.sub_path:
            return ""
        if self.sub_path.startswith("/"):
            return self.sub_path
        return f"/{self.sub_path}"


@dataclass(frozen=True)
class EndpointSchema:
    """One validated endpoint: method, path, parameters and output."""

    name: str
    method: HTTPMethod
    sub_path: str = ""
    parameters: tuple[ParameterSpec, ...] = ()
    output: Any = None  # None means the response has no body
    group: "GroupSchema | None" = field(default=None, compare=False, repr=False)
    streaming: bool = False
    path_resolver: Callable[[Mapping[str, str]], str] | None = field(default=None, compare=False, repr=False)

    @property
    def auth(self) -> AuthRequirement:
        return self.group.auth if self.group is not None else AuthRequirement.REQUIRED

    @property
    def path_template(self) -> str:
        base = self.group.base_path if self.group is not None else ""
        return path_template(base, self.sub_path)

    @property
    def path_parameters(self) -> list[ParameterSpec]:
        return [p for p in self.parameters if p.role is ParamRole.PATH]

    @property
    def query_parameters(self) -> list[ParameterSpec]:
        return [p for p in self.parameters if p.role is ParamRole.QUERY]

    @property
    def body_parameter(self) -> ParameterSpec | None:
        return next((p for p in self.parameters if p.role is ParamRole.BODY), None)

    @property
    def descriptor(self) -> EndpointDescriptor:
        return EndpointDescriptor(name=self.name, method=self.method, sub_path=self.sub_path)

    @property
    def qualified_name(self) -> str:
        return f"{self.group.name}.{self.name}" if self.group is not None else self.name


@dataclass
class GroupSchema:
    """A named set of endpoints sharing a base path and auth requirement."""

    name: str
    base_path: str
    auth: AuthRequirement = AuthRequirement.REQUIRED
    members: list[EndpointSchema] = field(default_factory=list)

    @property
    def endpoints(self) -> list[EndpointDescriptor]:
        return [m.descriptor for m in self.members]

    def member(self, name: str) -> EndpointSchema | None:
        return next((m for m in self.members if m.name == name), None)


# -- declarations -------------------------------------------------------------


@dataclass(frozen=True)
class FieldDeclaration:
    """A declared field before classification.

    ``annotation`` is a Python type (class declarations) or a type name such
    as ``"integer?"`` (YAML documents).
    """

    name: str
    annotation: Any
    markers: tuple = ()
    default: Any = NO_DEFAULT


@dataclass(frozen=True)
class EndpointDeclaration:
    name: str
    method: Any
    path: str = ""
    fields: tuple[FieldDeclaration, ...] = ()
    output: Any = None
    streaming: bool = False
    check_path: bool = True
    path_resolver: Callable[[Mapping[str, str]], str] | None = None


@dataclass(frozen=True)
class GroupDeclaration:
    name: str
    path: str | None
    auth: Any = AuthRequirement.REQUIRED
    endpoints: tuple[EndpointDeclaration, ...] = ()
