"""Class-based contract declarations.

Usage::

    @api_group(path="/v1/users")
    class Users:

        @endpoint(HTTPMethod.GET, path=":user_id", output=User)
        class GetUser(Contract):
            user_id: Annotated[str, PathParam()]
            expand: Annotated[str | None, QueryParam(name="with")] = None

        @endpoint(HTTPMethod.POST, output=User)
        class CreateUser(Contract):
            payload: Annotated[NewUser, Body()]

Each decorator validates its declaration on the spot and stores the
resulting schema on the class. Endpoint classes nested in a group body are
re-extracted with the group when the group decorator runs.
"""

from typing import Any, ClassVar, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError

from api_contract.client.request import Request, build_request
from api_contract.codec.params import (
    decode_input,
    encode_body,
    extract_path_parameters,
    extract_query_parameters,
)
from api_contract.codec.path import resolve_endpoint_path
from api_contract.codec.serializer import DEFAULT_SERIALIZER, Serializer
from api_contract.errors import DecodeFailure, InvalidArguments, InvalidDeclarationShape
from api_contract.schema.base import (
    NO_DEFAULT,
    AuthRequirement,
    EndpointDeclaration,
    EndpointSchema,
    FieldDeclaration,
    GroupDeclaration,
    GroupSchema,
    HTTPMethod,
)
from api_contract.schema.extract import add_member, extract_endpoint, new_group, parse_auth, parse_method


class Contract(BaseModel):
    """Base class for endpoint declarations; an instance is one request input."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    __endpoint_schema__: ClassVar[EndpointSchema]
    __endpoint_declaration__: ClassVar[EndpointDeclaration]

    @classmethod
    def path_template(cls) -> str:
        return endpoint_schema(cls).path_template

    @classmethod
    def resolve_path(cls, contract: "Contract") -> str:
        """Resolve the request path for ``contract``. Override for custom paths."""
        return resolve_endpoint_path(endpoint_schema(cls), contract.path_parameters)

    @property
    def path_parameters(self) -> dict[str, str]:
        return extract_path_parameters(endpoint_schema(type(self)), dict(self))

    @property
    def query_parameters(self) -> dict[str, str] | None:
        return extract_query_parameters(endpoint_schema(type(self)), dict(self))

    def encode_body(self, serializer: Serializer = DEFAULT_SERIALIZER) -> bytes | None:
        return encode_body(endpoint_schema(type(self)), dict(self), serializer)

    @classmethod
    def decode(
        cls,
        path_parameters: Mapping[str, str],
        query_parameters: Mapping[str, str],
        body: bytes | None,
        serializer: Serializer = DEFAULT_SERIALIZER,
    ) -> "Contract":
        """Rebuild a contract instance from raw server-side request data."""
        values = decode_input(endpoint_schema(cls), path_parameters, query_parameters, body, serializer)
        try:
            return cls(**values)
        except ValidationError as e:
            raise DecodeFailure(f"Invalid input for {cls.__name__}: {e.error_count()} validation error(s)") from e

    def build_request(self, base_url: str, serializer: Serializer = DEFAULT_SERIALIZER) -> Request:
        schema = endpoint_schema(type(self))
        return build_request(
            schema,
            dict(self),
            base_url,
            serializer=serializer,
            path=type(self).resolve_path(self),
        )

    def execute(self, executor) -> Any:
        return executor.execute(self)

    def stream(self, executor):
        return executor.stream(self)


def endpoint_schema(contract: Any) -> EndpointSchema:
    cls = contract if isinstance(contract, type) else type(contract)
    schema = vars(cls).get("__endpoint_schema__")
    if schema is None:
        raise InvalidDeclarationShape(f"{cls.__name__} is not declared with @endpoint")
    return schema


def group_schema(group_cls: type) -> GroupSchema:
    schema = vars(group_cls).get("__group_schema__") if isinstance(group_cls, type) else None
    if schema is None:
        raise InvalidDeclarationShape(f"{group_cls!r} is not declared with @api_group")
    return schema


def group_contracts(group_cls: type) -> list[type[Contract]]:
    """Contract classes of a group, in declaration order."""
    group_schema(group_cls)
    return list(vars(group_cls)["__group_contracts__"])


def _overrides_resolve_path(cls: type) -> bool:
    return cls.resolve_path.__func__ is not Contract.resolve_path.__func__


def _declare(cls: Any, method: HTTPMethod, path: str, output: Any, streaming: bool, check_path: bool) -> EndpointDeclaration:
    if not (isinstance(cls, type) and issubclass(cls, Contract)):
        raise InvalidDeclarationShape("@endpoint can only be applied to Contract subclasses")
    fields = tuple(
        FieldDeclaration(
            name=name,
            annotation=info.annotation,
            markers=tuple(info.metadata),
            default=NO_DEFAULT if info.is_required() else info.get_default(call_default_factory=True),
        )
        for name, info in cls.model_fields.items()
    )
    return EndpointDeclaration(
        name=cls.__name__,
        method=method,
        path=path,
        fields=fields,
        output=output,
        streaming=streaming,
        check_path=check_path and not _overrides_resolve_path(cls),
    )


def _bind(cls: type[Contract], group_cls: type | None) -> None:
    group = group_schema(group_cls) if group_cls is not None else None
    schema = extract_endpoint(cls.__endpoint_declaration__, group)
    if group is not None:
        add_member(group, schema)
        vars(group_cls)["__group_contracts__"].append(cls)
    cls.__endpoint_schema__ = schema


def _endpoint_decorator(method, path, output, group, check_path, streaming):
    method = parse_method(method)
    if not isinstance(path, str):
        raise InvalidArguments(f"Endpoint path must be a string, got {path!r}")

    def decorate(cls):
        cls.__endpoint_declaration__ = _declare(cls, method, path, output, streaming, check_path)
        _bind(cls, group)
        return cls

    return decorate


def endpoint(method: HTTPMethod | str, path: str = "", *, output: Any = None, group: type | None = None, check_path: bool = True):
    """Declare a ``Contract`` subclass as an endpoint.

    ``output`` is the decoded response type; ``None`` means no response
    body. ``group`` attaches an endpoint declared outside the group body.
    """
    return _endpoint_decorator(method, path, output, group, check_path, streaming=False)


def streaming_endpoint(method: HTTPMethod | str, path: str = "", *, event: Any, group: type | None = None, check_path: bool = True):
    """Declare a server-sent-events endpoint whose responses are ``event`` values."""
    return _endpoint_decorator(method, path, event, group, check_path, streaming=True)


def api_group(path: str | None = None, auth: AuthRequirement | str = AuthRequirement.REQUIRED):
    """Declare a class as an endpoint group with a shared base path and auth requirement."""
    if not isinstance(path, str):
        raise InvalidArguments("@api_group requires 'path' argument")
    auth = parse_auth(auth)

    def decorate(cls):
        if not isinstance(cls, type) or issubclass(cls, Contract):
            raise InvalidDeclarationShape("@api_group can only be applied to plain classes")
        cls.__group_schema__ = new_group(GroupDeclaration(name=cls.__name__, path=path, auth=auth))
        cls.__group_contracts__ = []
        for member in list(vars(cls).values()):
            if isinstance(member, type) and issubclass(member, Contract) and "__endpoint_declaration__" in vars(member):
                _bind(member, cls)
        return cls

    return decorate
