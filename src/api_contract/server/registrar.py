"""Group registration: the handler contract of a group and binding a
handler's operations to a route registrar."""

import inspect
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, ClassVar, Protocol

from api_contract.contract import Contract, endpoint_schema, group_contracts, group_schema
from api_contract.errors import HandlerContractError, InvalidArguments
from api_contract.schema.base import EndpointSchema
from api_contract.server.context import HandlerContext

logger = logging.getLogger(__name__)

Handler = Callable[[Any, HandlerContext], Awaitable[Any]]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


class RouteRegistrar(Protocol):
    def register(self, endpoint: type[Contract] | EndpointSchema, handler: Handler) -> "RouteRegistrar": ...


@dataclass(frozen=True)
class HandlerOperation:
    """One operation a group handler must provide."""

    name: str
    endpoint: type[Contract]
    output: Any
    streaming: bool = False


def operation_name(endpoint_name: str) -> str:
    """``GetUserPosts`` -> ``get_user_posts``."""
    return _CAMEL_BOUNDARY.sub("_", endpoint_name).lower()


def handler_contract(group: type) -> list[HandlerOperation]:
    """Operations a handler for ``group`` must implement, in declaration order."""
    operations = []
    for contract in group_contracts(group):
        schema = endpoint_schema(contract)
        operations.append(
            HandlerOperation(
                name=operation_name(schema.name),
                endpoint=contract,
                output=schema.output,
                streaming=schema.streaming,
            )
        )
    return operations


def _is_operation(fn: Any, streaming: bool) -> bool:
    if inspect.iscoroutinefunction(fn):
        return True
    return streaming and inspect.isasyncgenfunction(fn)


def check_handler(group: type, handler: Any) -> None:
    """Raise ``HandlerContractError`` unless ``handler`` implements every operation as async."""
    missing = [
        op.name
        for op in handler_contract(group)
        if not _is_operation(getattr(handler, op.name, None), op.streaming)
    ]
    if missing:
        raise HandlerContractError(group_schema(group).name, missing)


class GroupHandler:
    """Base class for group handlers.

    ``class UsersHandler(GroupHandler, group=Users)`` is checked against the
    group's handler contract when the class is defined.
    """

    group: ClassVar[type | None] = None

    def __init_subclass__(cls, group: type | None = None, **kwargs):
        super().__init_subclass__(**kwargs)
        if group is not None:
            check_handler(group, cls)
            cls.group = group


def register_all(group: type, registrar: RouteRegistrar, handler: Any) -> RouteRegistrar:
    """Register every endpoint of ``group`` with its handler operation, in order."""
    check_handler(group, handler)
    for op in handler_contract(group):
        registrar = registrar.register(op.endpoint, getattr(handler, op.name))
    logger.debug("Registered group %s", group_schema(group).name)
    return registrar


def register_services(registrar: RouteRegistrar, *handlers: Any) -> RouteRegistrar:
    """Register several group handlers; each must name its ``group``."""
    if not handlers:
        raise InvalidArguments("register_services requires at least one handler")
    for handler in handlers:
        group = getattr(handler, "group", None)
        if group is None:
            raise InvalidArguments(f"{type(handler).__name__} does not declare a group")
        registrar = register_all(group, registrar, handler)
    return registrar
