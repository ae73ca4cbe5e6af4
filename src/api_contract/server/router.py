"""In-memory router: registers contract handlers and dispatches raw requests."""

import inspect
import logging
import re
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Mapping
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict

from api_contract.codec.params import decode_input
from api_contract.codec.path import TOKEN_RE
from api_contract.codec.serializer import DEFAULT_SERIALIZER, Serializer
from api_contract.codec.sse import encode_event
from api_contract.contract import Contract, endpoint_schema
from api_contract.errors import BadRequest, HTTPError, InternalError, InvalidArguments, NotFound
from api_contract.schema.base import EndpointSchema, HTTPMethod
from api_contract.server.context import AuthenticationProvider, authenticate
from api_contract.server.registrar import Handler, register_all

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}
SSE_HEADERS = {"Content-Type": "text/event-stream", "Cache-Control": "no-cache"}


class Response(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    status_code: int = 200
    body: bytes | None = None
    headers: dict[str, str] = {}
    stream: Any = None  # async iterator of SSE frames for streaming routes


@dataclass
class Route:
    schema: EndpointSchema
    handler: Handler
    build_input: Callable[..., Any]
    pattern: re.Pattern
    names: list[str]
    static_length: int

    @property
    def template(self) -> str:
        return normalize_path(self.schema.path_template)

    def match(self, path: str) -> dict[str, str] | None:
        m = self.pattern.match(path)
        if m is None:
            return None
        return {name: unquote(value) for name, value in zip(self.names, m.groups())}


def normalize_path(path: str) -> str:
    return "/" + path.strip("/")


def compile_template(template: str) -> tuple[re.Pattern, list[str], int]:
    """Compile a ``:name`` template to a regex, its parameter names and its static length."""
    normalized = normalize_path(template)
    pattern, names, static, pos = "", [], 0, 0
    for m in TOKEN_RE.finditer(normalized):
        literal = normalized[pos:m.start()]
        pattern += re.escape(literal) + "([^/]+)"
        static += len(literal)
        names.append(m.group(1))
        pos = m.end()
    literal = normalized[pos:]
    pattern += re.escape(literal)
    static += len(literal)
    return re.compile(f"^{pattern}/?$"), names, static


def error_response(error: HTTPError) -> Response:
    return Response(status_code=error.status_code, body=error.to_error_response().to_json(), headers=dict(JSON_HEADERS))


class Router:
    """Route table plus dispatcher for registered endpoints."""

    def __init__(self, auth_provider: AuthenticationProvider | None = None, serializer: Serializer = DEFAULT_SERIALIZER):
        self.auth_provider = auth_provider
        self.serializer = serializer
        self._routes: list[Route] = []

    @property
    def routes(self) -> list[tuple[HTTPMethod, str, str]]:
        return [(r.schema.method, r.template, r.schema.qualified_name) for r in self._routes]

    def register(self, endpoint: type[Contract] | EndpointSchema, handler: Handler) -> "Router":
        if isinstance(endpoint, EndpointSchema):
            schema = endpoint

            def build_input(path_params, query_params, body, serializer):
                return decode_input(schema, path_params, query_params, body, serializer)
        else:
            schema = endpoint_schema(endpoint)
            build_input = endpoint.decode

        pattern, names, static_length = compile_template(schema.path_template)
        for route in self._routes:
            if route.schema.method is schema.method and route.pattern.pattern == pattern.pattern:
                raise InvalidArguments(f"Route already registered: {schema.method.value} {route.template}")

        self._routes.append(Route(schema, handler, build_input, pattern, names, static_length))
        # static beats dynamic, then longer static text first
        self._routes.sort(key=lambda r: (len(r.names), -r.static_length, r.template))
        logger.debug("Registered %s %s -> %s", schema.method.value, schema.path_template, schema.qualified_name)
        return self

    def include(self, handler: Any) -> "Router":
        """Register every operation of a ``GroupHandler``."""
        return register_all(handler.group, self, handler)

    def match(self, method: HTTPMethod, path: str) -> tuple[Route, dict[str, str]]:
        path = normalize_path(path)
        for route in self._routes:
            if route.schema.method is not method:
                continue
            params = route.match(path)
            if params is not None:
                return route, params
        raise NotFound(f"No route for {method.value} {path}")

    async def dispatch(
        self,
        method: str,
        path: str,
        query: Mapping[str, str] | None = None,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        """Run the handler for one raw request and render its response."""
        headers = {k.lower(): v for k, v in (headers or {}).items()}
        try:
            try:
                http_method = HTTPMethod(method.upper())
            except ValueError:
                raise BadRequest(f"Unsupported method: {method}") from None
            route, path_params = self.match(http_method, path)
            context = await authenticate(route.schema.auth, headers.get("authorization"), self.auth_provider)
            contract_input = route.build_input(path_params, dict(query or {}), body or None, self.serializer)
            result = route.handler(contract_input, context)
            if inspect.isawaitable(result):
                result = await result
        except HTTPError as e:
            logger.info("%s %s -> %d %s", method, path, e.status_code, e.error_code)
            return error_response(e)
        except Exception:
            logger.exception("Handler error for %s %s", method, path)
            return error_response(InternalError("An unexpected error occurred"))

        logger.info("%s %s -> %s", method, path, route.schema.qualified_name)
        if route.schema.streaming:
            return Response(status_code=200, headers=dict(SSE_HEADERS), stream=self._encode_events(result))
        if result is None:
            return Response(status_code=204)
        return Response(status_code=200, body=self.serializer.encode(result), headers=dict(JSON_HEADERS))

    async def _encode_events(self, events: AsyncIterator[Any]) -> AsyncIterator[bytes]:
        async for event in events:
            yield encode_event(self.serializer.encode(event))
