"""Build concrete HTTP requests from an endpoint schema and its values."""

from typing import Any, Mapping
from urllib.parse import quote, urlencode, urlsplit

from pydantic import BaseModel

from api_contract.codec.params import encode_body, extract_path_parameters, extract_query_parameters
from api_contract.codec.path import resolve_endpoint_path
from api_contract.codec.serializer import DEFAULT_SERIALIZER, Serializer
from api_contract.errors import InvalidURL
from api_contract.schema.base import EndpointSchema, HTTPMethod

PATH_SAFE = "/:@!$&'()*+,;=-._~"


class Request(BaseModel):
    """A fully resolved request, ready to hand to any HTTP client."""

    method: HTTPMethod
    url: str
    path: str
    query: dict[str, str] | None = None
    body: bytes | None = None
    headers: dict[str, str] = {}


def join_url(base_url: str, path: str) -> str:
    """Append ``path`` to ``base_url``, percent-encoding unsafe characters."""
    try:
        parts = urlsplit(base_url)
    except ValueError as e:
        raise InvalidURL(path) from e
    if not parts.scheme or not parts.netloc:
        raise InvalidURL(path)
    if not path:
        return base_url
    return base_url.rstrip("/") + "/" + quote(path.lstrip("/"), safe=PATH_SAFE)


def build_request(
    schema: EndpointSchema,
    values: Mapping[str, Any],
    base_url: str,
    serializer: Serializer = DEFAULT_SERIALIZER,
    path: str | None = None,
) -> Request:
    """Build the request for one endpoint call.

    ``path`` overrides path resolution; contract classes pass the result of
    their own ``resolve_path`` here.
    """
    if path is None:
        path = resolve_endpoint_path(schema, extract_path_parameters(schema, values))

    url = join_url(base_url, path)
    query = extract_query_parameters(schema, values)
    if query:
        url = f"{url}?{urlencode(query)}"

    body = encode_body(schema, values, serializer)
    headers: dict[str, str] = {}
    if schema.streaming:
        headers["Accept"] = "text/event-stream"
        headers["Cache-Control"] = "no-cache"
    if body is not None:
        headers["Content-Type"] = "application/json"

    return Request(method=schema.method, url=url, path=path, query=query, body=body, headers=headers)
