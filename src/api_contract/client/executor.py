"""HTTP execution of contracts over a requests session."""

import logging
from typing import Any, Iterator, Mapping, Protocol

import requests
from pydantic import ValidationError

from api_contract.client.request import Request, build_request
from api_contract.codec.serializer import DEFAULT_SERIALIZER, Serializer
from api_contract.codec.sse import iter_event_data
from api_contract.config import Settings
from api_contract.contract import Contract, endpoint_schema
from api_contract.errors import APIResponseError, ErrorResponse
from api_contract.schema.base import EndpointSchema

logger = logging.getLogger(__name__)


class APIExecutor(Protocol):
    def execute(self, contract: Contract) -> Any: ...

    def stream(self, contract: Contract) -> Iterator[Any]: ...


class HttpExecutor:
    """Sends contract requests and decodes their responses.

    Unset arguments fall back to ``Settings.from_env()``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
        serializer: Serializer = DEFAULT_SERIALIZER,
        settings: Settings | None = None,
    ):
        settings = settings or Settings.from_env()
        self.base_url = base_url or settings.base_url
        self.timeout = timeout if timeout is not None else settings.timeout
        self.serializer = serializer
        self.session = session or requests.Session()
        token = settings.token if token is None else token
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def send(self, request: Request, stream: bool = False) -> requests.Response:
        logger.info("%s %s", request.method.value, request.url)
        return self.session.request(
            request.method.value,
            request.url,
            data=request.body,
            headers=request.headers,
            timeout=self.timeout,
            stream=stream,
        )

    def execute(self, contract: Contract) -> Any:
        """Send ``contract`` and decode the response into the endpoint output."""
        request = contract.build_request(self.base_url, self.serializer)
        return self._decode(endpoint_schema(contract), self.send(request))

    def call(self, schema: EndpointSchema, values: Mapping[str, Any]) -> Any:
        """Like ``execute`` for schemas loaded from a contract document."""
        request = build_request(schema, values, self.base_url, self.serializer)
        return self._decode(schema, self.send(request))

    def stream(self, contract: Contract) -> Iterator[Any]:
        """Send a streaming contract and yield decoded events as they arrive."""
        schema = endpoint_schema(contract)
        request = contract.build_request(self.base_url, self.serializer)
        response = self.send(request, stream=True)
        with response:
            raise_for_status(response)
            for data in iter_event_data(response.iter_lines(decode_unicode=True)):
                yield self.serializer.decode(schema.output, data.encode("utf-8"))

    def _decode(self, schema: EndpointSchema, response: requests.Response) -> Any:
        raise_for_status(response)
        if schema.output is None or not response.content:
            return None
        return self.serializer.decode(schema.output, response.content)


def raise_for_status(response: requests.Response) -> None:
    """Raise ``APIResponseError`` for any non-2xx response."""
    if 200 <= response.status_code < 300:
        return
    try:
        error = ErrorResponse.model_validate_json(response.content)
    except ValidationError:
        error = ErrorResponse(error_code=f"HTTP_{response.status_code}", message=response.reason or "")
    logger.warning("Request failed with %d %s", response.status_code, error.error_code)
    raise APIResponseError(response.status_code, error)
