"""Error types shared by the schema, codec, client and server layers.

Build-time errors (``DeclarationError``) are raised where a contract is
declared. Request-time errors derive from ``HTTPError`` so a server can
render any of them as an ``ErrorResponse`` with the right status code.
"""

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """JSON error body: ``{errorCode, message, details?}``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    error_code: str = Field(alias="errorCode")
    message: str
    details: dict[str, str] | None = None

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


class ContractError(Exception):
    """Base class for every error raised by api_contract."""


# -- declaration errors -------------------------------------------------------


class DeclarationError(ContractError):
    """A contract declaration could not be turned into a schema."""


class InvalidDeclarationShape(DeclarationError):
    """A decorator was applied to the wrong kind of object."""


class InvalidArguments(DeclarationError):
    """A declaration has missing or conflicting arguments."""


class HandlerContractError(DeclarationError):
    """A group handler does not provide every operation its group requires."""

    def __init__(self, group: str, missing: list[str]):
        self.group = group
        self.missing = missing
        super().__init__(f"Handler for group '{group}' is missing operations: {', '.join(missing)}")


class InvalidURL(ContractError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Invalid URL path: {path}")


# -- HTTP-facing errors -------------------------------------------------------


class HTTPError(ContractError):
    """An error with an HTTP status code and a stable error code."""

    status_code = 500
    error_code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details: dict[str, str] | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_error_response(self, details: dict[str, str] | None = None) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code,
            message=self.message,
            details=details if details is not None else self.details,
        )


class BadRequest(HTTPError):
    status_code = 400
    error_code = "BAD_REQUEST"
    default_message = "Bad request"


class Unauthorized(HTTPError):
    status_code = 401
    error_code = "UNAUTHORIZED"
    default_message = "Authentication required"


class Forbidden(HTTPError):
    status_code = 403
    error_code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFound(HTTPError):
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(HTTPError):
    status_code = 409
    error_code = "CONFLICT"
    default_message = "Conflict"


class InternalError(HTTPError):
    pass


class UnexpectedError(HTTPError):
    """Fallback for endpoints that declare no error type of their own."""

    error_code = "UNEXPECTED_ERROR"
    default_message = "Unexpected error"


# -- request decoding ---------------------------------------------------------


class RequestDecodeError(BadRequest):
    """Raw request data could not be turned into an endpoint input."""


class MissingParameter(RequestDecodeError):
    error_code = "MISSING_PARAMETER"

    def __init__(self, name: str, location: str):
        self.name = name
        self.location = location
        super().__init__(f"Missing {location} parameter: {name}", details={"parameter": name})


class MissingBody(RequestDecodeError):
    error_code = "MISSING_BODY"
    default_message = "Missing request body"


class DecodeFailure(RequestDecodeError):
    error_code = "DECODE_FAILURE"
    default_message = "Malformed payload"


# -- authentication -----------------------------------------------------------


class AuthenticationError(Unauthorized):
    pass


class InvalidToken(AuthenticationError):
    error_code = "INVALID_TOKEN"

    def __init__(self, reason: str):
        super().__init__(f"Invalid token: {reason}")


class MissingToken(AuthenticationError):
    error_code = "MISSING_TOKEN"
    default_message = "Authentication token is required"


class AuthenticationFailed(AuthenticationError):
    error_code = "AUTH_FAILED"

    def __init__(self, reason: str):
        super().__init__(f"Authentication failed: {reason}")


# -- client side --------------------------------------------------------------


class APIResponseError(ContractError):
    """A server answered with a non-2xx status."""

    def __init__(self, status_code: int, error: ErrorResponse):
        self.status_code = status_code
        self.error = error
        super().__init__(f"{status_code} {error.error_code}: {error.message}")
