import json

import pytest

from api_contract.errors import (
    AuthenticationFailed,
    BadRequest,
    Conflict,
    ErrorResponse,
    Forbidden,
    HTTPError,
    InternalError,
    InvalidToken,
    MissingBody,
    MissingParameter,
    MissingToken,
    NotFound,
    Unauthorized,
    UnexpectedError,
)


class TestHTTPErrors:
    @pytest.mark.parametrize("error,status,code", [
        (BadRequest(), 400, "BAD_REQUEST"),
        (Unauthorized(), 401, "UNAUTHORIZED"),
        (Forbidden(), 403, "FORBIDDEN"),
        (NotFound(), 404, "NOT_FOUND"),
        (Conflict(), 409, "CONFLICT"),
        (InternalError(), 500, "INTERNAL_ERROR"),
        (UnexpectedError(), 500, "UNEXPECTED_ERROR"),
        (MissingParameter("id", "path"), 400, "MISSING_PARAMETER"),
        (MissingBody(), 400, "MISSING_BODY"),
        (InvalidToken("expired"), 401, "INVALID_TOKEN"),
        (MissingToken(), 401, "MISSING_TOKEN"),
        (AuthenticationFailed("nope"), 401, "AUTH_FAILED"),
    ])
    def test_status_and_code(self, error, status, code):
        assert isinstance(error, HTTPError)
        assert error.status_code == status
        assert error.error_code == code

    def test_default_messages(self):
        assert Unauthorized().message == "Authentication required"
        assert NotFound("No user u9").message == "No user u9"

    def test_authentication_errors_are_unauthorized(self):
        assert isinstance(InvalidToken("expired"), Unauthorized)


class TestErrorResponse:
    def test_wire_shape(self):
        body = json.loads(MissingParameter("id", "path").to_error_response().to_json())
        assert body == {
            "errorCode": "MISSING_PARAMETER",
            "message": "Missing path parameter: id",
            "details": {"parameter": "id"},
        }

    def test_details_omitted_when_empty(self):
        body = json.loads(Conflict("Already exists").to_error_response().to_json())
        assert body == {"errorCode": "CONFLICT", "message": "Already exists"}

    def test_details_override(self):
        response = BadRequest().to_error_response(details={"field": "name"})
        assert response.details == {"field": "name"}

    def test_parse_by_alias(self):
        response = ErrorResponse.model_validate({"errorCode": "NOT_FOUND", "message": "gone"})
        assert response.error_code == "NOT_FOUND"
        assert response.details is None
