from datetime import date, datetime, timedelta, timezone
from typing import Annotated

import pytest

from api_contract.codec.params import (
    decode_input,
    decode_value,
    encode_body,
    encode_date,
    encode_date_only,
    encode_value,
    extract_path_parameters,
    extract_query_parameters,
)
from api_contract.codec.path import resolve_path
from api_contract.contract import Contract, endpoint, endpoint_schema
from api_contract.errors import DecodeFailure, MissingBody, MissingParameter
from api_contract.schema.base import Body, HTTPMethod, ParameterSpec, ParamRole, ParamType, PathParam
from sample_contracts import NewUser, Sort, Users


@endpoint(HTTPMethod.GET, path="items/:page")
class ListItems(Contract):
    page: Annotated[int | None, PathParam()] = None
    tag: str | None = None
    archived: bool | None = None


@endpoint(HTTPMethod.PUT, path="notes")
class SaveNote(Contract):
    note: Annotated[NewUser | None, Body()] = None


@endpoint(HTTPMethod.GET, path="/users/:user_id/posts/:post_id/:pinned")
class GetPinnedPost(Contract):
    user_id: Annotated[str, PathParam()]
    post_id: Annotated[int, PathParam()]
    pinned: Annotated[bool, PathParam()]


def _spec(param_type, python_type=None):
    return ParameterSpec(name="x", type=param_type, role=ParamRole.QUERY, python_type=python_type)


class TestEncodeValue:
    def test_date_is_utc_iso(self):
        value = datetime(2024, 5, 1, 14, 30, tzinfo=timezone(timedelta(hours=2)))
        assert encode_date(value) == "2024-05-01T12:30:00Z"

    def test_naive_date_taken_as_utc(self):
        assert encode_date(datetime(2024, 5, 1, 12, 30)) == "2024-05-01T12:30:00Z"

    def test_date_only(self):
        assert encode_date_only(date(2024, 5, 1)) == "2024-05-01"
        assert encode_date_only(datetime(2024, 5, 1, 23, 59)) == "2024-05-01"

    def test_scalars(self):
        assert encode_value(_spec(ParamType.INTEGER), 42) == "42"
        assert encode_value(_spec(ParamType.FLOAT), 1.5) == "1.5"
        assert encode_value(_spec(ParamType.BOOLEAN), True) == "true"
        assert encode_value(_spec(ParamType.BOOLEAN), False) == "false"

    def test_enum_raw_value(self):
        assert encode_value(_spec(ParamType.ENUM, Sort), Sort.DESC) == "desc"


class TestDecodeValue:
    def test_integer(self):
        assert decode_value(_spec(ParamType.INTEGER), "42") == 42

    def test_boolean_is_strict(self):
        assert decode_value(_spec(ParamType.BOOLEAN), "true") is True
        with pytest.raises(ValueError):
            decode_value(_spec(ParamType.BOOLEAN), "yes")

    def test_date_round_trip(self):
        value = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        assert decode_value(_spec(ParamType.DATE), encode_date(value)) == value

    def test_enum(self):
        assert decode_value(_spec(ParamType.ENUM, Sort), "asc") is Sort.ASC
        with pytest.raises(ValueError):
            decode_value(_spec(ParamType.ENUM, Sort), "sideways")

    @pytest.mark.parametrize("text", ["1_000", " 42 ", "4.2", "", "\u0664\u0662"])
    def test_integer_rejects_non_canonical_text(self, text):
        with pytest.raises(ValueError):
            decode_value(_spec(ParamType.INTEGER), text)

    @pytest.mark.parametrize("text", ["nan", "inf", "1_000.5", " 1.5"])
    def test_float_rejects_non_canonical_text(self, text):
        with pytest.raises(ValueError):
            decode_value(_spec(ParamType.FLOAT), text)

    def test_float_accepts_signed_and_exponent(self):
        assert decode_value(_spec(ParamType.FLOAT), "-1.5e3") == -1500.0
        assert decode_value(_spec(ParamType.INTEGER), "-7") == -7

    def test_json_is_not_text(self):
        with pytest.raises(ValueError):
            decode_value(_spec(ParamType.JSON), "{}")


class TestClientExtraction:
    def test_path_parameters(self):
        schema = endpoint_schema(Users.GetPost)
        assert extract_path_parameters(schema, {"user_id": "u1", "post_id": 7}) == {"user_id": "u1", "post_id": "7"}

    def test_missing_required_path_parameter(self):
        with pytest.raises(MissingParameter) as exc:
            extract_path_parameters(endpoint_schema(Users.GetUser), {})
        assert exc.value.name == "user_id"
        assert exc.value.location == "path"

    def test_query_uses_external_names_and_defaults(self):
        schema = endpoint_schema(Users.ListUsers)
        assert extract_query_parameters(schema, {"limit": 5}) == {"limit": "5", "order": "asc"}

    def test_optional_query_omitted(self):
        schema = endpoint_schema(Users.ListUsers)
        query = extract_query_parameters(schema, {"limit": None, "sort": Sort.DESC, "since": None})
        assert query == {"order": "desc"}

    def test_empty_query_is_none(self):
        assert extract_query_parameters(endpoint_schema(ListItems), {"page": 2}) is None

    def test_body_encoded(self):
        schema = endpoint_schema(Users.CreateUser)
        assert encode_body(schema, {"payload": NewUser(name="Bo")}) == b'{"name":"Bo"}'

    def test_missing_required_body(self):
        with pytest.raises(MissingBody):
            encode_body(endpoint_schema(Users.CreateUser), {})

    def test_optional_body_omitted(self):
        assert encode_body(endpoint_schema(SaveNote), {"note": None}) is None

    def test_no_body_parameter(self):
        assert encode_body(endpoint_schema(Users.GetUser), {"user_id": "u1"}) is None


class TestDecodeInput:
    def test_path_round_trip(self):
        schema = endpoint_schema(GetPinnedPost)
        values = {"user_id": "u1", "post_id": 2, "pinned": True}
        encoded = extract_path_parameters(schema, values)
        assert resolve_path(schema.path_template, encoded) == "/users/u1/posts/2/true"
        assert decode_input(schema, encoded, {}, None) == values

    def test_round_trip_through_wire(self):
        schema = endpoint_schema(Users.ListUsers)
        since = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        query = extract_query_parameters(schema, {"limit": 5, "sort": Sort.DESC, "since": since})
        assert decode_input(schema, {}, query, None) == {"limit": 5, "sort": Sort.DESC, "since": since}

    def test_required_path_missing(self):
        with pytest.raises(MissingParameter, match="Missing path parameter: user_id"):
            decode_input(endpoint_schema(Users.GetUser), {}, {}, None)

    def test_required_path_unparsable(self):
        with pytest.raises(MissingParameter) as exc:
            decode_input(endpoint_schema(Users.GetPost), {"user_id": "u1", "post_id": "abc"}, {}, None)
        assert exc.value.details == {"parameter": "post_id"}

    def test_optional_path_falls_back_to_none(self):
        schema = endpoint_schema(ListItems)
        assert decode_input(schema, {}, {}, None)["page"] is None
        assert decode_input(schema, {"page": "x"}, {}, None)["page"] is None

    def test_optional_query_absent_or_unparsable(self):
        values = decode_input(endpoint_schema(ListItems), {"page": "1"}, {"archived": "maybe"}, None)
        assert values == {"page": 1, "tag": None, "archived": None}

    def test_query_default_on_absent_or_unparsable(self):
        schema = endpoint_schema(Users.ListUsers)
        assert decode_input(schema, {}, {}, None)["sort"] is Sort.ASC
        assert decode_input(schema, {}, {"order": "sideways"}, None)["sort"] is Sort.ASC

    def test_query_read_by_external_name(self):
        values = decode_input(endpoint_schema(Users.ListUsers), {}, {"sort": "asc", "order": "desc"}, None)
        assert values["sort"] is Sort.DESC

    def test_body_decoded_to_type(self):
        values = decode_input(endpoint_schema(Users.CreateUser), {}, {}, b'{"name": "Bo"}')
        assert values == {"payload": NewUser(name="Bo")}

    def test_missing_body(self):
        with pytest.raises(MissingBody):
            decode_input(endpoint_schema(Users.CreateUser), {}, {}, None)

    def test_malformed_body(self):
        with pytest.raises(DecodeFailure):
            decode_input(endpoint_schema(Users.CreateUser), {}, {}, b"{bad")

    def test_optional_body_absent(self):
        assert decode_input(endpoint_schema(SaveNote), {}, {}, None) == {"note": None}
