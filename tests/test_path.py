import pytest

from api_contract.codec.path import path_template, resolve_endpoint_path, resolve_path, template_tokens
from api_contract.schema.base import EndpointDescriptor, EndpointSchema, GroupSchema, HTTPMethod


class TestPathTemplate:
    def test_joins_with_separator(self):
        assert path_template("/v1/users", ":id") == "/v1/users/:id"

    def test_leading_slash_sub_path(self):
        assert path_template("/v1/users", "/:id/posts") == "/v1/users/:id/posts"

    def test_empty_sub_path_is_base(self):
        assert path_template("/v1/users", "") == "/v1/users"

    def test_empty_base_is_sub_path(self):
        assert path_template("", "/health") == "/health"

    def test_both_empty(self):
        assert path_template("", "") == ""


class TestResolvePath:
    def test_round_trip(self):
        template = "/users/:userId/posts/:postId"
        assert resolve_path(template, {"userId": "42", "postId": "7"}) == "/users/42/posts/7"

    def test_idempotent_once_resolved(self):
        resolved = resolve_path("/users/:userId", {"userId": "42"})
        assert resolve_path(resolved, {"userId": "42"}) == resolved

    def test_prefix_keys_do_not_clobber(self):
        assert resolve_path("/items/:id/:idx", {"id": "1", "idx": "2"}) == "/items/1/2"

    def test_values_are_not_rescanned(self):
        assert resolve_path("/a/:name/:id", {"name": ":id", "id": "5"}) == "/a/:id/5"

    def test_unknown_placeholders_are_left(self):
        assert resolve_path("/a/:x/:y", {"x": "1"}) == "/a/1/:y"

    def test_no_values(self):
        assert resolve_path("/static", {}) == "/static"


class TestTemplateTokens:
    def test_tokens_in_order(self):
        assert template_tokens("/users/:user_id/posts/:post_id") == ["user_id", "post_id"]

    def test_no_tokens(self):
        assert template_tokens("/health") == []


class TestEndpointPaths:
    def test_grouped_template(self):
        group = GroupSchema(name="Users", base_path="/v1/users")
        schema = EndpointSchema(name="GetUser", method=HTTPMethod.GET, sub_path=":id", group=group)
        assert schema.path_template == "/v1/users/:id"

    def test_ungrouped_template(self):
        schema = EndpointSchema(name="Health", method=HTTPMethod.GET, sub_path="/health")
        assert schema.path_template == "/health"

    def test_resolver_override(self):
        schema = EndpointSchema(
            name="Legacy",
            method=HTTPMethod.GET,
            sub_path="legacy",
            path_resolver=lambda values: f"/legacy/{values['id']}.json",
        )
        assert resolve_endpoint_path(schema, {"id": "3"}) == "/legacy/3.json"

    @pytest.mark.parametrize("sub_path,expected", [
        ("", ""),
        (":id", "/:id"),
        ("/health", "/health"),
    ])
    def test_descriptor_full_path(self, sub_path, expected):
        descriptor = EndpointDescriptor(name="X", method=HTTPMethod.GET, sub_path=sub_path)
        assert descriptor.full_path == expected
