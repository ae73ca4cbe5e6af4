"""Path templates: joining a group base path with an endpoint sub path and
substituting ``:name`` placeholders."""

import re
from typing import Mapping

TOKEN_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


def path_template(base_path: str, sub_path: str) -> str:
    """Join a group base path and an endpoint sub path.

    A sub path that already starts with ``/`` supplies its own separator.
    """
    if not sub_path:
        return base_path
    if not base_path:
        return sub_path
    if sub_path.startswith("/"):
        return base_path + sub_path
    return f"{base_path}/{sub_path}"


def resolve_path(template: str, values: Mapping[str, str]) -> str:
    """Replace every ``:key`` occurrence in ``template`` with its value.

    Longer keys go first so ``:id`` never clobbers the prefix of ``:idx``.
    Substitution is a single pass; substituted values are never rescanned.
    """
    if not values:
        return template
    keys = "|".join(re.escape(key) for key in sorted(values, key=len, reverse=True))
    return re.sub(f":({keys})", lambda m: values[m.group(1)], template)


def template_tokens(template: str) -> list[str]:
    """Placeholder names in ``template``, in order of appearance."""
    return TOKEN_RE.findall(template)


def resolve_endpoint_path(schema, values: Mapping[str, str]) -> str:
    """Resolve an endpoint's path, honouring its declared resolver override."""
    if schema.path_resolver is not None:
        return schema.path_resolver(values)
    return resolve_path(schema.path_template, values)
