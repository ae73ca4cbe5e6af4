"""CLI entry point for api-contract."""

import json
from pathlib import Path

import click

from api_contract.client.request import build_request
from api_contract.codec.params import decode_value
from api_contract.config import Settings, configure_logging
from api_contract.errors import ContractError
from api_contract.schema.base import EndpointSchema, ParamRole
from api_contract.schema.loader import ContractDocument, load_contracts


def _load(path: Path) -> ContractDocument:
    try:
        return load_contracts(path)
    except ContractError as e:
        raise click.ClickException(f"{path}: {e}") from e


def _describe_param(schema: EndpointSchema) -> list[str]:
    lines = []
    for p in schema.parameters:
        type_name = p.type.value + ("?" if p.optional else "")
        wire = f" as '{p.external_name}'" if p.external_name != p.name else ""
        default = f" = {p.default!r}" if p.has_default else ""
        lines.append(f"      {p.role.value:<5} {p.name}: {type_name}{wire}{default}")
    return lines


def _parse_values(schema: EndpointSchema, params: tuple[str, ...], body: str | None) -> dict:
    specs = {p.name: p for p in schema.parameters}
    values = {}
    for item in params:
        name, sep, text = item.partition("=")
        if not sep:
            raise click.BadParameter(f"Expected name=value, got '{item}'", param_hint="-p")
        spec = specs.get(name)
        if spec is None or spec.role is ParamRole.BODY:
            raise click.BadParameter(f"'{schema.name}' has no path or query parameter '{name}'", param_hint="-p")
        try:
            values[name] = decode_value(spec, text)
        except ValueError as e:
            raise click.BadParameter(f"{name}: {e}", param_hint="-p") from e
    if body is not None:
        spec = schema.body_parameter
        if spec is None:
            raise click.BadParameter(f"'{schema.name}' does not take a body", param_hint="--body")
        try:
            values[spec.name] = json.loads(body)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"Invalid JSON: {e}", param_hint="--body") from e
    return values


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Contract — inspect contract documents and build requests from them."""
    settings = Settings.from_env()
    configure_logging("DEBUG" if verbose else settings.log_level)


@main.command()
@click.argument("contracts", type=click.Path(exists=True, path_type=Path))
def check(contracts: Path):
    """Validate a YAML contract document."""
    doc = _load(contracts)
    count = len(doc.all_endpoints())
    click.echo(f"{contracts}: {len(doc.groups)} groups, {count} endpoints OK")


@main.command()
@click.argument("contracts", type=click.Path(exists=True, path_type=Path))
@click.option("--params/--no-params", default=True, help="List each endpoint's parameters.")
def show(contracts: Path, params: bool):
    """List every endpoint with its method, path template and auth requirement."""
    doc = _load(contracts)
    for schema in doc.all_endpoints():
        stream = " (stream)" if schema.streaming else ""
        click.echo(
            f"{schema.method.value:<7} {schema.path_template or '/':<40} "
            f"{schema.qualified_name} [auth: {schema.auth.value}]{stream}"
        )
        if params:
            for line in _describe_param(schema):
                click.echo(line)


@main.command()
@click.argument("contracts", type=click.Path(exists=True, path_type=Path))
@click.argument("endpoint")
@click.option("-p", "--param", "params", multiple=True, help="Parameter value as name=value.")
@click.option("--body", default=None, help="JSON request body.")
@click.option("--base-url", default=None, help="Base URL (defaults to API_BASE_URL).")
def request(contracts: Path, endpoint: str, params: tuple[str, ...], body: str | None, base_url: str | None):
    """Build and print the request for ENDPOINT (Group.Endpoint or a unique name)."""
    doc = _load(contracts)
    try:
        schema = doc.find(endpoint)
    except KeyError as e:
        raise click.ClickException(e.args[0]) from e

    values = _parse_values(schema, params, body)
    try:
        built = build_request(schema, values, base_url or Settings.from_env().base_url)
    except ContractError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"{built.method.value} {built.url}")
    for name, value in built.headers.items():
        click.echo(f"{name}: {value}")
    if built.body is not None:
        click.echo("")
        click.echo(built.body.decode("utf-8"))
