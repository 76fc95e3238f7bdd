"""CLI entry point for api-resource-agent."""

import json
from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from api_resource_agent.client import ResourceClient
from api_resource_agent.errors import ClientError, ResourceModelError
from api_resource_agent.generator.arguments import validate_body
from api_resource_agent.generator.openapi import generate_openapi
from api_resource_agent.generator.tools import build_resource_templates, build_tools
from api_resource_agent.log import configure_logging
from api_resource_agent.parser.base import Api
from api_resource_agent.parser.detect import load_document
from api_resource_agent.parser.swagger import parse_openapi


class _NoAliasDumper(yaml.SafeDumper):
    def ignore_aliases(self, data):
        return True


def _load_api(doc: str, prefix: str, server_url: str) -> Api:
    """Load a document and build its resource graph."""
    try:
        return parse_openapi(load_document(doc), server_url=server_url, path_prefix=prefix)
    except (ResourceModelError, ClientError) as e:
        raise click.ClickException(str(e)) from e


def _capabilities(resource) -> list[str]:
    names = []
    for field, label in (
        ("create_method", "create"),
        ("get_method", "get"),
        ("list_method", "list"),
        ("update_method", "update"),
        ("delete_method", "delete"),
    ):
        if getattr(resource, field) is not None:
            names.append(label)
    names.extend(f":{custom.name}" for custom in resource.custom_methods)
    return names


doc_argument = click.argument("doc")
prefix_option = click.option(
    "--prefix", default="", envvar="API_RESOURCE_PREFIX", show_default=True,
    help="Path prefix stripped from every path and appended to the server URL.",
)
server_url_option = click.option(
    "--server-url", default="", envvar="API_RESOURCE_SERVER_URL",
    help="Server URL to use instead of the document's first server.",
)


@click.group()
@click.option(
    "--log-level", default="WARNING", envvar="API_RESOURCE_LOG_LEVEL",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level for messages written to stderr.",
)
def main(log_level: str):
    """API Resource Agent: recover resources from OpenAPI documents and render them back."""
    configure_logging(log_level)


@main.command()
@doc_argument
@prefix_option
@server_url_option
def resources(doc: str, prefix: str, server_url: str):
    """List the resources found in an OpenAPI document (path or URL)."""
    api = _load_api(doc, prefix, server_url)
    click.echo(f"{api.name} ({api.server_url})")
    for singular, resource in api.resources.items():
        parents = ", ".join(parent.singular for parent in resource.parents)
        line = f"  {singular}  /{resource.pattern}  [{', '.join(_capabilities(resource))}]"
        if parents:
            line += f"  parents: {parents}"
        click.echo(line)
    click.echo(f"Found {len(api.resources)} resources, {len(api.schemas)} other schemas.")


@main.command()
@doc_argument
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file (.yaml or .json).")
@prefix_option
@server_url_option
def convert(doc: str, output: Path, prefix: str, server_url: str):
    """Regenerate a resource-oriented OpenAPI 3.1 document."""
    api = _load_api(doc, prefix, server_url)
    document = generate_openapi(api)

    if output.suffix == ".json":
        text = json.dumps(document, indent=2)
    else:
        text = yaml.dump(document, Dumper=_NoAliasDumper, sort_keys=False, allow_unicode=True)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Wrote {len(document['paths'])} paths to {output}")


@main.command()
@doc_argument
@prefix_option
@server_url_option
def tools(doc: str, prefix: str, server_url: str):
    """Print tool definitions and resource templates as JSON."""
    api = _load_api(doc, prefix, server_url)
    payload = {
        "tools": [tool.model_dump() for tool in build_tools(api)],
        "resources": [template.model_dump() for template in build_resource_templates(api)],
    }
    click.echo(json.dumps(payload, indent=2))


def _parse_headers(ctx, param, value: str) -> dict[str, str]:
    if not value:
        return {}
    try:
        headers = json.loads(value)
    except ValueError as e:
        raise click.BadParameter(f"not valid JSON: {e}") from e
    if not isinstance(headers, dict):
        raise click.BadParameter("must be a JSON object")
    return {str(key): str(val) for key, val in headers.items()}


def _parse_params(ctx, param, values: tuple[str, ...]) -> dict[str, str]:
    params = {}
    for value in values:
        name, sep, val = value.partition("=")
        if not sep:
            raise click.BadParameter(f"expected NAME=VALUE, got {value!r}")
        params[name] = val
    return params


headers_option = click.option(
    "--headers", default="", envvar="API_RESOURCE_HEADERS", callback=_parse_headers,
    help='JSON object of headers sent with every request, e.g. \'{"Authorization": "Bearer x"}\'.',
)


@main.command(name="list")
@doc_argument
@click.argument("resource")
@click.option("-p", "--param", "params", multiple=True, callback=_parse_params,
              help="Parent parameter as NAME=VALUE, repeatable.")
@prefix_option
@server_url_option
@headers_option
def list_resources(doc: str, resource: str, params: dict[str, str], prefix: str,
                   server_url: str, headers: dict[str, str]):
    """List instances of RESOURCE (a singular name) from the live API."""
    api = _load_api(doc, prefix, server_url)
    client = ResourceClient(api.server_url, headers=headers)
    try:
        items = client.list(api.get_resource(resource), params)
    except (ResourceModelError, ClientError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps(items, indent=2))


@main.command()
@doc_argument
@click.argument("resource")
@click.option("--body", default="{}", help="JSON object with the fields of the new resource.")
@click.option("-p", "--param", "params", multiple=True, callback=_parse_params,
              help="Parent parameter as NAME=VALUE, repeatable.")
@prefix_option
@server_url_option
@headers_option
def create(doc: str, resource: str, body: str, params: dict[str, str], prefix: str,
           server_url: str, headers: dict[str, str]):
    """Create an instance of RESOURCE (a singular name) on the live API."""
    api = _load_api(doc, prefix, server_url)
    try:
        target = api.get_resource(resource)
    except ResourceModelError as e:
        raise click.ClickException(str(e)) from e
    try:
        fields = validate_body(target, json.loads(body))
    except (ValueError, ValidationError) as e:
        raise click.BadParameter(str(e), param_hint="'--body'") from e

    client = ResourceClient(api.server_url, headers=headers)
    try:
        created = client.create(target, fields, params)
    except ClientError as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps(created, indent=2))


@main.command()
@doc_argument
@click.argument("path")
@prefix_option
@server_url_option
@headers_option
def get(doc: str, path: str, prefix: str, server_url: str, headers: dict[str, str]):
    """Fetch a single resource by its PATH (publishers/p1/books/b1) or full URL."""
    api = _load_api(doc, prefix, server_url)
    client = ResourceClient(api.server_url, headers=headers)
    try:
        if path.startswith(("http://", "https://")):
            item = client.get_with_full_url(path)
        else:
            item = client.get(path)
    except ClientError as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps(item, indent=2))
