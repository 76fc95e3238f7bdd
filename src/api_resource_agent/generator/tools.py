"""Tool definitions for calling resources through a tool-calling protocol.

One tool per capability of each resource (`create-book`, `list-book`, ...)
plus a URI template per resource. Input schemas are plain JSON Schema.
"""

import copy
from typing import Any

from pydantic import BaseModel

from api_resource_agent.generator.openapi import generate_pattern_strings
from api_resource_agent.parser.base import Api, Resource
from api_resource_agent.parser.patterns import is_placeholder, placeholder_name


class ToolDefinition(BaseModel):
    name: str
    description: str
    input_schema: dict[str, Any]


class ResourceTemplate(BaseModel):
    uri_template: str
    name: str
    mime_type: str = "text/plain"


def build_tools(api: Api) -> list[ToolDefinition]:
    """Tool definitions for every capability of every resource in `api`."""
    tools = []
    for name, resource in api.resources.items():
        if resource.create_method:
            tools.append(build_create_tool(resource, name))
        if resource.get_method:
            tools.append(build_get_tool(resource, name))
        if resource.list_method:
            tools.append(build_list_tool(resource, name))
        if resource.update_method:
            tools.append(build_update_tool(resource, name))
        if resource.delete_method:
            tools.append(build_delete_tool(resource, name))
    return tools


def build_resource_templates(api: Api) -> list[ResourceTemplate]:
    """One URI template per resource.

    Resources built without pattern elements get their pattern from the
    first-parent chain.
    """
    templates = []
    for name, resource in api.resources.items():
        pattern = resource.pattern or generate_pattern_strings(resource)[0]
        templates.append(ResourceTemplate(uri_template=f"{api.server_url}/{pattern}", name=name))
    return templates


def parent_params(resource: Resource) -> list[str]:
    """Placeholder names in the pattern of `resource`, excluding its own."""
    return [placeholder_name(elem) for elem in resource.pattern_elems[:-1] if is_placeholder(elem)]


def build_create_tool(resource: Resource, name: str) -> ToolDefinition:
    properties = copy.deepcopy(resource.body_schema.get("properties") or {})
    required: list[str] = []

    for param in parent_params(resource):
        properties[param] = {"type": "string"}
        required.append(param)

    if resource.create_method and resource.create_method.supports_user_settable_create:
        required.append("id")
        if "id" in properties:
            properties["id"] = {**properties["id"], "readOnly": False}

    return ToolDefinition(
        name=f"create-{name}",
        description=f"Create a {name}",
        input_schema={
            "type": "object",
            "properties": properties,
            "required": required,
        },
    )


def build_get_tool(resource: Resource, name: str) -> ToolDefinition:
    return ToolDefinition(
        name=f"get-{name}",
        description=f"Get details of a specific {name}",
        input_schema=_path_only_schema(),
    )


def build_delete_tool(resource: Resource, name: str) -> ToolDefinition:
    return ToolDefinition(
        name=f"delete-{name}",
        description=f"Delete a {name}",
        input_schema=_path_only_schema(),
    )


def build_update_tool(resource: Resource, name: str) -> ToolDefinition:
    properties = copy.deepcopy(resource.body_schema.get("properties") or {})
    properties.setdefault("path", {"type": "string"})
    return ToolDefinition(
        name=f"update-{name}",
        description=f"Update a {name}",
        input_schema={"type": "object", "properties": properties, "required": ["path"]},
    )


def build_list_tool(resource: Resource, name: str) -> ToolDefinition:
    properties = {
        param: {
            "type": "string",
            "description": f"The {param} to filter the list of {name} resources",
        }
        for param in parent_params(resource)
    }
    return ToolDefinition(
        name=f"list-{name}",
        description=f"List all {name} resources",
        input_schema={"type": "object", "properties": properties},
    )


def _path_only_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {"path": {"type": "string"}}, "required": ["path"]}
