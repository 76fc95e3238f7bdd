"""OpenAPI generator: renders a resource graph as an OpenAPI 3.1 document.

Every resource gets list/create/get/update/delete operations for the
capabilities it has, plus its custom methods, under every path its parent
chains allow. Each resource schema is annotated with `x-aep-resource` so
the graph can be recovered from the output.
"""

import copy
from typing import Any

from pydantic import BaseModel

from api_resource_agent.cases import kebab_to_pascal
from api_resource_agent.parser.base import (
    RESOURCE_ANNOTATION,
    RESOURCE_REFERENCE,
    Api,
    Resource,
    ResourceAnnotation,
    Schema,
)
from api_resource_agent.parser.patterns import placeholder_name

OPENAPI_VERSION = "3.1.0"
DOCUMENT_VERSION = "version not set"
JSON = "application/json"
MERGE_PATCH_JSON = "application/merge-patch+json"


class PathWithParams(BaseModel):
    """A parent path prefix and the path parameters it introduces."""

    pattern: str  # "/publishers/{publisher}", or "" for top-level resources
    params: list[dict[str, Any]] = []


def collection_name(resource: Resource) -> str:
    """Plural of `resource` relative to its first parent.

    "book-editions" under "book" is "editions".
    """
    name = resource.plural
    if resource.parents:
        parent = resource.parents[0].singular
        if name.startswith(parent + "-"):
            name = name[len(parent) + 1:]
    return name


def generate_pattern_strings(resource: Resource) -> list[str]:
    """Item pattern of `resource` following first parents only, without leading slash."""
    pattern = f"{collection_name(resource)}/{{{resource.singular}}}"
    if resource.parents:
        pattern = f"{generate_pattern_strings(resource.parents[0])[0]}/{pattern}"
    return [pattern]


def generate_parent_patterns_with_params(resource: Resource) -> tuple[str, list[PathWithParams]]:
    """Return the collection segment of `resource` and every parent path it can live under.

    A resource with pattern elements has exactly one parent path, taken from
    those elements. Otherwise each parent contributes
    `/<parent collection>/{<parent>}`, prefixed by each of that parent's own
    parent paths in turn.
    """
    elems = resource.pattern_elems
    if elems:
        params = [_path_param(placeholder_name(elems[i + 1])) for i in range(0, len(elems) - 2, 2)]
        pattern = "/".join(elems[:-2])
        return f"/{elems[-2]}", [PathWithParams(pattern=f"/{pattern}" if pattern else "", params=params)]

    variants: list[PathWithParams] = []
    for parent in resource.parents:
        base_pattern = f"/{collection_name(parent)}/{{{parent.singular}}}"
        base_param = _path_param(parent.singular, reference=parent.singular)

        if not parent.parents:
            variants.append(PathWithParams(pattern=base_pattern, params=[base_param]))
            continue

        _, parent_variants = generate_parent_patterns_with_params(parent)
        for parent_variant in parent_variants:
            variants.append(
                PathWithParams(
                    pattern=f"{parent_variant.pattern}{base_pattern}",
                    params=parent_variant.params + [base_param],
                )
            )

    return f"/{collection_name(resource)}", variants


def generate_openapi(api: Api) -> dict[str, Any]:
    """Render `api` as an OpenAPI 3.1 document.

    Writes the `x-aep-resource` annotation onto each resource's schema.
    """
    paths: dict[str, dict[str, Any]] = {}
    schemas: dict[str, Schema] = {}

    for resource in api.resources.values():
        collection, variants = generate_parent_patterns_with_params(resource)
        if not variants:
            variants = [PathWithParams(pattern="")]

        patterns = []
        for variant in variants:
            item_path = f"{variant.pattern}{collection}/{{{resource.singular}}}"
            patterns.append(item_path[1:])
            _add_operations(paths, resource, f"{variant.pattern}{collection}", item_path, variant.params)

        resource.body_schema[RESOURCE_ANNOTATION] = ResourceAnnotation(
            singular=resource.singular,
            plural=resource.plural,
            patterns=patterns,
            parents=[parent.singular for parent in resource.parents],
        ).model_dump()
        schemas[resource.singular] = resource.body_schema

    schemas.update(api.schemas)

    info: dict[str, Any] = {
        "title": api.name,
        "version": DOCUMENT_VERSION,
        "description": f"An API for {api.name}",
    }
    if api.contact is not None:
        info["contact"] = {
            "name": api.contact.name,
            "email": api.contact.email,
            "url": api.contact.url,
        }

    return {
        "openapi": OPENAPI_VERSION,
        "servers": [{"url": api.server_url}],
        "info": info,
        "paths": paths,
        "components": {"schemas": schemas},
    }


def _add_operations(
    paths: dict[str, dict[str, Any]],
    resource: Resource,
    collection_path: str,
    item_path: str,
    parent_params: list[dict[str, Any]],
) -> None:
    singular = resource.singular
    pascal = kebab_to_pascal(singular)
    schema_ref = f"#/components/schemas/{singular}"

    def params(*extra: dict[str, Any]) -> list[dict[str, Any]]:
        return copy.deepcopy(parent_params) + list(extra)

    def item_params(*extra: dict[str, Any]) -> list[dict[str, Any]]:
        return params(_path_param(singular), *extra)

    if resource.list_method:
        list_method = resource.list_method
        results: dict[str, Schema] = {
            "results": {"type": "array", "items": {"$ref": schema_ref}},
            "nextPageToken": {"type": "string"},
        }
        if list_method.has_unreachable_resources:
            results["unreachable"] = {"type": "array", "items": {"type": "string"}}

        query = [_query_param("maxPageSize", "integer"), _query_param("pageToken", "string")]
        if list_method.supports_skip:
            query.append(_query_param("skip", "integer"))
        if list_method.supports_filter:
            query.append(_query_param("filter", "string"))

        paths.setdefault(collection_path, {})["get"] = {
            "operationId": f"List{pascal}",
            "description": f"List method for {singular}",
            "parameters": params(*query),
            "responses": {"200": _response({"type": "object", "properties": results})},
        }

    if resource.create_method:
        query = []
        if resource.create_method.supports_user_settable_create:
            query.append(_query_param("id", "string"))

        paths.setdefault(collection_path, {})["post"] = {
            "operationId": f"Create{pascal}",
            "description": f"Create method for {singular}",
            "parameters": params(*query),
            "requestBody": _request_body({"$ref": schema_ref}),
            "responses": {"200": _response({"$ref": schema_ref})},
        }

    if resource.get_method:
        paths.setdefault(item_path, {})["get"] = {
            "operationId": f"Get{pascal}",
            "description": f"Get method for {singular}",
            "parameters": item_params(),
            "responses": {"200": _response({"$ref": schema_ref})},
        }

    if resource.update_method:
        paths.setdefault(item_path, {})["patch"] = {
            "operationId": f"Update{pascal}",
            "description": f"Update method for {singular}",
            "parameters": item_params(),
            "requestBody": _request_body({"$ref": schema_ref}, MERGE_PATCH_JSON),
            "responses": {"200": _response({"$ref": schema_ref}, MERGE_PATCH_JSON)},
        }

    if resource.delete_method:
        # deleting a resource with children may cascade
        query = [_query_param("force", "boolean")] if resource.children else []
        paths.setdefault(item_path, {})["delete"] = {
            "operationId": f"Delete{pascal}",
            "description": f"Delete method for {singular}",
            "parameters": item_params(*query),
            "responses": {"204": _response({})},
        }

    for custom in resource.custom_methods:
        operation: dict[str, Any] = {
            "operationId": f":{kebab_to_pascal(custom.name)}{pascal}",
            "description": f"Custom method {custom.name} for {singular}",
            "parameters": item_params(),
            "responses": {"200": _response(copy.deepcopy(custom.response or {}))},
        }
        if custom.method.upper() == "POST":
            operation["requestBody"] = _request_body(copy.deepcopy(custom.request or {}))
        paths.setdefault(f"{item_path}:{custom.name}", {})[custom.method.lower()] = operation


def _path_param(name: str, reference: str | None = None) -> dict[str, Any]:
    param: dict[str, Any] = {
        "in": "path",
        "name": name,
        "required": True,
        "schema": {"type": "string"},
    }
    if reference is not None:
        param[RESOURCE_REFERENCE] = {"resource": reference}
    return param


def _query_param(name: str, type_: str) -> dict[str, Any]:
    return {"in": "query", "name": name, "required": False, "schema": {"type": type_}}


def _request_body(schema: Schema, content_type: str = JSON) -> dict[str, Any]:
    return {"required": True, "content": {content_type: {"schema": schema}}}


def _response(schema: Schema, content_type: str = JSON) -> dict[str, Any]:
    return {"description": "Successful response", "content": {content_type: {"schema": schema}}}
