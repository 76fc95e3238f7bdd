"""Dereference `$ref` pointers against a document's schema container."""

from typing import Any

from api_resource_agent.errors import SchemaCycle, SchemaNotFound
from api_resource_agent.parser.base import Schema
from api_resource_agent.parser.document import OpenApiDocument

COMPONENTS_SCHEMAS = "#/components/schemas/"
SCHEMA_REF_PREFIXES = (COMPONENTS_SCHEMAS, "#/definitions/")


def ref_key(ref: str) -> str:
    """Last segment of a `$ref`: "#/components/schemas/Widget" -> "Widget"."""
    return ref.rsplit("/", 1)[-1]


def dereference(schema: Schema, document: OpenApiDocument) -> Schema:
    """Follow `$ref` pointers until a concrete schema is reached.

    Raises SchemaNotFound for a dangling ref and SchemaCycle when a ref chain
    revisits a pointer.
    """
    seen: list[str] = []
    while "$ref" in schema:
        ref = schema["$ref"]
        if ref in seen:
            raise SchemaCycle(seen + [ref])
        seen.append(ref)

        target = document.schemas.get(ref_key(ref))
        if target is None:
            raise SchemaNotFound(ref)
        schema = target
    return schema


def rename_refs(node: Any, renames: dict[str, str]) -> Any:
    """Copy of `node` with every schema `$ref` pointing into components/schemas.

    Swagger 2.0 `#/definitions/` refs are moved to `#/components/schemas/`,
    and keys found in `renames` are replaced by their new name.
    """
    if isinstance(node, list):
        return [rename_refs(item, renames) for item in node]
    if not isinstance(node, dict):
        return node

    result = {key: rename_refs(value, renames) for key, value in node.items()}
    ref = node.get("$ref")
    if isinstance(ref, str) and ref.startswith(SCHEMA_REF_PREFIXES):
        key = ref_key(ref)
        result["$ref"] = COMPONENTS_SCHEMAS + renames.get(key, key)
    return result
