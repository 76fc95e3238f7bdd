"""Turn dereferenced object schemas into pydantic models for argument validation."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, create_model

from api_resource_agent.cases import kebab_to_pascal, kebab_to_snake
from api_resource_agent.parser.base import Resource, Schema

_SCALARS: dict[str, Any] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
}


def schema_to_model(name: str, schema: Schema) -> type[BaseModel]:
    """Build a model with one field per property of `schema`.

    Properties listed in `required` are required unless they are read-only,
    all others default to None. Nested objects become nested models.
    Kebab-case property names become snake_case fields aliased to the
    original name. Unknown fields are rejected when the schema declares
    properties.
    """
    properties = schema.get("properties") or {}
    required = set(schema.get("required") or [])
    fields: dict[str, Any] = {}
    for prop_name, prop_schema in properties.items():
        type_ = _python_type(f"{name}-{prop_name}", prop_schema)
        is_required = prop_name in required and not prop_schema.get("readOnly")
        if not is_required:
            type_ = type_ | None
        default = ... if is_required else None

        field_name = kebab_to_snake(prop_name)
        if field_name != prop_name:
            fields[field_name] = (type_, Field(default, alias=prop_name))
        else:
            fields[prop_name] = (type_, default)

    config = ConfigDict(extra="forbid" if properties else "allow")
    return create_model(kebab_to_pascal(name), __config__=config, **fields)


def validate_body(resource: Resource, body: dict[str, Any]) -> dict[str, Any]:
    """Check `body` against the body schema of `resource`.

    Returns the fields that were supplied, keyed by their schema names.
    Raises pydantic's ValidationError when the body does not fit.
    """
    model = schema_to_model(resource.singular, resource.body_schema)
    return model.model_validate(body).model_dump(by_alias=True, exclude_unset=True)


def _python_type(name: str, schema: Schema) -> Any:
    schema_type = schema.get("type")
    if schema_type in _SCALARS:
        return _SCALARS[schema_type]
    if schema_type == "array":
        items = schema.get("items")
        return list[_python_type(f"{name}-item", items)] if items else list[Any]
    if schema_type == "object" or "properties" in schema:
        if schema.get("properties"):
            return schema_to_model(name, schema)
        return dict[str, Any]
    return Any
