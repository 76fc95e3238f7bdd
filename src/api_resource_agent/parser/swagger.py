"""OpenAPI / Swagger document parser.

Recovers a resource graph from an OpenAPI 3.x or Swagger 2.0 document.
Each path is classified as a collection path (/widgets), an item path
(/widgets/{widget}) or an item custom method (/widgets/{widget}:start).
The operations found on it contribute capabilities to a Resource named
after the schema the operations return. Paths are processed in document
order, and capabilities found on different paths for the same resource are
merged into one node.
"""

import copy
from typing import Any

from pydantic import ValidationError

from api_resource_agent.cases import kebab_to_pascal, pascal_to_kebab
from api_resource_agent.errors import (
    MissingRequestBody,
    NoServerURL,
    ParentSchemaNotFound,
    ResourceModelError,
)
from api_resource_agent.log import get_logger
from api_resource_agent.parser.base import (
    RESOURCE_ANNOTATION,
    Api,
    CreateMethod,
    CustomMethod,
    DeleteMethod,
    GetMethod,
    ListMethod,
    Resource,
    ResourceAnnotation,
    Schema,
    UpdateMethod,
)
from api_resource_agent.parser.document import OpenApiDocument, open_document, success_response
from api_resource_agent.parser.patterns import PatternInfo, classify_path, placeholder_name, split_path
from api_resource_agent.parser.schema import dereference, ref_key, rename_refs

logger = get_logger(__name__)


def parse_openapi(document: dict[str, Any], server_url: str = "", path_prefix: str = "") -> Api:
    """Build the resource graph of a parsed OpenAPI document.

    `path_prefix` is stripped from every path before classification and
    appended to the document's server URL. An explicit `server_url` is used
    as given.
    """
    return _GraphBuilder(open_document(document), path_prefix).build(server_url)


class _GraphBuilder:
    """State for a single parse: the resource arena and pending custom methods."""

    def __init__(self, document: OpenApiDocument, path_prefix: str):
        self.document = document
        self.path_prefix = path_prefix
        self.resources: dict[str, Resource] = {}
        self.custom_methods: dict[str, list[CustomMethod]] = {}
        # document schema keys used as resource bodies, mapped to the resource singular
        self.claimed_schemas: dict[str, str] = {}
        self._resolving: list[str] = []

    def build(self, server_url: str) -> Api:
        for path, path_item in self.document.paths.items():
            if not path.startswith(self.path_prefix):
                logger.debug("Skipping %s: outside prefix %s", path, self.path_prefix)
                continue
            self._parse_path(path[len(self.path_prefix):], path_item or {})

        self._attach_custom_methods()

        if not server_url:
            base_url = self.document.server_url()
            server_url = base_url + self.path_prefix if base_url else ""
        if not server_url:
            raise NoServerURL("No server URL found in openapi, and none was provided")

        self._rename_schema_refs()
        schemas = {
            key: rename_refs(schema, self.claimed_schemas)
            for key, schema in self.document.schemas.items()
            if key not in self.claimed_schemas and key not in self.resources
        }

        return Api(
            server_url=server_url,
            name=self.document.title,
            contact=self.document.contact,
            resources=self.resources,
            schemas=schemas,
        )

    def _parse_path(self, path: str, path_item: dict[str, Any]) -> None:
        info = classify_path(path)
        if info is None:
            logger.debug("Skipping %s: not a resource path", path)
            return

        if info.custom_method_name:
            if info.is_resource_pattern:
                self._parse_custom_method(path, path_item, info.custom_method_name)
            else:
                logger.debug("Skipping %s: custom method on a collection", path)
            return

        if info.is_resource_pattern:
            capabilities, schema_ref = self._parse_item(path_item)
        else:
            capabilities, schema_ref = self._parse_collection(path, path_item)

        if schema_ref:
            resource = self._resource_for(path, info, schema_ref)
            if resource is None:
                return
            for field, method in capabilities.items():
                setattr(resource, field, method)

    def _parse_item(self, path_item: dict[str, Any]) -> tuple[dict[str, Any], Schema | None]:
        capabilities: dict[str, Any] = {}
        schema_ref = None

        if "delete" in path_item:
            capabilities["delete_method"] = DeleteMethod()

        for method, field, capability in (
            ("get", "get_method", GetMethod),
            ("patch", "update_method", UpdateMethod),
        ):
            operation = path_item.get(method)
            if operation is None:
                continue
            response = success_response(operation)
            if response is None:
                continue
            capabilities[field] = capability()
            schema_ref = self.document.schema_from_response(response) or schema_ref

        return capabilities, schema_ref

    def _parse_collection(
        self, path: str, path_item: dict[str, Any]
    ) -> tuple[dict[str, Any], Schema | None]:
        capabilities: dict[str, Any] = {}
        schema_ref = None

        post = path_item.get("post")
        if post is not None and success_response(post) is not None:
            schema_ref = self.document.response_schema(post)
            capabilities["create_method"] = CreateMethod(
                supports_user_settable_create=any(
                    param.get("name") == "id" and param.get("in", "query") == "query"
                    for param in post.get("parameters") or []
                )
            )

        get = path_item.get("get")
        if get is not None and success_response(get) is not None:
            found = self._list_response(path, get)
            if found is not None:
                response_schema, schema_ref = found
                capabilities["list_method"] = _list_method(get, response_schema)

        return capabilities, schema_ref

    def _list_response(self, path: str, operation: dict[str, Any]) -> tuple[Schema, Schema] | None:
        """The resolved list response schema and the items schema of its array property."""
        response_schema = self.document.response_schema(operation)
        if response_schema is None:
            logger.warning(
                "Resource %s has a LIST method with a response, but the response schema is null.",
                path,
            )
            return None

        resolved = dereference(response_schema, self.document)
        arrays = [
            prop["items"]
            for prop in (resolved.get("properties") or {}).values()
            if prop.get("type") == "array" and prop.get("items")
        ]
        # prefer the resource array over string arrays such as `unreachable`
        for items in arrays:
            if "$ref" in items or RESOURCE_ANNOTATION in items:
                return resolved, items
        if arrays:
            return resolved, arrays[0]

        logger.warning(
            "Resource %s has a LIST method with a response schema, "
            "but the items field is not present or is not an array.",
            path,
        )
        return None

    def _parse_custom_method(self, path: str, path_item: dict[str, Any], name: str) -> None:
        pattern = path.split(":", 1)[0].lstrip("/")
        methods = self.custom_methods.setdefault(pattern, [])

        post = path_item.get("post")
        if post is not None:
            request = self.document.schema_from_request(post)
            if request is None:
                raise MissingRequestBody(name, path)
            methods.append(
                CustomMethod(
                    name=name,
                    method="POST",
                    request=dereference(request, self.document),
                    response=self._custom_response(post),
                )
            )

        get = path_item.get("get")
        if get is not None:
            methods.append(
                CustomMethod(name=name, method="GET", response=self._custom_response(get))
            )

    def _custom_response(self, operation: dict[str, Any]) -> Schema | None:
        schema = self.document.response_schema(operation)
        if schema is None:
            return None
        return dereference(schema, self.document)

    def _resource_for(self, path: str, info: PatternInfo, schema_ref: Schema) -> Resource | None:
        if "$ref" in schema_ref:
            key = ref_key(schema_ref["$ref"])
            singular = pascal_to_kebab(key)
        elif RESOURCE_ANNOTATION in schema_ref:
            singular = schema_ref[RESOURCE_ANNOTATION].get("singular", "")
        else:
            logger.debug("Skipping %s: inline response schema has no resource name", path)
            return None

        pattern = split_path(path)
        if not info.is_resource_pattern:
            pattern.append("{%s}" % _item_placeholder(singular, pattern))

        resource = self._get_or_create(singular, pattern, dereference(schema_ref, self.document))
        if "$ref" in schema_ref:
            self.claimed_schemas[key] = resource.singular
        return resource

    def _get_or_create(self, singular: str, pattern: list[str], schema: Schema) -> Resource:
        """Return the resource for `singular`, creating it (and its parents) if needed.

        A resource annotation on the schema overrides the singular, plural,
        pattern and parents derived from paths.
        """
        raw_annotation = schema.get(RESOURCE_ANNOTATION)
        annotation = None
        if raw_annotation:
            try:
                annotation = ResourceAnnotation.model_validate(raw_annotation)
            except ValidationError as e:
                raise ResourceModelError(
                    f"Invalid {RESOURCE_ANNOTATION} annotation on resource \"{singular}\": {e}"
                ) from e
        if annotation is not None:
            singular = annotation.singular

        if singular in self.resources:
            return self.resources[singular]

        if annotation is None:
            resource = Resource(
                singular=singular, pattern_elems=pattern, body_schema=copy.deepcopy(schema)
            )
            self.resources[singular] = resource
            return resource

        if annotation.patterns:
            pattern = annotation.patterns[0].lstrip("/").split("/")
        resource = Resource(
            singular=singular,
            plural=annotation.plural,
            pattern_elems=pattern,
            body_schema=copy.deepcopy(schema),
        )

        if singular in self._resolving:
            raise ResourceModelError(
                f"Resource \"{singular}\" is its own ancestor: {' -> '.join(self._resolving)}"
            )
        self._resolving.append(singular)
        try:
            for parent in annotation.parents:
                resource.add_parent(self._parent_resource(singular, parent))
        finally:
            self._resolving.pop()

        self.resources[singular] = resource
        return resource

    def _parent_resource(self, singular: str, parent: str) -> Resource:
        if parent in self.resources:
            return self.resources[parent]

        # Generated documents key schemas by singular, others by schema name
        for key in (parent, kebab_to_pascal(parent)):
            if key in self.document.schemas:
                parent_schema = dereference(self.document.schemas[key], self.document)
                resource = self._get_or_create(parent, [], parent_schema)
                self.claimed_schemas[key] = resource.singular
                return resource

        raise ParentSchemaNotFound(singular, parent)

    def _rename_schema_refs(self) -> None:
        """Point nested refs at the names schemas get in a generated document.

        Claimed schemas are emitted under their resource singular.
        """
        for resource in self.resources.values():
            resource.body_schema = rename_refs(resource.body_schema, self.claimed_schemas)
            for custom in resource.custom_methods:
                if custom.request is not None:
                    custom.request = rename_refs(custom.request, self.claimed_schemas)
                if custom.response is not None:
                    custom.response = rename_refs(custom.response, self.claimed_schemas)

    def _attach_custom_methods(self) -> None:
        by_pattern = {resource.pattern: resource for resource in self.resources.values()}
        for pattern, methods in self.custom_methods.items():
            resource = by_pattern.get(pattern)
            if resource is None:
                logger.debug("No resource for custom methods on %s", pattern)
                continue
            resource.custom_methods.extend(methods)


def _item_placeholder(singular: str, pattern: list[str]) -> str:
    """Placeholder name for the item segment missing from a collection path.

    The parent is assumed to be the placeholder two segments before the
    collection; its name is stripped from the front of the singular.
    """
    if len(pattern) >= 3:
        parent = placeholder_name(pattern[-3])
        if singular.startswith(parent + "-"):
            return singular[len(parent) + 1:]
    return singular


def _list_method(operation: dict[str, Any], response_schema: Schema) -> ListMethod:
    names = {param.get("name") for param in operation.get("parameters") or []}
    # generated documents carry unreachable resources in the response only
    response_fields = response_schema.get("properties") or {}
    return ListMethod(
        supports_skip="skip" in names,
        has_unreachable_resources="unreachable" in names or "unreachable" in response_fields,
        supports_filter="filter" in names,
    )
