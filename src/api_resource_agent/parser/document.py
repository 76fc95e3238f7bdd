"""Version-specific access to OpenAPI documents.

Swagger 2.0 and OpenAPI 3.x keep schemas, response bodies, request bodies
and servers in different places. One accessor is chosen per document by
`open_document` and used for every lookup after that.
"""

from typing import Any

from api_resource_agent.parser.base import Contact, Schema
from api_resource_agent.parser.detect import OAS2, OAS3, detect_version

JSON_CONTENT_TYPE = "application/json"


class OpenApiDocument:
    """Read-only view over a parsed OpenAPI document."""

    version = ""

    def __init__(self, raw: dict[str, Any]):
        self.raw = raw

    @property
    def paths(self) -> dict[str, dict[str, Any]]:
        return self.raw.get("paths") or {}

    @property
    def title(self) -> str:
        return (self.raw.get("info") or {}).get("title", "")

    @property
    def contact(self) -> Contact | None:
        contact = (self.raw.get("info") or {}).get("contact") or {}
        if not any(contact.get(key) for key in ("name", "email", "url")):
            return None
        return Contact(
            name=contact.get("name", ""),
            email=contact.get("email", ""),
            url=contact.get("url", ""),
        )

    @property
    def schemas(self) -> dict[str, Schema]:
        raise NotImplementedError

    def server_url(self) -> str:
        raise NotImplementedError

    def schema_from_response(self, response: dict[str, Any]) -> Schema | None:
        raise NotImplementedError

    def schema_from_request(self, operation: dict[str, Any]) -> Schema | None:
        raise NotImplementedError

    def response_schema(self, operation: dict[str, Any]) -> Schema | None:
        """Schema of the 200 response of `operation`, if it declares one."""
        response = success_response(operation)
        if response is None:
            return None
        return self.schema_from_response(response)


class Oas2Document(OpenApiDocument):
    version = OAS2

    @property
    def schemas(self) -> dict[str, Schema]:
        return self.raw.get("definitions") or {}

    def server_url(self) -> str:
        host = self.raw.get("host")
        if not host:
            return ""
        schemes = self.raw.get("schemes") or ["https"]
        return f"{schemes[0]}://{host}{self.raw.get('basePath', '')}".rstrip("/")

    def schema_from_response(self, response: dict[str, Any]) -> Schema | None:
        return response.get("schema")

    def schema_from_request(self, operation: dict[str, Any]) -> Schema | None:
        for param in operation.get("parameters") or []:
            if param.get("in") == "body":
                return param.get("schema")
        return None


class Oas3Document(OpenApiDocument):
    version = OAS3

    @property
    def schemas(self) -> dict[str, Schema]:
        return (self.raw.get("components") or {}).get("schemas") or {}

    def server_url(self) -> str:
        servers = self.raw.get("servers") or []
        if not servers:
            return ""
        return servers[0].get("url", "")

    def schema_from_response(self, response: dict[str, Any]) -> Schema | None:
        return _schema_from_content(response.get("content"))

    def schema_from_request(self, operation: dict[str, Any]) -> Schema | None:
        request_body = operation.get("requestBody")
        if not request_body:
            return None
        return _schema_from_content(request_body.get("content"))


def open_document(raw: dict[str, Any]) -> OpenApiDocument:
    """Wrap a parsed document in the accessor for its version."""
    if detect_version(raw) == OAS2:
        return Oas2Document(raw)
    return Oas3Document(raw)


def success_response(operation: dict[str, Any]) -> dict[str, Any] | None:
    # YAML turns an unquoted 200 into an int key
    responses = operation.get("responses") or {}
    return responses.get("200", responses.get(200))


def _schema_from_content(content: dict[str, Any] | None) -> Schema | None:
    """Pick the JSON schema of a content map, preferring plain application/json.

    Other JSON media types (application/merge-patch+json) are used when no
    plain JSON entry exists.
    """
    if not content:
        return None
    if JSON_CONTENT_TYPE in content:
        return content[JSON_CONTENT_TYPE].get("schema")
    for content_type, media in content.items():
        if content_type.endswith("+json"):
            return media.get("schema")
    return None
