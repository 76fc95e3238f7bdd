"""Resource graph models recovered from, and rendered back to, OpenAPI.

Schemas stay plain JSON-Schema dicts. Resources form an arena keyed by
singular name: `parents` and `children` hold references into that arena,
and `children` is bookkeeping only (it decides whether delete may cascade).
"""

from typing import Any

from pydantic import BaseModel, Field

from api_resource_agent.errors import ResourceNotFound

Schema = dict[str, Any]

# Vendor extension keys
RESOURCE_ANNOTATION = "x-aep-resource"
RESOURCE_REFERENCE = "x-aep-resource-reference"


class Contact(BaseModel):
    name: str = ""
    email: str = ""
    url: str = ""


class ResourceAnnotation(BaseModel):
    """Explicit resource metadata embedded in a schema under `x-aep-resource`."""

    singular: str
    plural: str = ""
    patterns: list[str] = []
    parents: list[str] = []


class GetMethod(BaseModel):
    pass


class ListMethod(BaseModel):
    has_unreachable_resources: bool = False
    supports_filter: bool = False
    supports_skip: bool = False


class CreateMethod(BaseModel):
    supports_user_settable_create: bool = False


class UpdateMethod(BaseModel):
    pass


class DeleteMethod(BaseModel):
    pass


class CustomMethod(BaseModel):
    """A non-CRUD action addressed as `<item path>:<name>`."""

    name: str
    method: str  # GET / POST
    request: Schema | None = None
    response: Schema | None = None


class Resource(BaseModel):
    """An addressable entity with an item pattern and its capabilities."""

    singular: str
    plural: str = ""
    parents: list["Resource"] = []
    children: list["Resource"] = Field(default=[], exclude=True, repr=False)
    pattern_elems: list[str] = []  # ["publishers", "{publisher}", "books", "{book}"]
    body_schema: Schema = {}
    get_method: GetMethod | None = None
    list_method: ListMethod | None = None
    create_method: CreateMethod | None = None
    update_method: UpdateMethod | None = None
    delete_method: DeleteMethod | None = None
    custom_methods: list[CustomMethod] = []

    @property
    def pattern(self) -> str:
        return "/".join(self.pattern_elems)

    def add_parent(self, parent: "Resource") -> None:
        """Link `parent` and record the back-edge on it."""
        self.parents.append(parent)
        parent.children.append(self)


class Api(BaseModel):
    """A resource-oriented view of one OpenAPI document."""

    server_url: str
    name: str
    contact: Contact | None = None
    resources: dict[str, Resource] = {}
    schemas: dict[str, Schema] = {}

    def get_resource(self, singular: str) -> Resource:
        resource = self.resources.get(singular)
        if resource is None:
            raise ResourceNotFound(singular)
        return resource
