"""Errors raised while recovering or regenerating a resource model.

Everything here is a data-shape problem in the source document, so none of
it is retried. Callers decide how to surface it.
"""


class ResourceModelError(Exception):
    """Base class for document and resource-graph errors."""


class UnsupportedVersion(ResourceModelError):
    """The document declares neither `swagger: "2.0"` nor an `openapi` version."""


class DocumentLoadError(ResourceModelError):
    """The document could not be read, fetched or parsed."""


class NoServerURL(ResourceModelError):
    """No server URL was given and the document declares none."""


class SchemaNotFound(ResourceModelError):
    """A `$ref` points at a schema the document does not define."""

    def __init__(self, ref: str):
        super().__init__(f'Schema "{ref}" not found')
        self.ref = ref


class SchemaCycle(ResourceModelError):
    """A chain of `$ref` pointers loops back on itself."""

    def __init__(self, chain: list[str]):
        super().__init__(f"Schema reference cycle: {' -> '.join(chain)}")
        self.chain = chain


class ParentSchemaNotFound(ResourceModelError):
    """A resource annotation names a parent with no schema in the document."""

    def __init__(self, singular: str, parent: str):
        super().__init__(f'Resource "{singular}" parent "{parent}" not found')
        self.singular = singular
        self.parent = parent


class MissingRequestBody(ResourceModelError):
    """A custom POST method declares no request body."""

    def __init__(self, name: str, path: str):
        super().__init__(f"Custom method {name} on {path} is a POST but has no request body")
        self.name = name
        self.path = path


class ResourceNotFound(ResourceModelError):
    def __init__(self, singular: str):
        super().__init__(f'Resource "{singular}" not found')
        self.singular = singular


class ClientError(Exception):
    """A request against a resolved resource failed."""


class MissingParameter(ClientError):
    """A placeholder in a resource pattern has no supplied value."""
