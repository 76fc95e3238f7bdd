"""Load OpenAPI documents and detect their version."""

from pathlib import Path
from typing import Any

import httpx
import yaml

from api_resource_agent.errors import DocumentLoadError, UnsupportedVersion

OAS2 = "2.0"
OAS3 = "3"


def load_document(source: str | Path, timeout: float = 30.0) -> dict[str, Any]:
    """Read an OpenAPI document from a local path or an http(s) URL.

    YAML and JSON are both accepted (JSON is parsed as YAML).
    """
    source_str = str(source)
    if source_str.startswith(("http://", "https://")):
        try:
            response = httpx.get(source_str, timeout=timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise DocumentLoadError(f"Failed to fetch {source_str}: {e}") from e
        text = response.text
    else:
        try:
            text = Path(source).read_text(encoding="utf-8")
        except OSError as e:
            raise DocumentLoadError(f"Failed to read {source_str}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DocumentLoadError(f"Failed to parse {source_str}: {e}") from e

    if not isinstance(data, dict):
        raise DocumentLoadError(f"{source_str} does not contain an OpenAPI document")
    return data


def detect_version(document: dict[str, Any]) -> str:
    """Return OAS2 for `swagger: "2.0"` documents, OAS3 for any `openapi` version."""
    if str(document.get("swagger", "")) == OAS2:
        return OAS2
    if document.get("openapi"):
        return OAS3
    raise UnsupportedVersion(
        "Unable to detect the OpenAPI version. Add an openapi field or a swagger: \"2.0\" field"
    )
