"""HTTP client for executing resource operations, built on httpx."""

import json
from typing import Any

import httpx

from api_resource_agent.cases import kebab_to_camel
from api_resource_agent.errors import ClientError, MissingParameter
from api_resource_agent.log import get_logger
from api_resource_agent.parser.base import Resource
from api_resource_agent.parser.patterns import placeholder_name

logger = get_logger(__name__)


class ResourceClient:
    """Runs create/list/get/update/delete against resources of one API."""

    def __init__(
        self,
        server_url: str,
        headers: dict[str, str] | None = None,
        client: httpx.Client | None = None,
    ):
        self.server_url = server_url.rstrip("/")
        self.headers = headers or {}
        self.client = client or httpx.Client()

    def create(
        self, resource: Resource, body: dict[str, Any], parameters: dict[str, str]
    ) -> dict[str, Any]:
        params = {}
        if resource.create_method and resource.create_method.supports_user_settable_create:
            resource_id = body.get("id")
            if not resource_id:
                raise MissingParameter(f"id field not found in {json.dumps(body)}")
            params["id"] = str(resource_id)

        return self._request("POST", self.collection_url(resource, parameters), body, params)

    def list(self, resource: Resource, parameters: dict[str, str]) -> list[dict[str, Any]]:
        response = self._request("GET", self.collection_url(resource, parameters))

        camel = kebab_to_camel(resource.plural)
        for key in ("results", resource.plural, camel[:1].upper() + camel[1:], camel):
            items = response.get(key)
            if isinstance(items, list):
                return [item for item in items if isinstance(item, dict)]

        raise ClientError("No valid list key was found")

    def get(self, path: str) -> dict[str, Any]:
        return self._request("GET", self.item_url(path))

    def get_with_full_url(self, url: str) -> dict[str, Any]:
        return self._request("GET", url)

    def update(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        return self._request("PATCH", self.item_url(path), body)

    def delete(self, path: str) -> None:
        self._request("DELETE", self.item_url(path))

    def item_url(self, path: str) -> str:
        return f"{self.server_url}/{path.lstrip('/')}"

    def collection_url(self, resource: Resource, parameters: dict[str, str]) -> str:
        """URL of the collection holding `resource` under the given parents.

        Parameter values may be full resource paths ("publishers/p1"); only
        their last segment is used.
        """
        elems = [self.server_url]
        for i, elem in enumerate(resource.pattern_elems[:-1]):
            if i % 2 == 0:
                elems.append(elem)
                continue
            name = placeholder_name(elem)
            value = parameters.get(name)
            if not value:
                raise MissingParameter(
                    f"Parameter {name} not found in parameters {json.dumps(parameters)}"
                )
            elems.append(value.rsplit("/", 1)[-1])
        return "/".join(elems)

    def _request(
        self,
        method: str,
        url: str,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        if body is not None:
            body = {key: value for key, value in body.items() if value is not None}

        logger.info("%s %s", method, url)
        try:
            response = self.client.request(
                method, url, headers=self.headers, json=body, params=params
            )
        except httpx.HTTPError as e:
            raise ClientError(f"Request {method} {url} failed: {e}") from e
        logger.debug("%s %s -> %s", method, url, response.status_code)

        if response.is_error:
            raise ClientError(f"Request failed: {response.text} for request {method} {url}")
        if not response.content:
            return {}

        try:
            data = response.json()
        except ValueError as e:
            raise ClientError(f"Response of {method} {url} is not JSON: {response.text[:200]}") from e
        if isinstance(data, dict) and data.get("error"):
            raise ClientError(f"Returned errors: {json.dumps(data['error'])}")
        return data
