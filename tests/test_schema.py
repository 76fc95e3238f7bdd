from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest

from api_resource_agent.errors import DocumentLoadError, SchemaCycle, SchemaNotFound, UnsupportedVersion
from api_resource_agent.parser.detect import OAS2, OAS3, detect_version, load_document
from api_resource_agent.parser.document import Oas2Document, Oas3Document, open_document
from api_resource_agent.parser.schema import dereference, ref_key

FIXTURES = Path(__file__).parent / "fixtures"


def _oas3(schemas: dict) -> dict:
    return {"openapi": "3.1.0", "info": {"title": "T"}, "paths": {}, "components": {"schemas": schemas}}


class TestDetectVersion:
    def test_swagger_2(self):
        assert detect_version({"swagger": "2.0"}) == OAS2

    def test_openapi_3(self):
        assert detect_version({"openapi": "3.0.3"}) == OAS3

    def test_unknown_version(self):
        with pytest.raises(UnsupportedVersion):
            detect_version({"info": {}})

    def test_open_document_selects_accessor(self):
        assert isinstance(open_document({"swagger": "2.0"}), Oas2Document)
        assert isinstance(open_document({"openapi": "3.1.0"}), Oas3Document)


class TestLoadDocument:
    def test_load_yaml_file(self):
        doc = load_document(FIXTURES / "widgets.yaml")
        assert doc["info"]["title"] == "Test API"

    def test_load_json_file(self, tmp_path):
        f = tmp_path / "doc.json"
        f.write_text('{"openapi": "3.1.0", "paths": {}}')
        assert load_document(f)["openapi"] == "3.1.0"

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentLoadError):
            load_document(tmp_path / "missing.yaml")

    def test_not_a_mapping(self, tmp_path):
        f = tmp_path / "doc.yaml"
        f.write_text("- just\n- a list\n")
        with pytest.raises(DocumentLoadError):
            load_document(f)

    @patch("api_resource_agent.parser.detect.httpx.get")
    def test_load_url(self, mock_get):
        mock_resp = MagicMock()
        mock_resp.text = "openapi: 3.1.0\npaths: {}\n"
        mock_get.return_value = mock_resp

        doc = load_document("https://example.com/openapi.yaml")
        assert doc["openapi"] == "3.1.0"
        assert mock_get.call_args[0][0] == "https://example.com/openapi.yaml"

    @patch("api_resource_agent.parser.detect.httpx.get")
    def test_load_url_failure(self, mock_get):
        mock_get.side_effect = httpx.ConnectError("boom")
        with pytest.raises(DocumentLoadError):
            load_document("https://example.com/openapi.yaml")


class TestDereference:
    def test_schema_without_ref_is_returned_unchanged(self):
        schema = {"type": "object"}
        assert dereference(schema, open_document(_oas3({}))) is schema

    def test_follows_ref_chain(self):
        doc = open_document(_oas3({
            "A": {"$ref": "#/components/schemas/B"},
            "B": {"type": "object", "properties": {"x": {"type": "string"}}},
        }))
        resolved = dereference({"$ref": "#/components/schemas/A"}, doc)
        assert resolved["properties"]["x"]["type"] == "string"

    def test_swagger_definitions(self):
        doc = open_document({"swagger": "2.0", "definitions": {"Pet": {"type": "object"}}})
        assert dereference({"$ref": "#/definitions/Pet"}, doc) == {"type": "object"}

    def test_missing_target(self):
        with pytest.raises(SchemaNotFound) as exc_info:
            dereference({"$ref": "#/components/schemas/Nope"}, open_document(_oas3({})))
        assert exc_info.value.ref == "#/components/schemas/Nope"

    def test_cycle_is_detected(self):
        doc = open_document(_oas3({
            "A": {"$ref": "#/components/schemas/B"},
            "B": {"$ref": "#/components/schemas/A"},
        }))
        with pytest.raises(SchemaCycle):
            dereference({"$ref": "#/components/schemas/A"}, doc)

    def test_ref_key(self):
        assert ref_key("#/components/schemas/Widget") == "Widget"


class TestDocumentAccessors:
    def test_oas3_response_prefers_plain_json(self):
        doc = Oas3Document(_oas3({}))
        response = {"content": {
            "application/merge-patch+json": {"schema": {"$ref": "#/a"}},
            "application/json": {"schema": {"$ref": "#/b"}},
        }}
        assert doc.schema_from_response(response) == {"$ref": "#/b"}

    def test_oas3_response_falls_back_to_json_suffix(self):
        doc = Oas3Document(_oas3({}))
        response = {"content": {"application/merge-patch+json": {"schema": {"$ref": "#/a"}}}}
        assert doc.schema_from_response(response) == {"$ref": "#/a"}

    def test_oas2_request_body_parameter(self):
        doc = Oas2Document({"swagger": "2.0"})
        operation = {"parameters": [{"in": "query", "name": "id"}, {"in": "body", "schema": {"type": "object"}}]}
        assert doc.schema_from_request(operation) == {"type": "object"}

    def test_oas2_server_url(self):
        doc = Oas2Document({"swagger": "2.0", "host": "api.example.com", "basePath": "/v1", "schemes": ["http"]})
        assert doc.server_url() == "http://api.example.com/v1"

    def test_response_schema_accepts_int_status(self):
        doc = Oas2Document({"swagger": "2.0"})
        assert doc.response_schema({"responses": {200: {"schema": {"type": "object"}}}}) == {"type": "object"}

    def test_contact_requires_a_field(self):
        doc = Oas3Document({"openapi": "3.1.0", "info": {"title": "T", "contact": {}}})
        assert doc.contact is None
