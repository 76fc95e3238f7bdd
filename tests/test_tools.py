import pytest
from pydantic import ValidationError

from api_resource_agent.generator.arguments import schema_to_model, validate_body
from api_resource_agent.generator.tools import (
    build_create_tool,
    build_list_tool,
    build_resource_templates,
    build_tools,
    build_update_tool,
)
from api_resource_agent.parser.base import Api, CreateMethod, DeleteMethod, GetMethod, ListMethod, Resource


def _book(**kwargs) -> Resource:
    return Resource(
        singular="book",
        plural="books",
        pattern_elems=["publishers", "{publisher}", "books", "{book}"],
        body_schema={
            "type": "object",
            "properties": {"id": {"type": "string", "readOnly": True}, "title": {"type": "string"}},
        },
        **kwargs,
    )


class TestBuildTools:
    def test_one_tool_per_capability(self):
        api = Api(
            server_url="https://api.example.com",
            name="Test",
            resources={"book": _book(get_method=GetMethod(), list_method=ListMethod(), delete_method=DeleteMethod())},
        )
        assert [tool.name for tool in build_tools(api)] == ["get-book", "list-book", "delete-book"]

    def test_create_tool_requires_parents(self):
        tool = build_create_tool(_book(create_method=CreateMethod()), "book")
        assert tool.input_schema["properties"]["publisher"] == {"type": "string"}
        assert tool.input_schema["required"] == ["publisher"]
        assert tool.input_schema["properties"]["id"]["readOnly"] is True

    def test_create_tool_user_settable_id(self):
        tool = build_create_tool(_book(create_method=CreateMethod(supports_user_settable_create=True)), "book")
        assert tool.input_schema["required"] == ["publisher", "id"]
        assert tool.input_schema["properties"]["id"]["readOnly"] is False

    def test_create_tool_does_not_touch_resource_schema(self):
        resource = _book(create_method=CreateMethod(supports_user_settable_create=True))
        build_create_tool(resource, "book")
        assert "publisher" not in resource.body_schema["properties"]
        assert resource.body_schema["properties"]["id"]["readOnly"] is True

    def test_update_tool_requires_path(self):
        tool = build_update_tool(_book(), "book")
        assert tool.input_schema["required"] == ["path"]
        assert set(tool.input_schema["properties"]) == {"id", "title", "path"}

    def test_list_tool_parent_filters(self):
        tool = build_list_tool(_book(), "book")
        assert list(tool.input_schema["properties"]) == ["publisher"]
        assert "required" not in tool.input_schema

    def test_resource_templates(self):
        api = Api(server_url="https://api.example.com", name="Test", resources={"book": _book()})
        [template] = build_resource_templates(api)
        assert template.uri_template == "https://api.example.com/publishers/{publisher}/books/{book}"
        assert template.name == "book"

    def test_resource_template_from_parents(self):
        publisher = Resource(singular="publisher", plural="publishers")
        book = Resource(singular="book", plural="books")
        book.add_parent(publisher)
        api = Api(server_url="https://api.example.com", name="Test", resources={"book": book})
        [template] = build_resource_templates(api)
        assert template.uri_template == "https://api.example.com/publishers/{publisher}/books/{book}"


class TestSchemaToModel:
    def test_required_and_optional_fields(self):
        model = schema_to_model("book", {
            "type": "object",
            "required": ["title"],
            "properties": {"title": {"type": "string"}, "pages": {"type": "integer"}},
        })
        book = model(title="Dune")
        assert book.title == "Dune"
        assert book.pages is None
        with pytest.raises(ValidationError):
            model(pages=10)

    def test_nested_objects_and_arrays(self):
        model = schema_to_model("book", {
            "type": "object",
            "properties": {
                "tags": {"type": "array", "items": {"type": "string"}},
                "author": {"type": "object", "properties": {"name": {"type": "string"}}},
            },
        })
        book = model(tags=["scifi"], author={"name": "Herbert"})
        assert book.tags == ["scifi"]
        assert book.author.name == "Herbert"

    def test_type_mismatch(self):
        model = schema_to_model("book", {"type": "object", "properties": {"pages": {"type": "integer"}}})
        with pytest.raises(ValidationError):
            model(pages="many")

    def test_kebab_case_properties_are_aliased(self):
        model = schema_to_model("book", {
            "type": "object",
            "required": ["page-count"],
            "properties": {"page-count": {"type": "integer"}},
        })
        book = model(**{"page-count": 412})
        assert book.page_count == 412
        assert book.model_dump(by_alias=True) == {"page-count": 412}

    def test_read_only_fields_are_optional(self):
        model = schema_to_model("book", {
            "type": "object",
            "required": ["path", "title"],
            "properties": {"path": {"type": "string", "readOnly": True}, "title": {"type": "string"}},
        })
        assert model(title="Dune").path is None

    def test_unknown_fields_rejected(self):
        model = schema_to_model("book", {"type": "object", "properties": {"title": {"type": "string"}}})
        with pytest.raises(ValidationError):
            model(title="Dune", titel="typo")

    def test_free_form_schema_accepts_anything(self):
        model = schema_to_model("note", {"type": "object"})
        assert model(text="hi").model_dump() == {"text": "hi"}


class TestValidateBody:
    def test_returns_supplied_fields(self):
        body = validate_body(_book(), {"title": "Dune"})
        assert body == {"title": "Dune"}

    def test_rejects_wrong_types(self):
        with pytest.raises(ValidationError):
            validate_body(_book(), {"title": 12})
