"""Tests for the tool definition DSL."""

import pytest

from ai_helper.exceptions import ToolDefinitionError, ToolValidationError
from ai_helper.tools.base import (
    PLACEHOLDER_PARAMETER,
    BaseTools,
    ParameterBuilder,
    ToolParameter,
    compile_schema,
    define_function,
    item,
    prop,
)


class IssueTools(BaseTools):
    @define_function(
        "Create an issue.",
        prop("subject", "string", "Issue subject", required=True),
        prop("priority", "string", "Priority", enum=["low", "normal", "high"]),
        prop(
            "fields",
            "object",
            "Custom fields",
            children=[
                prop("estimate", "number", "Estimated hours", required=True),
                prop("labels", "array", "Labels", items=item("string", "A label")),
            ],
        ),
    )
    def create_issue(self, subject: str, priority: str = "normal", fields: dict | None = None) -> dict:
        return {"subject": subject, "priority": priority, "fields": fields}

    @define_function("Count issues.")
    def count_issues(self) -> int:
        return 42

    def helper(self):
        return "not a tool"


class ExtendedIssueTools(IssueTools):
    @define_function("Close an issue.", prop("issue_id", "integer", "Issue id", required=True))
    def close_issue(self, issue_id: int) -> str:
        return f"closed {issue_id}"


class TestCompileSchema:
    def test_no_parameters_compiles_to_none(self):
        assert compile_schema([]) is None
        assert IssueTools.function_registry()["issue_tools__count_issues"].parameters is None

    def test_nested_schema(self):
        schema = IssueTools.function_registry()["issue_tools__create_issue"].parameters
        assert schema == {
            "type": "object",
            "properties": {
                "subject": {"type": "string", "description": "Issue subject"},
                "priority": {"type": "string", "description": "Priority", "enum": ["low", "normal", "high"]},
                "fields": {
                    "type": "object",
                    "description": "Custom fields",
                    "properties": {
                        "estimate": {"type": "number", "description": "Estimated hours"},
                        "labels": {
                            "type": "array",
                            "description": "Labels",
                            "items": {"type": "string", "description": "A label"},
                        },
                    },
                    "required": ["estimate"],
                },
            },
            "required": ["subject"],
        }

    def test_required_matches_declared_at_every_level(self):
        params = [
            prop("a", "string", required=True),
            prop("b", "string"),
            prop("c", "object", children=[
                prop("d", "integer", required=True),
                prop("e", "object", children=[prop("f", "boolean", required=True), prop("g", "boolean")]),
            ], required=True),
            prop("h", "array", items=item("object", children=[prop("i", "string", required=True)])),
        ]
        schema = compile_schema(params)
        assert schema["required"] == ["a", "c"]
        c = schema["properties"]["c"]
        assert c["required"] == ["d"]
        assert c["properties"]["e"]["required"] == ["f"]
        assert schema["properties"]["h"]["items"]["required"] == ["i"]

    def test_empty_object_has_properties_and_required(self):
        schema = compile_schema([prop("options", "object")])
        assert schema["properties"]["options"] == {"type": "object", "properties": {}, "required": []}

    def test_enum_inside_array_items(self):
        schema = compile_schema([prop("states", "array", items=item("string", enum=["open", "closed"]))])
        assert schema["properties"]["states"]["items"]["enum"] == ["open", "closed"]


class TestDefinitionErrors:
    def test_unknown_type(self):
        with pytest.raises(ToolDefinitionError):
            prop("x", "date")

    def test_array_without_items(self):
        with pytest.raises(ToolDefinitionError):
            prop("tags", "array")

    def test_children_on_scalar(self):
        with pytest.raises(ToolDefinitionError):
            ToolParameter(name="x", type="string", children=[prop("y", "string")])

    def test_duplicate_names(self):
        with pytest.raises(ToolDefinitionError):
            compile_schema([prop("x", "string"), prop("x", "integer")])

    def test_error_raised_when_decorating(self):
        with pytest.raises(ToolDefinitionError):
            define_function("bad", prop("x", "string"), prop("x", "string"))


class TestBaseTools:
    def test_tools_in_declaration_order(self):
        assert [tool.name for tool in IssueTools.tool_classes()] == ["create_issue", "count_issues"]

    def test_qualified_names(self):
        assert set(IssueTools.function_registry()) == {
            "issue_tools__create_issue",
            "issue_tools__count_issues",
        }

    def test_subclass_inherits_functions_under_its_own_group(self):
        names = [tool.qualified_name for tool in ExtendedIssueTools.tool_classes()]
        assert names == [
            "extended_issue_tools__create_issue",
            "extended_issue_tools__count_issues",
            "extended_issue_tools__close_issue",
        ]
        assert len(IssueTools.tool_classes()) == 2

    def test_function_schemas(self):
        schemas = IssueTools.function_schemas()
        assert schemas[1] == {
            "type": "function",
            "function": {
                "name": "issue_tools__count_issues",
                "description": "Count issues.",
                "parameters": None,
            },
        }

    def test_execute_dispatches_to_method(self):
        tool = IssueTools.function_registry()["issue_tools__create_issue"]
        result = tool.execute(subject="Broken login", priority="high")
        assert result == {"subject": "Broken login", "priority": "high", "fields": None}

    def test_execute_missing_required(self):
        tool = IssueTools.function_registry()["issue_tools__create_issue"]
        with pytest.raises(ToolValidationError) as exc_info:
            tool.execute(priority="high")
        assert exc_info.value.errors == ["missing required argument 'subject'"]

    def test_execute_enum_violation(self):
        tool = IssueTools.function_registry()["issue_tools__create_issue"]
        with pytest.raises(ToolValidationError):
            tool.execute(subject="x", priority="urgent")

    def test_tools_are_frozen_values(self):
        tool = IssueTools.tool_classes()[0]
        with pytest.raises(AttributeError):
            tool.name = "other"  # type: ignore[misc]


class TestParameterBuilder:
    def test_imperative_building(self):
        builder = ParameterBuilder()
        query = builder.property("query", "object", "Search query", required=True)
        query.property("text", "string", "Free text", required=True)
        builder.property("ids", "array", "Issue ids").item("integer", "An id")
        assert builder.schema() == {
            "type": "object",
            "properties": {
                "query": {
                    "type": "object",
                    "description": "Search query",
                    "properties": {"text": {"type": "string", "description": "Free text"}},
                    "required": ["text"],
                },
                "ids": {"type": "array", "description": "Issue ids", "items": {"type": "integer", "description": "An id"}},
            },
            "required": ["query"],
        }

    def test_property_on_scalar_raises(self):
        text = ParameterBuilder().property("text", "string")
        with pytest.raises(ToolDefinitionError):
            text.property("nested", "string")

    def test_item_outside_array_raises(self):
        with pytest.raises(ToolDefinitionError):
            ParameterBuilder().item("string")

    def test_second_item_raises(self):
        ids = ParameterBuilder().property("ids", "array")
        ids.item("integer")
        with pytest.raises(ToolDefinitionError):
            ids.item("string")

    def test_schema_tree_schema_is_idempotent(self):
        original = IssueTools.function_registry()["issue_tools__create_issue"].parameters
        rebuilt = ParameterBuilder().from_json_schema(original).schema()
        assert rebuilt == original
        assert ParameterBuilder().from_json_schema(rebuilt).schema() == rebuilt

    @pytest.mark.parametrize("schema", [
        {"type": "object", "properties": {"q": {"type": "string", "description": "d"}}},
        {
            "type": "object",
            "properties": {
                "filter": {"type": "object", "properties": {"state": {"type": "string", "enum": ["open", "closed"]}}},
                "ids": {"type": "array", "items": {"type": "object", "properties": {"id": {"type": "integer"}}}},
            },
            "required": ["filter"],
        },
        {"type": "object", "properties": {"q": {"type": "string"}}, "required": []},
    ])
    def test_discovered_schema_round_trips_unchanged(self, schema):
        assert ParameterBuilder().from_json_schema(schema).schema() == schema

    def test_from_json_schema_infers_types(self):
        schema = {
            "type": "object",
            "properties": {
                "maybe": {"type": ["null", "integer"]},
                "nested": {"properties": {"x": {"type": "string"}}},
                "list": {"items": {"type": "number"}},
                "untyped_list": {"type": "array"},
            },
        }
        rebuilt = ParameterBuilder().from_json_schema(schema).schema()
        properties = rebuilt["properties"]
        assert properties["maybe"]["type"] == "integer"
        assert properties["nested"]["type"] == "object"
        assert properties["list"]["items"] == {"type": "number"}
        assert properties["untyped_list"]["items"] == {"type": "string"}

    def test_empty_schema_gets_placeholder(self):
        schema = ParameterBuilder().from_json_schema({"type": "object", "properties": {}}).schema()
        assert schema == {
            "type": "object",
            "properties": {
                PLACEHOLDER_PARAMETER: {"type": "string", "description": "Dummy property. No need to specify."},
            },
        }

    def test_nested_empty_object_has_no_placeholder(self):
        schema = {"type": "object", "properties": {"options": {"type": "object", "properties": {}}}}
        rebuilt = ParameterBuilder().from_json_schema(schema).schema()
        assert rebuilt["properties"]["options"]["properties"] == {}

    def test_build_tool(self):
        builder = ParameterBuilder().from_json_schema(
            {"type": "object", "properties": {"q": {"type": "string"}}, "required": ["q"]}
        )
        tool = builder.build_tool("search", "Search.", handler=lambda q: f"found {q}", group="mcp_docs")
        assert tool.qualified_name == "mcp_docs__search"
        assert tool.execute(q="python") == "found python"
        with pytest.raises(ToolValidationError):
            tool.execute()
