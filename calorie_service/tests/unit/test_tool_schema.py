from tools import TOOLS_SCHEMA, ToolName


def _schema(name):
    return next(s for s in TOOLS_SCHEMA if s["function"]["name"] == name)


def test_every_tool_has_a_schema():
    assert [s["function"]["name"] for s in TOOLS_SCHEMA] == [t.value for t in ToolName]


def test_context_parameter_is_hidden_from_the_model():
    for schema in TOOLS_SCHEMA:
        assert "ctx" not in schema["function"]["parameters"]["properties"]


def test_create_food_schema_types_and_required_fields():
    params = _schema("create_food")["function"]["parameters"]
    assert params["properties"]["calories_per_100g"] == {"type": "number", "description": "Calories per 100g"}
    assert params["properties"]["comments"]["type"] == "string"
    assert params["required"] == [
        "name",
        "calories_per_100g",
        "protein_per_100g",
        "carbs_per_100g",
        "fat_per_100g",
        "fiber_per_100g",
        "salt_per_100g",
    ]


def test_optional_arguments_are_not_required():
    params = _schema("edit_food_entry")["function"]["parameters"]
    assert params["required"] == ["entry_id"]
    assert params["properties"]["grams"]["type"] == "number"


def test_description_comes_from_docstring_summary():
    description = _schema("web_search")["function"]["description"]
    assert description.startswith("Search the web for information.")
    assert "Args" not in description
