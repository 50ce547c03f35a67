import json

import pytest

from docrest.core.attributes import (
    BuilderConfig,
    InvalidSchemaNodeError,
    ModelDefinitionError,
    SchemaDepthError,
    SchemaResolver,
)
from docrest.core.model import Model, ModelDefinition, load_model_definition
from docrest.core.model.model import _default_resolver


def _write(tmp_path, data, name="user.json"):
    p = tmp_path / name
    p.write_text(json.dumps(data), encoding="utf-8")
    return p


def test_load_definition_and_list_masks(tmp_path):
    p = _write(
        tmp_path,
        {
            "name": "User",
            "collection_name": "users",
            "schema": {"name": "string", "password": "string", "profile": {"notes": "string"}},
            "defaults": {"name": "anon"},
            "read_only_attributes": ["_id"],
            "hidden_attributes": ["password", "profile.notes"],
        },
    )
    definition = load_model_definition(p)
    assert definition.name == "User"
    assert definition.schema_ == {
        "name": "string",
        "password": "string",
        "profile": {"notes": "string"},
    }
    assert definition.read_only_attributes == {"_id": True}
    assert definition.hidden_attributes == {"password": True, "profile": {"notes": True}}


def test_name_defaults_to_file_stem(tmp_path):
    p = _write(tmp_path, {"schema": {"a": "string"}}, name="widget.json")
    assert load_model_definition(p).name == "widget"


def test_load_errors_are_model_definition_errors(tmp_path):
    with pytest.raises(ModelDefinitionError):
        load_model_definition(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ModelDefinitionError):
        load_model_definition(bad)

    with pytest.raises(ModelDefinitionError):
        load_model_definition(_write(tmp_path, ["schema"], name="list.json"))

    with pytest.raises(ModelDefinitionError):
        load_model_definition(_write(tmp_path, {"name": "X", "unknown": 1}, name="extra.json"))

    with pytest.raises(ModelDefinitionError):
        load_model_definition(_write(tmp_path, {"name": "X", "schema": "string"}, name="s.json"))


def test_compile_validates_schema():
    definition = ModelDefinition(name="Thing", schema={"a": {"b": "string"}}, base_schema={"_id": "id"})
    node = definition.compile()
    assert list(node.fields) == ["a", "_id"]

    with pytest.raises(SchemaDepthError):
        definition.compile(BuilderConfig(max_depth=1))

    with pytest.raises(InvalidSchemaNodeError):
        ModelDefinition(name="Broken", schema={"a": 5}).compile()


def test_to_model_class_builds_working_model():
    definition = ModelDefinition.model_validate(
        {
            "name": "Account",
            "schema": {"_id": "id", "email": "string", "secret": "string", "age": "uinteger"},
            "defaults": {"age": 18},
            "read_only_attributes": ["_id"],
            "hidden_attributes": ["secret"],
        }
    )
    cls = definition.to_model_class()
    assert issubclass(cls, Model)
    assert cls.__name__ == "Account"
    assert cls.collection_name == "account"

    acct = cls({"_id": "a1", "email": "a@x", "secret": "s"})
    assert acct.attributes["age"] == 18

    acct.set_from_request({"_id": "b2", "email": "b@x", "age": "-4"})
    assert acct.get("_id") == "a1"
    assert acct.get("email") == "b@x"
    assert acct.get("age") == 0
    assert acct.render() == {"_id": "a1", "email": "b@x", "age": 0}


def test_to_model_class_does_not_share_definition_state():
    definition = ModelDefinition(name="Box", schema={"items": ["string"]}, defaults={"items": ["x"]})
    cls = definition.to_model_class()
    cls.defaults["items"].append("y")
    assert definition.defaults == {"items": ["x"]}


def test_generated_classes_get_their_own_resolver():
    definition = ModelDefinition(name="Note", schema={"text": "string"})
    first = definition.to_model_class()
    second = definition.to_model_class()

    assert first.resolver is not second.resolver
    assert first.resolver is not _default_resolver
    first({"text": "a"}).render()
    assert first not in _default_resolver._cache

    shared = SchemaResolver()
    assert definition.to_model_class(resolver=shared).resolver is shared
