"""
Тесты построения моделей из схем
"""

import warnings

import pytest

from auto_api.errors import (
    InvalidInputError,
    InvalidReferenceError,
    UnimplementedFeatureError,
)
from auto_api.internal.generator.schema_builder import SchemaModelBuilder
from auto_api.internal.parser.reference import ReferenceResolver
from auto_api.internal.types.declarations import ModelDeclaration, PropertyDeclaration
from auto_api.internal.types.registry import TypeRegistry


def make_builder(schemas, reserved=()):
    document = {"components": {"schemas": schemas}}
    registry = TypeRegistry(reserved)
    return SchemaModelBuilder(ReferenceResolver(document), registry), registry


def ref(name):
    return f"#/components/schemas/{name}"


class TestPrimitives:
    """Тесты примитивов и контейнеров"""

    @pytest.mark.parametrize(
        "node, type_hint",
        [
            ({"type": "string"}, "str"),
            ({"type": "string", "format": "date-time"}, "datetime"),
            ({"type": "string", "format": "date"}, "date"),
            ({"type": "number"}, "float"),
            ({"type": "integer", "format": "int64"}, "int"),
            ({"type": "boolean"}, "bool"),
            ({"type": "array", "items": {"type": "string"}}, "List[str]"),
            ({"type": "object"}, "Dict[str, Any]"),
            ({"additionalProperties": {"type": "integer"}}, "Dict[str, int]"),
        ],
    )
    def test_property_hint(self, node, type_hint):
        builder, registry = make_builder({})
        declaration = builder.build(node, "Value", "#/inline")

        assert isinstance(declaration, PropertyDeclaration)
        assert declaration.type_hint == type_hint
        assert registry.models() == []

    @pytest.mark.parametrize(
        "node, type_hint",
        [
            ({}, "Any"),
            ({"description": "anything"}, "Any"),
            ({"type": "array", "items": {}}, "List[Any]"),
            ({"additionalProperties": {}}, "Dict[str, Any]"),
        ],
    )
    def test_untyped_schema_is_any(self, node, type_hint):
        """Схема без типа допускает любое значение"""
        builder, registry = make_builder({})

        assert builder.build(node, "Value", "#/inline").type_hint == type_hint
        assert registry.models() == []

    def test_unknown_type(self):
        builder, _ = make_builder({})
        with pytest.raises(InvalidInputError):
            builder.build({"type": "file"}, "Value", "#/inline")

    def test_primitive_reference_is_not_model(self):
        builder, registry = make_builder({"Name": {"type": "string"}})

        assert builder.build_pointer(ref("Name")).type_hint == "str"
        assert registry.models() == []
        # Имя не занято - им может воспользоваться модель
        assert registry.name_owner("Name") is None


class TestObjects:
    """Тесты объектов"""

    def test_object_model(self):
        builder, registry = make_builder(
            {
                "Pet": {
                    "type": "object",
                    "required": ["id"],
                    "properties": {
                        "id": {"type": "integer"},
                        "name": {"type": "string"},
                        "createdAt": {"type": "string", "format": "date-time"},
                        "class": {"type": "string"},
                    },
                }
            }
        )
        declaration = builder.build_pointer(ref("Pet"))
        code = str(declaration.definition)

        assert isinstance(declaration, ModelDeclaration)
        assert code.startswith("class Pet(BaseModel):")
        assert "    id: int\n" in code
        assert "    name: Optional[str] = None" in code
        assert "created_at: Optional[datetime] = Field(default=None, alias='createdAt')" in code
        assert "class_: Optional[str] = Field(default=None, alias='class')" in code
        assert "model_config = ConfigDict(populate_by_name=True)" in code
        # Поля в порядке объявления
        assert code.index("id:") < code.index("name:") < code.index("created_at:")

    def test_additional_properties_allow_extra(self):
        builder, _ = make_builder(
            {
                "Tags": {
                    "type": "object",
                    "properties": {"main": {"type": "string"}},
                    "additionalProperties": True,
                }
            }
        )
        code = str(builder.build_pointer(ref("Tags")).definition)
        assert "model_config = ConfigDict(extra='allow')" in code

    def test_pydantic_member_names(self):
        """Поля с именами атрибутов BaseModel получают суффикс и модель работает"""
        builder, _ = make_builder(
            {
                "Record": {
                    "type": "object",
                    "required": ["model_dump"],
                    "properties": {
                        "model_dump": {"type": "integer"},
                        "schema": {"type": "string"},
                    },
                }
            }
        )
        code = str(builder.build_pointer(ref("Record")).definition)

        assert "model_dump_: int = Field(alias='model_dump')" in code
        assert "schema_: Optional[str] = Field(default=None, alias='schema')" in code
        assert (
            "model_config = ConfigDict(populate_by_name=True, protected_namespaces=())"
        ) in code

        namespace = {}
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            exec(
                "from typing import Any, Dict, List, Optional, Union\n"
                "from pydantic import BaseModel, ConfigDict, Field, RootModel\n\n" + code,
                namespace,
            )

        record = namespace["Record"].model_validate({"model_dump": 1, "schema": "s"})
        assert record.model_dump_ == 1
        assert record.schema_ == "s"
        assert record.model_dump(by_alias=True) == {"model_dump": 1, "schema": "s"}

    def test_nested_inline_object(self):
        builder, registry = make_builder(
            {
                "Order": {
                    "type": "object",
                    "properties": {
                        "items": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "properties": {"sku": {"type": "string"}},
                            },
                        }
                    },
                }
            }
        )
        builder.build_pointer(ref("Order"))

        names = [_.identifier for _ in registry.models()]
        # Вложенная модель регистрируется раньше внешней
        assert names == ["OrderItemsItem", "Order"]
        assert "items: Optional[List[OrderItemsItem]] = None" in str(
            registry.models()[1].definition
        )

    def test_string_enum(self):
        builder, _ = make_builder(
            {"Status": {"type": "string", "enum": ["available", "sold-out", "1st"]}}
        )
        code = str(builder.build_pointer(ref("Status")).definition)

        assert code.startswith("class Status(str, Enum):")
        assert "AVAILABLE = 'available'" in code
        assert "SOLD_OUT = 'sold-out'" in code
        assert "V_1ST = '1st'" in code


class TestRegistry:
    """Тесты дедупликации и циклов"""

    def test_idempotence(self):
        builder, registry = make_builder(
            {"Pet": {"type": "object", "properties": {"id": {"type": "integer"}}}}
        )
        first = builder.build_pointer(ref("Pet"))
        second = builder.build({"$ref": ref("Pet")}, "Other", "#/inline")

        assert first is second
        assert first.identifier == second.identifier == "Pet"
        assert len(registry.models()) == 1

    def test_cycle(self):
        builder, registry = make_builder(
            {
                "A": {"type": "object", "properties": {"b": {"$ref": ref("B")}}},
                "B": {"type": "object", "properties": {"a": {"$ref": ref("A")}}},
            }
        )
        builder.build_pointer(ref("A"))
        builder.build_pointer(ref("B"))

        models = {_.identifier: _ for _ in registry.models()}
        assert sorted(models) == ["A", "B"]
        # B строится внутри A и ссылается на A отложенно
        assert "a: Optional[A] = None" in str(models["B"].definition)
        assert "b: Optional[B] = None" in str(models["A"].definition)

    def test_self_reference(self):
        builder, registry = make_builder(
            {
                "Node": {
                    "type": "object",
                    "properties": {
                        "children": {"type": "array", "items": {"$ref": ref("Node")}}
                    },
                }
            }
        )
        declaration = builder.build_pointer(ref("Node"))

        assert len(registry.models()) == 1
        assert "children: Optional[List[Node]] = None" in str(declaration.definition)

    def test_cycle_through_array(self):
        builder, _ = make_builder(
            {"List": {"type": "array", "items": {"$ref": ref("List")}}}
        )
        with pytest.raises(UnimplementedFeatureError):
            builder.build_pointer(ref("List"))

    def test_reference_loop(self):
        builder, _ = make_builder({"A": {"$ref": ref("B")}, "B": {"$ref": ref("A")}})
        with pytest.raises(InvalidReferenceError):
            builder.build_pointer(ref("A"))

    def test_reference_alias(self):
        builder, registry = make_builder(
            {
                "Pet": {"type": "object", "properties": {"id": {"type": "integer"}}},
                "Animal": {"$ref": ref("Pet")},
            }
        )
        assert builder.build_pointer(ref("Animal")).identifier == "Pet"
        assert builder.build_pointer(ref("Pet")).identifier == "Pet"
        assert len(registry.models()) == 1

    def test_missing_reference(self):
        builder, _ = make_builder({})
        with pytest.raises(InvalidReferenceError):
            builder.build({"$ref": ref("Missing")}, "Value", "#/inline")

    def test_name_collision(self):
        builder, registry = make_builder(
            {
                "Pet": {"type": "object", "properties": {"id": {"type": "integer"}}},
                "Owner": {
                    "type": "object",
                    "properties": {
                        "pet": {
                            "title": "Pet",
                            "type": "object",
                            "properties": {"name": {"type": "string"}},
                        }
                    },
                },
            }
        )
        builder.build_pointer(ref("Pet"))
        builder.build_pointer(ref("Owner"))

        names = [_.identifier for _ in registry.models()]
        assert names == ["Pet", "OwnerPet", "Owner"]

    def test_reserved_names(self):
        builder, _ = make_builder(
            {"Client": {"type": "object", "properties": {"id": {"type": "integer"}}}},
            reserved=["Client"],
        )
        assert builder.build_pointer(ref("Client")).identifier == "Client2"


class TestCompositions:
    """Тесты oneOf / anyOf / allOf / not"""

    def test_not_is_unimplemented(self):
        builder, _ = make_builder({})
        with pytest.raises(UnimplementedFeatureError) as error:
            builder.build({"not": {"type": "string"}}, "Value", "#/inline")
        assert error.value.kind == "unimplemented-feature"

    def test_one_of(self):
        builder, registry = make_builder(
            {
                "X": {"type": "object", "properties": {"id": {"type": "integer"}}},
                "Holder": {
                    "type": "object",
                    "properties": {
                        "value": {"oneOf": [{"$ref": ref("X")}, {"type": "string"}]},
                        "other": {"$ref": ref("X")},
                    },
                },
            }
        )
        builder.build_pointer(ref("Holder"))
        builder.build_pointer(ref("X"))

        models = {_.identifier: _ for _ in registry.models()}
        assert sorted(models) == ["Holder", "HolderValue", "X"]
        assert "root: Union[X, str]" in str(models["HolderValue"].definition)
        assert models["HolderValue"].definition.inherits == ["RootModel"]

    def test_any_of_nullable(self):
        builder, _ = make_builder({})
        declaration = builder.build(
            {"anyOf": [{"type": "integer"}, {"type": "null"}]}, "MaybeInt", "#/inline"
        )
        assert "root: Optional[int]" in str(declaration.definition)

    def test_all_of(self):
        builder, registry = make_builder(
            {
                "Base": {"type": "object", "properties": {"id": {"type": "integer"}}},
                "Dog": {
                    "allOf": [
                        {"$ref": ref("Base")},
                        {"type": "object", "properties": {"bark": {"type": "boolean"}}},
                    ]
                },
            }
        )
        declaration = builder.build_pointer(ref("Dog"))

        assert declaration.definition.inherits == ["Base", "Dog1"]
        assert [_.identifier for _ in registry.models()] == ["Base", "Dog1", "Dog"]

    def test_all_of_skips_description(self):
        """Альтернатива только с описанием не становится базой"""
        builder, _ = make_builder(
            {"Base": {"type": "object", "properties": {"id": {"type": "integer"}}}}
        )
        declaration = builder.build(
            {"allOf": [{"$ref": ref("Base")}, {"description": "Extended base"}]},
            "Extended",
            "#/inline",
        )
        assert declaration.definition.inherits == ["Base"]

    def test_all_of_primitive(self):
        builder, _ = make_builder({})
        with pytest.raises(UnimplementedFeatureError):
            builder.build({"allOf": [{"type": "string"}]}, "Value", "#/inline")

    def test_empty_one_of(self):
        builder, _ = make_builder({})
        with pytest.raises(InvalidInputError):
            builder.build({"oneOf": []}, "Value", "#/inline")
