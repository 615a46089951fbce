"""
Закрытый набор вариантов схемы и разбор сырого узла в вариант
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ...errors import InvalidInputError

PRIMITIVE_TYPES = ("string", "number", "integer", "boolean")


@dataclass
class AnySchema:
    """Схема без типа и ограничений - любое значение"""


@dataclass
class RefSchema:
    """Ссылка '$ref' вместо встроенной схемы"""

    reference: str


@dataclass
class StringSchema:
    format: Optional[str] = None
    enum: List[Any] = field(default_factory=list)


@dataclass
class NumberSchema:
    format: Optional[str] = None


@dataclass
class IntegerSchema:
    format: Optional[str] = None


@dataclass
class BooleanSchema:
    pass


@dataclass
class ArraySchema:
    items: Any


@dataclass
class ObjectSchema:
    """Объект: свойства в порядке объявления, additional - схема значений словаря"""

    properties: Dict[str, Any] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)
    additional: Any = None


@dataclass
class OneOfSchema:
    alternatives: List[Any]


@dataclass
class AnyOfSchema:
    alternatives: List[Any]


@dataclass
class AllOfSchema:
    alternatives: List[Any]


@dataclass
class NotSchema:
    negated: Any


Schema = Union[
    AnySchema,
    RefSchema,
    StringSchema,
    NumberSchema,
    IntegerSchema,
    BooleanSchema,
    ArraySchema,
    ObjectSchema,
    OneOfSchema,
    AnyOfSchema,
    AllOfSchema,
    NotSchema,
]


def naming_hint(node: Any) -> Optional[str]:
    """Явное имя на узле: xml.name, затем title"""
    if not isinstance(node, dict):
        return None

    xml = node.get("xml")
    if isinstance(xml, dict) and isinstance(xml.get("name"), str) and xml["name"]:
        return xml["name"]

    title = node.get("title")
    if isinstance(title, str) and title:
        return title

    return None


def parse_schema(node: Any, pointer: str = "#") -> Schema:
    """
    Разбор сырого узла в один из вариантов схемы.

    Дочерние узлы остаются сырыми - их разбирает строитель моделей при рекурсии,
    чтобы у каждого узла был свой указатель.
    """
    if not isinstance(node, dict):
        raise InvalidInputError(f"schema at '{pointer}' must be an object")

    if "$ref" in node:
        if not isinstance(node["$ref"], str):
            raise InvalidInputError(f"'$ref' at '{pointer}' must be a string")
        return RefSchema(reference=node["$ref"])

    # Композиции проверяются раньше type
    for key, variant in (
        ("oneOf", OneOfSchema),
        ("anyOf", AnyOfSchema),
        ("allOf", AllOfSchema),
    ):
        if key in node:
            alternatives = node[key]
            if not isinstance(alternatives, list) or not alternatives:
                raise InvalidInputError(
                    f"'{key}' at '{pointer}' must be a non-empty list"
                )
            return variant(alternatives=list(alternatives))

    if "not" in node:
        return NotSchema(negated=node["not"])

    schema_type = node.get("type")

    # Swagger/JSON Schema допускают объект и массив без явного type
    if schema_type is None:
        if "properties" in node or "additionalProperties" in node:
            schema_type = "object"
        elif "items" in node:
            schema_type = "array"
        elif "enum" in node and all(isinstance(_, str) for _ in node["enum"]):
            schema_type = "string"

    # {} и схемы только с описанием допускают любое значение
    if schema_type is None:
        return AnySchema()

    if schema_type == "string":
        return StringSchema(format=node.get("format"), enum=list(node.get("enum", [])))
    if schema_type == "number":
        return NumberSchema(format=node.get("format"))
    if schema_type == "integer":
        return IntegerSchema(format=node.get("format"))
    if schema_type == "boolean":
        return BooleanSchema()

    if schema_type == "array":
        if "items" not in node:
            raise InvalidInputError(f"array schema at '{pointer}' has no 'items'")
        return ArraySchema(items=node["items"])

    if schema_type == "object":
        properties = node.get("properties") or {}
        if not isinstance(properties, dict):
            raise InvalidInputError(f"'properties' at '{pointer}' must be an object")

        additional = node.get("additionalProperties")
        if additional is False:
            additional = None

        return ObjectSchema(
            properties=dict(properties),
            required=list(node.get("required") or []),
            additional=additional,
        )

    raise InvalidInputError(
        f"unsupported schema shape at '{pointer}' (type={schema_type!r})",
        hint="declare a 'type' of string, number, integer, boolean, array or object",
    )
