import logging
from typing import Any, Optional, Set

from ...errors import InvalidReferenceError, UnimplementedFeatureError
from ..parser.reference import ReferenceResolver, join_pointer, last_segment
from ..types.declarations import (
    GeneratedDeclaration,
    ModelDeclaration,
    PropertyDeclaration,
)
from ..types.models import Class, CodeBlock, Parameter, Variable
from ..types.registry import TypeRegistry
from ..types.schema import (
    AllOfSchema,
    AnySchema,
    AnyOfSchema,
    ArraySchema,
    BooleanSchema,
    IntegerSchema,
    NotSchema,
    NumberSchema,
    ObjectSchema,
    OneOfSchema,
    RefSchema,
    Schema,
    StringSchema,
    naming_hint,
    parse_schema,
)
from ..utils.naming import to_identifier, to_type_name

logger = logging.getLogger(__name__)

STRING_FORMATS = {
    "date-time": "datetime",
    "datetime": "datetime",
    "date": "date",
    "binary": "bytes",
}


class SchemaModelBuilder:
    """
    Рекурсивное построение деклараций из схем.

    Объекты, union и enum становятся моделями и регистрируются в TypeRegistry
    по указателю; примитивы, массивы и словари - свойствами с аннотацией.
    """

    def __init__(self, resolver: ReferenceResolver, registry: TypeRegistry):
        self.resolver = resolver
        self.registry = registry
        self._alias_chain: Set[str] = set()

    def build_pointer(
        self, pointer: str, base_name: str = ""
    ) -> GeneratedDeclaration:
        """Декларация для схемы по указателю; base_name уточняет имя при коллизии"""
        return self._build_reference(pointer, base_name or None)

    def build(
        self,
        node: Any,
        base_name: str,
        pointer: str,
        qualifier: Optional[str] = None,
    ) -> GeneratedDeclaration:
        """Декларация для встроенной схемы (или $ref) по месту pointer"""
        schema = parse_schema(node, pointer)

        if isinstance(schema, RefSchema):
            return self._build_reference(schema.reference, qualifier or base_name)

        cached = self.registry.get(pointer)
        if cached is not None:
            return cached

        name = to_type_name(naming_hint(node) or base_name)
        return self._build_schema(schema, node, name, pointer, qualifier)

    def _build_reference(
        self, reference: str, qualifier: Optional[str]
    ) -> GeneratedDeclaration:
        cached = self.registry.get(reference)
        if cached is not None:
            logger.debug("Модель для %s уже сгенерирована", reference)
            return cached

        if self.registry.is_in_progress(reference):
            name = self.registry.defer(reference)
            return PropertyDeclaration(
                identifier=to_identifier(name), type_hint=name, deferred=True
            )

        node = self.resolver.resolve(reference)
        schema = parse_schema(node, reference)
        name = to_type_name(naming_hint(node) or last_segment(reference))

        if isinstance(schema, RefSchema):
            # Ссылка на ссылку - модель та же, запоминаем второй указатель
            if reference in self._alias_chain:
                raise InvalidReferenceError(
                    reference, hint="the reference chain loops back on itself"
                )
            self._alias_chain.add(reference)
            try:
                declaration = self._build_reference(schema.reference, qualifier)
            finally:
                self._alias_chain.discard(reference)

            if isinstance(declaration, ModelDeclaration):
                self.registry.alias(reference, declaration)
            return declaration

        reserved = self.registry.begin(reference, name, qualifier)
        declaration = self._build_schema(schema, node, reserved, reference, qualifier)

        if not isinstance(declaration, ModelDeclaration):
            self.registry.abandon(reference)

        return declaration

    def _build_schema(
        self,
        schema: Schema,
        node: Any,
        name: str,
        pointer: str,
        qualifier: Optional[str],
    ) -> GeneratedDeclaration:
        """Один разбор на все варианты схемы"""
        if isinstance(schema, RefSchema):
            return self._build_reference(schema.reference, qualifier or name)

        if isinstance(schema, AnySchema):
            return PropertyDeclaration(identifier=to_identifier(name), type_hint="Any")

        if isinstance(schema, StringSchema):
            if schema.enum:
                return self._build_enum(schema, name, pointer, qualifier)
            return PropertyDeclaration(
                identifier=to_identifier(name),
                type_hint=STRING_FORMATS.get(schema.format, "str"),
            )

        if isinstance(schema, NumberSchema):
            return PropertyDeclaration(identifier=to_identifier(name), type_hint="float")

        if isinstance(schema, IntegerSchema):
            return PropertyDeclaration(identifier=to_identifier(name), type_hint="int")

        if isinstance(schema, BooleanSchema):
            return PropertyDeclaration(identifier=to_identifier(name), type_hint="bool")

        if isinstance(schema, ArraySchema):
            element = self.build(
                schema.items,
                f"{name}Item",
                join_pointer(pointer, "items"),
                qualifier=qualifier,
            )
            return PropertyDeclaration(
                identifier=to_identifier(name),
                type_hint=str(Variable(value=element.type_hint, wrap_name="List")),
            )

        if isinstance(schema, ObjectSchema):
            if not schema.properties:
                return self._build_mapping(schema, name, pointer, qualifier)
            return self._build_object(schema, name, pointer, qualifier)

        if isinstance(schema, (OneOfSchema, AnyOfSchema)):
            key = "oneOf" if isinstance(schema, OneOfSchema) else "anyOf"
            return self._build_union(schema, key, name, pointer, qualifier)

        if isinstance(schema, AllOfSchema):
            return self._build_all_of(schema, name, pointer, qualifier)

        if isinstance(schema, NotSchema):
            raise UnimplementedFeatureError(
                f"'not' schema at '{pointer}' is unsupported",
                hint="constraint negation has no generated representation",
            )

        raise TypeError(f"Неизвестный вариант схемы: {schema!r}")

    def _claim(self, pointer: str, name: str, qualifier: Optional[str]) -> str:
        """Имя модели: уже зарезервированное для $ref или новое для встроенной схемы"""
        reserved = self.registry.reserved_name(pointer)
        if reserved is not None:
            return reserved
        return self.registry.begin(pointer, to_type_name(name), qualifier)

    def _alternative_name(self, identifier: str, alternative: Any, index: int) -> str:
        hint = naming_hint(alternative)
        return identifier + (to_type_name(hint) if hint else str(index))

    def _build_mapping(
        self, schema: ObjectSchema, name: str, pointer: str, qualifier: Optional[str]
    ) -> PropertyDeclaration:
        """Объект без properties - словарь"""
        value_hint = "Any"

        if isinstance(schema.additional, dict) and schema.additional:
            value = self.build(
                schema.additional,
                f"{name}Value",
                join_pointer(pointer, "additionalProperties"),
                qualifier=qualifier,
            )
            value_hint = value.type_hint

        return PropertyDeclaration(
            identifier=to_identifier(name),
            type_hint=str(Variable(value=["str", value_hint], wrap_name="Dict")),
        )

    def _build_object(
        self, schema: ObjectSchema, name: str, pointer: str, qualifier: Optional[str]
    ) -> ModelDeclaration:
        identifier = self._claim(pointer, name, qualifier)
        model = Class(name=identifier, inherits=["BaseModel"])

        used_names = set()
        aliased = False

        for key, field_node in schema.properties.items():
            field = self.build(
                field_node,
                identifier + to_type_name(key, fallback="Field"),
                join_pointer(pointer, "properties", key),
                qualifier=identifier,
            )

            field_name = to_identifier(key, fallback="field")
            unique_name = field_name
            index = 2
            while unique_name in used_names:
                unique_name = f"{field_name}_{index}"
                index += 1
            used_names.add(unique_name)

            field_type = Variable(value=field.type_hint)
            required = key in schema.required
            if not required:
                field_type = Variable(value=field_type, wrap_name="Optional")

            default = None
            if unique_name != key:
                aliased = True
                arguments = ([] if required else ["default=None"]) + [f"alias={key!r}"]
                default = Variable(value=f"Field({', '.join(arguments)})")
            elif not required:
                default = Variable(value="None")

            model.parameters.append(
                Parameter(name=unique_name, var_type=field_type, default=default)
            )

        config = []
        if aliased:
            config.append("populate_by_name=True")
        if schema.additional:
            config.append("extra='allow'")
        if any(_.startswith("model_") for _ in used_names):
            config.append("protected_namespaces=()")
        if config:
            model.add_code_block(
                CodeBlock(code=f"model_config = ConfigDict({', '.join(config)})", order=1)
            )

        return self.registry.register(
            pointer, ModelDeclaration(identifier=identifier, definition=model, pointer=pointer)
        )

    def _build_enum(
        self, schema: StringSchema, name: str, pointer: str, qualifier: Optional[str]
    ) -> ModelDeclaration:
        identifier = self._claim(pointer, name, qualifier)
        model = Class(name=identifier, inherits=["str", "Enum"])

        used_names = set()
        for value in schema.enum:
            member = to_identifier(str(value)).strip("_").upper() or "VALUE"
            if member[0].isdigit():
                member = f"V_{member}"
            unique = member
            index = 2
            while unique in used_names:
                unique = f"{member}_{index}"
                index += 1
            used_names.add(unique)

            model.parameters.append(
                Parameter(name=unique, default=Variable(value=repr(str(value))))
            )

        return self.registry.register(
            pointer, ModelDeclaration(identifier=identifier, definition=model, pointer=pointer)
        )

    def _build_union(
        self,
        schema: Schema,
        key: str,
        name: str,
        pointer: str,
        qualifier: Optional[str],
    ) -> ModelDeclaration:
        identifier = self._claim(pointer, name, qualifier)

        hints = []
        nullable = False
        for index, alternative in enumerate(schema.alternatives):
            if isinstance(alternative, dict) and alternative.get("type") == "null":
                nullable = True
                continue

            declaration = self.build(
                alternative,
                self._alternative_name(identifier, alternative, index),
                join_pointer(pointer, key, index),
                qualifier=identifier,
            )
            if declaration.type_hint not in hints:
                hints.append(declaration.type_hint)

        if not hints:
            raise UnimplementedFeatureError(
                f"'{key}' at '{pointer}' allows only null",
            )

        root_type = (
            Variable(value=hints, wrap_name="Union")
            if len(hints) > 1
            else Variable(value=hints[0])
        )
        if nullable:
            root_type = Variable(value=root_type, wrap_name="Optional")

        model = Class(name=identifier, inherits=["RootModel"])
        model.parameters.append(Parameter(name="root", var_type=root_type))

        return self.registry.register(
            pointer, ModelDeclaration(identifier=identifier, definition=model, pointer=pointer)
        )

    def _build_all_of(
        self, schema: AllOfSchema, name: str, pointer: str, qualifier: Optional[str]
    ) -> ModelDeclaration:
        """allOf - объединённая запись: модель наследует все альтернативы"""
        identifier = self._claim(pointer, name, qualifier)

        bases = []
        for index, alternative in enumerate(schema.alternatives):
            alternative_pointer = join_pointer(pointer, "allOf", index)
            # Описание без ограничений ничего не добавляет к записи
            if isinstance(alternative, dict) and isinstance(
                parse_schema(alternative, alternative_pointer), AnySchema
            ):
                continue

            declaration = self.build(
                alternative,
                self._alternative_name(identifier, alternative, index),
                alternative_pointer,
                qualifier=identifier,
            )

            if (
                not isinstance(declaration, ModelDeclaration)
                or {"RootModel", "Enum"} & set(declaration.definition.inherits)
            ):
                raise UnimplementedFeatureError(
                    f"'allOf' alternative '{alternative_pointer}' is not an object schema",
                    hint="only object schemas can be merged into one record",
                )

            if declaration.identifier not in bases:
                bases.append(declaration.identifier)

        model = Class(name=identifier, inherits=bases or ["BaseModel"])

        return self.registry.register(
            pointer, ModelDeclaration(identifier=identifier, definition=model, pointer=pointer)
        )
