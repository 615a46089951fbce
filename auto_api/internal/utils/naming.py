"""Движок имен: слова, snake_case/PascalCase и валидные идентификаторы"""

import keyword
import re
from typing import List

from pydantic import BaseModel

# Одно слово - это либо строчные/цифры с необязательной заглавной впереди,
# либо подряд идущие заглавные: camelCase, PascalCase, snake_case, SCREAMING_SNAKE
WORD_PATTERN = re.compile(r"[A-Z]?[a-z0-9]+|[A-Z]+")

# Имена, которые нельзя отдавать полям сгенерированных моделей
RESERVED_FIELD_NAMES = {
    # имена из аннотаций сгенерированных моделей
    "self",
    "str",
    "int",
    "float",
    "bool",
    "bytes",
    "date",
    "datetime",
}

# Атрибуты pydantic.BaseModel, включая устаревшие parse_obj, schema_json и т.п.
BASE_MODEL_MEMBERS = frozenset(dir(BaseModel))


def split_words(text: str) -> List[str]:
    """
    Разбивает произвольный текст на слова.

    Examples:
        >>> split_words("getPetById")
        ['get', 'Pet', 'By', 'Id']
        >>> split_words("SCREAMING_SNAKE")
        ['SCREAMING', 'SNAKE']
    """
    return WORD_PATTERN.findall(text)


def convert_to_snake(text: str) -> str:
    """PascalCase / camelCase / SCREAMING_SNAKE -> snake_case"""
    return "_".join(split_words(text)).lower()


def convert_to_pascal(text: str) -> str:
    """snake_case / camelCase / SCREAMING_SNAKE -> PascalCase"""
    return "".join(
        word[0].upper() + word[1:].lower() if len(word) > 1 else word.upper()
        for word in split_words(text)
    )


def to_identifier(text: str, fallback: str = "value") -> str:
    """Валидное имя метода или поля в snake_case"""
    name = convert_to_snake(text) or fallback
    if name[0].isdigit():
        name = f"_{name}"
    # model_ - пространство имен pydantic
    if (
        keyword.iskeyword(name)
        or name.startswith("model_")
        or name in RESERVED_FIELD_NAMES
        or name in BASE_MODEL_MEMBERS
    ):
        name = f"{name}_"
    return name


def to_type_name(text: str, fallback: str = "Model") -> str:
    """Валидное имя класса в PascalCase"""
    # Простые имена типа LoginResponse, HTTPError оставляем как есть
    if text and text[0].isupper() and text.isidentifier() and "_" not in text:
        return text

    name = convert_to_pascal(text) or fallback
    if name[0].isdigit():
        name = f"_{name}"
    return name


def operation_name_components(method: str, path: str) -> List[str]:
    """
    Компоненты имени операции без operationId.

    Путь режется по '/', query-строка раскладывается на голову и имена
    параметров, поэтому операции, отличающиеся только query, получают разные имена.

    Examples:
        >>> operation_name_components("GET", "/pets/{id}?ownerId=x")
        ['get', 'pets', '{id}', 'ownerId']
    """
    components = [method.lower()]

    for part in path.split("/"):
        if not part:
            continue

        if "?" in part:
            head, args = part.split("?", 1)
            if head:
                components.append(head)
            for arg in args.split("&"):
                arg_name = arg.split("=", 1)[0]
                if arg_name:
                    components.append(arg_name)
        else:
            components.append(part)

    return components


def fallback_operation_name(method: str, path: str) -> str:
    return "_".join(operation_name_components(method, path))
