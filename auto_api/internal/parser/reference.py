"""
Разрешение локальных ссылок '#/a/b/c' внутри документа
"""

from typing import Any, List, Tuple
from urllib.parse import quote, unquote

from ...errors import InvalidReferenceError, UnsupportedReferenceError


def _decode_segment(segment: str) -> str:
    return unquote(segment).replace("~1", "/").replace("~0", "~")


def _encode_segment(segment: str) -> str:
    return quote(str(segment).replace("~", "~0").replace("/", "~1"), safe="~{}$")


def parse_pointer(reference: str) -> List[str]:
    """
    Разбор указателя на сегменты пути.

    Поддерживаются только локальные указатели, всё остальное (включая
    'other.json#/a') - ошибка, документ никогда не догружается.
    """
    if not isinstance(reference, str) or not reference.startswith("#"):
        raise UnsupportedReferenceError(str(reference))

    body = reference[1:]
    if not body:
        return []
    if not body.startswith("/"):
        raise InvalidReferenceError(reference)

    return [_decode_segment(segment) for segment in body[1:].split("/")]


def join_pointer(pointer: str, *segments: Any) -> str:
    """Указатель на дочерний узел, сегменты экранируются"""
    return pointer.rstrip("/") + "".join(
        "/" + _encode_segment(segment) for segment in segments
    )


def last_segment(reference: str) -> str:
    segments = parse_pointer(reference)
    return segments[-1] if segments else ""


class ReferenceResolver:
    """Резолвер ссылок - чистая функция от документа и указателя"""

    def __init__(self, document: Any):
        self.document = document

    def resolve(self, reference: str) -> Any:
        """
        Получение узла по указателю.

        Raises:
            UnsupportedReferenceError: указатель не локальный
            InvalidReferenceError: сегмент отсутствует или узел не контейнер;
                в ошибке всегда исходный указатель, а не сегмент
        """
        node = self.document

        for segment in parse_pointer(reference):
            if isinstance(node, dict):
                if segment not in node:
                    raise InvalidReferenceError(reference)
                node = node[segment]
            elif isinstance(node, list):
                if not segment.isdigit() or int(segment) >= len(node):
                    raise InvalidReferenceError(reference)
                node = node[int(segment)]
            else:
                raise InvalidReferenceError(reference)

        return node

    def resolve_target(self, node: Any, pointer: str = "#") -> Tuple[Any, str]:
        """
        Раскрывает цепочку {'$ref': ...} до конечного узла.

        Возвращает узел и указатель на него; pointer - место исходного узла.
        """
        seen = set()
        while isinstance(node, dict) and isinstance(node.get("$ref"), str):
            pointer = node["$ref"]
            if pointer in seen:
                raise InvalidReferenceError(
                    pointer, hint="the reference chain loops back on itself"
                )
            seen.add(pointer)
            node = self.resolve(pointer)
        return node, pointer

    def resolve_node(self, node: Any) -> Any:
        """Раскрывает узел, если это {'$ref': ...}, цепочки ссылок тоже"""
        return self.resolve_target(node)[0]
