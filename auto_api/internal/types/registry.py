import logging
from typing import Dict, Iterable, List, Optional, Set

from ...errors import UnimplementedFeatureError
from ..utils.naming import to_type_name
from .declarations import ModelDeclaration

logger = logging.getLogger(__name__)

RESERVED = "<reserved>"


class TypeRegistry:
    """
    Реестр сгенерированных моделей: указатель -> декларация.

    Для одного указателя генерация выполняется не больше одного раза, имена
    моделей не пересекаются. Живёт один запуск генерации.
    """

    def __init__(self, reserved_names: Iterable[str] = ()):
        self._models: Dict[str, ModelDeclaration] = {}
        self._names: Dict[str, str] = {name: RESERVED for name in reserved_names}
        self._in_progress: Dict[str, str] = {}
        self._deferred: Set[str] = set()

    def __contains__(self, pointer: str) -> bool:
        return pointer in self._models

    def get(self, pointer: str) -> Optional[ModelDeclaration]:
        return self._models.get(pointer)

    def is_in_progress(self, pointer: str) -> bool:
        return pointer in self._in_progress

    def reserved_name(self, pointer: str) -> Optional[str]:
        return self._in_progress.get(pointer)

    def name_owner(self, name: str) -> Optional[str]:
        return self._names.get(name)

    def reserve_name(
        self, name: str, pointer: str, qualifier: Optional[str] = None
    ) -> str:
        """
        Занимает имя за указателем.

        Если имя уже за другим указателем - уточняем именем владельца
        (операции или схемы), затем нумеруем.
        """
        candidates = [name]
        if qualifier:
            qualified = to_type_name(qualifier + name)
            if qualified != name:
                candidates.append(qualified)

        for candidate in candidates:
            if self._names.get(candidate, pointer) == pointer:
                self._names[candidate] = pointer
                return candidate

        base = candidates[-1]
        index = 2
        while self._names.get(f"{base}{index}", pointer) != pointer:
            index += 1

        unique = f"{base}{index}"
        self._names[unique] = pointer
        logger.debug("Имя %s занято, для %s выбрано %s", name, pointer, unique)
        return unique

    def begin(self, pointer: str, name: str, qualifier: Optional[str] = None) -> str:
        """Помечает указатель как строящийся и резервирует имя"""
        reserved = self.reserve_name(name, pointer, qualifier)
        self._in_progress[pointer] = reserved
        return reserved

    def defer(self, pointer: str) -> str:
        """Повторная встреча строящегося указателя - цикл, отдаём отложенное имя"""
        self._deferred.add(pointer)
        logger.debug("Цикл через %s, ссылка отложена", pointer)
        return self._in_progress[pointer]

    def register(self, pointer: str, declaration: ModelDeclaration) -> ModelDeclaration:
        self._in_progress.pop(pointer, None)
        self._deferred.discard(pointer)
        self._names[declaration.identifier] = pointer
        self._models[pointer] = declaration
        return declaration

    def alias(self, pointer: str, declaration: ModelDeclaration) -> ModelDeclaration:
        """Другой указатель на ту же модель (цепочка $ref)"""
        self._models.setdefault(pointer, declaration)
        return declaration

    def abandon(self, pointer: str) -> None:
        """Узел оказался не моделью: снимаем пометку и освобождаем имя"""
        name = self._in_progress.pop(pointer, None)

        if pointer in self._deferred:
            self._deferred.discard(pointer)
            raise UnimplementedFeatureError(
                f"schema '{pointer}' refers to itself but is not an object or union",
                hint="wrap the recursive schema in an object",
            )

        if name is not None and self._names.get(name) == pointer:
            del self._names[name]

    def models(self) -> List[ModelDeclaration]:
        """Уникальные модели в порядке регистрации"""
        seen = set()
        result = []
        for declaration in self._models.values():
            if id(declaration) not in seen:
                seen.add(id(declaration))
                result.append(declaration)
        return result
