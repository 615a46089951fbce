from dataclasses import dataclass
from typing import Optional, Union

from .models import Class


@dataclass
class PropertyDeclaration:
    """Примитив, массив или словарь - отдельный тип не нужен, только аннотация"""

    identifier: str
    type_hint: str
    # Ссылка на модель, которая ещё строится (цикл) - разрешается через model_rebuild()
    deferred: bool = False


@dataclass
class ModelDeclaration:
    """Именованный тип: BaseModel, RootModel для union или Enum"""

    identifier: str
    definition: Class
    pointer: Optional[str] = None

    @property
    def type_hint(self) -> str:
        return self.identifier


GeneratedDeclaration = Union[PropertyDeclaration, ModelDeclaration]
