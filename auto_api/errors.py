"""
Ошибки генерации клиента
"""

from typing import Optional


class GenerationError(Exception):
    """Базовая ошибка генерации - прерывает текущий запуск целиком"""

    kind = "generation-error"

    def __init__(
        self, message: str, hint: Optional[str] = None, source: Optional[str] = None
    ):
        self.message = message
        self.hint = hint
        self.source = source
        super().__init__(message)

    def with_source(self, source: str) -> "GenerationError":
        """Привязка ошибки к ссылке на документ (если ещё не привязана)"""
        if self.source is None:
            self.source = source
        return self

    def __str__(self) -> str:
        text = f"[{self.kind}] {self.message}"
        if self.source:
            text = f"{self.source}: {text}"
        if self.hint:
            text += f" (help: {self.hint})"
        return text


class InvalidInputError(GenerationError):
    """Некорректный литерал или JSON"""

    kind = "invalid-input"


class InvalidReferenceError(GenerationError):
    """Указатель не разрешается в документе"""

    kind = "invalid-reference"

    def __init__(self, reference: str, hint: Optional[str] = None):
        self.reference = reference
        super().__init__(f"reference '{reference}' does not resolve", hint=hint)


class UnsupportedProtocolError(GenerationError):
    kind = "unsupported-protocol"


class ResourceLoadError(GenerationError):
    kind = "resource-load-failed"


class UnimplementedFeatureError(GenerationError):
    """Конструкция распознана, но намеренно не поддерживается"""

    kind = "unimplemented-feature"


class UnsupportedReferenceError(UnimplementedFeatureError):
    """Нелокальные ссылки ('other.json#/a') не поддерживаются"""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(
            f"non-local reference '{reference}' is unsupported",
            hint="inline the external document or use '#/...' pointers",
        )


class ConfigurationIncompleteError(GenerationError):
    kind = "configuration-incomplete"
