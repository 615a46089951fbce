import json
from typing import Any, Dict, Optional

from ...errors import InvalidInputError
from ..generator.client_generator import ClientGenerator
from ..types.models import Project
from .normalizer import normalize_document


def parse_document(text: str) -> Dict[str, Any]:
    """Разбор JSON текста документа"""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidInputError(
            f"document is not valid JSON: {e.msg} (line {e.lineno}, column {e.colno})",
            hint="only JSON documents are supported",
        ) from e

    if not isinstance(document, dict):
        raise InvalidInputError("document root must be a JSON object")
    return document


class OpenApiParser:
    """Парсер OpenAPI спецификации"""

    def __init__(
        self,
        openapi_dict: Dict[str, Any],
        source_url: Optional[str] = None,
        base_url: Optional[str] = None,
        servers: Optional[Dict[str, str]] = None,
    ):
        self.openapi_dict = openapi_dict
        self.source_url = source_url
        self.base_url = base_url
        self.servers = servers

    def parse(self) -> Project:
        """Парсинг OpenAPI в Project структуру"""
        normalized = normalize_document(
            self.openapi_dict, base_url=self.base_url, source_uri=self.source_url
        )
        generator = ClientGenerator(
            self.openapi_dict, normalized, self.source_url, self.servers
        )
        return generator.generate()
