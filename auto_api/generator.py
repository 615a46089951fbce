"""
Главный модуль генератора - чистый интерфейс
"""

from typing import Any, Dict, Optional

from .errors import GenerationError
from .internal.parser.openapi import OpenApiParser, parse_document
from .internal.types.models import Project
from .internal.utils.resource import read_resource


class ApiClientGenerator:
    """Чистый интерфейс для генерации API клиентов"""

    def __init__(
        self,
        openapi_spec: Dict[str, Any],
        source_url: Optional[str] = None,
        base_url: Optional[str] = None,
        servers: Optional[Dict[str, str]] = None,
    ):
        self.source_url = source_url
        self.parser = OpenApiParser(openapi_spec, source_url, base_url, servers)

    def generate(self) -> Project:
        """Генерация проекта клиента"""
        try:
            return self.parser.parse()
        except GenerationError as e:
            e.with_source(self.source_url)
            raise


def generate_client(
    openapi_spec: Dict[str, Any],
    source_url: Optional[str] = None,
    base_url: Optional[str] = None,
    servers: Optional[Dict[str, str]] = None,
) -> Project:
    """Создание API клиента из OpenAPI спецификации"""
    generator = ApiClientGenerator(openapi_spec, source_url, base_url, servers)
    return generator.generate()


def generate_client_from_uri(
    uri: str,
    root_dir: Optional[str] = None,
    base_url: Optional[str] = None,
    servers: Optional[Dict[str, str]] = None,
) -> Project:
    """
    Загрузка документа по URI и генерация клиента.

    Любая ошибка генерации несет uri как источник.
    """
    try:
        openapi_spec = parse_document(read_resource(uri, root_dir=root_dir))
    except GenerationError as e:
        e.with_source(uri)
        raise

    return generate_client(openapi_spec, uri, base_url, servers)
