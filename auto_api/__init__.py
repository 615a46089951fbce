"""
Генератор async Python-клиентов из документов Swagger 2.x / OpenAPI 3.0
"""

from .config import OpenApiConfig
from .errors import GenerationError
from .generator import ApiClientGenerator, generate_client, generate_client_from_uri

__all__ = [
    "ApiClientGenerator",
    "GenerationError",
    "OpenApiConfig",
    "generate_client",
    "generate_client_from_uri",
]
