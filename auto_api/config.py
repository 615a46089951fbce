"""
Конфигурация для генерации API клиента
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

import toml

from .errors import InvalidInputError

CONFIG_NAME = "openapi.toml"


def find_config(
    config_path: str = CONFIG_NAME, search_dir: Optional[str] = None
) -> Optional[str]:
    """Путь к существующему конфигу: сначала в search_dir, затем config_path"""
    # Если указана директория для поиска, ищем конфиг там
    if search_dir and os.path.isdir(search_dir):
        config_in_dir = os.path.join(search_dir, CONFIG_NAME)
        if os.path.exists(config_in_dir):
            return config_in_dir

    return config_path if os.path.exists(config_path) else None


@dataclass
class OpenApiConfig:
    """Конфигурация генератора OpenAPI клиента"""

    url: Optional[str] = None
    dirname: Optional[str] = None
    base_url: Optional[str] = None
    # Дополнительные именованные серверы: имя -> URL
    servers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_file(
        cls, config_path: str = CONFIG_NAME, search_dir: Optional[str] = None
    ) -> Optional["OpenApiConfig"]:
        """Загрузка конфигурации из файла"""
        config_path = find_config(config_path, search_dir)
        if config_path is None:
            return None

        try:
            config_data = toml.load(config_path)
        except toml.TomlDecodeError as e:
            raise InvalidInputError(
                f"config file is not valid TOML: {e}", source=config_path
            ) from e

        servers = config_data.get("servers") or {}
        if not isinstance(servers, dict):
            raise InvalidInputError(
                "'servers' must be a table of name = url pairs", source=config_path
            )

        return cls(
            url=config_data.get("url"),
            dirname=config_data.get("dirname", "api_client"),
            base_url=config_data.get("base_url"),
            servers={str(k): str(v) for k, v in servers.items()},
        )

    def save_to_file(self, config_path: str = CONFIG_NAME) -> None:
        """Сохранение конфигурации в файл"""
        config_data = {
            "url": self.url,
            "dirname": self.dirname,
            "base_url": self.base_url,
        }
        config_data = {k: v for k, v in config_data.items() if v is not None}
        if self.servers:
            config_data["servers"] = dict(self.servers)

        with open(config_path, "w", encoding="utf-8") as f:
            toml.dump(config_data, f)

    def merge_with_args(self, args) -> "OpenApiConfig":
        """Объединение с аргументами командной строки"""
        return OpenApiConfig(
            url=args.url or self.url,
            dirname=args.dirname or self.dirname,
            base_url=getattr(args, "base_url", None) or self.base_url,
            servers=dict(self.servers),
        )
