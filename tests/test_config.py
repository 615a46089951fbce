"""
Тесты для системы конфигурации
"""

import os

import pytest

from auto_api.config import OpenApiConfig, find_config
from auto_api.errors import InvalidInputError


class TestOpenApiConfig:
    """Тесты конфигурации OpenAPI"""

    def test_config_creation(self):
        """Тест создания конфигурации"""
        config = OpenApiConfig(url="file://openapi.json", dirname="test_client")

        assert config.url == "file://openapi.json"
        assert config.dirname == "test_client"
        assert config.base_url is None
        assert config.servers == {}

    def test_config_save_and_load(self, tmp_path):
        """Тест сохранения и загрузки конфигурации"""
        config_path = str(tmp_path / "test_openapi.toml")

        original_config = OpenApiConfig(
            url="https://api.example.com/openapi.json",
            dirname="example_client",
            base_url="https://api.example.com/v2",
            servers={"staging": "https://staging.example.com/v2"},
        )
        original_config.save_to_file(config_path)

        loaded_config = OpenApiConfig.from_file(config_path)

        assert loaded_config == original_config

    def test_config_file_not_exists(self):
        """Тест загрузки несуществующего конфига"""
        assert OpenApiConfig.from_file("nonexistent.toml") is None

    def test_search_dir(self, tmp_path):
        """Конфиг в указанной директории важнее пути по умолчанию"""
        OpenApiConfig(url="file://a.json").save_to_file(str(tmp_path / "openapi.toml"))

        assert find_config("nonexistent.toml", str(tmp_path)) == os.path.join(
            str(tmp_path), "openapi.toml"
        )
        config = OpenApiConfig.from_file("nonexistent.toml", search_dir=str(tmp_path))
        assert config.url == "file://a.json"
        # dirname по умолчанию
        assert config.dirname == "api_client"

    def test_invalid_toml(self, tmp_path):
        """Битый конфиг - ошибка ввода с путем к файлу"""
        config_path = tmp_path / "openapi.toml"
        config_path.write_text("url = \n[[", encoding="utf-8")

        with pytest.raises(InvalidInputError) as error:
            OpenApiConfig.from_file(str(config_path))
        assert error.value.source == str(config_path)

    def test_config_merge_with_args(self):
        """Тест объединения конфига с аргументами"""
        config = OpenApiConfig(
            url="https://localhost:8000/openapi.json",
            dirname="original_client",
            servers={"local": "http://localhost:8000"},
        )

        # Мокаем args
        class MockArgs:
            def __init__(self):
                self.url = "https://api.new.com/openapi.json"
                self.dirname = None
                self.base_url = "https://api.new.com"

        merged = config.merge_with_args(MockArgs())

        assert merged.url == "https://api.new.com/openapi.json"  # Переписан из args
        assert merged.dirname == "original_client"  # Остался из config
        assert merged.base_url == "https://api.new.com"
        assert merged.servers == {"local": "http://localhost:8000"}
