"""
Тесты команды auto-api
"""

import json
import sys

import pytest

from auto_api import cli
from auto_api.config import OpenApiConfig

API_SPEC = {
    "openapi": "3.0.0",
    "info": {"title": "Notes", "version": "1.0.0"},
    "paths": {
        "/notes": {
            "get": {
                "operationId": "listNotes",
                "responses": {"200": {"description": "Success"}},
            }
        }
    },
}


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "api.json").write_text(json.dumps(API_SPEC), encoding="utf-8")
    return tmp_path


def run(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["auto-api", *args])
    cli.generate()


class TestGenerateCommand:
    """Тесты генерации из командной строки"""

    def test_existing_config_is_kept(self, workdir, monkeypatch):
        """Конфиг в папке клиента не перезаписывается сгенерированным"""
        (workdir / "client").mkdir()
        config = OpenApiConfig(
            url="file://../api.json",
            dirname="client",
            base_url="https://api.example.com",
            servers={"staging": "https://staging.example.com"},
        )
        config.save_to_file(str(workdir / "client" / "openapi.toml"))

        run(monkeypatch, "--dirname", "client", "--force")

        assert (workdir / "client" / "client.py").exists()
        assert OpenApiConfig.from_file(str(workdir / "client" / "openapi.toml")) == config

        servers = (workdir / "client" / "servers.py").read_text(encoding="utf-8")
        assert "DEFAULT_URL: str = 'https://api.example.com'" in servers
        assert "'staging': 'https://staging.example.com'" in servers

    def test_config_saved_for_new_client(self, workdir, monkeypatch):
        """Без конфига сохраняются все переданные настройки"""
        run(
            monkeypatch,
            "--url",
            "file://api.json",
            "--dirname",
            "out",
            "--base-url",
            "https://api.example.com",
            "--force",
        )

        assert (workdir / "out" / "client.py").exists()
        config = OpenApiConfig.from_file(str(workdir / "out" / "openapi.toml"))
        assert config.url == "file://api.json"
        assert config.dirname == "out"
        assert config.base_url == "https://api.example.com"

    def test_generation_error_exits(self, workdir, monkeypatch, capsys):
        """Документ без сервера и без --base-url - выход с кодом 1"""
        with pytest.raises(SystemExit) as error:
            run(monkeypatch, "--url", "file://api.json", "--dirname", "out", "--force")

        assert error.value.code == 1
        assert "❌ Ошибка генерации" in capsys.readouterr().out
