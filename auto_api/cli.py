import argparse
import logging
import os
import sys
from typing import Optional

from auto_api.config import CONFIG_NAME, OpenApiConfig, find_config
from auto_api.errors import GenerationError
from auto_api.generator import generate_client_from_uri
from auto_api.internal.types.models import Project


def confirm_choice(message: str) -> bool:
    """Запрос подтверждения у пользователя"""
    while True:
        choice = input(f"{message} (y/n): ").lower().strip()
        if choice in ["y", "yes", "да", ""]:
            return True
        elif choice in ["n", "no", "нет"]:
            return False
        print("Введите y/n")


def _generate_client_core(config: OpenApiConfig, root_dir: Optional[str]) -> Project:
    """Ядро генерации клиента - только генерация без сохранения"""
    print(f"🚀 Генерация клиента из {config.url}")
    print("⚙️ Генерация кода...")

    return generate_client_from_uri(
        config.url,
        root_dir=root_dir,
        base_url=config.base_url,
        servers=config.servers,
    )


def _save_project_files(project: Project, target_path: str):
    """Сохранение файлов проекта"""
    print(f"💾 Сохранение {len(project.files)} файлов...")

    for code_model in project.files:
        path = os.path.join(target_path, code_model.file_name)
        os.makedirs(os.path.dirname(path), exist_ok=True)

        # Пользовательский конфиг полнее сгенерированного (base_url, servers)
        if code_model.file_name == CONFIG_NAME and os.path.exists(path):
            print(f"📋 Существующий {CONFIG_NAME} сохранен без изменений")
            continue

        with open(path, "w", encoding="utf-8") as f:
            f.write(str(code_model))

    print("✅ Генерация завершена успешно!")
    print(f"📦 Клиент создан в: {os.path.abspath(target_path)}")


def _print_config(title: str, url, dirname, base_url=None):
    print(title)
    if url:
        print(f"   URL: {url}")
    if dirname:
        print(f"   Директория: {dirname}")
    if base_url:
        print(f"   Base URL: {base_url}")
    print()


def generate():
    """Универсальная команда генерации OpenAPI клиента"""
    parser = argparse.ArgumentParser(description="Генерация Python клиента из OpenAPI")
    parser.add_argument(
        "--url",
        type=str,
        help="URI документа OpenAPI: file://path/openapi.json или https://...",
    )
    parser.add_argument("--dirname", type=str, help="Директория для генерации клиента")
    parser.add_argument(
        "--base-url", type=str, help="Базовый URL API (если не выводится из документа)"
    )
    parser.add_argument(
        "--init-config", action="store_true", help="Создать конфиг файл openapi.toml"
    )
    parser.add_argument(
        "--force", action="store_true", help="Генерировать без подтверждения"
    )
    parser.add_argument("--verbose", action="store_true", help="Подробный лог")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Инициализация конфига
    if args.init_config:
        config = OpenApiConfig(
            url=args.url,
            dirname=args.dirname or "api_client",
            base_url=args.base_url,
        )
        config.save_to_file()
        print(f"✅ Создан конфиг файл {CONFIG_NAME}")
        return

    try:
        # Загрузка конфига из файла
        config_path = find_config(search_dir=args.dirname)
        file_config = OpenApiConfig.from_file(search_dir=args.dirname)
    except GenerationError as e:
        print(f"❌ Ошибка конфигурации: {e}")
        sys.exit(1)

    # Определение финальной конфигурации
    if file_config and (args.url or args.dirname or args.base_url):
        # Есть и конфиг и аргументы - спрашиваем пользователя
        _print_config(
            f"🔧 Найден конфиг файл {config_path}:",
            file_config.url,
            file_config.dirname,
            file_config.base_url,
        )
        _print_config("📝 Переданы аргументы:", args.url, args.dirname, args.base_url)

        if args.force or confirm_choice("Использовать конфиг из файла?"):
            final_config = file_config
        else:
            final_config = file_config.merge_with_args(args)
    elif file_config:
        print(f"📋 Используется конфиг из {config_path}")
        final_config = file_config
    elif args.url:
        # Только аргументы
        final_config = OpenApiConfig(
            url=args.url,
            dirname=args.dirname or "api_client",
            base_url=args.base_url,
        )
    else:
        # Нет ни конфига ни URL
        print("❌ Ошибка: Укажите URL или создайте конфиг с --init-config")
        sys.exit(1)

    # Проверка обязательных параметров
    if not final_config.url:
        print("❌ Ошибка: URL не указан ни в конфиге, ни в аргументах")
        sys.exit(1)

    # Относительные file:// пути считаются от папки конфига
    root_dir = os.path.dirname(os.path.abspath(config_path)) if config_path else None

    # Если указан dirname и в нём найден конфиг, генерируем прямо в эту директорию
    if args.dirname and file_config:
        work_path = args.dirname
        print(f"📁 Генерация в существующую папку: {work_path}")
    else:
        work_path = os.path.join(os.getcwd(), final_config.dirname or "api_client")
        print(f"📁 Создание новой папки: {final_config.dirname}")

    try:
        project = _generate_client_core(final_config, root_dir)
    except GenerationError as e:
        print(f"❌ Ошибка генерации: {e}")
        sys.exit(1)

    _save_project_files(project, work_path)

    # Полный конфиг рядом с клиентом
    if not file_config and (
        args.force or confirm_choice(f"Сохранить настройки в {CONFIG_NAME}?")
    ):
        config_path = os.path.join(work_path, CONFIG_NAME)
        final_config.save_to_file(config_path)
        print(f"💾 Конфиг сохранен в {config_path}")


if __name__ == "__main__":
    generate()
