"""Чтение документа по URI: file:// и http(s)://"""

import logging
import os
from typing import Optional

import httpx

from ...errors import InvalidInputError, ResourceLoadError, UnsupportedProtocolError

logger = logging.getLogger(__name__)


def read_resource(uri: str, root_dir: Optional[str] = None, timeout: float = 30.0) -> str:
    """
    Чтение текста ресурса.

    Args:
        uri: 'file://relative/path.json', 'file:///abs/path.json' или 'http(s)://...'
        root_dir: корень проекта для относительных file:// путей (по умолчанию CWD)

    Raises:
        InvalidInputError: в URI нет '://'
        UnsupportedProtocolError: протокол не file/http/https
        ResourceLoadError: ошибка сети или файловой системы
    """
    if "://" not in uri:
        raise InvalidInputError(
            f"resource URI '{uri}' must contain '://' splitting protocol and path",
            hint="use file://path/to/openapi.json or https://host/openapi.json",
        )

    protocol, path = uri.split("://", 1)
    protocol = protocol.lower()

    if protocol in ("http", "https"):
        logger.debug("Загрузка %s", uri)
        try:
            response = httpx.get(uri, timeout=timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ResourceLoadError(
                f"failed to fetch '{uri}': {e}",
                hint="an internet connection is required for remote documents",
            ) from e
        return response.text

    if protocol == "file":
        if not os.path.isabs(path):
            path = os.path.join(root_dir or os.getcwd(), path)

        logger.debug("Чтение %s", path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise ResourceLoadError(f"failed to read '{path}': {e}") from e

    raise UnsupportedProtocolError(f"the protocol '{protocol}' is unsupported")
