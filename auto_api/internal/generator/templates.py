class Templates:
    """Шаблоны неизменяемой части сгенерированного клиента"""

    transport = '''"""Транспорт HTTP: клиент вызывает только send()"""

from typing import Dict, Optional, Protocol, Tuple

from aiohttp import ClientSession, ClientTimeout


class Transport(Protocol):
    async def send(
        self,
        method: str,
        url: str,
        body: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, str]:
        ...


class AiohttpTransport:
    """Транспорт по умолчанию на базе aiohttp"""

    def __init__(self, timeout: int = 30, headers: Optional[Dict[str, str]] = None):
        self._timeout = ClientTimeout(total=timeout)
        self._headers = dict(headers or {})
        self._session: Optional[ClientSession] = None

    async def _ensure_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=self._timeout, headers=self._headers)
        return self._session

    async def send(
        self,
        method: str,
        url: str,
        body: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, str]:
        session = await self._ensure_session()

        request_headers = dict(headers or {})
        if body is not None:
            request_headers.setdefault("Content-Type", "application/json")

        async with session.request(
            method, url, data=body, headers=request_headers
        ) as response:
            return response.status, await response.text()

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()'''

    base_server = '''class BaseServer:
    """Адрес API: URL по умолчанию или один из именованных серверов"""

    DEFAULT_URL: str = ""
    ALTERNATES: Dict[str, str] = {}

    def __init__(self, url: Optional[str] = None):
        self.url = url or self.DEFAULT_URL

    @classmethod
    def named(cls, name: str) -> "BaseServer":
        if name not in cls.ALTERNATES:
            known = ", ".join(sorted(cls.ALTERNATES)) or "none"
            raise KeyError(f"Unknown server '{name}' (known: {known})")
        return cls(cls.ALTERNATES[name])

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(url={self.url!r})"'''

    common = '''import json
import logging
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

from pydantic import TypeAdapter
from pydantic_core import to_jsonable_python

from .servers import Server
from .transport import AiohttpTransport, Transport

logger = logging.getLogger(__name__)


class SendRequestError(Exception):
    def __init__(self, message, path, status_code, response_data=None):
        self.message = message
        self.path = path
        self.status_code = status_code
        self.response_data = response_data
        super().__init__(f"[{status_code}] {path}: {message}")


def _plain(value: Any) -> Any:
    """Значение для URL: enum -> значение, bool -> true/false"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return [_plain(_) for _ in value]
    return value


class BaseClient:
    """Базовый клиент: сборка URL, сериализация тела и разбор ответа"""

    def __init__(
        self, server: Optional[Server] = None, transport: Optional[Transport] = None
    ):
        self.server = server or Server()
        self.transport = transport or AiohttpTransport()

    @property
    def base_url(self) -> str:
        return self.server.url

    def _build_url(
        self,
        path: str,
        path_params: Optional[Dict[str, Any]] = None,
        query: Optional[Dict[str, Any]] = None,
    ) -> str:
        for name, value in (path_params or {}).items():
            path = path.replace("{" + name + "}", quote(str(_plain(value)), safe=""))

        url = self.server.url.rstrip("/") + path

        query = {k: _plain(v) for k, v in (query or {}).items() if v is not None}
        if query:
            url += ("&" if "?" in url else "?") + urlencode(query, doseq=True)

        return url

    async def _request(
        self,
        method: str,
        path: str,
        path_params: Optional[Dict[str, Any]] = None,
        query: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
        body: Any = None,
        response_type: Any = None,
    ) -> Any:
        url = self._build_url(path, path_params, query)
        payload = (
            None
            if body is None
            else json.dumps(to_jsonable_python(body, by_alias=True, exclude_none=True))
        )
        headers = {
            k: str(_plain(v)) for k, v in (headers or {}).items() if v is not None
        }

        logger.debug("%s %s", method, url)
        status, text = await self.transport.send(
            method, url, body=payload, headers=headers
        )

        if status >= 400:
            raise SendRequestError(text, path, status, response_data=text)

        if response_type is None:
            return text
        return TypeAdapter(response_type).validate_json(text)

    async def close(self):
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()'''


templates = Templates()
