"""
Приведение документов Swagger 2.x и OpenAPI 3.0 к одному представлению
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

from ...errors import (
    ConfigurationIncompleteError,
    InvalidInputError,
    UnimplementedFeatureError,
    UnsupportedProtocolError,
)
from ..utils.naming import to_identifier
from .reference import ReferenceResolver, join_pointer

logger = logging.getLogger(__name__)

BASE_URL_HINT = "supply a base URL explicitly (--base-url or base_url in openapi.toml)"

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
SUPPORTED_SCHEMES = ("http", "https")
WEBSOCKET_SCHEMES = ("ws", "wss")
MODELED_LOCATIONS = ("path", "query", "header")


@dataclass
class DocumentInfo:
    """Метаданные документа для документации клиента"""

    title: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    terms_of_service: Optional[str] = None


@dataclass
class ServerEntry:
    name: str
    url: str
    description: Optional[str] = None


@dataclass
class SchemaRef:
    """Схема и её указатель в документе - ключ дедупликации моделей"""

    schema: Any
    pointer: str


@dataclass
class OperationParameter:
    name: str
    location: str
    required: bool = False
    description: Optional[str] = None
    schema: Optional[SchemaRef] = None


@dataclass
class OperationResponse:
    status: str
    description: Optional[str] = None
    schema: Optional[SchemaRef] = None


@dataclass
class Operation:
    """Операция независимо от версии документа - одна на пару (path, method)"""

    path: str
    method: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    external_docs: Optional[str] = None
    deprecated: bool = False
    tags: List[str] = field(default_factory=list)
    parameters: List[OperationParameter] = field(default_factory=list)
    request_body: Optional[SchemaRef] = None
    body_required: bool = False
    response: Optional[OperationResponse] = None


@dataclass
class NormalizedDocument:
    version: str
    info: DocumentInfo
    base_url: str
    servers: List[ServerEntry] = field(default_factory=list)
    operations: List[Operation] = field(default_factory=list)
    # Имя схемы -> указатель (#/components/schemas/X или #/definitions/X)
    schema_index: Dict[str, str] = field(default_factory=dict)


def detect_version(document: Any) -> str:
    """'2' для Swagger 2.x, '3.0' для OpenAPI 3.0"""
    if not isinstance(document, dict):
        raise InvalidInputError("document root must be a JSON object")

    swagger = document.get("swagger")
    if swagger is not None:
        if str(swagger).startswith("2"):
            return "2"
        raise InvalidInputError(f"unsupported swagger version '{swagger}'")

    openapi = document.get("openapi")
    if openapi is not None:
        if str(openapi).startswith("3.0"):
            return "3.0"
        if str(openapi).startswith("3."):
            raise UnimplementedFeatureError(
                f"OpenAPI {openapi} documents are not supported yet",
                hint="only Swagger 2.x and OpenAPI 3.0 are supported",
            )
        raise InvalidInputError(f"unsupported openapi version '{openapi}'")

    raise InvalidInputError(
        "document declares neither 'swagger' nor 'openapi' version",
        hint="only Swagger 2.x and OpenAPI 3.0 are supported",
    )


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _info(document: Dict[str, Any]) -> DocumentInfo:
    info = document.get("info") or {}
    return DocumentInfo(
        title=_text(info.get("title")),
        version=None if info.get("version") is None else str(info.get("version")),
        description=_text(info.get("description")),
        terms_of_service=_text(info.get("termsOfService")),
    )


def _expand_server_url(server: Dict[str, Any]) -> str:
    """Подстановка значений переменных сервера по умолчанию"""
    url = server.get("url") or ""
    variables = server.get("variables") or {}

    def replace(match):
        variable = variables.get(match.group(1)) or {}
        if "default" not in variable:
            raise ConfigurationIncompleteError(
                f"server variable '{match.group(1)}' in '{url}' has no default",
                hint=BASE_URL_HINT,
            )
        return str(variable["default"])

    return re.sub(r"\{([^}]+)\}", replace, url)


def _absolute_url(url: str, source_uri: Optional[str]) -> Optional[str]:
    if urlparse(url).scheme in SUPPORTED_SCHEMES:
        return url
    if url and source_uri and urlparse(source_uri).scheme in SUPPORTED_SCHEMES:
        return urljoin(source_uri, url)
    return None


def _servers_v3(document: Dict[str, Any], source_uri: Optional[str]) -> List[ServerEntry]:
    servers = []
    used_names = set()

    for index, server in enumerate(document.get("servers") or []):
        url = _absolute_url(_expand_server_url(server), source_uri)
        if url is None:
            logger.warning("Сервер %r без абсолютного URL", server.get("url"))

        description = _text(server.get("description"))
        name = to_identifier(description.split()[0]) if description else ""
        if not name or name in used_names:
            name = f"server_{index}"
        used_names.add(name)

        servers.append(
            ServerEntry(name=name, url=url or "", description=description)
        )

    return servers


def _servers_v2(document: Dict[str, Any], strict: bool = True) -> List[ServerEntry]:
    host = _text(document.get("host"))
    if host is None:
        return []

    schemes = [str(_).lower() for _ in document.get("schemes") or []]
    usable = [_ for _ in schemes if _ in SUPPORTED_SCHEMES]

    if schemes and not usable:
        message = f"schemes {schemes} are not supported"
        if set(schemes) <= set(WEBSOCKET_SCHEMES):
            message += " (WebSocket operations are not modeled)"
        if strict:
            raise UnsupportedProtocolError(message, hint=BASE_URL_HINT)

        logger.warning(message)
        return []

    scheme = usable[0] if usable else "https"
    base_path = document.get("basePath") or ""
    return [ServerEntry(name="default", url=f"{scheme}://{host}{base_path}")]


def _schema_index(document: Dict[str, Any], version: str) -> Dict[str, str]:
    if version == "2":
        root, schemas = "#/definitions", document.get("definitions") or {}
    else:
        root = "#/components/schemas"
        schemas = (document.get("components") or {}).get("schemas") or {}

    return {name: join_pointer(root, name) for name in schemas}


def _is_json_media(media_type: str) -> bool:
    media_type = media_type.split(";")[0].strip().lower()
    return media_type == "*/*" or media_type.endswith("json")


def _json_content(content: Dict[str, Any], pointer: str) -> Optional[SchemaRef]:
    """Схема из JSON-содержимого (v3 content), application/json в приоритете"""
    candidates = sorted(
        (_ for _ in content if _is_json_media(_)),
        key=lambda _: _ != "application/json",
    )
    for media_type in candidates:
        media = content[media_type] or {}
        if "schema" in media:
            return SchemaRef(
                schema=media["schema"],
                pointer=join_pointer(pointer, "content", media_type, "schema"),
            )
    return None


class DocumentNormalizer:
    """Нормализатор: версия документа больше нигде не проверяется"""

    def __init__(
        self,
        document: Any,
        base_url: Optional[str] = None,
        source_uri: Optional[str] = None,
    ):
        self.document = document
        self.base_url = base_url
        self.source_uri = source_uri
        self.resolver = ReferenceResolver(document)
        self.version = detect_version(document)

    def normalize(self) -> NormalizedDocument:
        if self.version == "2":
            servers = _servers_v2(self.document, strict=not self.base_url)
        else:
            servers = _servers_v3(self.document, self.source_uri)

        return NormalizedDocument(
            version=self.version,
            info=_info(self.document),
            base_url=self._base_url(servers),
            servers=[_ for _ in servers if _.url],
            operations=self._operations(),
            schema_index=_schema_index(self.document, self.version),
        )

    def _base_url(self, servers: List[ServerEntry]) -> str:
        if self.base_url:
            return self.base_url.rstrip("/")
        # Базовый URL - только первый объявленный сервер, без подбора замены
        if servers and servers[0].url:
            return servers[0].url.rstrip("/")

        raise ConfigurationIncompleteError(
            "could not determine base url from the document", hint=BASE_URL_HINT
        )

    def _operations(self) -> List[Operation]:
        paths = self.document.get("paths") or {}
        if not isinstance(paths, dict):
            raise InvalidInputError("'paths' must be an object")

        operations = []
        for path, path_item in paths.items():
            path_pointer = join_pointer("#/paths", path)

            # Path item может быть ссылкой на локальный узел
            path_item, path_pointer = self.resolver.resolve_target(path_item, path_pointer)

            if not isinstance(path_item, dict):
                raise InvalidInputError(f"path item '{path}' must be an object")

            shared = path_item.get("parameters") or []

            for method in HTTP_METHODS:
                if method not in path_item:
                    continue
                if method == "trace" and self.version == "2":
                    continue

                operations.append(
                    self._operation(
                        path,
                        method,
                        path_item[method] or {},
                        join_pointer(path_pointer, method),
                        shared,
                        join_pointer(path_pointer, "parameters"),
                    )
                )

        return operations

    def _operation(
        self,
        path: str,
        method: str,
        spec: Dict[str, Any],
        pointer: str,
        shared: List[Any],
        shared_pointer: str,
    ) -> Operation:
        external_docs = (spec.get("externalDocs") or {}).get("url")

        operation = Operation(
            path=path,
            method=method.upper(),
            operation_id=_text(spec.get("operationId")),
            summary=_text(spec.get("summary")),
            description=_text(spec.get("description")),
            external_docs=_text(external_docs),
            deprecated=bool(spec.get("deprecated", False)),
            tags=list(spec.get("tags") or []),
        )

        for parameter, parameter_pointer in self._merge_parameters(
            shared, shared_pointer, spec.get("parameters") or [], join_pointer(pointer, "parameters")
        ):
            self._add_parameter(operation, parameter, parameter_pointer)

        if self.version != "2" and spec.get("requestBody"):
            self._add_request_body(operation, spec["requestBody"], join_pointer(pointer, "requestBody"))

        operation.response = self._response(spec.get("responses") or {}, join_pointer(pointer, "responses"))
        return operation

    def _resolve(self, node: Any, pointer: str) -> Tuple[Any, str]:
        """Раскрытие $ref с запоминанием указателя цели"""
        return self.resolver.resolve_target(node, pointer)

    def _merge_parameters(
        self, shared, shared_pointer, own, own_pointer
    ) -> List[Tuple[Dict[str, Any], str]]:
        """Параметры пути + операции; параметр операции перекрывает (name, in)"""
        merged: Dict[Tuple[str, str], Tuple[Dict[str, Any], str]] = {}

        for parameters, root in ((shared, shared_pointer), (own, own_pointer)):
            for index, parameter in enumerate(parameters):
                parameter, pointer = self._resolve(parameter, join_pointer(root, index))
                if not isinstance(parameter, dict) or "name" not in parameter:
                    raise InvalidInputError(f"parameter at '{pointer}' has no name")
                merged[(parameter["name"], parameter.get("in", ""))] = (parameter, pointer)

        return list(merged.values())

    def _add_parameter(
        self, operation: Operation, parameter: Dict[str, Any], pointer: str
    ) -> None:
        location = parameter.get("in")

        if location == "body":
            if "schema" not in parameter:
                raise InvalidInputError(f"body parameter at '{pointer}' has no schema")
            operation.request_body = SchemaRef(
                schema=parameter["schema"], pointer=join_pointer(pointer, "schema")
            )
            operation.body_required = bool(parameter.get("required", False))
            return

        if location not in MODELED_LOCATIONS:
            logger.warning(
                "Параметр %s (%s) операции %s %s не поддерживается и пропущен",
                parameter["name"],
                location,
                operation.method,
                operation.path,
            )
            return

        if self.version == "2":
            # В Swagger 2 сам параметр описывает тип
            schema = SchemaRef(schema=parameter, pointer=pointer)
        elif "schema" in parameter:
            schema = SchemaRef(schema=parameter["schema"], pointer=join_pointer(pointer, "schema"))
        else:
            schema = _json_content(parameter.get("content") or {}, pointer)

        operation.parameters.append(
            OperationParameter(
                name=parameter["name"],
                location=location,
                required=bool(parameter.get("required", location == "path")),
                description=_text(parameter.get("description")),
                schema=schema,
            )
        )

    def _add_request_body(
        self, operation: Operation, request_body: Any, pointer: str
    ) -> None:
        request_body, pointer = self._resolve(request_body, pointer)
        body = _json_content(request_body.get("content") or {}, pointer)

        if body is None:
            logger.warning(
                "Тело запроса операции %s %s не JSON и пропущено",
                operation.method,
                operation.path,
            )
            return

        operation.request_body = body
        operation.body_required = bool(request_body.get("required", False))

    def _response(
        self, responses: Dict[str, Any], pointer: str
    ) -> Optional[OperationResponse]:
        """Первый успешный (2xx) ответ со схемой"""
        for status in sorted(responses):
            if not status.startswith("2"):
                continue

            response, response_pointer = self._resolve(
                responses[status],
                join_pointer(pointer, status),
            )
            response = response or {}

            if self.version == "2":
                schema = None
                if "schema" in response:
                    schema = SchemaRef(
                        schema=response["schema"],
                        pointer=join_pointer(response_pointer, "schema"),
                    )
            else:
                schema = _json_content(response.get("content") or {}, response_pointer)

            if schema is not None:
                return OperationResponse(
                    status=status,
                    description=_text(response.get("description")),
                    schema=schema,
                )

        return None


def normalize_document(
    document: Any, base_url: Optional[str] = None, source_uri: Optional[str] = None
) -> NormalizedDocument:
    """Нормализация документа любой поддерживаемой версии"""
    return DocumentNormalizer(document, base_url, source_uri).normalize()
