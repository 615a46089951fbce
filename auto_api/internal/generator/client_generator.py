import logging
from typing import Any, Dict, List, Optional

import toml

from ..parser.normalizer import NormalizedDocument, Operation, SchemaRef
from ..parser.reference import ReferenceResolver
from ..types.declarations import GeneratedDeclaration
from ..types.models import CodeBlock, Function, Parameter, Project, Variable
from ..types.registry import TypeRegistry
from ..utils.naming import fallback_operation_name, to_identifier, to_type_name
from .schema_builder import SchemaModelBuilder
from .templates import templates

logger = logging.getLogger(__name__)

# Имена, занятые сгенерированными модулями - модели их не получат
RESERVED_TYPE_NAMES = (
    "Any",
    "BaseClient",
    "BaseModel",
    "BaseServer",
    "Client",
    "ConfigDict",
    "Dict",
    "Enum",
    "Field",
    "List",
    "Optional",
    "RootModel",
    "SendRequestError",
    "Server",
    "Transport",
    "AiohttpTransport",
    "Union",
)

# Атрибуты BaseClient, которые метод операции не должен перекрыть
RESERVED_METHOD_NAMES = {"close", "server", "transport", "base_url"}

TYPING_IMPORT = "from typing import Any, Dict, List, Optional, Union"


def _join_docs(*parts: Optional[str]) -> str:
    return "\n\n".join(_.strip() for _ in parts if _ and _.strip())


class ClientGenerator:
    """Сборка клиента: сервер, модели и по методу на каждую операцию"""

    def __init__(
        self,
        document: Dict[str, Any],
        normalized: NormalizedDocument,
        source_url: Optional[str] = None,
        servers: Optional[Dict[str, str]] = None,
    ):
        self.document = document
        self.normalized = normalized
        self.source_url = source_url
        self.extra_servers = dict(servers or {})

        self.project = Project(name=to_identifier(normalized.info.title or "api"))
        self.registry = TypeRegistry(RESERVED_TYPE_NAMES)
        self.builder = SchemaModelBuilder(ReferenceResolver(document), self.registry)
        self.method_names = set(RESERVED_METHOD_NAMES)

    def generate(self) -> Project:
        """Основная генерация"""
        self._generate_schemas()
        methods = self._generate_operations()

        self._create_base_files()
        self._generate_models_file()
        self._generate_servers_file()
        self._generate_client_file(methods)
        self._generate_init_file()
        return self.project

    def _document_docs(self) -> str:
        info = self.normalized.info
        title = info.title or "API client"
        if info.version:
            title += f" (Version {info.version})"

        terms = f"Terms of Service: {info.terms_of_service}" if info.terms_of_service else None
        return _join_docs(title, info.description, terms)

    def _generate_schemas(self):
        """Модели для всех именованных схем документа"""
        for name, pointer in self.normalized.schema_index.items():
            self.builder.build_pointer(pointer, name)

    def _generate_operations(self) -> List[Function]:
        return [self._generate_operation_method(_) for _ in self.normalized.operations]

    def _build(self, schema: SchemaRef, base_name: str, qualifier: str) -> GeneratedDeclaration:
        return self.builder.build(schema.schema, base_name, schema.pointer, qualifier=qualifier)

    def _method_name(self, operation: Operation) -> str:
        name = to_identifier(
            operation.operation_id
            or fallback_operation_name(operation.method, operation.path),
            fallback=operation.method.lower(),
        )
        if name in RESERVED_METHOD_NAMES:
            name = f"{name}_"

        unique = name
        index = 2
        while unique in self.method_names:
            unique = f"{name}_{index}"
            index += 1

        self.method_names.add(unique)
        return unique

    def _generate_operation_method(self, operation: Operation) -> Function:
        """Генерация async метода операции"""
        method_name = self._method_name(operation)
        type_base = to_type_name(method_name)

        parameters = [Parameter(name="self")]
        # warnings нужен телу устаревших методов
        used_names = {"self", "warnings"}
        arguments: Dict[str, List[str]] = {"path": [], "query": [], "header": []}
        docs_args = []

        def unique_name(name: str) -> str:
            candidate = name
            index = 2
            while candidate in used_names:
                candidate = f"{name}_{index}"
                index += 1
            used_names.add(candidate)
            return candidate

        for parameter in operation.parameters:
            param_name = unique_name(to_identifier(parameter.name, fallback="param"))

            type_hint = "Any"
            if parameter.schema is not None:
                type_hint = self._build(
                    parameter.schema,
                    type_base + to_type_name(parameter.name, fallback="Param"),
                    type_base,
                ).type_hint

            var_type = Variable(value=type_hint)
            default = None
            if not parameter.required:
                var_type = Variable(value=var_type, wrap_name="Optional")
                default = Variable(value="None")

            parameters.append(Parameter(name=param_name, var_type=var_type, default=default))
            arguments[parameter.location].append(f"{parameter.name!r}: {param_name}")
            docs_args.append(f"    {param_name} ({var_type}): {parameter.description or parameter.name}")

        body_name = None
        if operation.request_body is not None:
            body_name = unique_name("body")
            body_hint = self._build(operation.request_body, f"{type_base}Request", type_base).type_hint

            var_type = Variable(value=body_hint)
            default = None
            if not operation.body_required:
                var_type = Variable(value=var_type, wrap_name="Optional")
                default = Variable(value="None")

            parameters.append(Parameter(name=body_name, var_type=var_type, default=default))
            docs_args.append(f"    {body_name} ({var_type}): request body")

        response_hint = None
        if operation.response is not None and operation.response.schema is not None:
            response_hint = self._build(
                operation.response.schema, f"{type_base}Response", type_base
            ).type_hint

        call_arguments = [repr(operation.method), repr(operation.path)]
        for location, keyword in (("path", "path_params"), ("query", "query"), ("header", "headers")):
            if arguments[location]:
                call_arguments.append(f"{keyword}={{{', '.join(arguments[location])}}}")
        if body_name:
            call_arguments.append(f"body={body_name}")
        if response_hint:
            call_arguments.append(f"response_type={response_hint}")

        code = []
        if operation.deprecated:
            code.append(
                f"warnings.warn({(method_name + ' is deprecated')!r}, DeprecationWarning, stacklevel=2)"
            )
        code.append(
            "return await self._request(\n"
            + "".join(f"    {_},\n" for _ in call_arguments)
            + ")"
        )

        returns = None
        if response_hint:
            returns = f"Returns:\n    {response_hint}: {operation.response.description or 'response data'}"

        docstring = _join_docs(
            operation.summary,
            operation.description,
            "**This operation is deprecated**" if operation.deprecated else None,
            "Args:\n" + "\n".join(docs_args) if docs_args else None,
            returns,
            f"See: {operation.external_docs}" if operation.external_docs else None,
        )

        logger.debug("Метод %s для %s %s", method_name, operation.method, operation.path)

        return Function(
            name=method_name,
            parameters=parameters,
            response=response_hint or "str",
            async_def=True,
            docstring=docstring or None,
            code=CodeBlock(code="\n".join(code)),
        )

    def _create_base_files(self):
        """Файлы с неизменяемой частью клиента"""
        self.project.add_file("transport.py").add_code_block(CodeBlock(code=templates.transport))
        self.project.add_file("common.py").add_code_block(CodeBlock(code=templates.common))

        # Конфиг файл в папке клиента
        if self.source_url:
            config_content = "# Configuration for API client\n" + toml.dumps({"url": self.source_url})
            self.project.add_file("openapi.toml").add_code_block(CodeBlock(code=config_content))

    def _generate_models_file(self):
        """Все модели в одном файле, порядок - порядок регистрации (базы раньше наследников)"""
        models = self.registry.models()

        models_file = self.project.add_file("models.py")
        models_file.imports.extend(
            [
                "from __future__ import annotations",
                "",
                "from datetime import date, datetime",
                "from enum import Enum",
                TYPING_IMPORT,
                "",
                "from pydantic import BaseModel, ConfigDict, Field, RootModel",
            ]
        )

        names = [_.identifier for _ in models]
        models_file.add_code_block(CodeBlock(code=f"__all__ = {names!r}", order=100))

        for declaration in models:
            models_file.add_class(declaration.definition)

        # Отложенные ссылки (циклы) разрешаются после объявления всех классов
        rebuild = [
            f"{_.identifier}.model_rebuild()"
            for _ in models
            if "Enum" not in _.definition.inherits
        ]
        if rebuild:
            models_file.add_code_block(
                CodeBlock(
                    code="# Rebuild models to resolve forward references\n" + "\n".join(rebuild),
                    order=-100,
                )
            )

    def _generate_servers_file(self):
        servers_file = self.project.add_file("servers.py")
        servers_file.imports.append("from typing import Dict, Optional")
        servers_file.add_code_block(CodeBlock(code=templates.base_server, order=10))

        alternates = {_.name: _.url for _ in self.normalized.servers}
        alternates.update(self.extra_servers)

        server = servers_file.add_class(
            "Server",
            inherits=["BaseServer"],
            docstring=_join_docs(
                self.normalized.info.title,
                f"Default: {self.normalized.base_url}",
            ),
        )
        server.parameters.extend(
            [
                Parameter(
                    name="DEFAULT_URL",
                    var_type=Variable(value="str"),
                    default=Variable(value=repr(self.normalized.base_url)),
                ),
                Parameter(
                    name="ALTERNATES",
                    var_type=Variable(value=["str", "str"], wrap_name="Dict"),
                    default=Variable(value=repr(alternates)),
                ),
            ]
        )

    def _generate_client_file(self, methods: List[Function]):
        client_file = self.project.add_file("client.py")
        client_file.docstring = self._document_docs()
        client_file.imports.extend(
            [
                "from __future__ import annotations",
                "",
                "import warnings",
                "from datetime import date, datetime",
                TYPING_IMPORT,
                "",
                "from .common import BaseClient",
                "from .models import *",
            ]
        )

        client = client_file.add_class(
            "Client", inherits=["BaseClient"], docstring=self._document_docs()
        )
        for method in methods:
            client.add_function(method)

    def _generate_init_file(self):
        """Главный __init__.py"""
        main_init = self.project.add_file("__init__.py")
        main_init.docstring = self._document_docs()
        main_init.imports.extend(
            [
                "from .client import Client",
                "from .common import SendRequestError",
                "from .servers import Server",
                "from .transport import AiohttpTransport, Transport",
                "from . import models",
            ]
        )
        main_init.add_code_block(
            CodeBlock(
                code='__all__ = ["Client", "Server", "Transport", "AiohttpTransport", "SendRequestError", "models"]'
            )
        )
