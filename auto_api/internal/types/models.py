from typing import Optional, Union

from pydantic import BaseModel, field_validator

INDENT = "    "


def _indent(text: str) -> str:
    return "\n".join(INDENT + line if line else line for line in text.split("\n"))


def _docstring(text: Optional[str]) -> str:
    text = (text or "").strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if not text:
        return ""
    if text.endswith('"'):
        text += " "
    if "\n" not in text:
        return f'"""{text}"""'
    return f'"""{text}\n"""'


class Variable(BaseModel):
    """Выражение типа: значение или обертка вида wrap_name[value, ...]"""

    value: list[Union["Variable", str]] = []
    wrap_name: Optional[str] = None

    @field_validator("value", mode="before")
    def value_check(cls, value):
        if not isinstance(value, list):
            value = [value]
        return value

    def __str__(self):
        inner = ", ".join(str(_) for _ in self.value)

        if self.wrap_name is None:
            return inner

        return f"{self.wrap_name}[{inner}]" if inner else "Any"

    def __iter__(self):
        for _ in self.value:
            if isinstance(_, Variable):
                yield from _
            else:
                yield _


class Parameter(BaseModel):
    name: str

    default: Optional[Variable] = None
    var_type: Optional[Variable] = None

    order: int = 0

    def __str__(self):
        return (
            self.name
            + (f": {self.var_type}" if self.var_type else "")
            + (f" = {self.default}" if self.default else "")
        )


class CodeBlock(BaseModel):
    order: int = 0
    code: str = "pass"

    def __str__(self):
        return self.code.replace("\t", INDENT)


class Function(BaseModel):
    name: str
    parameters: list[Parameter] = []
    response: str = "None"

    async_def: bool = False
    decorators: list[str] = []

    docstring: Optional[str] = None

    code: CodeBlock = CodeBlock(order=0, code="pass")
    order: int = 0

    def __str__(self) -> str:
        # Параметры без значения по умолчанию должны идти первыми
        parameters = sorted(self.parameters, key=lambda x: bool(x.default))

        if len(parameters) > 1:
            signature = (
                "(\n" + "".join(f"{INDENT}{p},\n" for p in parameters) + ")"
            )
        else:
            signature = "(" + ", ".join(map(str, parameters)) + ")"

        lines = list(self.decorators)
        lines.append(
            f"{'async ' if self.async_def else ''}def {self.name}{signature}"
            f" -> {self.response}:"
        )

        body = "\n".join(filter(bool, [_docstring(self.docstring), str(self.code)]))
        lines.append(_indent(body))

        return "\n".join(lines)

    def set_code_block(self, code_block: Union["CodeBlock", str]) -> "Function":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block)

        self.code = code_block
        return self


class Class(BaseModel):
    name: str
    inherits: list[str] = []
    docstring: Optional[str] = None

    parameters: list[Parameter] = []
    code_blocks: list[CodeBlock] = []
    functions: dict[str, Function] = {}

    order: int = 0

    def __str__(self) -> str:
        members = []

        if self.docstring:
            members.append(_docstring(self.docstring))

        # Поля и служебные блоки (model_config, root) идут плотно, методы - через строку
        attributes = sorted(
            self.code_blocks + self.parameters, key=lambda x: x.order, reverse=True
        )
        if attributes:
            members.append("\n".join(map(str, attributes)))

        for function in sorted(
            self.functions.values(), key=lambda x: x.order, reverse=True
        ):
            members.append(str(function))

        body = "\n\n".join(members) if members else "pass"

        return (
            f"class {self.name}"
            + (f"({', '.join(self.inherits)})" if self.inherits else "")
            + ":\n"
            + _indent(body)
        )

    def add_function(self, function: Union["Function", str], **kwargs) -> "Function":
        if isinstance(function, str):
            function = Function(name=function, **kwargs)

        self.functions[function.name] = function
        return function

    def add_code_block(self, code_block: Union["CodeBlock", str], **kwargs) -> "Class":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block, **kwargs)

        self.code_blocks.append(code_block)
        return self


class CodeFile(BaseModel):
    file_name: str
    docstring: Optional[str] = None

    imports: list[str] = []
    functions: dict[str, Function] = {}
    classes: dict[str, Class] = {}
    code_blocks: list[CodeBlock] = []

    def __str__(self):
        parts = []

        if self.docstring:
            parts.append(_docstring(self.docstring))
        if self.imports:
            parts.append("\n".join(self.imports))

        body = sorted(
            self.code_blocks
            + list(self.functions.values())
            + list(self.classes.values()),
            key=lambda x: x.order,
            reverse=True,
        )
        parts.extend(str(_) for _ in body)

        return ("\n\n\n".join(filter(bool, parts)) + "\n").replace("\t", INDENT)

    def add_function(self, function: Union["Function", str], **kwargs) -> "Function":
        if isinstance(function, str):
            function = Function(name=function, **kwargs)

        self.functions[function.name] = function
        return function

    def add_class(self, cls: Union["Class", str], **kwargs) -> "Class":
        if isinstance(cls, str):
            cls = Class(name=cls, **kwargs)

        self.classes[cls.name] = cls
        return cls

    def add_code_block(
        self, code_block: Union["CodeBlock", str], **kwargs
    ) -> "CodeFile":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block, **kwargs)

        self.code_blocks.append(code_block)
        return self


class Project(BaseModel):
    name: str
    files: list[CodeFile] = []

    def add_file(self, file_name: Union["CodeFile", str], **kwargs) -> "CodeFile":
        code_file = file_name
        if isinstance(file_name, str):
            code_file = CodeFile(file_name=file_name, **kwargs)

        self.files.append(code_file)
        return code_file

    def get_file(self, file_name: str) -> Optional["CodeFile"]:
        for code_file in self.files:
            if code_file.file_name == file_name:
                return code_file
        return None


Variable.model_rebuild()
