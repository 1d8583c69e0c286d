from __future__ import annotations

import json
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from basedai.conversation import RawArguments

ERROR_MARKER = "Error:"


def error_text(message: str) -> str:
    return f"{ERROR_MARKER} {message}"


def is_error_text(text: str) -> bool:
    return text.startswith(ERROR_MARKER)


class ParameterType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"

    def accepts(self, value: Any) -> bool:
        # bool is an int subclass but never a valid number argument
        if isinstance(value, bool):
            return self is ParameterType.BOOLEAN
        if self is ParameterType.STRING:
            return isinstance(value, str)
        if self is ParameterType.INTEGER:
            return isinstance(value, int)
        if self is ParameterType.NUMBER:
            return isinstance(value, (int, float))
        return False


class ToolValidationError(ValueError):
    def __init__(self, parameter: str, expected_type: str, reason: str) -> None:
        self.parameter = parameter
        self.expected_type = expected_type
        self.reason = reason
        super().__init__(f"Invalid argument '{parameter}': expected {expected_type}, {reason}")


class ToolParameter(BaseModel):
    name: str
    description: str
    type: ParameterType = ParameterType.STRING
    default: Any = None

    model_config = ConfigDict(frozen=True)

    def json_schema(self) -> dict[str, Any]:
        return {"type": self.type.value, "description": self.description}


class ToolDescriptor(BaseModel):
    name: str
    description: str
    required_parameters: tuple[ToolParameter, ...] = ()
    optional_parameters: tuple[ToolParameter, ...] = ()

    model_config = ConfigDict(frozen=True)

    def json_schema(self) -> dict[str, Any]:
        properties = {p.name: p.json_schema() for p in (*self.required_parameters, *self.optional_parameters)}
        return {
            "type": "object",
            "properties": properties,
            "required": [p.name for p in self.required_parameters],
        }


class ToolInvocation(BaseModel):
    tool_name: str
    arguments: dict[str, Any] = {}


def decode_arguments(raw_arguments: RawArguments) -> dict[str, Any]:
    if raw_arguments is None:
        return {}
    if isinstance(raw_arguments, str):
        if not raw_arguments.strip():
            return {}
        try:
            raw_arguments = json.loads(raw_arguments)
        except json.JSONDecodeError as e:
            raise ToolValidationError("arguments", "object", f"could not decode JSON ({e.msg})") from e
    if not isinstance(raw_arguments, dict):
        raise ToolValidationError("arguments", "object", f"got {type(raw_arguments).__name__}")
    return raw_arguments


class Tool(ABC):
    descriptor: ClassVar[ToolDescriptor]

    @property
    def name(self) -> str:
        return self.descriptor.name

    def validate(self, raw_arguments: RawArguments) -> ToolInvocation:
        arguments = decode_arguments(raw_arguments)
        decoded: dict[str, Any] = {}

        for parameter in self.descriptor.required_parameters:
            value = arguments.get(parameter.name)
            if value is None:
                raise ToolValidationError(parameter.name, parameter.type.value, "but it is missing")
            decoded[parameter.name] = _check_type(parameter, value)

        for parameter in self.descriptor.optional_parameters:
            value = arguments.get(parameter.name)
            decoded[parameter.name] = parameter.default if value is None else _check_type(parameter, value)

        return ToolInvocation(tool_name=self.name, arguments=decoded)

    @abstractmethod
    async def execute(self, invocation: ToolInvocation) -> str:
        """Run the tool. Failures are returned as text starting with ``ERROR_MARKER``."""


def _check_type(parameter: ToolParameter, value: Any) -> Any:
    if not parameter.type.accepts(value):
        raise ToolValidationError(parameter.name, parameter.type.value, f"got {type(value).__name__}")
    return value
