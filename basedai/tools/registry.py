from __future__ import annotations

from collections.abc import Iterable

from basedai.tools.base import Tool, ToolDescriptor


class DuplicateToolError(ValueError):
    pass


class ToolNotFoundError(LookupError):
    pass


class RegistryFrozenError(RuntimeError):
    pass


class ToolRegistry:
    """
    Tool name to tool lookup table.

    Built once at startup and frozen afterwards, so concurrent runs only ever read from it.
    """

    def __init__(self, tools: Iterable[Tool] = (), *, freeze: bool = True) -> None:
        self._tools: dict[str, Tool] = {}
        self._frozen = False
        for tool in tools:
            self.register(tool)
        if freeze:
            self.freeze()

    def register(self, tool: Tool) -> None:
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register {tool.name}: registry is frozen")
        if tool.name in self._tools:
            raise DuplicateToolError(f"Tool {tool.name} is already registered")
        self._tools[tool.name] = tool

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def resolve(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(f"Tool {name} not found") from None

    def descriptors(self) -> list[ToolDescriptor]:
        return [tool.descriptor for tool in self._tools.values()]

    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
