"""Registry of tool specs: name -> description + parameter model.

The registry knows nothing about execution; ``httpcase.tools.dispatch``
maps names to engine operations. An allow-list narrows a registry to the
tools a server exposes.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from httpcase.foundation.errors import JsonDict


class ToolSpec(BaseModel):
    """Catalog entry for one tool.

    Attributes:
        name: Tool name as seen by callers
        description: One-line description for LLM tool selection
        params_schema: Pydantic model the arguments are validated against
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, revalidate_instances="never")

    name: Annotated[str, Field(min_length=1, pattern=r"^[a-z][a-z0-9_]*$")]
    description: Annotated[str, Field(min_length=10)]
    params_schema: type[BaseModel] = Field(repr=False)

    @property
    def input_schema(self) -> JsonDict:
        """JSON schema of the arguments, by alias."""
        schema = self.params_schema.model_json_schema(by_alias=True)
        schema.pop("title", None)
        return schema

    def to_wire(self) -> JsonDict:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


class ToolRegistry:
    """Ordered collection of tool specs.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(ToolSpec(name="get", description="GET a URL...", params_schema=GetParams))
        >>> [t["name"] for t in registry.list_tools()]
        ['get']
        >>> len(registry.filtered(frozenset({"post"})))
        0
    """

    __slots__ = ("_tools",)

    def __init__(self, tools: Iterable[ToolSpec] = ()) -> None:
        self._tools: dict[str, ToolSpec] = {}
        for spec in tools:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        """Register a tool spec. Names are unique."""
        if spec.name in self._tools:
            raise ValueError(f"Tool '{spec.name}' already registered. Use unregister() first.")
        self._tools[spec.name] = spec

    def unregister(self, name: str) -> bool:
        """Remove a tool by name. Returns True if found."""
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def __getitem__(self, name: str) -> ToolSpec:
        return self._tools[name]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def filtered(self, allowed: frozenset[str] | None) -> ToolRegistry:
        """Registry restricted to ``allowed`` names; ``None`` keeps every tool.

        Unknown names in ``allowed`` are ignored. Catalog order is kept.
        """
        if allowed is None:
            return ToolRegistry(self)
        return ToolRegistry(t for t in self if t.name in allowed)

    def list_tools(self) -> list[JsonDict]:
        """Tool listing as sent to clients: name, description, inputSchema."""
        return [t.to_wire() for t in self]
