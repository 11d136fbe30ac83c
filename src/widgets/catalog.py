"""Interfaces of the layers the compiler consults, with in-memory versions.

The data-access layer (models, stores) and the process layer are owned
elsewhere; the compiler only resolves names against them. ``Catalog``
is a plain name -> handle mapping usable wherever a resolver is needed,
which is how tests and embedding applications wire the compiler.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Protocol, runtime_checkable


@dataclass
class ColumnSchema:
    """One column reported by a model's schema."""

    name: str
    type: str = "string"
    label: str = ""
    nullable: bool = True


@runtime_checkable
class Resolver(Protocol):
    """Anything that maps a name to a handle, or None when unknown."""

    def resolve(self, name: str) -> Optional[Any]: ...


@runtime_checkable
class ModelHandle(Protocol):
    """A data-access model exposing schema introspection."""

    def describe_schema(self) -> list[ColumnSchema]: ...


@runtime_checkable
class Process(Protocol):
    """A callable process from the scripting layer."""

    def invoke(self, *args: Any) -> Any: ...


class Catalog:
    """In-memory resolver keyed by name. Never mutated by the compiler."""

    def __init__(self, entries: Optional[dict[str, Any]] = None):
        self._entries: dict[str, Any] = dict(entries or {})

    def register(self, name: str, handle: Any) -> None:
        self._entries[name] = handle

    def resolve(self, name: str) -> Optional[Any]:
        return self._entries.get(name)

    def names(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class StaticModel:
    """Model handle with a fixed column list."""

    name: str
    columns: list[ColumnSchema] = field(default_factory=list)

    @classmethod
    def of(cls, name: str, column_names: Iterable[str]) -> "StaticModel":
        return cls(name=name, columns=[ColumnSchema(name=c) for c in column_names])

    def describe_schema(self) -> list[ColumnSchema]:
        return list(self.columns)


@dataclass
class FunctionProcess:
    """Process backed by a Python callable."""

    name: str
    func: Callable[..., Any]

    def invoke(self, *args: Any) -> Any:
        return self.func(*args)
