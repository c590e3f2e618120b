"""Described types: a parser-independent view of Go types.

Only what the error-shape classifier needs is modelled: a type's name, its
method signatures and, for named types, the underlying representation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias


@dataclass(frozen=True)
class BasicType:
    name: str


@dataclass(frozen=True)
class UnnamedType:
    kind: str


@dataclass(frozen=True)
class MethodSignature:
    name: str
    params: tuple[ResolvedType, ...] = ()
    results: tuple[ResolvedType, ...] = ()


@dataclass(eq=False)
class NamedType:
    name: str
    package: str | None = None
    methods: tuple[MethodSignature, ...] = field(default=(), repr=False)
    underlying: ResolvedType = field(default=None, repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NamedType):
            return NotImplemented
        return (self.package, self.name) == (other.package, other.name)

    def __hash__(self) -> int:
        return hash((self.package, self.name))

    def methods_named(self, name: str) -> tuple[MethodSignature, ...]:
        return tuple(method for method in self.methods if method.name == name)


ResolvedType: TypeAlias = "BasicType | UnnamedType | NamedType | None"

STRING_TYPE = BasicType("string")

ERROR_TYPE = NamedType(
    name="error",
    methods=(MethodSignature(name="Error", results=(STRING_TYPE,)),),
    underlying=UnnamedType("interface"),
)

BASIC_TYPE_NAMES = frozenset(
    {
        "bool",
        "byte",
        "complex64",
        "complex128",
        "float32",
        "float64",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "rune",
        "string",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
    }
)


def predeclared(name: str) -> ResolvedType:
    if name == "error":
        return ERROR_TYPE
    if name in BASIC_TYPE_NAMES:
        return BasicType(name)
    if name in {"any", "comparable"}:
        return UnnamedType("interface")
    return None
