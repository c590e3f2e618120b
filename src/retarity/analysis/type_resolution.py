"""Resolution of Go type expressions to described types.

A small stand-in for a type checker: it knows the package-level type
declarations and methods of every loaded package, the imports of each
file, and the predeclared identifiers. Anything outside that (unloaded
imports, local types inside function bodies) is unresolved.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from tree_sitter import Node

from retarity.analysis.type_model import (
    MethodSignature,
    NamedType,
    ResolvedType,
    UnnamedType,
    predeclared,
)
from retarity.ingest.go_loader import GoFile, GoPackage, LoadedProgram
from retarity.ingest.go_syntax import (
    ImportBinding,
    import_bindings,
    node_text,
    parameter_slots,
    receiver_base_name,
    slot_width,
    top_level_nodes,
)

_UNNAMED_KINDS: dict[str, str] = {
    "array_type": "array",
    "channel_type": "chan",
    "function_type": "func",
    "implicit_length_array_type": "array",
    "interface_type": "interface",
    "map_type": "map",
    "pointer_type": "pointer",
    "slice_type": "slice",
    "struct_type": "struct",
}
_TYPE_SPEC_KINDS = frozenset({"type_spec", "type_alias"})
_METHOD_ELEM_KINDS = frozenset({"method_elem", "method_spec"})
_EMBED_ELEM_KINDS = frozenset({"type_elem", "constraint_elem", "interface_type_name"})
_TYPE_NAME_KINDS = frozenset({"type_identifier", "qualified_type", "generic_type"})


@dataclass(frozen=True)
class TypeDecl:
    name: str
    type_node: Node
    file: GoFile
    alias: bool


@dataclass(frozen=True)
class MethodDecl:
    node: Node
    file: GoFile


class PackageScope:
    """Package-level type declarations and methods, keyed by type name."""

    def __init__(self, package: GoPackage) -> None:
        self.package = package
        self.types: dict[str, TypeDecl] = {}
        self.methods: dict[str, list[MethodDecl]] = {}
        for file in package.mapped_files():
            self._collect(file)

    def _collect(self, file: GoFile) -> None:
        for node in top_level_nodes(file.tree.root_node):
            if node.type == "type_declaration":
                for spec in node.named_children:
                    if spec.type not in _TYPE_SPEC_KINDS:
                        continue
                    name_node = spec.child_by_field_name("name")
                    type_node = spec.child_by_field_name("type")
                    if name_node is None or type_node is None:
                        continue
                    self.types.setdefault(
                        node_text(name_node),
                        TypeDecl(
                            name=node_text(name_node),
                            type_node=type_node,
                            file=file,
                            alias=spec.type == "type_alias",
                        ),
                    )
            elif node.type == "method_declaration":
                base = receiver_base_name(node.child_by_field_name("receiver"))
                if base is not None:
                    self.methods.setdefault(base, []).append(MethodDecl(node=node, file=file))


class TypeResolver:
    def __init__(self, program: LoadedProgram) -> None:
        self._program = program
        self._scopes: dict[tuple[str, str], PackageScope] = {}
        self._imports: dict[Path, tuple[ImportBinding, ...]] = {}
        self._named: dict[tuple[str, str, str], NamedType] = {}
        self._expanding_aliases: set[tuple[str, str, str]] = set()

    def scope(self, package: GoPackage) -> PackageScope:
        scope = self._scopes.get(package.key)
        if scope is None:
            scope = PackageScope(package)
            self._scopes[package.key] = scope
        return scope

    def type_of(self, package: GoPackage, file: GoFile, node: Node | None) -> ResolvedType:
        if node is None:
            return None
        kind = node.type
        if kind == "parenthesized_type":
            inner = node.named_children
            return self.type_of(package, file, inner[0]) if inner else None
        if kind == "type_identifier":
            return self._lookup(package, file, node_text(node))
        if kind == "qualified_type":
            target = self._imported_package(file, node_text(node.child_by_field_name("package")))
            if target is None:
                return None
            return self.declared_type(target, node_text(node.child_by_field_name("name")))
        if kind == "generic_type":
            return self.type_of(package, file, node.child_by_field_name("type"))
        unnamed = _UNNAMED_KINDS.get(kind)
        if unnamed is not None:
            return UnnamedType(unnamed)
        return None

    def declared_type(self, package: GoPackage, name: str) -> ResolvedType:
        decl = self.scope(package).types.get(name)
        if decl is None:
            return None
        key = (*package.key, name)
        if decl.alias:
            if key in self._expanding_aliases:
                return None
            self._expanding_aliases.add(key)
            try:
                return self.type_of(package, decl.file, decl.type_node)
            finally:
                self._expanding_aliases.discard(key)
        named = self._named.get(key)
        if named is not None:
            return named
        named = NamedType(name=name, package=package.import_path)
        self._named[key] = named
        named.underlying = self._underlying(package, decl)
        named.methods = self._method_set(package, decl)
        return named

    def _lookup(self, package: GoPackage, file: GoFile, name: str) -> ResolvedType:
        found = self.declared_type(package, name)
        if found is not None:
            return found
        for binding in self._file_imports(file):
            if not binding.is_dot:
                continue
            target = self._program.package(binding.path)
            if target is None:
                continue
            found = self.declared_type(target, name)
            if found is not None:
                return found
        return predeclared(name)

    def _file_imports(self, file: GoFile) -> tuple[ImportBinding, ...]:
        bindings = self._imports.get(file.path)
        if bindings is None:
            bindings = import_bindings(file.tree.root_node) if file.tree is not None else ()
            self._imports[file.path] = bindings
        return bindings

    def _imported_package(self, file: GoFile, qualifier: str) -> GoPackage | None:
        for binding in self._file_imports(file):
            target = self._program.package(binding.path)
            if binding.local is not None:
                local = binding.local
            elif target is not None:
                local = target.name
            else:
                local = binding.path.rsplit("/", 1)[-1]
            if local == qualifier:
                return target
        return None

    def _underlying(self, package: GoPackage, decl: TypeDecl) -> ResolvedType:
        resolved = self.type_of(package, decl.file, decl.type_node)
        if isinstance(resolved, NamedType):
            return resolved.underlying
        return resolved

    def _method_set(self, package: GoPackage, decl: TypeDecl) -> tuple[MethodSignature, ...]:
        methods = [
            self.signature(package, method.file, method.node)
            for method in self.scope(package).methods.get(decl.name, ())
        ]
        if decl.type_node.type == "interface_type":
            methods.extend(self._interface_methods(package, decl.file, decl.type_node))
        return tuple(methods)

    def _interface_methods(
        self, package: GoPackage, file: GoFile, node: Node
    ) -> Iterator[MethodSignature]:
        for child in node.named_children:
            if child.type in _METHOD_ELEM_KINDS:
                yield self.signature(package, file, child)
                continue
            if child.type in _TYPE_NAME_KINDS:
                embedded_nodes = [child]
            elif child.type in _EMBED_ELEM_KINDS:
                embedded_nodes = child.named_children
            else:
                continue
            if len(embedded_nodes) != 1:
                # Unions and approximations constrain type sets; they add no methods.
                continue
            embedded = self.type_of(package, file, embedded_nodes[0])
            if isinstance(embedded, NamedType) and embedded.underlying == UnnamedType("interface"):
                yield from embedded.methods

    def signature(self, package: GoPackage, file: GoFile, node: Node) -> MethodSignature:
        return MethodSignature(
            name=node_text(node.child_by_field_name("name")),
            params=self._value_types(package, file, node.child_by_field_name("parameters")),
            results=self._result_types(package, file, node.child_by_field_name("result")),
        )

    def _value_types(
        self, package: GoPackage, file: GoFile, parameter_list: Node | None
    ) -> tuple[ResolvedType, ...]:
        values: list[ResolvedType] = []
        for slot in parameter_slots(parameter_list):
            if slot.type == "variadic_parameter_declaration":
                resolved: ResolvedType = UnnamedType("slice")
            else:
                resolved = self.type_of(package, file, slot.child_by_field_name("type"))
            values.extend([resolved] * slot_width(slot))
        return tuple(values)

    def _result_types(
        self, package: GoPackage, file: GoFile, result: Node | None
    ) -> tuple[ResolvedType, ...]:
        if result is None:
            return ()
        if result.type == "parameter_list":
            return self._value_types(package, file, result)
        return (self.type_of(package, file, result),)
