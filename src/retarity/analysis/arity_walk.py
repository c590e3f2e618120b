from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from tree_sitter import Node

from retarity.analysis.error_shape import is_error_like
from retarity.analysis.tally import ArityTally, FlaggedDeclaration
from retarity.analysis.type_resolution import TypeResolver
from retarity.ingest.go_loader import GoFile, GoPackage, LoadedProgram
from retarity.ingest.go_syntax import doc_comments, node_text, parameter_slots, top_level_nodes

FLAG_NON_ERROR_SECOND = "non_error_second_result"
FLAG_TOO_MANY_RESULTS = "too_many_results"

_DECLARATION_KINDS = frozenset({"function_declaration", "method_declaration"})

Emit = Callable[[str], None]
SkipHook = Callable[[GoFile], None]


@dataclass(frozen=True)
class FunctionDeclaration:
    name: str
    receiver: str | None
    path: Path
    line: int
    column: int
    has_result_list: bool
    result_types: tuple[Node | None, ...]
    source: str
    doc: str | None = None

    @property
    def text(self) -> str:
        """Declaration source preceded by its doc comment, if any."""
        if self.doc is None:
            return self.source
        return f"{self.doc}\n{self.source}"

    @property
    def arity(self) -> int:
        return len(self.result_types)


def result_slot_types(result: Node | None) -> tuple[Node | None, ...]:
    """Type expressions of each result slot as written.

    ``(a, b int)`` is one slot: names sharing a type count once.
    """
    if result is None:
        return ()
    if result.type == "parameter_list":
        return tuple(slot.child_by_field_name("type") for slot in parameter_slots(result))
    return (result,)


def iter_function_declarations(file: GoFile) -> Iterator[FunctionDeclaration]:
    if file.tree is None:
        return
    for node in top_level_nodes(file.tree.root_node):
        if node.type not in _DECLARATION_KINDS:
            continue
        result = node.child_by_field_name("result")
        receiver = node.child_by_field_name("receiver")
        line, column = file.position(node)
        comments = doc_comments(node)
        yield FunctionDeclaration(
            name=node_text(node.child_by_field_name("name")),
            receiver=node_text(receiver) if receiver is not None else None,
            path=file.path,
            line=line,
            column=column,
            has_result_list=result is not None,
            result_types=result_slot_types(result),
            source=node_text(node),
            doc="\n".join(node_text(comment) for comment in comments) or None,
        )


class ArityWalker:
    def __init__(
        self,
        *,
        resolver: TypeResolver,
        tally: ArityTally,
        emit: Emit,
        on_skip: SkipHook | None = None,
    ) -> None:
        self.resolver = resolver
        self.tally = tally
        self.emit = emit
        self.on_skip = on_skip

    def walk_program(self, program: LoadedProgram) -> ArityTally:
        for package in program.packages:
            self.walk_package(package)
        return self.tally

    def walk_package(self, package: GoPackage) -> None:
        for file in package.files:
            if file.tree is None:
                if self.on_skip is not None:
                    self.on_skip(file)
                continue
            self.emit(f"scanning {file.path}...")
            for declaration in iter_function_declarations(file):
                self.visit(package, file, declaration)

    def visit(self, package: GoPackage, file: GoFile, declaration: FunctionDeclaration) -> None:
        arity = declaration.arity
        self.tally.increment(arity)
        if arity == 2:
            second = self.resolver.type_of(package, file, declaration.result_types[1])
            if is_error_like(second):
                self.tally.record_error_shaped()
            else:
                self._flag(declaration, FLAG_NON_ERROR_SECOND)
        elif arity > 2:
            self._flag(declaration, FLAG_TOO_MANY_RESULTS)

    def _flag(self, declaration: FunctionDeclaration, reason: str) -> None:
        self.emit(declaration.text)
        self.tally.record_flagged(
            FlaggedDeclaration(
                path=declaration.path,
                line=declaration.line,
                name=declaration.name,
                receiver=declaration.receiver,
                arity=declaration.arity,
                reason=reason,
                source=declaration.text,
            )
        )


def walk_program(
    program: LoadedProgram,
    *,
    emit: Emit,
    on_skip: SkipHook | None = None,
) -> ArityTally:
    walker = ArityWalker(
        resolver=TypeResolver(program),
        tally=ArityTally(),
        emit=emit,
        on_skip=on_skip,
    )
    return walker.walk_program(program)
