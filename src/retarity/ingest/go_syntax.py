from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from tree_sitter import Node

_RECOVERY_KINDS = frozenset({"ERROR"})
_SLOT_KINDS = frozenset({"parameter_declaration", "variadic_parameter_declaration"})
_WRAPPER_KINDS = frozenset({"pointer_type", "parenthesized_type"})


@dataclass(frozen=True)
class ImportBinding:
    local: str | None
    path: str

    @property
    def is_dot(self) -> bool:
        return self.local == "."


def node_text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def top_level_nodes(root: Node) -> Iterator[Node]:
    """Yield top-level declarations in source order.

    Declarations swallowed by an ``ERROR`` node during recovery are still
    yielded, in their position within that node.
    """
    pending = list(reversed(root.named_children))
    while pending:
        node = pending.pop()
        if node.type in _RECOVERY_KINDS:
            pending.extend(reversed(node.named_children))
            continue
        yield node


def doc_comments(node: Node) -> list[Node]:
    """Comments directly above ``node`` with no blank line in between."""
    comments: list[Node] = []
    row = node.start_point[0]
    previous = node.prev_named_sibling
    while previous is not None and previous.type == "comment" and previous.end_point[0] == row - 1:
        comments.append(previous)
        row = previous.start_point[0]
        previous = previous.prev_named_sibling
    if comments and previous is not None and previous.end_point[0] == row:
        # Trailing comment of the code above.
        comments.pop()
    comments.reverse()
    return comments


def package_name(root: Node) -> str | None:
    for node in top_level_nodes(root):
        if node.type != "package_clause":
            continue
        for child in node.named_children:
            if child.type == "package_identifier":
                return node_text(child)
    return None


def parameter_slots(parameter_list: Node | None) -> list[Node]:
    if parameter_list is None:
        return []
    return [child for child in parameter_list.named_children if child.type in _SLOT_KINDS]


def slot_width(slot: Node) -> int:
    return len(slot.children_by_field_name("name")) or 1


def receiver_base_name(receiver: Node | None) -> str | None:
    slots = parameter_slots(receiver)
    if not slots:
        return None
    current = slots[0].child_by_field_name("type")
    while current is not None:
        if current.type == "type_identifier":
            return node_text(current)
        if current.type == "generic_type":
            current = current.child_by_field_name("type")
        elif current.type in _WRAPPER_KINDS and current.named_children:
            current = current.named_children[0]
        else:
            return None
    return None


def _unquote(literal: str) -> str:
    if len(literal) >= 2 and literal[0] == literal[-1] and literal[0] in "\"`":
        return literal[1:-1]
    return literal


def _import_specs(node: Node) -> Iterator[Node]:
    for child in node.named_children:
        if child.type == "import_spec":
            yield child
        elif child.type == "import_spec_list":
            yield from _import_specs(child)


def import_bindings(root: Node) -> tuple[ImportBinding, ...]:
    bindings: list[ImportBinding] = []
    for node in top_level_nodes(root):
        if node.type != "import_declaration":
            continue
        for spec in _import_specs(node):
            path = _unquote(node_text(spec.child_by_field_name("path")))
            if not path:
                continue
            name_node = spec.child_by_field_name("name")
            local = node_text(name_node) if name_node is not None else None
            if local == "_":
                continue
            bindings.append(ImportBinding(local=local, path=path))
    return tuple(bindings)
