from __future__ import annotations

from pathlib import Path

from retarity.analysis.error_shape import is_error_like
from retarity.analysis.type_model import ERROR_TYPE, BasicType, NamedType, STRING_TYPE, UnnamedType
from retarity.analysis.type_resolution import TypeResolver
from retarity.config import ScanConfig
from retarity.ingest.go_loader import load_program

_SHAPES = """
package shapes

import (
	"errors"

	dep "example.com/mod/dep"
)

var errBase = errors.New("base")

type MyErr struct{ msg string }

func (e *MyErr) Error() string { return e.msg }

type Coded interface {
	error
	Code() int
}

type Failure = error

type Msg string

type Loud struct{}

func (Loud) Error() Msg { return "" }

type Plain struct{}

type Bad struct{}

func (b Bad) Error() (string, bool) { return "", false }

type Node struct{}

func (n Node) Error() Node { return n }

type Grouped struct{}

func (Grouped) Error() (a, b string) { return "", "" }

type Wrapped dep.Problem

type Box[T any] struct{ value T }

func (b Box[T]) Error() string { return "" }
"""

_DEP = """
package dep

type Problem struct{}

func (*Problem) Error() string { return "problem" }
"""


def _load(write_go_package, tmp_path: Path):
    (tmp_path / "go.mod").write_text("module example.com/mod\n", encoding="utf-8")
    write_go_package("shapes", {"shapes.go": _SHAPES})
    write_go_package("dep", {"dep.go": _DEP})
    program = load_program(["./shapes", "./dep"], cwd=tmp_path, config=ScanConfig())
    shapes = program.package("example.com/mod/shapes")
    dep = program.package("example.com/mod/dep")
    assert shapes is not None and dep is not None
    return TypeResolver(program), shapes, dep


def test_declared_types_classify(write_go_package, tmp_path: Path) -> None:
    resolver, shapes, _dep = _load(write_go_package, tmp_path)
    verdicts = {
        name: is_error_like(resolver.declared_type(shapes, name))
        for name in ("MyErr", "Coded", "Failure", "Loud", "Plain", "Bad", "Node", "Grouped", "Box")
    }
    assert verdicts == {
        "MyErr": True,
        "Coded": True,
        "Failure": True,
        "Loud": True,
        "Plain": False,
        "Bad": False,
        "Node": False,
        "Grouped": False,
        "Box": True,
    }


def test_alias_resolves_to_target(write_go_package, tmp_path: Path) -> None:
    resolver, shapes, _dep = _load(write_go_package, tmp_path)
    assert resolver.declared_type(shapes, "Failure") is ERROR_TYPE


def test_named_type_details(write_go_package, tmp_path: Path) -> None:
    resolver, shapes, _dep = _load(write_go_package, tmp_path)
    msg = resolver.declared_type(shapes, "Msg")
    assert isinstance(msg, NamedType)
    assert msg.underlying == STRING_TYPE
    my_err = resolver.declared_type(shapes, "MyErr")
    assert isinstance(my_err, NamedType)
    assert my_err.underlying == UnnamedType("struct")
    assert [method.name for method in my_err.methods] == ["Error"]
    assert resolver.declared_type(shapes, "MyErr") is my_err
    coded = resolver.declared_type(shapes, "Coded")
    assert sorted(method.name for method in coded.methods) == ["Code", "Error"]
    grouped = resolver.declared_type(shapes, "Grouped")
    assert grouped.methods[0].results == (STRING_TYPE, STRING_TYPE)


def test_recursive_method_result_terminates(write_go_package, tmp_path: Path) -> None:
    resolver, shapes, _dep = _load(write_go_package, tmp_path)
    node = resolver.declared_type(shapes, "Node")
    assert node.methods[0].results == (node,)
    assert "Node" in repr(node)


def test_qualified_types_resolve_across_loaded_packages(write_go_package, tmp_path: Path) -> None:
    resolver, shapes, dep = _load(write_go_package, tmp_path)
    problem = resolver.declared_type(dep, "Problem")
    assert is_error_like(problem) is True
    wrapped = resolver.declared_type(shapes, "Wrapped")
    assert wrapped.underlying == UnnamedType("struct")
    assert wrapped.methods == ()
    assert is_error_like(wrapped) is False


def test_unknown_and_unloaded_names_are_unresolved(write_go_package, tmp_path: Path) -> None:
    resolver, shapes, _dep = _load(write_go_package, tmp_path)
    assert resolver.declared_type(shapes, "Missing") is None
    file = shapes.files[0]
    lookups = {
        name: resolver._lookup(shapes, file, name)
        for name in ("string", "int", "error", "any", "Nope")
    }
    assert lookups == {
        "string": BasicType("string"),
        "int": BasicType("int"),
        "error": ERROR_TYPE,
        "any": UnnamedType("interface"),
        "Nope": None,
    }
    assert resolver._imported_package(file, "errors") is None
    assert resolver._imported_package(file, "dep") is not None
