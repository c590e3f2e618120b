from __future__ import annotations

from retarity.analysis.arity_walk import (
    FLAG_NON_ERROR_SECOND,
    FLAG_TOO_MANY_RESULTS,
    ArityWalker,
    iter_function_declarations,
    walk_program,
)
from retarity.analysis.report_rendering import summarize
from retarity.analysis.tally import ArityTally
from retarity.analysis.type_resolution import TypeResolver

_SCENARIO = """
package scenario

func A() {}

func B() (int, error) { return 0, nil }

func C() (int, string) { return 0, "" }

func D() (int, int, int) { return 0, 0, 0 }
"""

_SHAPES = """
package shapes

type MyErr struct{}

func (e *MyErr) Error() string { return "" }

func Single() int { return 1 }

func Named() (n int, err error) { return 0, nil }

func Grouped() (a, b int) { return 0, 0 }

func ByValue() (int, MyErr) { return 0, MyErr{} }

func ByPointer() (int, *MyErr) { return 0, nil }

func Outer() (int, int, string) {
	inner := func() (int, int, int) { return 1, 2, 3 }
	a, b, _ := inner()
	return a, b, ""
}

func (e *MyErr) Split() (string, bool) { return "", false }
"""


def test_scenario_tally_and_emission(write_go_package, load_dirs) -> None:
    directory = write_go_package("scenario", {"scenario.go": _SCENARIO})
    emitted: list[str] = []
    tally = walk_program(load_dirs(directory), emit=emitted.append)
    assert tally.counts == {0: 1, 2: 2, 3: 1}
    assert tally.error_shaped == 1
    assert tally.declarations == 4
    assert emitted == [
        f"scanning {directory.resolve() / 'scenario.go'}...",
        'func C() (int, string) { return 0, "" }',
        "func D() (int, int, int) { return 0, 0, 0 }",
    ]
    assert [(item.name, item.reason) for item in tally.flagged] == [
        ("C", FLAG_NON_ERROR_SECOND),
        ("D", FLAG_TOO_MANY_RESULTS),
    ]
    report = summarize(tally)
    assert (report.total, report.multi, report.percentage) == (4, 3, 50.0)


def test_declaration_records(write_go_package, load_dirs) -> None:
    directory = write_go_package("shapes", {"shapes.go": _SHAPES})
    (package,) = load_dirs(directory).packages
    records = {record.name: record for record in iter_function_declarations(package.files[0])}
    assert {name: record.arity for name, record in records.items()} == {
        "Error": 1,
        "Single": 1,
        "Named": 2,
        "Grouped": 1,
        "ByValue": 2,
        "ByPointer": 2,
        "Outer": 3,
        "Split": 2,
    }
    assert records["Error"].receiver == "(e *MyErr)"
    assert records["Single"].receiver is None
    assert records["Single"].has_result_list is True
    assert records["Single"].line == 7
    assert records["Single"].column == 1
    assert records["Outer"].source.startswith("func Outer() (int, int, string) {\n")
    assert records["Outer"].source.endswith("}")


def test_second_result_classification(write_go_package, load_dirs) -> None:
    directory = write_go_package("shapes", {"shapes.go": _SHAPES})
    emitted: list[str] = []
    tally = walk_program(load_dirs(directory), emit=emitted.append)
    assert tally.counts == {1: 3, 2: 4, 3: 1}
    assert tally.error_shaped == 2
    assert [item.name for item in tally.flagged] == ["ByPointer", "Outer", "Split"]
    assert tally.error_shaped <= tally.counts[2]


def test_unmapped_files_are_skipped(write_go_package, load_dirs) -> None:
    directory = write_go_package(
        "mixed",
        {
            "a.go": "package mixed\n\nfunc F() (int, int, int) { return 1, 2, 3 }\n",
            "b.go": "garbage\n",
        },
    )
    program = load_dirs(directory)
    emitted: list[str] = []
    skipped: list[str] = []
    walker = ArityWalker(
        resolver=TypeResolver(program),
        tally=ArityTally(),
        emit=emitted.append,
        on_skip=lambda file: skipped.append(file.path.name),
    )
    tally = walker.walk_program(program)
    assert skipped == ["b.go"]
    assert tally.counts == {3: 1}
    assert not any("b.go" in line for line in emitted)


def test_declarations_before_a_syntax_error_are_counted(write_go_package, load_dirs) -> None:
    directory = write_go_package(
        "partial",
        {"partial.go": "package partial\n\nfunc Good() (int, error) { return 0, nil }\n\nfunc Broken( {\n"},
    )
    (package,) = load_dirs(directory).packages
    names = [record.name for record in iter_function_declarations(package.files[0])]
    assert "Good" in names


def test_package_without_functions(write_go_package, load_dirs) -> None:
    directory = write_go_package("empty", {"doc.go": "// Package empty has no code.\npackage empty\n"})
    tally = walk_program(load_dirs(directory), emit=lambda _line: None)
    assert tally.counts == {}
    assert summarize(tally).total == 0


def test_repeat_runs_are_identical(write_go_package, load_dirs) -> None:
    directory = write_go_package("shapes", {"shapes.go": _SHAPES})
    first: list[str] = []
    second: list[str] = []
    tally_one = walk_program(load_dirs(directory), emit=first.append)
    tally_two = walk_program(load_dirs(directory), emit=second.append)
    assert first == second
    assert tally_one.counts == tally_two.counts
    assert summarize(tally_one) == summarize(tally_two)


_DOCUMENTED = """
package documented

var x = 1 // trailing note

// Pair returns two counts.
// It never fails.
func Pair() (int, int) { return 1, 2 }

// Detached comment.

func Bare() (int, int, int) { return 1, 2, 3 }
"""


def test_flagged_declarations_carry_their_doc_comment(write_go_package, load_dirs) -> None:
    directory = write_go_package("documented", {"documented.go": _DOCUMENTED})
    emitted: list[str] = []
    tally = walk_program(load_dirs(directory), emit=emitted.append)
    assert emitted[1:] == [
        "// Pair returns two counts.\n// It never fails.\nfunc Pair() (int, int) { return 1, 2 }",
        "func Bare() (int, int, int) { return 1, 2, 3 }",
    ]
    assert tally.flagged[0].source == emitted[1]
    (package,) = load_dirs(directory).packages
    records = {record.name: record for record in iter_function_declarations(package.files[0])}
    assert records["Pair"].doc == "// Pair returns two counts.\n// It never fails."
    assert records["Pair"].source == "func Pair() (int, int) { return 1, 2 }"
    assert records["Bare"].doc is None


def test_doc_comment_skips_trailing_comment_of_previous_line(write_go_package, load_dirs) -> None:
    directory = write_go_package(
        "trailing",
        {"trailing.go": "package trailing\n\nvar x = 1 // note\nfunc T() (int, int, int) { return 1, 2, 3 }\n"},
    )
    (record,) = iter_function_declarations(load_dirs(directory).packages[0].files[0])
    assert record.doc is None


def test_second_package_clause_does_not_shadow_types(write_go_package, load_dirs) -> None:
    directory = write_go_package(
        "foo",
        {
            "a_lib.go": "package foo\n\nfunc G() (int, error) { return 0, nil }\n",
            "b_tool.go": """
                package main

                type MyErr struct{}

                func (MyErr) Error() string { return "" }

                func F() (int, MyErr) { return 0, MyErr{} }
                """,
        },
    )
    program = load_dirs(directory)
    skipped: list[str] = []
    tally = walk_program(program, emit=lambda _line: None, on_skip=lambda file: skipped.append(file.reason))
    assert skipped == ["package main conflicts with package foo"]
    assert tally.counts == {2: 1}
    assert tally.error_shaped == 1
    assert tally.flagged == []
