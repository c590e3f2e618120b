"""Loading of Go packages into tree-sitter syntax trees."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable

import tree_sitter_go
from tree_sitter import Language, Node, Parser, Tree

from retarity.config import ScanConfig
from retarity.exceptions import LoadError
from retarity.ingest.build_constraints import BuildConstraintError, BuildContext, candidate_go_files
from retarity.ingest.go_paths import PackageDir, expand_import_paths
from retarity.ingest.go_syntax import package_name

GO_LANGUAGE = Language(tree_sitter_go.language())

_TEST_SUFFIX = "_test"


def new_parser() -> Parser:
    return Parser(GO_LANGUAGE)


@dataclass(frozen=True)
class GoFile:
    path: Path
    source: bytes
    tree: Tree | None
    package_name: str | None
    reason: str | None = None

    @property
    def is_test(self) -> bool:
        return self.path.name.endswith(f"{_TEST_SUFFIX}.go")

    def position(self, node: Node) -> tuple[int, int]:
        row, column = node.start_point
        return row + 1, column + 1


@dataclass(frozen=True)
class GoPackage:
    import_path: str
    directory: Path
    name: str
    files: tuple[GoFile, ...]

    @property
    def key(self) -> tuple[str, str]:
        return self.import_path, self.name

    def mapped_files(self) -> tuple[GoFile, ...]:
        return tuple(file for file in self.files if file.tree is not None)


@dataclass(frozen=True)
class LoadedProgram:
    packages: tuple[GoPackage, ...]

    def package(self, import_path: str) -> GoPackage | None:
        for package in self.packages:
            if package.import_path == import_path:
                return package
        return None

    @property
    def file_count(self) -> int:
        return sum(len(package.files) for package in self.packages)


def parse_go_file(path: Path, parser: Parser) -> GoFile:
    try:
        source = path.read_bytes()
    except OSError as exc:
        return GoFile(
            path=path,
            source=b"",
            tree=None,
            package_name=None,
            reason=f"could not read file: {exc.strerror or exc}",
        )
    tree = parser.parse(source)
    name = package_name(tree.root_node)
    if name is None:
        return GoFile(path=path, source=source, tree=None, package_name=None, reason="no package clause")
    return GoFile(path=path, source=source, tree=tree, package_name=name)


def _select_file(path: Path, parser: Parser, context: BuildContext) -> GoFile | None:
    parsed = parse_go_file(path, parser)
    if parsed.tree is None:
        return parsed
    try:
        buildable = context.matches_source(parsed.source)
    except BuildConstraintError as exc:
        return replace(parsed, tree=None, reason=str(exc))
    return parsed if buildable else None


def _go_files(directory: Path, *, config: ScanConfig) -> list[Path]:
    files = candidate_go_files(directory, BuildContext.from_config(config))
    if not config.include_tests:
        files = [path for path in files if not path.name.endswith(f"{_TEST_SUFFIX}.go")]
    return files


def _own_name(file: GoFile) -> str | None:
    name = file.package_name
    if name and file.is_test and name.endswith(_TEST_SUFFIX):
        return name[: -len(_TEST_SUFFIX)]
    return name


def _primary_name(files: Iterable[GoFile], directory: Path) -> str:
    for file in files:
        name = _own_name(file)
        if name:
            return name
    return directory.name


def load_package_dir(
    package_dir: PackageDir,
    *,
    config: ScanConfig,
    parser: Parser,
) -> list[GoPackage]:
    """Load the package in one directory and its external test package.

    Files declaring any other package are kept unmapped with the conflict
    as their reason.
    """
    context = BuildContext.from_config(config)
    files = [
        selected
        for path in _go_files(package_dir.directory, config=config)
        if (selected := _select_file(path, parser, context)) is not None
    ]
    primary = _primary_name(files, package_dir.directory)
    external = f"{primary}{_TEST_SUFFIX}"
    grouped: dict[str, list[GoFile]] = {primary: [], external: []}
    for file in files:
        name = file.package_name or primary
        if name == external and file.is_test:
            grouped[external].append(file)
            continue
        if name != primary:
            file = replace(
                file,
                tree=None,
                reason=f"package {name} conflicts with package {primary}",
            )
        grouped[primary].append(file)
    import_paths = {
        primary: package_dir.import_path,
        external: f"{package_dir.import_path}{_TEST_SUFFIX}",
    }
    return [
        GoPackage(
            import_path=import_paths[name],
            directory=package_dir.directory,
            name=name,
            files=tuple(members),
        )
        for name, members in grouped.items()
        if members
    ]


def load_program(
    args: Iterable[str],
    *,
    cwd: Path,
    config: ScanConfig,
) -> LoadedProgram:
    package_dirs = expand_import_paths(args, cwd=cwd, config=config)
    parser = new_parser()
    packages: list[GoPackage] = []
    for package_dir in package_dirs:
        packages.extend(load_package_dir(package_dir, config=config, parser=parser))
    program = LoadedProgram(packages=tuple(packages))
    if program.file_count == 0:
        raise LoadError("no Go files to analyze")
    return program
