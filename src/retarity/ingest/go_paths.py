"""Expansion of Go import-path arguments into package directories."""

from __future__ import annotations

import os
import posixpath
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from retarity.config import ScanConfig
from retarity.exceptions import LoadError
from retarity.ingest.build_constraints import BuildContext, candidate_go_files, is_buildable

_WILDCARD = "..."
_MODULE_RE = re.compile(r"^\s*module\s+(?P<path>\"[^\"]+\"|\S+)")


@dataclass(frozen=True)
class PackageDir:
    directory: Path
    import_path: str


@dataclass(frozen=True)
class ModuleRoot:
    path: str
    directory: Path


def find_module_root(start: Path) -> ModuleRoot | None:
    for candidate in (start, *start.parents):
        go_mod = candidate / "go.mod"
        if not go_mod.is_file():
            continue
        try:
            text = go_mod.read_text(encoding="utf-8")
        except OSError:
            return None
        for line in text.splitlines():
            match = _MODULE_RE.match(line.split("//", 1)[0])
            if match is not None:
                return ModuleRoot(path=match.group("path").strip('"'), directory=candidate)
        return None
    return None


def has_go_files(directory: Path, *, config: ScanConfig) -> bool:
    context = BuildContext.from_config(config)
    return any(is_buildable(path, context) for path in candidate_go_files(directory, context))


def is_local_pattern(arg: str) -> bool:
    return arg in {".", ".."} or arg.startswith(("./", "../", "/"))


def pattern_regex(pattern: str) -> re.Pattern[str]:
    """Compile an import-path pattern where ``...`` matches any string.

    A trailing ``/...`` also matches the bare prefix, so ``net/...``
    matches ``net`` as well as ``net/http``.
    """
    escaped = re.escape(pattern).replace(re.escape(_WILDCARD), ".*")
    tail = "/" + ".*"
    if escaped.endswith(tail):
        escaped = escaped[: -len(tail)] + "(/.*)?"
    return re.compile(f"^{escaped}$")


def _relative_import_path(directory: Path, base: Path, prefix: str) -> str | None:
    try:
        rel = directory.relative_to(base)
    except ValueError:
        return None
    rel_text = rel.as_posix()
    if rel_text == ".":
        return prefix
    if not prefix:
        return rel_text
    return f"{prefix}/{rel_text}"


def import_path_for(directory: Path, *, config: ScanConfig) -> str | None:
    module = find_module_root(directory)
    if module is not None:
        found = _relative_import_path(directory, module.directory, module.path)
        if found is not None:
            return found
    for root in config.gopath:
        found = _relative_import_path(directory, root / "src", "")
        if found:
            return found
    return None


def walk_package_dirs(root: Path, *, config: ScanConfig) -> Iterator[Path]:
    """Yield ``root`` and its descendants that hold Go files, in sorted order."""
    for current, dirnames, _filenames in os.walk(root, topdown=True):
        dirnames[:] = sorted(name for name in dirnames if not config.is_excluded_dir(name))
        path = Path(current)
        if has_go_files(path, config=config):
            yield path


def _expand_local_pattern(
    pattern: str,
    *,
    cwd: Path,
    config: ScanConfig,
) -> list[PackageDir]:
    literal = pattern[: pattern.index(_WILDCARD)]
    walk_prefix = posixpath.dirname(literal) or "."
    matcher = pattern_regex(posixpath.normpath(pattern))
    walk_root = (cwd / walk_prefix).resolve()
    if not walk_root.is_dir():
        return []
    matched: list[PackageDir] = []
    for directory in walk_package_dirs(walk_root, config=config):
        rel = directory.relative_to(walk_root).as_posix()
        display = posixpath.normpath(posixpath.join(walk_prefix, rel))
        if not matcher.match(display):
            continue
        import_path = import_path_for(directory, config=config) or display
        matched.append(PackageDir(directory=directory, import_path=import_path))
    return matched


def _expand_import_pattern(
    pattern: str,
    *,
    module: ModuleRoot | None,
    config: ScanConfig,
) -> list[PackageDir]:
    literal = pattern[: pattern.index(_WILDCARD)]
    matcher = pattern_regex(pattern)
    bases: list[tuple[Path, str]] = []
    if module is not None and (
        module.path.startswith(literal) or literal.startswith(module.path)
    ):
        bases.append((module.directory, module.path))
    for root in config.gopath:
        src = root / "src"
        literal_dir = posixpath.dirname(literal)
        start = src / literal_dir if literal_dir else src
        if start.is_dir():
            bases.append((start, literal_dir))
    matched: list[PackageDir] = []
    for base, prefix in bases:
        for directory in walk_package_dirs(base, config=config):
            import_path = _relative_import_path(directory, base, prefix)
            if import_path and matcher.match(import_path):
                matched.append(PackageDir(directory=directory, import_path=import_path))
    return matched


def _resolve_single(
    arg: str,
    *,
    cwd: Path,
    module: ModuleRoot | None,
    config: ScanConfig,
) -> PackageDir:
    candidates: list[Path] = []
    if is_local_pattern(arg):
        candidates.append((cwd / arg).resolve())
    else:
        if module is not None:
            if arg == module.path:
                candidates.append(module.directory)
            elif arg.startswith(module.path + "/"):
                candidates.append(module.directory / arg[len(module.path) + 1 :])
        candidates.extend(root / "src" / arg for root in config.gopath)
    for directory in candidates:
        if not directory.is_dir():
            continue
        if not has_go_files(directory, config=config):
            raise LoadError(f"no Go files in {directory}")
        import_path = import_path_for(directory, config=config)
        if import_path is None:
            import_path = posixpath.normpath(arg)
        return PackageDir(directory=directory, import_path=import_path)
    raise LoadError(f"cannot find package {arg!r}")


def expand_import_paths(
    args: Iterable[str],
    *,
    cwd: Path,
    config: ScanConfig,
) -> list[PackageDir]:
    items = [arg.strip() for arg in args if arg.strip()] or ["."]
    module = find_module_root(cwd)
    seen: set[Path] = set()
    out: list[PackageDir] = []
    for arg in items:
        if _WILDCARD in arg:
            if is_local_pattern(arg) or arg.startswith(_WILDCARD):
                matched = _expand_local_pattern(arg, cwd=cwd, config=config)
            else:
                matched = _expand_import_pattern(arg, module=module, config=config)
            if not matched:
                raise LoadError(f"pattern {arg!r} matched no packages")
        else:
            matched = [_resolve_single(arg, cwd=cwd, module=module, config=config)]
        for package_dir in matched:
            directory = package_dir.directory.resolve()
            if directory in seen:
                continue
            seen.add(directory)
            out.append(PackageDir(directory=directory, import_path=package_dir.import_path))
    return out
