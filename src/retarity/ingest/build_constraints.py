"""Selection of the Go files a build for one GOOS/GOARCH would compile.

A file takes part when its name has no ``_`` or ``.`` prefix, its
``_GOOS``/``_GOARCH`` name suffixes (if any) match the target, and the
build constraints in its header are satisfied. A ``//go:build`` line
wins over ``// +build`` lines.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from retarity.config import ScanConfig

KNOWN_OS = frozenset(
    {
        "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos",
        "ios", "js", "linux", "nacl", "netbsd", "openbsd", "plan9", "solaris",
        "wasip1", "windows", "zos",
    }
)
KNOWN_ARCH = frozenset(
    {
        "386", "amd64", "amd64p32", "arm", "armbe", "arm64", "arm64be",
        "loong64", "mips", "mipsle", "mips64", "mips64le", "mips64p32",
        "mips64p32le", "ppc", "ppc64", "ppc64le", "riscv", "riscv64", "s390",
        "s390x", "sparc", "sparc64", "wasm",
    }
)
UNIX_OS = frozenset(
    {
        "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos",
        "ios", "linux", "netbsd", "openbsd", "solaris",
    }
)
# A GOOS that also satisfies the tag of the system it derives from.
_IMPLIED_OS = {"android": "linux", "illumos": "solaris", "ios": "darwin"}

_RELEASE_TAG_RE = re.compile(r"^go1\.\d+$")
_TOKEN_RE = re.compile(r"\s*(?:(&&|\|\||[!()])|([A-Za-z0-9_.]+))")
_GO_BUILD = "go:build"
_PLUS_BUILD = "+build"


class BuildConstraintError(ValueError):
    pass


@dataclass(frozen=True)
class BuildContext:
    goos: str
    goarch: str
    cgo_enabled: bool = True
    tags: frozenset[str] = frozenset()

    @classmethod
    def from_config(cls, config: ScanConfig) -> BuildContext:
        return cls(
            goos=config.goos,
            goarch=config.goarch,
            cgo_enabled=config.cgo_enabled,
            tags=frozenset(config.build_tags),
        )

    def matches_tag(self, tag: str) -> bool:
        if tag in self.tags or tag in {self.goos, self.goarch, "gc"}:
            return True
        if tag == "cgo":
            return self.cgo_enabled
        if tag == "unix":
            return self.goos in UNIX_OS
        if _IMPLIED_OS.get(self.goos) == tag:
            return True
        return bool(_RELEASE_TAG_RE.match(tag))

    def matches_file_name(self, name: str) -> bool:
        if name.startswith(("_", ".")):
            return False
        stem = name.split(".", 1)[0]
        if "_" not in stem:
            return True
        parts = stem[stem.index("_"):].split("_")
        if parts[-1] == "test":
            parts = parts[:-1]
        if len(parts) >= 2 and parts[-2] in KNOWN_OS and parts[-1] in KNOWN_ARCH:
            return self.matches_tag(parts[-2]) and self.matches_tag(parts[-1])
        if parts and (parts[-1] in KNOWN_OS or parts[-1] in KNOWN_ARCH):
            return self.matches_tag(parts[-1])
        return True

    def matches_source(self, source: bytes) -> bool:
        """Evaluate the build constraints in the file header.

        Raises ``BuildConstraintError`` for a malformed ``//go:build`` line.
        """
        go_build, plus_build = constraint_lines(source.decode("utf-8", errors="replace"))
        if go_build is not None:
            return _ExpressionParser(go_build, self).parse()
        return all(self._plus_build_line(line) for line in plus_build)

    def _plus_build_line(self, line: str) -> bool:
        return any(
            all(self._plus_build_term(term) for term in option.split(","))
            for option in line.split()
        )

    def _plus_build_term(self, term: str) -> bool:
        if term.startswith("!!") or not term.strip("!"):
            return False
        if term.startswith("!"):
            return not self.matches_tag(term[1:])
        return self.matches_tag(term)


def constraint_lines(text: str) -> tuple[str | None, list[str]]:
    """Return the ``//go:build`` expression and ``// +build`` arguments of a header.

    Only comments before the package clause count. ``// +build`` lines
    must be followed by a blank line to apply.
    """
    go_build: str | None = None
    plus_build: list[str] = []
    pending: list[str] = []
    in_block = False
    for raw in text.lstrip("\ufeff").splitlines():
        line = raw.strip()
        if in_block:
            in_block = "*/" not in line
            continue
        if not line:
            plus_build.extend(pending)
            pending = []
            continue
        if line.startswith("/*"):
            in_block = "*/" not in line[2:]
            pending = []
            continue
        if not line.startswith("//"):
            break
        body = line[2:]
        if body.startswith(_GO_BUILD):
            rest = body[len(_GO_BUILD):]
            if go_build is None and (not rest or rest[0].isspace()):
                go_build = rest.strip()
            continue
        body = body.strip()
        if body.startswith(_PLUS_BUILD):
            rest = body[len(_PLUS_BUILD):]
            if not rest or rest[0].isspace():
                pending.append(rest.strip())
    return go_build, plus_build


class _ExpressionParser:
    """Recursive descent over ``||``, ``&&``, ``!`` and parentheses."""

    def __init__(self, expression: str, context: BuildContext) -> None:
        self.expression = expression
        self.context = context
        self.tokens = self._tokenize(expression)
        self.index = 0

    def _tokenize(self, expression: str) -> list[str]:
        tokens: list[str] = []
        position = 0
        stripped = expression.rstrip()
        while position < len(stripped):
            match = _TOKEN_RE.match(stripped, position)
            if match is None:
                raise BuildConstraintError(f"unexpected character in //go:build {self.expression!r}")
            tokens.append(match.group(1) or match.group(2))
            position = match.end()
        if not tokens:
            raise BuildConstraintError("empty //go:build line")
        return tokens

    def parse(self) -> bool:
        value = self._or()
        if self.index != len(self.tokens):
            raise BuildConstraintError(
                f"unexpected {self.tokens[self.index]!r} in //go:build {self.expression!r}"
            )
        return value

    def _peek(self) -> str | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def _or(self) -> bool:
        value = self._and()
        while self._peek() == "||":
            self.index += 1
            right = self._and()
            value = value or right
        return value

    def _and(self) -> bool:
        value = self._not()
        while self._peek() == "&&":
            self.index += 1
            right = self._not()
            value = value and right
        return value

    def _not(self) -> bool:
        if self._peek() == "!":
            self.index += 1
            return not self._not()
        return self._atom()

    def _atom(self) -> bool:
        token = self._peek()
        if token is None:
            raise BuildConstraintError(f"unexpected end of //go:build {self.expression!r}")
        self.index += 1
        if token == "(":
            value = self._or()
            if self._peek() != ")":
                raise BuildConstraintError(f"missing ) in //go:build {self.expression!r}")
            self.index += 1
            return value
        if token in {")", "&&", "||"}:
            raise BuildConstraintError(f"unexpected {token!r} in //go:build {self.expression!r}")
        return self.context.matches_tag(token)


def candidate_go_files(directory: Path, context: BuildContext) -> list[Path]:
    """Sorted ``.go`` files of ``directory`` whose names fit the target."""
    try:
        entries = sorted(directory.iterdir())
    except OSError:
        return []
    return [
        entry
        for entry in entries
        if entry.suffix == ".go" and context.matches_file_name(entry.name) and entry.is_file()
    ]


def is_buildable(path: Path, context: BuildContext) -> bool:
    """Whether a candidate file would be compiled.

    Unreadable files and malformed constraints count as buildable; the
    loader reports them as skipped files.
    """
    try:
        source = path.read_bytes()
    except OSError:
        return True
    try:
        return context.matches_source(source)
    except BuildConstraintError:
        return True
