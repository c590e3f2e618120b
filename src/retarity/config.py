from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Callable, Mapping, TypeAlias
import tomllib

from retarity.exceptions import ConfigError

DEFAULT_CONFIG_NAME = "retarity.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

_DEFAULT_EXCLUDE_DIRS = ("vendor",)

_PLATFORM_GOOS = {
    "aix": "aix",
    "cygwin": "windows",
    "darwin": "darwin",
    "dragonfly": "dragonfly",
    "freebsd": "freebsd",
    "linux": "linux",
    "netbsd": "netbsd",
    "openbsd": "openbsd",
    "sunos": "solaris",
    "win32": "windows",
}
_MACHINE_GOARCH = {
    "aarch64": "arm64",
    "amd64": "amd64",
    "arm64": "arm64",
    "armv6l": "arm",
    "armv7l": "arm",
    "i386": "386",
    "i686": "386",
    "ppc64le": "ppc64le",
    "riscv64": "riscv64",
    "s390x": "s390x",
    "x86": "386",
    "x86_64": "amd64",
}


def host_goos() -> str:
    name = sys.platform.rstrip("0123456789")
    return _PLATFORM_GOOS.get(name, name)


def host_goarch() -> str:
    machine = platform.machine().lower()
    return _MACHINE_GOARCH.get(machine, machine or "amd64")


@dataclass(frozen=True)
class ScanConfig:
    include_tests: bool = True
    exclude_dirs: tuple[str, ...] = _DEFAULT_EXCLUDE_DIRS
    gopath: tuple[Path, ...] = field(default_factory=tuple)
    goos: str = field(default_factory=host_goos)
    goarch: str = field(default_factory=host_goarch)
    cgo_enabled: bool = True
    build_tags: tuple[str, ...] = ()

    def is_excluded_dir(self, name: str) -> bool:
        if name.startswith(".") or name.startswith("_"):
            return True
        return name == "testdata" or name in self.exclude_dirs


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"could not parse {path}: {exc}") from exc
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def scan_defaults(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("scan", {})
    return section if isinstance(section, dict) else {}


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return [item for item in items if item]


def _as_bool(value: TomlValue, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return default


def _gopath_roots(value: TomlValue, environ: Mapping[str, str]) -> tuple[Path, ...]:
    entries = _normalize_name_list(value)
    if not entries:
        raw = environ.get("GOPATH", "")
        entries = [part for part in raw.split(os.pathsep) if part.strip()]
    if not entries:
        home = environ.get("HOME")
        entries = [str(Path(home) / "go")] if home else []
    return tuple(Path(entry).expanduser() for entry in entries)


def scan_config_from_table(
    section: TomlTable | None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ScanConfig:
    if environ is None:
        environ = os.environ
    if not isinstance(section, dict):
        section = {}
    exclude = section.get("exclude_dirs")
    exclude_dirs = (
        tuple(_normalize_name_list(exclude)) if exclude is not None else _DEFAULT_EXCLUDE_DIRS
    )
    return ScanConfig(
        include_tests=_as_bool(section.get("include_tests"), default=True),
        exclude_dirs=exclude_dirs,
        gopath=_gopath_roots(section.get("gopath"), environ),
        goos=_platform_name(section.get("goos"), environ.get("GOOS"), host_goos),
        goarch=_platform_name(section.get("goarch"), environ.get("GOARCH"), host_goarch),
        cgo_enabled=_as_bool(
            section.get("cgo_enabled", environ.get("CGO_ENABLED")),
            default=True,
        ),
        build_tags=tuple(_normalize_name_list(section.get("build_tags"))),
    )


def _platform_name(value: TomlValue, env_value: str | None, fallback: Callable[[], str]) -> str:
    for candidate in (value, env_value):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return fallback()
