from __future__ import annotations

import sys
import textwrap
from pathlib import Path
from typing import Callable

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))


import pytest

from retarity.config import ScanConfig
from retarity.ingest.go_loader import LoadedProgram, load_program

WriteGoPackage = Callable[..., Path]


@pytest.fixture
def write_go_package(tmp_path: Path) -> WriteGoPackage:
    def _write(rel_dir: str, files: dict[str, str]) -> Path:
        directory = tmp_path / rel_dir
        directory.mkdir(parents=True, exist_ok=True)
        for name, body in files.items():
            (directory / name).write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
        return directory

    return _write


@pytest.fixture
def scan_config() -> ScanConfig:
    return ScanConfig(gopath=(), goos="linux", goarch="amd64")


@pytest.fixture
def load_dirs(scan_config: ScanConfig) -> Callable[..., LoadedProgram]:
    def _load(*directories: Path) -> LoadedProgram:
        return load_program([str(directory) for directory in directories], cwd=ROOT, config=scan_config)

    return _load
