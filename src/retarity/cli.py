from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

from retarity.analysis.arity_walk import walk_program
from retarity.analysis.report_rendering import render_report, summarize
from retarity.config import ScanConfig, scan_config_from_table, scan_defaults
from retarity.exceptions import RetarityError
from retarity.ingest.go_loader import GoFile, load_program
from retarity.schema import report_to_dto

app = typer.Typer(add_completion=False)

_STDOUT_ALIAS = "-"


def resolve_scan_config(
    *,
    root: Path,
    config_path: Path | None,
    include_tests: bool | None,
) -> ScanConfig:
    if config_path is not None and not config_path.is_file():
        raise typer.BadParameter(f"config file not found: {config_path}")
    config = scan_config_from_table(scan_defaults(root=root, config_path=config_path))
    if include_tests is None:
        return config
    return ScanConfig(
        include_tests=include_tests,
        exclude_dirs=config.exclude_dirs,
        gopath=config.gopath,
    )


def _emit_skip(file: GoFile) -> None:
    typer.echo(f"skipping {file.path}: {file.reason}", err=True)


def _write_text_to_target(target: str, payload: str) -> None:
    if target == _STDOUT_ALIAS:
        typer.echo(payload)
        return
    Path(target).write_text(payload + "\n", encoding="utf-8")


@app.command()
def scan(
    import_paths: Optional[List[str]] = typer.Argument(
        None,
        help="Go import paths or directories; '...' matches any subpath.",
        show_default=False,
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to a retarity.toml (default: ./retarity.toml if present).",
    ),
    json_output: Optional[str] = typer.Option(
        None,
        "--json-output",
        help="Also write the report as JSON to this path ('-' for stdout).",
    ),
    include_tests: Optional[bool] = typer.Option(
        None,
        "--tests/--no-tests",
        help="Include _test.go files (default from config, else included).",
        show_default=False,
    ),
) -> None:
    """Tally Go function declarations by the number of results they return."""
    cwd = Path.cwd()
    try:
        config = resolve_scan_config(
            root=cwd,
            config_path=config_path,
            include_tests=include_tests,
        )
        program = load_program(import_paths or [], cwd=cwd, config=config)
    except RetarityError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc
    tally = walk_program(program, emit=typer.echo, on_skip=_emit_skip)
    report = summarize(tally)
    typer.echo(render_report(report), nl=False)
    if json_output:
        payload = report_to_dto(report, tally).model_dump()
        _write_text_to_target(json_output, json.dumps(payload, indent=2, sort_keys=True))


def main() -> None:
    app(prog_name="retarity")
