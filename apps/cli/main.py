"""Typer CLI entrypoint for actform."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer

from apps.cli.format_human import render_fill_summary, render_structure_summary
from apps.cli.io import (
    build_output_paths,
    existing_output_files,
    write_fill_output_atomic,
    write_structure_atomic,
    write_validation_errors_atomic,
)
from core.config.loader import load_engine_config
from core.config.models import EngineConfig
from core.orchestrator.pipeline import parse_template, run_fill
from core.profiles.prefill import Profile
from core.utils.errors import FieldValidationError

app = typer.Typer(help="Act form template engine CLI", rich_markup_mode=None)


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep subcommands explicit."""


@app.command("parse")
def parse_command(
    template: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    dictionary: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    config: Annotated[Path | None, typer.Option()] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", help="Extra block code to exclude; repeatable."),
    ] = None,
    no_overwrite: Annotated[
        bool, typer.Option("--no-overwrite", help="Fail when outputs already exist.")
    ] = False,
) -> None:
    """Extract the form structure and alias map into out.structure.json."""

    paths = build_output_paths(out_dir)
    if no_overwrite and paths.structure.exists():
        typer.echo("ERROR: outputs already exist and --no-overwrite is enabled.")
        raise typer.Exit(code=1)

    try:
        engine_config = _load_config(config, extra_excluded=exclude)
        result = parse_template(_read_text(template), _read_text(dictionary), engine_config)
        write_structure_atomic(paths, result)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(render_structure_summary(result))
    typer.echo("INFO: success")


@app.command("fill")
def fill_command(
    template: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    dictionary: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    values: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    config: Annotated[Path | None, typer.Option()] = None,
    profile: Annotated[
        Path | None,
        typer.Option(exists=True, dir_okay=False, help="Profile JSON used to prefill fields."),
    ] = None,
    allow_invalid: Annotated[
        bool,
        typer.Option("--allow-invalid", help="Substitute even when validation fails."),
    ] = False,
    no_overwrite: Annotated[
        bool, typer.Option("--no-overwrite", help="Fail when outputs already exist.")
    ] = False,
) -> None:
    """Substitute entered values into the template and write out.xml."""

    paths = build_output_paths(out_dir)
    if no_overwrite and existing_output_files(paths):
        typer.echo("ERROR: outputs already exist and --no-overwrite is enabled.")
        raise typer.Exit(code=1)

    try:
        engine_config = _load_config(config)
        if allow_invalid:
            engine_config = engine_config.model_copy(update={"block_on_validation_errors": False})
        value_table = _load_values(values)
        profile_model = _load_profile(profile) if profile is not None else None
        output = run_fill(
            _read_text(template),
            _read_text(dictionary),
            value_table,
            config=engine_config,
            profile=profile_model,
        )
    except FieldValidationError as exc:
        typer.echo("ERROR: validation failed")
        for code in sorted(exc.errors):
            typer.echo(f"  {code}: {exc.errors[code]}")
        try:
            write_validation_errors_atomic(paths, exc.errors)
        except Exception as write_exc:  # noqa: BLE001
            typer.echo(f"ERROR: write validation errors failed: {write_exc}")
        raise typer.Exit(code=2) from exc
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    try:
        write_fill_output_atomic(paths, output)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: write output failed: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(render_fill_summary(output))
    typer.echo("INFO: success")


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8-sig")


def _load_config(path: Path | None, extra_excluded: list[str] | None = None) -> EngineConfig:
    engine_config = load_engine_config(path)
    if extra_excluded:
        merged = [*engine_config.excluded_codes, *extra_excluded]
        engine_config = engine_config.model_copy(update={"excluded_codes": merged})
    return engine_config


def _load_values(path: Path) -> dict[str, str | None]:
    raw = _load_json_object(path, label="Values")
    values: dict[str, str | None] = {}
    for code, value in raw.items():
        values[code] = None if value is None else str(value)
    return values


def _load_profile(path: Path) -> Profile:
    return Profile.model_validate(_load_json_object(path, label="Profile"))


def _load_json_object(path: Path, *, label: str) -> dict[str, Any]:
    raw = json.loads(_read_text(path))
    if not isinstance(raw, dict):
        raise ValueError(f"{label} JSON must be an object")
    return raw


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
