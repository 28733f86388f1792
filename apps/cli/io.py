"""CLI I/O helpers for atomic output writing."""

from __future__ import annotations

import json
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.orchestrator.pipeline import FillOutput
from core.templates.models import StructureResult
from core.templates.tree import result_to_payload


@dataclass(frozen=True)
class OutputPaths:
    """Fixed output artifact paths for single run."""

    structure: Path
    document: Path
    substitution_report: Path
    validation_errors: Path


def build_output_paths(out_dir: Path) -> OutputPaths:
    """Build fixed output file paths under out_dir."""

    return OutputPaths(
        structure=out_dir / "out.structure.json",
        document=out_dir / "out.xml",
        substitution_report=out_dir / "out.substitution_report.json",
        validation_errors=out_dir / "out.validation_errors.json",
    )


def existing_output_files(paths: OutputPaths) -> list[Path]:
    """Return existing output files among fixed artifact paths."""

    candidates = [
        paths.structure,
        paths.document,
        paths.substitution_report,
        paths.validation_errors,
    ]
    return [path for path in candidates if path.exists()]


def write_structure_atomic(paths: OutputPaths, result: StructureResult) -> None:
    """Write the structure + alias map payload atomically."""

    paths.structure.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(paths.structure, result_to_payload(result))


def write_fill_output_atomic(paths: OutputPaths, output: FillOutput) -> None:
    """Write the substituted document and its report atomically."""

    paths.document.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_text(paths.document, output.substitution.text)
    _atomic_write_json(
        paths.substitution_report, output.substitution.report.model_dump(mode="json")
    )
    if output.validation_errors:
        _atomic_write_json(paths.validation_errors, {"errors": output.validation_errors})
    else:
        paths.validation_errors.unlink(missing_ok=True)


def write_validation_errors_atomic(paths: OutputPaths, errors: dict[str, str]) -> None:
    """Write the blocking validation errors atomically."""

    paths.validation_errors.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(paths.validation_errors, {"errors": errors})


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, separators=(",", ":"))

    tmp_path.replace(path)


def _atomic_write_text(path: Path, text: str) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        newline="",
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        tmp.write(text)

    tmp_path.replace(path)
