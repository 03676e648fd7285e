"""
CLI utility helpers - specification loading and output formatting.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
import yaml
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table

from specforge.core.errors import SpecforgeError, ValidationError
from specforge.generation.types import GeneratedCode
from specforge.spec.models import Specification

console = Console()
err_console = Console(stderr=True)


# ── Loading ──────────────────────────────────────────────────────────────


def read_document(path: Path) -> Any:
    """Parse a JSON or YAML file (chosen by extension)."""
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(text)
        return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValidationError(f"Cannot parse {path}: {e}", field="path", value=str(path), cause=e) from e


def load_spec(path: Path) -> Specification:
    data = read_document(path)
    if not isinstance(data, dict):
        raise ValidationError(f"{path} does not contain a specification object", value=str(path))
    try:
        return Specification.from_dict(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid specification in {path}: {e}", value=str(path), cause=e) from e


def load_existing_code(path: Path | None) -> dict[str, GeneratedCode] | None:
    if path is None:
        return None
    data = read_document(path)
    if not isinstance(data, dict):
        raise ValidationError(f"{path} does not contain a code map", value=str(path))
    try:
        return {entity_id: GeneratedCode.from_dict(code) for entity_id, code in data.items()}
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Malformed code map in {path}: {e}", value=str(path), cause=e) from e


# ── Output helpers ───────────────────────────────────────────────────────


def fail(error: SpecforgeError) -> NoReturn:
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    raise typer.Exit(code=1)


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_table(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*("" if v is None else str(v) for v in row.values()))
    console.print(table)
