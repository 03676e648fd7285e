"""
Root Typer application for the specforge CLI.

Commands:
    fingerprint   Fingerprint a specification or one of its pages
    diff          Entity-level changes between two specifications
    plan          The workflow a generation run would execute
    generate      Run the generator and write the files
    serve         Start the REST API
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from typer import Typer

from specforge import __version__
from specforge.cli.serve import serve
from specforge.cli.utils import (
    console,
    err_console,
    fail,
    load_existing_code,
    load_spec,
    print_json,
    print_table,
)
from specforge.core.errors import SpecforgeError
from specforge.core.logging import configure_logging
from specforge.core.settings import get_settings
from specforge.generation.cache import GenerationCache
from specforge.generation.change_detector import ChangeDetector
from specforge.generation.generator import CodeGenerator
from specforge.generation.task_manager import TaskManager
from specforge.generation.types import ChangeKind, GenerationContext
from specforge.llm import build_provider
from specforge.spec.fingerprint import fingerprint_page, fingerprint_spec

app = Typer(
    name="specforge",
    help="specforge - incremental code generation from application specifications.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

SpecArg = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Specification (JSON or YAML)")
JsonOpt = typer.Option(False, "--json", help="Machine-readable output")


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"specforge {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline events to stderr."),
) -> None:
    """specforge CLI - fingerprint, diff, plan and generate."""
    settings = get_settings()
    configure_logging(
        level=settings.log_level if verbose else "WARNING",
        json_format=settings.log_json,
    )


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def fingerprint(
    spec_path: Path = SpecArg,
    page: str | None = typer.Option(None, "--page", "-p", help="Fingerprint one page instead"),
) -> None:
    """Print the SHA-256 fingerprint of a specification or a page."""
    try:
        spec = load_spec(spec_path)
        digest = fingerprint_page(spec, page) if page else fingerprint_spec(spec)
    except SpecforgeError as e:
        fail(e)
    typer.echo(digest)


@app.command()
def diff(
    previous_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Previous specification"),
    current_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Current specification"),
    as_json: bool = JsonOpt,
) -> None:
    """Show added, modified and deleted entities."""
    try:
        previous = load_spec(previous_path)
        current = load_spec(current_path)
    except SpecforgeError as e:
        fail(e)

    changes = ChangeDetector().detect_changes(current, previous)
    if as_json:
        print_json([c.to_dict() for c in changes])
        return
    if not changes:
        console.print("[dim]No changes.[/dim]")
        return
    print_table(
        [
            {"entity": c.entity_id, "change": c.kind.value, "category": c.category.value}
            for c in changes
        ],
        title="Changes",
    )


@app.command()
def plan(
    spec_path: Path = SpecArg,
    previous_path: Path | None = typer.Option(None, "--previous", exists=True, dir_okay=False),
    code_path: Path | None = typer.Option(
        None, "--existing-code", exists=True, dir_okay=False, help="Code map from a previous run"
    ),
    as_json: bool = JsonOpt,
) -> None:
    """Show the workflow a generation run would execute."""
    try:
        spec = load_spec(spec_path)
        previous = load_spec(previous_path) if previous_path else None
        existing = load_existing_code(code_path)
    except SpecforgeError as e:
        fail(e)

    changes = ChangeDetector().detect_changes(spec, previous)
    changed = {c.entity_id for c in changes if c.kind is not ChangeKind.DELETED}
    workflow = TaskManager().build_workflow(
        GenerationContext(spec=spec, changed_entity_ids=changed, previous_spec=previous, existing_code=existing)
    )

    if as_json:
        print_json([step.to_dict() for step in workflow])
        return
    if not workflow:
        console.print("[dim]Nothing to generate.[/dim]")
        return
    print_table(
        [
            {
                "step": step.name,
                "task": task.id,
                "priority": task.priority,
                "depends on": len(task.dependency_task_ids),
            }
            for step in workflow
            for task in step.tasks
        ],
        title="Workflow",
    )


@app.command()
def generate(
    spec_path: Path = SpecArg,
    previous_path: Path | None = typer.Option(None, "--previous", exists=True, dir_okay=False),
    code_path: Path | None = typer.Option(
        None, "--existing-code", exists=True, dir_okay=False, help="Code map from a previous run"
    ),
    out_dir: Path | None = typer.Option(None, "--out", "-o", file_okay=False, help="Write files here"),
    save_code: Path | None = typer.Option(
        None, "--save-code", dir_okay=False, help="Write the code map (for --existing-code next time)"
    ),
    provider_name: str | None = typer.Option(None, "--provider", help="mock | openai"),
    as_json: bool = JsonOpt,
) -> None:
    """Generate code for a specification."""
    settings = get_settings()
    if provider_name:
        settings = settings.model_copy(update={"provider": provider_name})

    try:
        spec = load_spec(spec_path)
        previous = load_spec(previous_path) if previous_path else None
        existing = load_existing_code(code_path)
        provider = build_provider(settings)
    except SpecforgeError as e:
        fail(e)

    generator = CodeGenerator(provider, settings=settings, cache=GenerationCache.from_settings(settings))
    code = asyncio.run(generator.generate(spec, previous, existing))
    files = generator.export_for_sandbox()

    if out_dir is not None:
        for path, content in files.items():
            target = out_dir / path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
    if save_code is not None:
        save_code.write_text(
            json.dumps({entity_id: c.to_dict() for entity_id, c in code.items()}, indent=2),
            encoding="utf-8",
        )

    progress = generator.progress()
    if as_json:
        print_json(
            {
                "progress": progress.to_dict(),
                "complete": generator.is_complete(),
                "files": sorted(files),
                "tasks": [t.to_dict() for t in generator.tasks],
            }
        )
    else:
        print_table(
            [
                {"task": t.id, "status": t.status.value, "error": t.error}
                for t in generator.tasks
            ],
            title="Tasks",
        )
        console.print(
            f"[bold]{progress.completed}/{progress.total}[/bold] tasks completed "
            f"({progress.percentage}%), {len(files)} files"
        )

    if not generator.is_complete():
        err_console.print("[bold red]Generation incomplete[/bold red]")
        raise typer.Exit(code=1)


app.command("serve")(serve)
