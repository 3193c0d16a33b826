"""CLI for form-sync."""

import json
import logging
import shutil
from collections.abc import Iterable
from pathlib import Path
from typing import IO, Annotated, Any

import jsonschema
import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from form_sync import __version__
from form_sync.accessors import MissingAccessorError
from form_sync.config import (
    get_form_sync_home,
    get_registry_path,
    get_registry_root,
    write_global_config,
)
from form_sync.io import read_jsonl, to_json_line
from form_sync.pipeline import Pipeline, PipelineConfig
from form_sync.registry import FormRegistry

app = typer.Typer(
    name="form-sync",
    help="Validate untrusted input with form objects and sync it onto models.",
    no_args_is_help=True,
)
console = Console()

DEFAULT_SCHEMA = Path("schemas") / "form_spec.schema.json"


def version_callback(value: bool) -> None:
    if value:
        console.print(f"form-sync version {__version__}")
        raise typer.Exit()


def fail(message: str, hint: str | None = None) -> None:
    """Print an error (and optional hint) and exit with status 1."""
    console.print(f"[red]Error:[/red] {message}")
    if hint:
        console.print(hint)
    raise typer.Exit(1)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """form-sync: form objects between untrusted input and models."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def init(
    source: Annotated[
        Path | None,
        typer.Option("--from", "-f", help="Directory containing form-registry"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing registry"),
    ] = False,
) -> None:
    """Copy a form registry into the form-sync home and write config.yaml."""
    source_registry = (source or Path.cwd()) / "form-registry"
    destination = get_registry_root() / "form-registry"

    if not source_registry.is_dir():
        fail(f"form-registry not found at {source_registry}", "Use --from to point at its parent directory")
    if destination.exists() and not force:
        fail(f"a registry already exists at {destination}", "Use --force to replace it")

    console.print(f"[bold]Initializing form-sync at {get_form_sync_home()}[/bold]")
    if destination.exists():
        shutil.rmtree(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source_registry, destination)

    form_ids = FormRegistry(destination).list_forms()
    console.print(f"  [green]✓[/green] Copied {len(form_ids)} form(s): {', '.join(form_ids)}")

    config_path = write_global_config({"default_registry_path": str(destination)})
    console.print(f"  [green]✓[/green] Wrote {config_path}")


@app.command()
def forms(
    registry: Annotated[
        Path | None,
        typer.Option("--registry", "-r", envvar="FORM_SYNC_REGISTRY", help="Path to form registry"),
    ] = None,
) -> None:
    """List the forms in a registry with their versions."""
    registry = registry or get_registry_path()
    form_registry = FormRegistry(registry)

    form_ids = form_registry.list_forms()
    if not form_ids:
        fail(f"no forms found in {registry}")

    for form_id in form_ids:
        versions = form_registry.list_versions(form_id)
        console.print(f"[bold]{form_id}[/bold] {', '.join(versions)}")


def _process_records(
    pipeline: Pipeline,
    records: Iterable[dict[str, Any]],
    out: IO[str],
    diagnostics_out: IO[str] | None,
    progress: Progress,
) -> dict[str, int]:
    counts = {"valid": 0, "invalid": 0, "failed": 0}
    task = progress.add_task("Processing submissions...", total=None)

    for line_num, record in enumerate(records, 1):
        try:
            result = pipeline.process(record)
        except (MissingAccessorError, TypeError) as e:
            # The record's model does not fit the form
            console.print(f"[red]Record {line_num}:[/red] {e}")
            counts["failed"] += 1
            continue

        out.write(to_json_line(result, exclude={"diagnostics"}))
        if diagnostics_out is not None:
            diagnostics_out.write(to_json_line(result.diagnostics))

        counts["valid" if result.valid else "invalid"] += 1
        progress.update(task, description=f"Processed {line_num} submissions...")

    return counts


@app.command()
def run(
    input_path: Annotated[
        Path,
        typer.Option("--in", "-i", help="Input JSONL of {submission_id, model, params}"),
    ],
    output_path: Annotated[
        Path,
        typer.Option("--out", "-o", help="Output JSONL path for results"),
    ],
    form: Annotated[
        str,
        typer.Option("--form", help="Form spec ID"),
    ],
    form_version: Annotated[
        str | None,
        typer.Option("--form-version", help="Form spec version (default: latest)"),
    ] = None,
    registry: Annotated[
        Path | None,
        typer.Option("--registry", "-r", envvar="FORM_SYNC_REGISTRY", help="Path to form registry"),
    ] = None,
    diagnostics: Annotated[
        Path | None,
        typer.Option("--diagnostics", "-d", help="Diagnostics output JSONL path"),
    ] = None,
    sync: Annotated[
        bool,
        typer.Option("--sync/--no-sync", help="Sync valid submissions onto their models"),
    ] = True,
) -> None:
    """Validate submissions and emit one result per line."""
    registry = registry or get_registry_path()

    if not input_path.exists():
        fail(f"input file not found: {input_path}")
    if not registry.exists():
        fail(f"form registry not found: {registry}", "Run `form-sync init` or pass --registry")

    try:
        pipeline = Pipeline(
            PipelineConfig(
                registry_path=registry,
                form_id=form,
                form_version=form_version,
                schema_path=DEFAULT_SCHEMA if DEFAULT_SCHEMA.exists() else None,
                sync=sync,
            )
        )
    except Exception as e:
        fail(f"could not load form {form}@{form_version or 'latest'}: {e}")

    console.print(f"[bold]form-sync[/bold] v{__version__}")
    console.print(f"  Form: {pipeline.spec.form_id}@{pipeline.spec.version}")
    console.print(f"  Sync: {'on' if sync else 'off'}")

    diagnostics_out = open(diagnostics, "w") if diagnostics else None
    try:
        with open(output_path, "w") as out, Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            counts = _process_records(pipeline, read_jsonl(input_path), out, diagnostics_out, progress)
    except ValueError as e:
        fail(str(e))
    finally:
        if diagnostics_out is not None:
            diagnostics_out.close()

    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Submissions processed: {sum(counts.values())}")
    console.print(f"  [green]Valid:[/green] {counts['valid']}")
    if counts["invalid"]:
        console.print(f"  [yellow]Invalid:[/yellow] {counts['invalid']}")
    if counts["failed"]:
        console.print(f"  [red]Failed:[/red] {counts['failed']}")


@app.command()
def validate(
    spec_path: Annotated[
        Path,
        typer.Argument(help="Path to the form spec file"),
    ],
    schema_path: Annotated[
        Path | None,
        typer.Option("--schema", "-s", help="Path to the schema file"),
    ] = None,
) -> None:
    """Check a form spec file against the form spec JSON Schema."""
    schema_path = schema_path or DEFAULT_SCHEMA

    if not spec_path.exists():
        fail(f"spec file not found: {spec_path}")
    if not schema_path.exists():
        fail(f"schema file not found: {schema_path}")

    spec = json.loads(spec_path.read_text())
    schema = json.loads(schema_path.read_text())

    validator_cls = jsonschema.validators.validator_for(schema)
    errors = sorted(
        validator_cls(schema).iter_errors(spec),
        key=lambda e: [str(part) for part in e.absolute_path],
    )
    if errors:
        for error in errors:
            location = "/".join(str(part) for part in error.absolute_path) or "(root)"
            console.print(f"[red]Invalid:[/red] {location}: {error.message}")
        raise typer.Exit(1)
    console.print(f"[green]Valid:[/green] {spec_path}")


if __name__ == "__main__":
    app()
