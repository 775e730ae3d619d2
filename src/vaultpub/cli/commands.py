"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from vaultpub.config import Settings, load_config
from vaultpub.core.concurrency import YieldScheduler
from vaultpub.core.context import PipelineContext
from vaultpub.core.errors import PipelineError
from vaultpub.core.export import write_outputs
from vaultpub.core.models import Document
from vaultpub.core.parse import collect_documents
from vaultpub.core.pipeline import run_pipeline_sync
from vaultpub.log import setup_logging


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _publish(settings: Settings) -> list[Document]:
    """Load the vault and run the pipeline; errors exit 1."""
    setup_logging(settings.log_level)
    ctx = PipelineContext(scheduler=YieldScheduler(settings.yield_every_n, settings.yield_every_ms))
    try:
        docs = collect_documents(Path(settings.vault_dir), settings.folders, exclude=(Path(settings.output_dir),))
        return run_pipeline_sync(
            docs, ctx, ignore_rules=settings.ignore_rules, parser_config=settings.parser_config,
        )
    except (PipelineError, ValueError) as e:
        _fail(str(e))


def build_cmd(
    vault: Annotated[Optional[str], typer.Argument(help="Vault root directory")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR")] = None,
    ):
    """Run the full pipeline: load -> transform -> export."""
    settings = _settings(overrides={
        "vault_dir": vault, "output_dir": out, "parser_config": parser,
        "log_level": log_level.upper() if log_level else None,
    })
    docs = _publish(settings)

    output_dir = Path(settings.output_dir)
    try:
        results, manifest = write_outputs(docs, output_dir)
    except ValueError as e:
        _fail(str(e))
    except OSError as e:
        _fail("Export failed", e)
    for doc, md_path in results:
        typer.echo(f"  {doc.vault_path} -> {md_path}")
    typer.echo(f"Published {len(results)} note(s) to {output_dir}/ (manifest: {manifest.name})")


def routes_cmd(
    vault: Annotated[Optional[str], typer.Argument(help="Vault root directory")] = None,
    ):
    """Print the computed route of every published note."""
    settings = _settings(overrides={"vault_dir": vault})
    docs = _publish(settings)
    if not docs:
        typer.echo("No publishable notes found.")
        raise typer.Exit(1)
    for doc in sorted(docs, key=lambda d: d.routing.full_path):
        typer.echo(f"{doc.routing.full_path} <- {doc.vault_path}")
