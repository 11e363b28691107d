from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from doc_vault.app.core.logging import setup_logging
from doc_vault.app.settings import StorageSettings, get_storage_settings
from doc_vault.documents.service import DocumentService

app = typer.Typer(no_args_is_help=True, add_completion=False, help="doc-vault document storage service")


def _settings(storage_dir: Optional[Path]) -> StorageSettings:
    settings = get_storage_settings()
    if storage_dir is not None:
        settings = settings.model_copy(update={"storage_dir": storage_dir})
    return settings


@app.command("serve")
def serve(
        host: str = typer.Option("127.0.0.1", help="Bind address"),
        port: int = typer.Option(5000, help="Bind port"),
        reload: bool = typer.Option(False, help="Reload on code changes (development)"),
        storage_dir: Optional[Path] = typer.Option(None, help="Override DOCVAULT_STORAGE_DIR"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from doc_vault.api.fastapi import create_app

    setup_logging()
    if reload:
        uvicorn.run("doc_vault.main:app", host=host, port=port, reload=True, log_config=None)
        return
    uvicorn.run(create_app(_settings(storage_dir)), host=host, port=port, log_config=None)


@app.command("init")
def init(
        storage_dir: Optional[Path] = typer.Option(None, help="Override DOCVAULT_STORAGE_DIR"),
):
    """Create the upload directory and an empty metadata document."""
    settings = _settings(storage_dir)
    DocumentService.from_settings(settings).initialize()
    typer.echo(f"Initialized storage at {settings.storage_dir}")


@app.command("orphans")
def orphans(
        prune: bool = typer.Option(False, "--prune", help="Delete unreferenced blobs and stale temp files"),
        storage_dir: Optional[Path] = typer.Option(None, help="Override DOCVAULT_STORAGE_DIR"),
):
    """Report blobs without records and records without blobs.

    Run with the service stopped: blobs of uploads still in flight look
    unreferenced until their batch is recorded.
    """
    service = DocumentService.from_settings(_settings(storage_dir))
    report = asyncio.run(service.prune_orphans() if prune else service.find_orphans())

    verb = "Deleted" if prune else "Found"
    for name in report.orphan_blobs:
        if name not in report.not_pruned:
            typer.echo(f"{verb} orphan blob: {name}")
    for name in report.stale_temp_files:
        if name not in report.not_pruned:
            typer.echo(f"{verb} stale temp file: {name}")
    for name in report.foreign_files:
        typer.echo(f"Foreign file (left in place): {name}")
    for name in report.not_pruned:
        typer.echo(f"Could not delete: {name}")
    for doc in report.dangling_records:
        typer.echo(f"Record without blob: {doc.id} ({doc.title} -> {doc.storage_name})")

    if report.clean:
        typer.echo("Storage is consistent.")
    elif report.dangling_records or report.not_pruned:
        raise typer.Exit(code=1)


def main() -> None:
    app()
