from __future__ import annotations

import asyncio
import json

from typer.testing import CliRunner

from doc_vault.app.settings import StorageSettings
from doc_vault.cli import app as cli_app
from doc_vault.documents.service import DocumentService
from tests.helpers import incoming

runner = CliRunner()


def _seed(storage_dir, *files):
    service = DocumentService.from_settings(StorageSettings(storage_dir=storage_dir, verify_delay=0))
    service.initialize()
    result = asyncio.run(service.upload_batch([incoming(name, data) for name, data in files]))
    return result.succeeded


def test_root_help_shows_commands():
    result = runner.invoke(cli_app, ["--help"])
    assert result.exit_code == 0
    for command in ("serve", "init", "orphans"):
        assert command in result.stdout


def test_orphans_help():
    result = runner.invoke(cli_app, ["orphans", "--help"])
    assert result.exit_code == 0
    assert "--prune" in result.stdout


def test_init_creates_storage(tmp_path):
    result = runner.invoke(cli_app, ["init", "--storage-dir", str(tmp_path)])

    assert result.exit_code == 0
    assert "Initialized storage at" in result.stdout
    assert (tmp_path / "uploads").is_dir()
    assert json.loads((tmp_path / "metadata.json").read_text()) == []


def test_orphans_reports_consistent_storage(tmp_path):
    _seed(tmp_path, ("a.txt", b"aaa"))

    result = runner.invoke(cli_app, ["orphans", "--storage-dir", str(tmp_path)])

    assert result.exit_code == 0
    assert "Storage is consistent." in result.stdout


def test_orphans_report_then_prune(tmp_path):
    _seed(tmp_path, ("a.txt", b"aaa"))
    stray = tmp_path / "uploads" / "deadbeef.pdf"
    stray.write_bytes(b"left behind")

    report = runner.invoke(cli_app, ["orphans", "--storage-dir", str(tmp_path)])
    assert report.exit_code == 0
    assert "Found orphan blob: deadbeef.pdf" in report.stdout
    assert stray.exists()

    pruned = runner.invoke(cli_app, ["orphans", "--prune", "--storage-dir", str(tmp_path)])
    assert pruned.exit_code == 0
    assert "Deleted orphan blob: deadbeef.pdf" in pruned.stdout
    assert not stray.exists()


def test_dangling_record_exits_nonzero(tmp_path):
    [doc] = _seed(tmp_path, ("report.pdf", b"body"))
    (tmp_path / "uploads" / doc.storage_name).unlink()

    result = runner.invoke(cli_app, ["orphans", "--storage-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert f"Record without blob: {doc.id} (report.pdf -> {doc.storage_name})" in result.stdout


def test_prune_leaves_foreign_files(tmp_path):
    _seed(tmp_path, ("a.txt", b"aaa"))
    foreign = tmp_path / "uploads" / "My Scan.pdf"
    foreign.write_bytes(b"copied in by hand")
    (tmp_path / "uploads" / "deadbeef.pdf").write_bytes(b"left behind")

    result = runner.invoke(cli_app, ["orphans", "--prune", "--storage-dir", str(tmp_path)])

    assert result.exit_code == 0
    assert "Deleted orphan blob: deadbeef.pdf" in result.stdout
    assert "Foreign file (left in place): My Scan.pdf" in result.stdout
    assert foreign.exists()
