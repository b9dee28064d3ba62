"""Tests for CLI command handlers and the one-shot entry point."""

import json
import logging

import pytest

from cli.commands import expand_local_masks, handle_transfer, resolve_items
from cli.main import EXIT_AUTH, EXIT_ITEM_FAILED, EXIT_OK, EXIT_USAGE, run
from cli.models import TransferCommand
from cli.repl import execute_line
from tests.fake_service import FOLDER, PASSWORD, SITE, USERNAME
from transfer.exceptions import ConfigurationError
from transfer.types import Operation


@pytest.fixture
def work_dir(tmp_path):
    work = tmp_path / "work"
    work.mkdir()
    for name in ("b.csv", "a.csv", "notes.txt"):
        (work / name).write_text(name)
    (work / "dir.csv").mkdir()
    return work


def test_expand_local_masks_sorts_per_mask(work_dir):
    files = expand_local_masks(["*.txt", "*.csv"], base_dir=work_dir)

    assert files == [
        str(work_dir / "notes.txt"),
        str(work_dir / "a.csv"),
        str(work_dir / "b.csv"),
    ]


def test_expand_local_masks_keeps_plain_file(work_dir):
    assert expand_local_masks(["notes.txt", "missing.txt"], base_dir=work_dir) == [str(work_dir / "notes.txt")]


def test_resolve_upload_without_matches(work_dir):
    with pytest.raises(ConfigurationError, match="empty file set"):
        resolve_items(TransferCommand(Operation.UPLOAD, ("*.pdf",)), base_dir=work_dir)


@pytest.mark.parametrize("operation", [Operation.UPLOAD, Operation.DOWNLOAD, Operation.REMOVE])
def test_resolve_requires_items(operation):
    with pytest.raises(ConfigurationError, match="file is not specified"):
        resolve_items(TransferCommand(operation, ()))


def test_resolve_list_defaults_to_session_folder():
    assert resolve_items(TransferCommand(Operation.LIST, ())) == [""]
    assert resolve_items(TransferCommand(Operation.LIST, ("Archive",))) == ["Archive"]


def test_resolve_remote_items_passed_through():
    cmd = TransferCommand(Operation.REMOVE, ("*.csv",))
    assert resolve_items(cmd) == ["*.csv"]


@pytest.mark.asyncio
async def test_handle_transfer_uploads_local_masks(engine, fake_service, work_dir):
    results = await handle_transfer(TransferCommand(Operation.UPLOAD, ("*.csv",)), engine, base_dir=work_dir)

    assert [r.ok for r in results] == [True, True]
    assert fake_service.files() == {"a.csv": b"a.csv", "b.csv": b"b.csv"}


@pytest.mark.asyncio
async def test_execute_line_reports_errors(engine, fake_service):
    fake_service.files()["a.txt"] = b""

    assert await execute_line(engine, "list") == "a.txt"
    assert await execute_line(engine, "rename a.txt") == "Error: Unknown command: rename"
    assert await execute_line(engine, "remove *.pdf") == "*.pdf: no remote file matches"


def base_argv(config_path):
    return ["-c", str(config_path), "-s", SITE, "-f", FOLDER, "-u", USERNAME, "-p", PASSWORD]


def test_run_upload_prints_report(fake_service, work_dir, tmp_path, capsys, monkeypatch):
    monkeypatch.chdir(work_dir)

    code = run(base_argv(tmp_path / "config.json") + ["--", "*.csv"], transport=fake_service.transport())

    assert code == EXIT_OK
    lines = capsys.readouterr().out.splitlines()
    assert [json.loads(line)["Name"] for line in lines] == ["a.csv", "b.csv"]


def test_run_remove_failure_sets_exit_code(fake_service, tmp_path, capsys):
    fake_service.files()["keep.txt"] = b""

    code = run(base_argv(tmp_path / "config.json") + ["-o", "remove", "--", "gone.txt", "keep.txt"],
               transport=fake_service.transport())

    assert code == EXIT_ITEM_FAILED
    out = capsys.readouterr().out.splitlines()
    assert out[0].startswith("gone.txt: ")
    assert out[1] == "keep.txt - Removed"


def test_run_rejected_login(fake_service, tmp_path, capsys):
    argv = ["-c", str(tmp_path / "config.json"), "-s", SITE, "-u", USERNAME, "-p", "wrong", "-o", "list"]

    code = run(argv, transport=fake_service.transport())

    assert code == EXIT_AUTH
    assert "PasswordNotMatch" in capsys.readouterr().out


def test_run_usage_errors_skip_network(fake_service, tmp_path, capsys):
    code = run(["-c", str(tmp_path / "config.json"), "--bogus"], transport=fake_service.transport())
    assert code == EXIT_USAGE
    assert "use:" in capsys.readouterr().out

    code = run(base_argv(tmp_path / "config.json") + ["--", str(tmp_path / "*.none")],
               transport=fake_service.transport())
    assert code == EXIT_USAGE
    assert "empty file set" in capsys.readouterr().out
    assert fake_service.requests == []


def test_run_uses_config_for_connection(fake_service, tmp_path, capsys, monkeypatch):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"server_root_uri": SITE, "server_folder": FOLDER, "username": USERNAME}))
    monkeypatch.setenv("SPFILES_PASSWORD", PASSWORD)
    fake_service.files()["a.txt"] = b""

    code = run(["-c", str(config_path), "-o", "list"], transport=fake_service.transport())

    assert code == EXIT_OK
    assert capsys.readouterr().out.strip() == "a.txt"


def test_run_twice_in_one_process(fake_service, tmp_path, capsys):
    """Logging set up by an earlier run must not break a later one."""
    fake_service.files()["a.txt"] = b""
    argv = base_argv(tmp_path / "config.json") + ["-o", "list"]

    assert run(argv, transport=fake_service.transport()) == EXIT_OK
    first = capsys.readouterr()
    assert run(argv + ["--debug"], transport=fake_service.transport()) == EXIT_OK
    second = capsys.readouterr()

    assert first.out.strip() == second.out.strip() == "a.txt"
    assert "Debug logging enabled" in second.err


def test_debug_item_after_separator_is_not_a_switch(fake_service, tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)

    code = run(base_argv(tmp_path / "config.json") + ["--", "--debug"], transport=fake_service.transport())

    assert code == EXIT_USAGE
    assert "empty file set" in capsys.readouterr().out
    assert logging.getLogger("cli").level == logging.INFO
