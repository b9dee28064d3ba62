"""Tests for command-line and shell-line parsing."""

import pytest

from cli.parser import ParseError, parse_arguments, parse_command, parse_operation
from transfer.types import Operation


def test_parse_full_invocation():
    invocation = parse_arguments([
        "-s", "https://sp.example.com/sites/team",
        "-f", "Shared Documents/Reports",
        "-u", "alice",
        "-p", "pw",
        "-o", "download",
        "--", "report*.csv",
    ])

    assert invocation.server_root_uri == "https://sp.example.com/sites/team"
    assert invocation.server_folder == "Shared Documents/Reports"
    assert invocation.username == "alice"
    assert invocation.password == "pw"
    assert invocation.command.operation is Operation.DOWNLOAD
    assert invocation.command.items == ("report*.csv",)
    assert not invocation.shell


def test_operation_defaults_to_upload():
    invocation = parse_arguments(["-u", "alice", "a.txt", "b.txt"])

    assert invocation.command.operation is Operation.UPLOAD
    assert invocation.command.items == ("a.txt", "b.txt")


def test_long_options_and_switches():
    invocation = parse_arguments(["--server", "https://h", "--operation", "LIST", "--shell", "--debug"])

    assert invocation.server_root_uri == "https://h"
    assert invocation.command.operation is Operation.LIST
    assert invocation.command.items == ()
    assert invocation.shell
    assert invocation.debug


def test_items_after_separator_may_look_like_options():
    invocation = parse_arguments(["-o", "remove", "--", "-draft.docx", "--shell"])

    assert invocation.command.items == ("-draft.docx", "--shell")
    assert not invocation.shell


def test_unknown_option():
    with pytest.raises(ParseError, match="Unknown option: -x"):
        parse_arguments(["-x", "1"])


def test_option_without_value():
    with pytest.raises(ParseError, match="-u requires a value"):
        parse_arguments(["-s", "https://h", "-u"])


def test_unknown_operation():
    with pytest.raises(ParseError, match="Unknown operation: rename"):
        parse_arguments(["-o", "rename", "--", "a.txt"])


def test_parse_operation_is_case_insensitive():
    assert parse_operation("Remove") is Operation.REMOVE


def test_parse_shell_upload():
    cmd = parse_command('upload "quarterly report.pdf" *.csv')

    assert cmd.operation is Operation.UPLOAD
    assert cmd.items == ("quarterly report.pdf", "*.csv")


def test_parse_shell_list_without_folder():
    cmd = parse_command("list")

    assert cmd.operation is Operation.LIST
    assert cmd.items == ()


@pytest.mark.parametrize("line", ["upload", "download   ", "remove"])
def test_parse_shell_requires_mask(line):
    with pytest.raises(ParseError, match="requires at least one file mask"):
        parse_command(line)


def test_parse_shell_unknown_command():
    with pytest.raises(ParseError, match="Unknown command: copy"):
        parse_command("copy a b")


def test_parse_shell_empty_and_bad_quoting():
    with pytest.raises(ParseError, match="Empty command"):
        parse_command("   ")
    with pytest.raises(ParseError, match="Invalid syntax"):
        parse_command('upload "unterminated')
