"""Tests for CLI output routing: stdout data, stderr diagnostics, formats."""

from __future__ import annotations

import json

import pytest

from cacheaside import output as output_module
from cacheaside.output import OutputFormat, OutputManager, get_output, set_output


@pytest.fixture()
def plain() -> OutputManager:
    return OutputManager(format=OutputFormat.PLAIN, no_color=True)


class TestDataOutput:
    def test_plain_dict(self, plain: OutputManager, capsys) -> None:
        plain.format_response({"message": "hi", "call": 1})
        assert capsys.readouterr().out == "message\thi\ncall\t1\n"

    def test_json_dict(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response({"a": 1})
        assert json.loads(capsys.readouterr().out) == {"a": 1}

    def test_plain_table(self, plain: OutputManager, capsys) -> None:
        plain.print_table(["Setting", "Value"], [["size", "2"]])
        assert capsys.readouterr().out == "Setting\tValue\nsize\t2\n"

    def test_json_table(self, capsys) -> None:
        manager = OutputManager(format=OutputFormat.JSON, no_color=True)
        manager.print_table(["Setting", "Value"], [["size", "2"]])
        assert json.loads(capsys.readouterr().out) == [{"Setting": "size", "Value": "2"}]


class TestDiagnostics:
    def test_info_goes_to_stderr(self, plain: OutputManager, capsys) -> None:
        plain.info("200 OK (cache)")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "200 OK (cache)\n"

    def test_quiet_suppresses_info_not_errors(self, capsys) -> None:
        manager = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        manager.info("hidden")
        manager.success("hidden")
        manager.error("boom")
        assert capsys.readouterr().err == "Error: boom\n"

    def test_debug_only_when_verbose(self, plain: OutputManager, capsys) -> None:
        plain.debug("quiet")
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("loud")
        assert capsys.readouterr().err == "[debug] loud\n"


class TestGlobalInstance:
    def test_helpers_use_installed_manager(self, plain: OutputManager, capsys) -> None:
        set_output(plain)
        assert get_output() is plain
        output_module.success("Cache cleared.")
        assert capsys.readouterr().err == "Cache cleared.\n"

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        OutputManager().error("boom")
        assert capsys.readouterr().err == "Error: boom\n"
