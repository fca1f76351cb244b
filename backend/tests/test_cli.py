"""Tests for the `python -m backend.swiftlet` command-line runner."""

import io

from backend.swiftlet.__main__ import main


def test_cli_runs_file(tmp_path, capsys):
    src = tmp_path / "hello.swift"
    src.write_text('import Foundation\nlet who = "CLI"\nprint("Hi \\(who)")\n', encoding="utf-8")

    assert main([str(src)]) == 0
    assert capsys.readouterr().out == "Hi CLI\n"


def test_cli_reports_errors(tmp_path, capsys):
    src = tmp_path / "bad.swift"
    src.write_text("add(1)\n", encoding="utf-8")

    assert main([str(src)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("Error: Compilation Error: Error in line 'add(1)'")


def test_cli_reads_stdin_and_applies_limits(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("print(1)\nprint(2)\n"))

    assert main(["-", "--max-steps", "1"]) == 1
    assert "Step limit exceeded" in capsys.readouterr().err


def test_cli_no_output_message(tmp_path, capsys):
    src = tmp_path / "empty.swift"
    src.write_text("// nothing\n", encoding="utf-8")

    assert main([str(src)]) == 0
    assert capsys.readouterr().out == "Code executed successfully (no output)\n"
