from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from dscan import cli
from dscan.core.models import Finding
from dscan.core.scanner import DeprecationScanner
from dscan.output.formatters.json_formatter import parse_json_report

from .conftest import FakeSource, FakeSourceFactory, make_range, write_files

runner = CliRunner()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource(
        findings={
            "a.ts": [
                Finding(
                    range=make_range(2, 4, 8),
                    message="'pick' is deprecated.",
                    definition_path="/repo/node_modules/lodash/index.d.ts",
                )
            ],
            "b.ts": [Finding(range=make_range(0), message="'legacy' is deprecated. Use modern instead.")],
        }
    )


@pytest.fixture
def tree(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, source: FakeSource) -> Path:
    write_files(tmp_path, {"a.ts": "", "b.ts": "", "c.ts": ""})

    def fake_scanner(**kwargs: Any) -> DeprecationScanner:
        return DeprecationScanner(source_factory=FakeSourceFactory(source))

    monkeypatch.setattr(cli, "DeprecationScanner", fake_scanner)
    return tmp_path


def test_log_output(tree: Path) -> None:
    result = runner.invoke(cli.app, ["scan", str(tree)])

    assert result.exit_code == 0
    assert "a.ts" in result.output
    assert "3:5" in result.output
    assert "'pick' is deprecated.  [lodash]" in result.output
    assert "Found 2 deprecations in 2 files." in result.output


def test_json_output_file(tree: Path, tmp_path: Path) -> None:
    report = tmp_path / "report.json"
    result = runner.invoke(cli.app, ["scan", str(tree), "-f", "json", "-o", str(report)])

    assert result.exit_code == 0
    assert "Results written" in result.output
    parsed = parse_json_report(report.read_text(encoding="utf-8"))
    assert parsed.scanned_files == 3
    assert parsed.total_usages == 2
    assert [entry.file_path for entry in parsed.files] == ["a.ts", "b.ts"]


def test_from_package_filter(tree: Path) -> None:
    result = runner.invoke(cli.app, ["scan", str(tree), "-p", "lodash, moment", "-f", "markdown"])

    assert result.exit_code == 0
    assert "## a.ts" in result.output
    assert "## b.ts" not in result.output
    assert "**Summary**: 1 deprecation in 1 file." in result.output


def test_message_filter(tree: Path) -> None:
    result = runner.invoke(cli.app, ["scan", str(tree), "-m", "MODERN", "-f", "html"])

    assert result.exit_code == 0
    assert "legacy" in result.output
    assert "pick" not in result.output


def test_case_sensitive_message_filter(tree: Path) -> None:
    result = runner.invoke(
        cli.app, ["scan", str(tree), "-m", "MODERN", "--msg-grep-case-sensitive"]
    )

    assert result.exit_code == 0
    assert "No deprecations found." in result.output


def test_invalid_regex(tree: Path, source: FakeSource) -> None:
    result = runner.invoke(cli.app, ["scan", str(tree), "-m", "[", "--msg-grep-regex"])

    assert result.exit_code == 1
    assert "Invalid regular expression" in result.output
    assert source.calls == []


def test_malformed_tsconfig(tree: Path) -> None:
    write_files(tree, {"tsconfig.json": "{ broken"})
    result = runner.invoke(cli.app, ["scan", str(tree)])

    assert result.exit_code == 1
    assert "Error reading" in result.output


def test_missing_path(tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["scan", str(tmp_path / "missing")])
    assert result.exit_code != 0


def test_server_option_is_passed(tree: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[dict[str, Any]] = []

    def recording_scanner(**kwargs: Any) -> DeprecationScanner:
        created.append(kwargs)
        return DeprecationScanner(source_factory=FakeSourceFactory(FakeSource()))

    monkeypatch.setattr(cli, "DeprecationScanner", recording_scanner)
    result = runner.invoke(cli.app, ["scan", str(tree), "--server", "/opt/tsls"])

    assert result.exit_code == 0
    assert created == [{"server_cmd": ["/opt/tsls", "--stdio"], "verbose": False}]


def test_version() -> None:
    result = runner.invoke(cli.app, ["version"])
    assert result.exit_code == 0
    assert result.output.strip()


def test_doctor_reports_missing_server(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli.shutil, "which", lambda name: None)
    result = runner.invoke(cli.app, ["doctor", "--server", "tsls-missing"])

    assert result.exit_code == 0
    assert "tsls-missing not found" in result.output
