from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from dscan.core.errors import FileAnalysisError
from dscan.core.models import (
    FileFindings,
    Finding,
    Position,
    ProjectConfig,
    Range,
    RawDiagnostic,
    ScanResult,
    Usage,
)


def make_range(line: int = 0, start: int = 0, end: int = 10) -> Range:
    return Range(
        start=Position(line=line, character=start),
        end=Position(line=line, character=end),
    )


def make_usage(
    message: str = "'oldFunction' is deprecated.",
    file_path: str = "/src/test.ts",
    source_package: str | None = None,
    line: int = 0,
) -> Usage:
    return Usage(
        file_path=file_path,
        range=make_range(line),
        message=message,
        source_package=source_package,
    )


def make_result(files: dict[str, list[Usage]], scanned_files: int | None = None) -> ScanResult:
    entries = [
        FileFindings(file_path=path, usages=usages) for path, usages in sorted(files.items())
    ]
    total = sum(len(entry.usages) for entry in entries)
    return ScanResult(
        files=entries,
        total_usages=total,
        scanned_files=len(entries) if scanned_files is None else scanned_files,
    )


class RecordingProgress:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def update(self, message: str, **fields: Any) -> None:
        self.messages.append(message)


class FakeSource:
    """Deprecation source returning canned findings keyed by file name."""

    def __init__(
        self,
        findings: dict[str, list[Finding]] | None = None,
        failing: set[str] | None = None,
        errors: dict[str, Exception] | None = None,
        on_call: Callable[[str], None] | None = None,
    ) -> None:
        self.findings = findings or {}
        self.failing = failing or set()
        self.errors = errors or {}
        self.on_call = on_call
        self.calls: list[str] = []
        self.disposed = False

    async def get_deprecation_findings(self, file_path: str) -> list[Finding]:
        self.calls.append(file_path)
        if self.on_call is not None:
            self.on_call(file_path)
        name = Path(file_path).name
        if name in self.failing:
            raise FileAnalysisError(file_path, "engine crashed")
        if name in self.errors:
            raise self.errors[name]
        return self.findings.get(name, [])

    async def dispose(self) -> None:
        self.disposed = True


class FakeSourceFactory:
    def __init__(self, source: FakeSource) -> None:
        self.source = source
        self.configs: list[ProjectConfig] = []

    async def __call__(self, config: ProjectConfig) -> FakeSource:
        self.configs.append(config)
        return self.source


class FakeEngine:
    """Diagnostic engine returning canned diagnostics and definitions."""

    def __init__(
        self,
        diagnostics: list[RawDiagnostic] | None = None,
        definitions: dict[tuple[int, int], str] | None = None,
        error: Exception | None = None,
        definition_error: Exception | None = None,
    ) -> None:
        self.diagnostics = diagnostics or []
        self.definitions = definitions or {}
        self.error = error
        self.definition_error = definition_error
        self.opened: list[tuple[str, int]] = []
        self.closed: list[str] = []
        self.disposed = False

    async def open_document(self, file_path: str, text: str, version: int) -> list[RawDiagnostic]:
        self.opened.append((file_path, version))
        if self.error is not None:
            raise self.error
        return self.diagnostics

    async def definition(self, file_path: str, position: Position) -> str | None:
        if self.definition_error is not None:
            raise self.definition_error
        return self.definitions.get((position.line, position.character))

    async def close_document(self, file_path: str) -> None:
        self.closed.append(file_path)

    async def dispose(self) -> None:
        self.disposed = True


def write_files(root: Path, files: dict[str, str]) -> None:
    for name, content in files.items():
        target = root / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small project without tsconfig.json."""
    write_files(
        tmp_path,
        {
            "src/index.ts": "/** @deprecated */\nexport function old() {}\nold()\n",
            "src/util.ts": "export const x = 1\n",
            "src/app.js": "console.log('hi')\n",
            "node_modules/lodash/index.js": "module.exports = {}\n",
            "dist/index.js": "",
            "README.md": "# readme\n",
        },
    )
    return tmp_path
