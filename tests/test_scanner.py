from __future__ import annotations

import asyncio
import threading
from pathlib import Path

import pytest

from dscan.core.aggregator import ResultAggregator
from dscan.core.errors import ConfigurationError, InvalidPatternError
from dscan.core.models import FileFindings, Finding, ScanResult
from dscan.core.scanner import YIELD_INTERVAL, DeprecationScanner

from .conftest import (
    FakeSource,
    FakeSourceFactory,
    RecordingProgress,
    make_range,
    make_usage,
    write_files,
)

LODASH = "/repo/node_modules/lodash/index.d.ts"
NODE = "/repo/node_modules/@types/node/fs.d.ts"


def _finding(message: str, definition_path: str | None = None, line: int = 0) -> Finding:
    return Finding(range=make_range(line), message=message, definition_path=definition_path)


def _scan(root: Path, source: FakeSource, **options) -> ScanResult:
    scanner = DeprecationScanner(source_factory=FakeSourceFactory(source))
    return asyncio.run(scanner.scan(root, **options))


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    write_files(tmp_path, {name: "" for name in ("b.ts", "a.ts", "c.ts", "clean.ts")})
    return tmp_path


@pytest.fixture
def source() -> FakeSource:
    return FakeSource(
        findings={
            "a.ts": [_finding("'pick' is deprecated.", LODASH)],
            "b.ts": [
                _finding("'exists' is deprecated.", NODE),
                _finding("'oldHelper' is deprecated. Use newHelper instead.", None, line=3),
            ],
            "c.ts": [_finding("'map' is deprecated.", LODASH)],
        }
    )


class TestScan:
    def test_aggregates_files_in_path_order(self, tree: Path, source: FakeSource) -> None:
        result = _scan(tree, source)

        assert result.scanned_files == 4
        assert result.total_usages == 4
        assert [Path(entry.file_path).name for entry in result.files] == ["a.ts", "b.ts", "c.ts"]
        b_usages = result.files[1].usages
        assert [usage.source_package for usage in b_usages] == ["@types/node", None]
        assert all(usage.file_path == result.files[1].file_path for usage in b_usages)

    def test_source_receives_project_config(self, tree: Path, source: FakeSource) -> None:
        factory = FakeSourceFactory(source)
        asyncio.run(DeprecationScanner(source_factory=factory).scan(tree))

        assert len(factory.configs) == 1
        assert factory.configs[0].uses_default
        assert len(source.calls) == 4

    def test_on_file_sees_each_file_with_usages(self, tree: Path, source: FakeSource) -> None:
        seen: list[FileFindings] = []
        _scan(tree, source, on_file=seen.append)
        assert sorted(Path(entry.file_path).name for entry in seen) == ["a.ts", "b.ts", "c.ts"]

    def test_origin_filter(self, tree: Path, source: FakeSource) -> None:
        result = _scan(tree, source, from_packages=["lodash"])
        assert result.total_usages == 2
        assert [Path(entry.file_path).name for entry in result.files] == ["a.ts", "c.ts"]
        assert result.scanned_files == 4

    def test_message_filter_affects_totals(self, tree: Path, source: FakeSource) -> None:
        result = _scan(tree, source, message_patterns=["INSTEAD"])
        assert result.total_usages == 1
        assert result.files[0].usages[0].message.startswith("'oldHelper'")

    def test_regex_message_filter(self, tree: Path, source: FakeSource) -> None:
        result = _scan(tree, source, message_patterns=["^'(pick|map)'"], regex=True)
        assert result.total_usages == 2

    def test_invalid_regex_fails_before_engine_starts(self, tree: Path, source: FakeSource) -> None:
        factory = FakeSourceFactory(source)
        scanner = DeprecationScanner(source_factory=factory)
        with pytest.raises(InvalidPatternError):
            asyncio.run(scanner.scan(tree, message_patterns=["["], regex=True))
        assert factory.configs == []

    def test_include_and_exclude(self, tree: Path, source: FakeSource) -> None:
        result = _scan(tree, source, include="*.ts", exclude="b.ts")
        assert result.scanned_files == 3
        assert result.total_usages == 2

    def test_no_files(self, tmp_path: Path, source: FakeSource) -> None:
        progress = RecordingProgress()
        result = _scan(tmp_path, source, progress_callback=progress)
        assert result == ScanResult()
        assert source.disposed

    def test_progress_messages(self, tree: Path, source: FakeSource) -> None:
        progress = RecordingProgress()
        _scan(tree, source, progress_callback=progress)
        assert progress.messages == [
            "Looking for tsconfig.json...",
            "No tsconfig.json found, using default configuration...",
            "Starting language service...",
            "Initializing TypeScript (4 files)...",
            "Scanning files... (1/4)",
            "Scanned 4 files",
        ]

    def test_failed_file_is_skipped(self, tree: Path, source: FakeSource) -> None:
        source.failing = {"b.ts"}
        progress = RecordingProgress()
        result = _scan(tree, source, progress_callback=progress)

        assert result.scanned_files == 4
        assert result.total_usages == 2
        warnings = [m for m in progress.messages if m.startswith("Warning: Error scanning")]
        assert len(warnings) == 1
        assert "b.ts" in warnings[0]
        assert warnings[0].endswith("engine crashed")

    def test_unexpected_source_error_is_skipped(self, tree: Path, source: FakeSource) -> None:
        source.errors = {"b.ts": RuntimeError("engine crashed"), "c.ts": KeyError("uri")}
        progress = RecordingProgress()
        result = _scan(tree, source, progress_callback=progress)

        assert result.scanned_files == 4
        assert result.total_usages == 1
        assert [Path(entry.file_path).name for entry in result.files] == ["a.ts"]
        warnings = [m for m in progress.messages if m.startswith("Warning: Error scanning")]
        assert len(warnings) == 2
        assert warnings[0].endswith("engine crashed")
        assert source.disposed

    def test_source_is_disposed(self, tree: Path, source: FakeSource) -> None:
        _scan(tree, source)
        assert source.disposed

    def test_configuration_error_does_not_start_source(self, tree: Path, source: FakeSource) -> None:
        write_files(tree, {"tsconfig.json": "{ nope"})
        factory = FakeSourceFactory(source)
        with pytest.raises(ConfigurationError):
            asyncio.run(DeprecationScanner(source_factory=factory).scan(tree))
        assert factory.configs == []

    def test_root_must_be_directory(self, tree: Path, source: FakeSource) -> None:
        with pytest.raises(ValueError, match="not a directory"):
            _scan(tree / "a.ts", source)


class TestCancellation:
    def test_cancelled_before_start(self, tree: Path, source: FakeSource) -> None:
        cancel = asyncio.Event()
        cancel.set()
        progress = RecordingProgress()
        result = _scan(tree, source, cancel_signal=cancel, progress_callback=progress)

        assert result == ScanResult(files=[], total_usages=0, scanned_files=0)
        assert source.calls == []
        assert source.disposed
        assert "Scan cancelled" in progress.messages

    def test_cancelled_mid_scan_stops_at_next_check(self, tmp_path: Path) -> None:
        write_files(tmp_path, {f"f{i:03d}.ts": "" for i in range(120)})
        cancel = threading.Event()
        source = FakeSource(
            findings={f"f{i:03d}.ts": [_finding("'x' is deprecated.")] for i in range(120)},
            on_call=lambda path: cancel.set() if path.endswith("f010.ts") else None,
        )
        result = _scan(tmp_path, source, cancel_signal=cancel)

        assert result.scanned_files == YIELD_INTERVAL
        assert result.total_usages == YIELD_INTERVAL
        assert len(source.calls) == YIELD_INTERVAL
        assert source.disposed


class TestResultAggregator:
    def test_empty_usages_are_not_recorded(self) -> None:
        seen: list[FileFindings] = []
        aggregator = ResultAggregator(on_file=seen.append)
        assert aggregator.add("/src/a.ts", []) is None
        assert seen == []
        assert aggregator.build(scanned_files=1) == ScanResult(scanned_files=1)

    def test_build_sorts_and_counts(self) -> None:
        aggregator = ResultAggregator()
        aggregator.add("/src/b.ts", [make_usage(file_path="/src/b.ts")])
        aggregator.add(
            "/src/a.ts", [make_usage(file_path="/src/a.ts"), make_usage(file_path="/src/a.ts")]
        )
        result = aggregator.build(scanned_files=5)

        assert [entry.file_path for entry in result.files] == ["/src/a.ts", "/src/b.ts"]
        assert result.total_usages == aggregator.total_usages == 3
        assert result.scanned_files == 5
