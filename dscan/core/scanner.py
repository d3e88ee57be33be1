"""Main deprecation scanner."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from pathlib import Path

from dscan.core.aggregator import ResultAggregator
from dscan.core.config import load_project_config
from dscan.core.engine import DEFAULT_SERVER_CMD, LanguageServerEngine
from dscan.core.errors import EngineError, FileAnalysisError
from dscan.core.extractor import DiagnosticAdapter
from dscan.core.filters import MessageMatcher, compile_message_matcher, filter_usages_by_origin
from dscan.core.models import Finding, ProjectConfig, ScanResult, Usage
from dscan.core.origin import resolve_origin
from dscan.core.protocols import (
    CancellationSignal,
    DeprecationSource,
    FileCallback,
    ProgressCallback,
    SourceFactory,
)
from dscan.core.utils import select_files
from dscan.output.progress.callbacks import WARNING_PREFIX, NoOpProgressCallback

logger = logging.getLogger(__name__)

# Files between cooperative yields / cancellation checks
YIELD_INTERVAL = 50
# Files between progress messages
PROGRESS_INTERVAL = 100


def language_server_source_factory(server_cmd: list[str] | None = None) -> SourceFactory:
    """Factory building a language-server backed deprecation source per scan."""

    async def create(config: ProjectConfig) -> DeprecationSource:
        engine = LanguageServerEngine(config, server_cmd=server_cmd or DEFAULT_SERVER_CMD)
        try:
            await engine.start()
        except (RuntimeError, TimeoutError, OSError) as e:
            await engine.dispose()
            raise EngineError(f"Failed to start language server: {e}") from e
        return DiagnosticAdapter(engine)

    return create


def _to_usages(file_path: str, findings: Sequence[Finding]) -> list[Usage]:
    return [
        Usage(
            file_path=file_path,
            range=finding.range,
            message=finding.message,
            source_package=resolve_origin(finding.definition_path),
        )
        for finding in findings
    ]


class DeprecationScanner:
    """Main class for scanning a source tree for deprecated API usages."""

    def __init__(
        self,
        source_factory: SourceFactory | None = None,
        server_cmd: list[str] | None = None,
        verbose: bool = False,
    ) -> None:
        self.verbose = verbose
        self.source_factory = source_factory or language_server_source_factory(server_cmd)

        logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    async def scan(
        self,
        root_dir: str | Path = ".",
        *,
        config_path: str | Path | None = None,
        include: str | None = None,
        exclude: str | None = None,
        from_packages: Sequence[str] | None = None,
        message_patterns: Sequence[str] | None = None,
        case_sensitive: bool = False,
        regex: bool = False,
        progress_callback: ProgressCallback | None = None,
        on_file: FileCallback | None = None,
        cancel_signal: CancellationSignal | None = None,
    ) -> ScanResult:
        """
        Scan a project for usages of deprecated APIs.

        Args:
            root_dir: Project root directory
            config_path: Explicit tsconfig path (defaults to root_dir/tsconfig.json)
            include: Glob (or directory) selecting files to scan
            exclude: Glob (or directory) of files to skip, checked before include
            from_packages: Keep only usages of declarations from these packages
            message_patterns: Keep only usages whose message matches one pattern
            case_sensitive: Match message patterns case-sensitively
            regex: Treat message patterns as regular expressions
            progress_callback: Receives status messages
            on_file: Called with each file's findings as soon as they are final
            cancel_signal: Checked every YIELD_INTERVAL files

        Returns:
            ScanResult; a partial one when cancellation was requested

        Raises:
            ConfigurationError: The project configuration is unreadable or malformed
            InvalidPatternError: ``regex`` is on and a message pattern does not compile
            EngineError: The analysis engine could not be started
        """
        start_time = time.time()
        progress = progress_callback or NoOpProgressCallback()

        root = Path(root_dir).resolve()
        if not root.is_dir():
            raise ValueError(f"Path is not a directory: {root_dir}")

        matcher = (
            compile_message_matcher(message_patterns, case_sensitive=case_sensitive, regex=regex)
            if message_patterns
            else None
        )

        config = load_project_config(root, config_path, progress_callback=progress)
        files = select_files(config.file_names, root, include=include, exclude=exclude)
        logger.debug(f"Found {len(files)} files to scan")

        progress.update("Starting language service...")
        source = await self.source_factory(config)
        try:
            result = await self._scan_files(
                source, files, from_packages, matcher, progress, on_file, cancel_signal
            )
        finally:
            await source.dispose()

        logger.debug(
            f"Found {result.total_usages} deprecated usages in {len(result.files)} files "
            f"({result.scanned_files} scanned, {time.time() - start_time:.2f}s)"
        )
        return result

    async def _scan_files(
        self,
        source: DeprecationSource,
        files: list[str],
        from_packages: Sequence[str] | None,
        matcher: MessageMatcher | None,
        progress: ProgressCallback,
        on_file: FileCallback | None,
        cancel_signal: CancellationSignal | None,
    ) -> ScanResult:
        aggregator = ResultAggregator(on_file=on_file)
        total_files = len(files)

        progress.update(f"Initializing TypeScript ({total_files} files)...", total=total_files)

        for index, file_path in enumerate(files):
            if index % YIELD_INTERVAL == 0:
                await asyncio.sleep(0)
                if cancel_signal is not None and cancel_signal.is_set():
                    progress.update("Scan cancelled")
                    logger.info(f"Scan cancelled after {index} of {total_files} files")
                    return aggregator.build(scanned_files=index)

            if index % PROGRESS_INTERVAL == 0:
                progress.update(f"Scanning files... ({index + 1}/{total_files})", completed=index)

            logger.debug(f"Processing {file_path}")
            try:
                findings = await source.get_deprecation_findings(file_path)
            except Exception as e:
                detail = e.detail if isinstance(e, FileAnalysisError) else str(e) or type(e).__name__
                progress.update(f"{WARNING_PREFIX}Error scanning {file_path}: {detail}")
                logger.warning(f"Failed to process {file_path}: {detail}")
                continue

            usages = filter_usages_by_origin(_to_usages(file_path, findings), from_packages)
            if matcher is not None:
                usages = [usage for usage in usages if matcher(usage.message)]
            aggregator.add(file_path, usages)

        progress.update(f"Scanned {total_files} files", completed=total_files)
        return aggregator.build(scanned_files=total_files)


async def scan(root_dir: str | Path = ".", **options) -> ScanResult:
    """Scan ``root_dir`` with the default language server engine."""
    return await DeprecationScanner().scan(root_dir, **options)
