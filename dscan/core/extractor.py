"""Extraction of deprecation findings from an analysis engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from dscan.core.errors import FileAnalysisError
from dscan.core.lsp_utils import LineIndex, flatten_message_text, is_deprecation_diagnostic
from dscan.core.models import Finding, Range, RawDiagnostic
from dscan.core.protocols import DiagnosticEngine

logger = logging.getLogger(__name__)


@dataclass
class DocumentSnapshot:
    """File contents as handed to the engine, with its line index."""

    version: int
    text: str
    line_index: LineIndex = field(init=False)

    def __post_init__(self) -> None:
        self.line_index = LineIndex(self.text)


class DiagnosticAdapter:
    """
    Narrows an engine's diagnostic stream down to deprecation findings.

    One adapter (and one engine) serves a whole scan; document snapshots are
    cached by path for the lifetime of the adapter.
    """

    def __init__(self, engine: DiagnosticEngine) -> None:
        self.engine = engine
        self._snapshots: dict[str, DocumentSnapshot] = {}

    def snapshot(self, file_path: str) -> DocumentSnapshot:
        """Return the cached snapshot for ``file_path``, reading it on first use."""
        cached = self._snapshots.get(file_path)
        if cached is not None:
            return cached
        try:
            # newline="" keeps \r\n intact so engine offsets line up
            with open(file_path, encoding="utf-8", newline="") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FileAnalysisError(file_path, f"cannot read file: {e}") from e
        snapshot = DocumentSnapshot(version=0, text=text)
        self._snapshots[file_path] = snapshot
        return snapshot

    async def get_deprecation_findings(self, file_path: str) -> list[Finding]:
        """
        Analyze one file and return its deprecation findings.

        Raises:
            FileAnalysisError: The file cannot be read or the engine failed on it
        """
        snapshot = self.snapshot(file_path)

        try:
            try:
                diagnostics = await self.engine.open_document(
                    file_path, snapshot.text, snapshot.version
                )
                findings = []
                for diagnostic in diagnostics:
                    if not is_deprecation_diagnostic(diagnostic):
                        continue
                    finding = await self._to_finding(file_path, diagnostic, snapshot)
                    if finding is not None:
                        findings.append(finding)
            except Exception as e:
                raise FileAnalysisError(file_path, str(e) or type(e).__name__) from e
        finally:
            await self._close(file_path)

        return findings

    async def _to_finding(
        self, file_path: str, diagnostic: RawDiagnostic, snapshot: DocumentSnapshot
    ) -> Finding | None:
        range_ = self._diagnostic_range(diagnostic, snapshot)
        if range_ is None:
            logger.debug(f"Skipping diagnostic without location in {file_path}")
            return None
        return Finding(
            range=range_,
            message=flatten_message_text(diagnostic.message),
            definition_path=await self._definition_path(file_path, range_),
        )

    @staticmethod
    def _diagnostic_range(diagnostic: RawDiagnostic, snapshot: DocumentSnapshot) -> Range | None:
        if diagnostic.start is not None and diagnostic.length is not None:
            return snapshot.line_index.range_at(diagnostic.start, diagnostic.length)
        return diagnostic.range

    async def _definition_path(self, file_path: str, range_: Range) -> str | None:
        try:
            return await self.engine.definition(file_path, range_.start)
        except Exception as e:
            logger.debug(f"Definition lookup failed in {file_path} at {range_.start}: {e}")
            return None

    async def _close(self, file_path: str) -> None:
        try:
            await self.engine.close_document(file_path)
        except Exception as e:
            logger.debug(f"Failed to close {file_path}: {e}")

    async def dispose(self) -> None:
        self._snapshots.clear()
        await self.engine.dispose()
