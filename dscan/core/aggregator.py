"""Folds per-file usages into a ScanResult."""

from collections.abc import Sequence

from dscan.core.models import FileFindings, ScanResult, Usage
from dscan.core.protocols import FileCallback


class ResultAggregator:
    """Collects files with surviving usages; ``on_file`` sees each as it is finalized."""

    def __init__(self, on_file: FileCallback | None = None) -> None:
        self.on_file = on_file
        self._files: list[FileFindings] = []
        self._total = 0

    @property
    def total_usages(self) -> int:
        return self._total

    def add(self, file_path: str, usages: Sequence[Usage]) -> FileFindings | None:
        if not usages:
            return None
        entry = FileFindings(file_path=file_path, usages=list(usages))
        self._files.append(entry)
        self._total += len(entry.usages)
        if self.on_file is not None:
            self.on_file(entry)
        return entry

    def build(self, scanned_files: int) -> ScanResult:
        return ScanResult(
            files=sorted(self._files, key=lambda entry: entry.file_path),
            total_usages=self._total,
            scanned_files=scanned_files,
        )
