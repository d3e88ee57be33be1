"""JSON formatter for structured output."""

import json
from typing import Any

from dscan.core.models import ScanResult
from dscan.output.formatters.protocols import BaseFormatter, ReporterOptions, display_path


class JsonFormatter(BaseFormatter):
    """Format results as JSON mirroring the ScanResult model."""

    def format(self, result: ScanResult, options: ReporterOptions) -> str:
        files: list[dict[str, Any]] = []
        for file in result.files:
            path = display_path(file.file_path, options.root_dir)
            files.append(
                {
                    "filePath": path,
                    "usages": [
                        usage.model_copy(update={"file_path": path}).model_dump(
                            by_alias=True, exclude_none=True
                        )
                        for usage in file.usages
                    ],
                }
            )

        data = {
            "files": files,
            "totalUsages": result.total_usages,
            "scannedFiles": result.scanned_files,
        }
        return json.dumps(data, indent=2, ensure_ascii=False)


def parse_json_report(text: str) -> ScanResult:
    """Read a report produced by JsonFormatter back into a ScanResult."""
    return ScanResult.model_validate_json(text)
