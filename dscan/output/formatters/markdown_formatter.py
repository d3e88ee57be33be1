"""Markdown formatter producing one table per file."""

from dscan.core.models import ScanResult
from dscan.output.formatters.protocols import (
    NO_FINDINGS_MESSAGE,
    BaseFormatter,
    ReporterOptions,
    count_text,
    display_path,
    format_position,
)


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\r\n", "<br>").replace("\n", "<br>")


class MarkdownFormatter(BaseFormatter):
    """Format results as a Markdown report."""

    def format(self, result: ScanResult, options: ReporterOptions) -> str:
        lines = ["# Deprecation Report", ""]

        if not result.files:
            lines.append(NO_FINDINGS_MESSAGE)
            return "\n".join(lines)

        for file in result.files:
            lines.append(f"## {display_path(file.file_path, options.root_dir)}")
            lines.append("")
            lines.append("| Line | Message | Package |")
            lines.append("|------|---------|---------|")
            for usage in file.usages:
                package = usage.source_package or "-"
                lines.append(
                    f"| {format_position(usage)} | {_escape_cell(usage.message)} | {package} |"
                )
            lines.append("")

        lines.append(f"**Summary**: {count_text(result)}.")
        return "\n".join(lines)
