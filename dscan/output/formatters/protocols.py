"""Base formatter interface and options shared by all formatters."""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from dscan.core.models import ScanResult, Usage
from dscan.output.formatters.enums import OutputFormat


@dataclass(frozen=True)
class ReporterOptions:
    """Rendering options; ``colorize`` only affects the log format."""

    format: OutputFormat | str = OutputFormat.LOG
    colorize: bool = True
    root_dir: str | Path | None = None


class BaseFormatter(Protocol):
    """Base class for output formatters."""

    def format(self, result: ScanResult, options: ReporterOptions) -> str:
        """Format the scan result into a string."""
        ...


NO_FINDINGS_MESSAGE = "No deprecations found."


def display_path(file_path: str, root_dir: str | Path | None) -> str:
    """Show ``file_path`` relative to ``root_dir`` when it lies below it."""
    if not root_dir:
        return file_path
    try:
        return Path(file_path).relative_to(Path(root_dir)).as_posix()
    except ValueError:
        return file_path


def format_position(usage: Usage) -> str:
    """``line:column``, 1-based for display."""
    start = usage.range.start
    return f"{start.line + 1}:{start.character + 1}"


def count_text(result: ScanResult) -> str:
    usages = result.total_usages
    files = len(result.files)
    return (
        f"{usages} deprecation{'' if usages == 1 else 's'} "
        f"in {files} {'file' if files == 1 else 'files'}"
    )


def summary_text(result: ScanResult) -> str:
    return f"Found {count_text(result)}."
