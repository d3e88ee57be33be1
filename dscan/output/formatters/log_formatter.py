"""Log formatter for human readable terminal output."""

from io import StringIO

from rich.console import Console
from rich.text import Text

from dscan.core.models import ScanResult
from dscan.output.formatters.protocols import (
    NO_FINDINGS_MESSAGE,
    BaseFormatter,
    ReporterOptions,
    display_path,
    format_position,
    summary_text,
)

POSITION_WIDTH = 8


def _normalize_newlines(message: str) -> str:
    # rich drops a bare \r, which would fuse the lines of a multi-line message
    return message.replace("\r\n", "\n").replace("\r", "\n")


class LogFormatter(BaseFormatter):
    """Format results as one line per usage, grouped by file."""

    def format(self, result: ScanResult, options: ReporterOptions) -> str:
        buffer = StringIO()
        console = Console(
            file=buffer,
            force_terminal=options.colorize,
            color_system="standard" if options.colorize else None,
            legacy_windows=False,
            highlight=False,
            emoji=False,
            soft_wrap=True,
            width=200,
        )

        if not result.files:
            console.print(Text(NO_FINDINGS_MESSAGE, style="green"))
            return buffer.getvalue().rstrip("\n")

        for file in result.files:
            console.print(Text(display_path(file.file_path, options.root_dir), style="underline"))

            for usage in file.usages:
                line = Text("  ")
                line.append(format_position(usage).ljust(POSITION_WIDTH), style="dim")
                line.append(" ")
                line.append(_normalize_newlines(usage.message), style="yellow")
                if usage.source_package:
                    line.append("  ")
                    line.append(f"[{usage.source_package}]", style="cyan")
                console.print(line)

            console.print()

        console.print(Text(summary_text(result), style="bold"))
        return buffer.getvalue().rstrip("\n")
