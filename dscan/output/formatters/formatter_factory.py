from dscan.core.errors import UnknownFormatError
from dscan.core.models import ScanResult
from dscan.output.formatters.enums import OutputFormat
from dscan.output.formatters.html_formatter import HtmlFormatter
from dscan.output.formatters.json_formatter import JsonFormatter
from dscan.output.formatters.log_formatter import LogFormatter
from dscan.output.formatters.markdown_formatter import MarkdownFormatter
from dscan.output.formatters.protocols import BaseFormatter, ReporterOptions


def get_formatter(output_format: OutputFormat | str) -> BaseFormatter:
    """Get the appropriate formatter for the output format."""
    try:
        resolved = OutputFormat(output_format)
    except ValueError:
        raise UnknownFormatError(output_format) from None

    formatters: dict[OutputFormat, BaseFormatter] = {
        OutputFormat.LOG: LogFormatter(),
        OutputFormat.JSON: JsonFormatter(),
        OutputFormat.MARKDOWN: MarkdownFormatter(),
        OutputFormat.HTML: HtmlFormatter(),
    }
    return formatters[resolved]


def format_results(result: ScanResult, options: ReporterOptions) -> str:
    """Render ``result`` in the format named by ``options``."""
    return get_formatter(options.format).format(result, options)
