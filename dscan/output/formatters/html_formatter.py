"""HTML formatter producing a standalone report page."""

from html import escape

from dscan.core.models import ScanResult
from dscan.output.formatters.protocols import (
    NO_FINDINGS_MESSAGE,
    BaseFormatter,
    ReporterOptions,
    display_path,
    format_position,
    summary_text,
)

STYLES = """
    body {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Ubuntu, sans-serif;
      max-width: 1200px;
      margin: 0 auto;
      padding: 20px;
      background: #f5f5f5;
      color: #333;
    }
    h1 { color: #2c3e50; border-bottom: 2px solid #3498db; padding-bottom: 10px; }
    .file {
      background: white;
      border-radius: 8px;
      padding: 16px;
      margin-bottom: 16px;
      box-shadow: 0 2px 4px rgba(0, 0, 0, 0.1);
    }
    .file h2 { margin: 0 0 12px 0; font-size: 1.1em; color: #2980b9; word-break: break-all; }
    .file ul { list-style: none; padding: 0; margin: 0; }
    .file li { padding: 8px 0; border-bottom: 1px solid #eee; white-space: pre-wrap; }
    .file li:last-child { border-bottom: none; }
    code {
      background: #ecf0f1;
      padding: 2px 6px;
      border-radius: 4px;
      font-family: 'Monaco', 'Menlo', monospace;
      font-size: 0.9em;
    }
    .package { color: #27ae60; font-size: 0.9em; }
    .summary { background: #2c3e50; color: white; padding: 12px 16px; border-radius: 8px; margin-top: 20px; }
    .no-deprecations { text-align: center; color: #27ae60; font-size: 1.2em; padding: 40px; }
""".strip()


class HtmlFormatter(BaseFormatter):
    """Format results as an HTML document."""

    def format(self, result: ScanResult, options: ReporterOptions) -> str:
        lines = [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '  <meta charset="UTF-8">',
            '  <meta name="viewport" content="width=device-width, initial-scale=1.0">',
            "  <title>Deprecation Report</title>",
            f"  <style>{STYLES}</style>",
            "</head>",
            "<body>",
            "  <h1>Deprecation Report</h1>",
        ]

        if not result.files:
            lines.append(f'  <p class="no-deprecations">✓ {NO_FINDINGS_MESSAGE}</p>')
        else:
            for file in result.files:
                lines.append('  <section class="file">')
                lines.append(f"    <h2>{escape(display_path(file.file_path, options.root_dir))}</h2>")
                lines.append("    <ul>")
                for usage in file.usages:
                    package = (
                        f' <span class="package">[{escape(usage.source_package)}]</span>'
                        if usage.source_package
                        else ""
                    )
                    lines.append(
                        f"      <li><code>{format_position(usage)}</code> "
                        f"{escape(usage.message)}{package}</li>"
                    )
                lines.append("    </ul>")
                lines.append("  </section>")
            lines.append(f'  <div class="summary">{summary_text(result)}</div>')

        lines.append("</body>")
        lines.append("</html>")
        return "\n".join(lines)
