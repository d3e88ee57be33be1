"""CLI interface for the deprecation scanner."""

import asyncio
import logging
import shutil
import signal
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from dscan.core.engine import DEFAULT_SERVER_CMD
from dscan.core.errors import ScannerError
from dscan.core.models import ScanResult
from dscan.core.protocols import ProgressCallback
from dscan.core.scanner import DeprecationScanner
from dscan.core.utils import split_comma_separated
from dscan.output.formatters.enums import OutputFormat
from dscan.output.formatters.formatter_factory import format_results
from dscan.output.formatters.protocols import ReporterOptions
from dscan.output.progress.callbacks import RichProgressCallback

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="dscan",
    help="Find usages of deprecated APIs in TypeScript/JavaScript projects",
    no_args_is_help=True,
    add_completion=False,
)

# progress and status go to stderr so stdout carries only the report
console = Console(stderr=True)

DEFAULT_PATH = Path(".")


async def _run_scan(
    scanner: DeprecationScanner,
    path: Path,
    progress_callback: ProgressCallback,
    **options: Any,
) -> ScanResult:
    """Run a scan, turning Ctrl-C into a cooperative cancellation request."""
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    handler_installed = False
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        logger.debug("SIGINT handler unavailable, Ctrl-C aborts the scan")

    try:
        return await scanner.scan(
            path, progress_callback=progress_callback, cancel_signal=cancel, **options
        )
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


@app.command()
def scan(
    path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=False,
            dir_okay=True,
            help="Project root to scan",
        ),
    ] = DEFAULT_PATH,
    include: Annotated[
        str | None,
        typer.Option("--include", "-i", help="Include file pattern (glob or directory)"),
    ] = None,
    exclude: Annotated[
        str | None,
        typer.Option("--exclude", "-e", help="Exclude file pattern (glob or directory)"),
    ] = None,
    from_package: Annotated[
        str | None,
        typer.Option(
            "--from-package",
            "-p",
            help="Only report deprecations from these packages (comma-separated)",
        ),
    ] = None,
    msg_grep: Annotated[
        str | None,
        typer.Option(
            "--msg-grep",
            "-m",
            help="Only report deprecations whose message matches (comma-separated)",
        ),
    ] = None,
    msg_grep_case_sensitive: Annotated[
        bool,
        typer.Option("--msg-grep-case-sensitive", help="Case-sensitive message matching"),
    ] = False,
    msg_grep_regex: Annotated[
        bool,
        typer.Option("--msg-grep-regex", help="Treat message patterns as regular expressions"),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: log, json, markdown, html",
        ),
    ] = OutputFormat.LOG,
    output_file: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write results to file instead of stdout",
        ),
    ] = None,
    project: Annotated[
        Path | None,
        typer.Option("--project", help="Path to tsconfig.json (default: <path>/tsconfig.json)"),
    ] = None,
    server: Annotated[
        str,
        typer.Option("--server", help="Language server executable"),
    ] = DEFAULT_SERVER_CMD[0],
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbose output",
        ),
    ] = False,
) -> None:
    """
    Scan a project for usages of deprecated APIs.

    Deprecations are reported by the TypeScript language server; files are
    taken from tsconfig.json when present, otherwise every TS/JS file under
    PATH is scanned.

    Examples:
        dscan scan ./my-project
        dscan scan -i "src/**/*.ts" -e "**/*.spec.ts"
        dscan scan -p lodash,moment -f json
        dscan scan -f markdown -o report.md
        dscan scan -m "use.*instead" --msg-grep-regex
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    root = path.resolve()
    scanner = DeprecationScanner(server_cmd=[server, "--stdio"], verbose=verbose)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("Scanning for deprecations...", total=None)
        progress_callback = RichProgressCallback(progress, task_id)

        try:
            result = asyncio.run(
                _run_scan(
                    scanner,
                    root,
                    progress_callback,
                    config_path=project,
                    include=include,
                    exclude=exclude,
                    from_packages=split_comma_separated(from_package),
                    message_patterns=split_comma_separated(msg_grep),
                    case_sensitive=msg_grep_case_sensitive,
                    regex=msg_grep_regex,
                )
            )
        except (ScannerError, ValueError, OSError) as e:
            progress.stop()
            console.print(f"Error: {e}", style="red", markup=False, highlight=False)
            if verbose:
                console.print_exception()
            raise typer.Exit(1)

    if progress_callback.warnings:
        console.print(f"[yellow]⚠ {progress_callback.warnings} file(s) could not be scanned[/yellow]")

    output = format_results(
        result,
        ReporterOptions(
            format=output_format,
            colorize=output_file is None and sys.stdout.isatty(),
            root_dir=root,
        ),
    )

    if output_file:
        output_path = output_file.resolve()
        _ = output_path.write_text(output, encoding="utf-8")
        console.print(f"[green]✓ Results written to {output_path}[/green]")
    else:
        sys.stdout.write(output + "\n")


@app.command("version")
def cli_version() -> None:
    """Show version information."""
    try:
        typer.echo(version("deprecation-scanner"))
    except PackageNotFoundError:
        typer.echo("unknown")


@app.command()
def doctor(
    server: Annotated[
        str,
        typer.Option("--server", help="Language server executable"),
    ] = DEFAULT_SERVER_CMD[0],
) -> None:
    """Check system requirements and setup."""
    console.print("🔧 Checking system requirements...")

    python_version = sys.version_info
    if python_version >= (3, 11):
        console.print(f"[green]✓ Python {python_version.major}.{python_version.minor}[/green]")
    else:
        console.print(
            f"[red]✗ Python {python_version.major}.{python_version.minor} (requires 3.11+)[/red]"
        )
        raise typer.Exit(1)

    lsp_server = shutil.which(server)
    if lsp_server:
        console.print(f"[green]✓ {server} found at {lsp_server}[/green]")
    else:
        console.print(f"[yellow]⚠ {server} not found[/yellow]")
        console.print("Install with: npm install -g typescript typescript-language-server")

    console.print("\n[green]✓ System check complete[/green]")


if __name__ == "__main__":
    app()
