"""
Deprecation Scanner - Find usages of deprecated APIs in TypeScript/JavaScript projects.
"""

__version__ = "0.1.0"

from dscan.core.errors import (
    ConfigurationError,
    EngineError,
    FileAnalysisError,
    InvalidPatternError,
    UnknownFormatError,
)
from dscan.core.filters import filter_usages_by_message, filter_usages_by_origin
from dscan.core.models import FileFindings, Position, Range, ScanResult, Usage
from dscan.core.origin import resolve_origin
from dscan.core.scanner import DeprecationScanner, scan
from dscan.output.formatters.enums import OutputFormat
from dscan.output.formatters.formatter_factory import format_results
from dscan.output.formatters.json_formatter import parse_json_report
from dscan.output.formatters.protocols import ReporterOptions

__all__ = [
    "ConfigurationError",
    "DeprecationScanner",
    "EngineError",
    "FileAnalysisError",
    "FileFindings",
    "InvalidPatternError",
    "OutputFormat",
    "Position",
    "Range",
    "ReporterOptions",
    "ScanResult",
    "UnknownFormatError",
    "Usage",
    "filter_usages_by_message",
    "filter_usages_by_origin",
    "format_results",
    "parse_json_report",
    "resolve_origin",
    "scan",
]
