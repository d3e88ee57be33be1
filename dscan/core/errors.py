"""Errors raised by the scanning pipeline."""


class ScannerError(Exception):
    """Base class for deprecation scanner errors."""


class ConfigurationError(ScannerError):
    """The project configuration is unreadable or malformed."""

    def __init__(self, config_path: object, detail: str) -> None:
        self.config_path = config_path
        self.detail = detail
        super().__init__(f"Error reading {config_path}: {detail}")


class FileAnalysisError(ScannerError):
    """A single file could not be analyzed."""

    def __init__(self, file_path: str, detail: str) -> None:
        self.file_path = file_path
        self.detail = detail
        super().__init__(f"{file_path}: {detail}")


class InvalidPatternError(ScannerError, ValueError):
    """A message pattern failed to compile as a regular expression."""

    def __init__(self, pattern: str, detail: str) -> None:
        self.pattern = pattern
        super().__init__(f'Invalid regular expression "{pattern}": {detail}')


class UnknownFormatError(ScannerError, ValueError):
    """The requested report format does not exist."""

    def __init__(self, output_format: object) -> None:
        self.output_format = output_format
        super().__init__(f"Unknown format: {output_format}")


class EngineError(ScannerError):
    """The analysis engine could not be started."""
