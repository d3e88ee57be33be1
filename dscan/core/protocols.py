"""Protocols for the pluggable parts of a scan."""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from dscan.core.models import FileFindings, Finding, Position, ProjectConfig, RawDiagnostic


class ProgressCallback(Protocol):
    """Protocol defining a progress callback function."""

    def update(self, message: str, **fields: Any) -> None:
        """Update progress with a message."""
        ...


class CancellationSignal(Protocol):
    """Anything exposing ``is_set`` (``asyncio.Event``, ``threading.Event``)."""

    def is_set(self) -> bool: ...


class DiagnosticEngine(Protocol):
    """Language-aware analysis engine the extraction adapter talks to."""

    async def open_document(self, file_path: str, text: str, version: int) -> list[RawDiagnostic]:
        """Open a document and return every diagnostic reported for it."""
        ...

    async def definition(self, file_path: str, position: Position) -> str | None:
        """Return the path of the declaration referenced at ``position``."""
        ...

    async def close_document(self, file_path: str) -> None: ...

    async def dispose(self) -> None: ...


class DeprecationSource(Protocol):
    """Produces deprecation findings for one file at a time."""

    async def get_deprecation_findings(self, file_path: str) -> list[Finding]: ...

    async def dispose(self) -> None: ...


FileCallback = Callable[[FileFindings], None]
SourceFactory = Callable[[ProjectConfig], Awaitable[DeprecationSource]]
