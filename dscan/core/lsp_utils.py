"""Helpers for turning engine diagnostics into positions, messages and paths."""

from __future__ import annotations

import logging
from bisect import bisect_right
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from dscan.core.models import MessageChain, Position, Range, RawDiagnostic
from dscan.core.utils import get_file_extension

logger = logging.getLogger(__name__)

# '{0}' is deprecated. / '{0}' is deprecated. Use '{1}' instead. / The signature '{0}' is deprecated.
DEPRECATED_DIAGNOSTIC_CODES = frozenset({6385, 6386, 6387})

# LSP DiagnosticTag.Deprecated
DEPRECATED_TAG = 2

_LINE_BREAKS = frozenset({"\n", "\r", "\u2028", "\u2029"})

_LANGUAGE_IDS = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "typescriptreact",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
}


class LineIndex:
    """Maps character offsets of a text to zero-based line/character positions."""

    def __init__(self, text: str) -> None:
        self.length = len(text)
        starts = [0]
        i = 0
        while i < len(text):
            ch = text[i]
            if ch in _LINE_BREAKS:
                if ch == "\r" and i + 1 < len(text) and text[i + 1] == "\n":
                    i += 1
                starts.append(i + 1)
            i += 1
        self.line_starts = starts

    def position_at(self, offset: int) -> Position:
        offset = max(0, min(offset, self.length))
        line = bisect_right(self.line_starts, offset) - 1
        return Position(line=line, character=offset - self.line_starts[line])

    def range_at(self, start: int, length: int) -> Range:
        return Range(start=self.position_at(start), end=self.position_at(start + length))


def flatten_message_text(message: str | MessageChain, new_line: str = "\n", indent: int = 0) -> str:
    """Flatten a (possibly nested) diagnostic message into one string."""
    if isinstance(message, str):
        return message

    result = ""
    if indent:
        result += new_line + "  " * indent
    result += message.message_text
    for chain in message.next:
        result += flatten_message_text(chain, new_line, indent + 1)
    return result


def diagnostic_code(diagnostic: RawDiagnostic) -> int | None:
    code = diagnostic.code
    if isinstance(code, int):
        return code
    if isinstance(code, str) and code.strip().isdigit():
        return int(code)
    return None


def is_deprecation_diagnostic(diagnostic: RawDiagnostic) -> bool:
    if diagnostic_code(diagnostic) in DEPRECATED_DIAGNOSTIC_CODES:
        return True
    return DEPRECATED_TAG in diagnostic.tags


def raw_diagnostic_from_lsp(payload: dict[str, Any]) -> RawDiagnostic:
    """Build a RawDiagnostic from an LSP ``Diagnostic`` object."""
    return RawDiagnostic.model_validate(
        {
            "code": payload.get("code"),
            "message": payload.get("message", ""),
            "range": payload.get("range"),
            "tags": payload.get("tags") or [],
        }
    )


def path_to_uri(file_path: str) -> str:
    return Path(file_path).resolve().as_uri()


def uri_to_path(uri: str) -> str:
    """Convert a ``file://`` URI into a local path (other URIs are returned as-is)."""
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return uri
    path = unquote(parsed.path)
    # file:///C:/x -> C:/x
    if len(path) > 2 and path[0] == "/" and path[2] == ":":
        path = path[1:]
    return path


def first_location_path(result: Any) -> str | None:
    """
    Return the target path of the first entry of a definition response.

    Handles ``Location``, ``Location[]`` and ``LocationLink[]`` results.
    """
    if not result:
        return None
    location = result[0] if isinstance(result, list) else result
    if not isinstance(location, dict):
        return None
    uri = location.get("uri") or location.get("targetUri")
    if not isinstance(uri, str):
        logger.debug(f"Unexpected definition result: {location}")
        return None
    return uri_to_path(uri)


def language_id(file_path: str) -> str:
    return _LANGUAGE_IDS.get(get_file_extension(file_path), "typescript")
