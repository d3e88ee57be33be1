"""Origin and message filters applied to deprecated usages."""

from __future__ import annotations

import re
from collections.abc import Callable, Collection, Sequence

from dscan.core.errors import InvalidPatternError
from dscan.core.models import Usage

MessageMatcher = Callable[[str], bool]


def filter_usages_by_origin(
    usages: Sequence[Usage],
    origins: Collection[str] | None,
) -> list[Usage]:
    """Keep usages whose source package is one of ``origins``.

    An empty or missing ``origins`` keeps everything; otherwise usages without
    a source package are dropped.
    """
    if not origins:
        return list(usages)
    allowed = set(origins)
    return [usage for usage in usages if usage.source_package in allowed]


def compile_message_matcher(
    patterns: Sequence[str],
    case_sensitive: bool = False,
    regex: bool = False,
) -> MessageMatcher:
    """
    Build a predicate that is true when a message matches any of ``patterns``.

    Raises:
        InvalidPatternError: ``regex`` is on and a pattern does not compile
    """
    if regex:
        flags = 0 if case_sensitive else re.IGNORECASE
        compiled = []
        for pattern in patterns:
            try:
                compiled.append(re.compile(pattern, flags))
            except re.error as e:
                raise InvalidPatternError(pattern, str(e)) from e
        return lambda message: any(p.search(message) for p in compiled)

    if case_sensitive:
        literals = list(patterns)
        return lambda message: any(p in message for p in literals)

    lowered = [pattern.lower() for pattern in patterns]
    return lambda message: any(p in message.lower() for p in lowered)


def filter_usages_by_message(
    usages: Sequence[Usage],
    patterns: Sequence[str] | None,
    case_sensitive: bool = False,
    regex: bool = False,
) -> list[Usage]:
    """Keep usages whose message matches at least one pattern, preserving order."""
    if not patterns:
        return list(usages)
    matcher = compile_message_matcher(patterns, case_sensitive=case_sensitive, regex=regex)
    return [usage for usage in usages if matcher(usage.message)]
