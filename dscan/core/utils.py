"""File selection helpers: glob matching and source tree walking."""

from __future__ import annotations

import logging
import os
import re
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

_GLOB_CHARS = re.compile(r"[*?\[\]{}!]")
_BRACES = re.compile(r"\{([^{}]*)\}")


def get_file_extension(file_path: str) -> str:
    """Return the lower-cased extension including the dot, or ``""``."""
    name = file_path.replace("\\", "/").rsplit("/", 1)[-1]
    dot = name.rfind(".")
    if dot <= 0:
        return ""
    return name[dot:].lower()


def split_comma_separated(value: str | None) -> list[str] | None:
    """Split a comma separated option value, dropping blank entries."""
    if not value:
        return None
    parts = [part.strip() for part in value.split(",")]
    parts = [part for part in parts if part]
    return parts or None


def normalize_glob_pattern(pattern: str) -> str:
    """
    Normalize a user supplied include/exclude pattern.

    A plain directory path (no glob metacharacters) becomes ``<dir>/**`` so it
    selects everything below that directory.
    """
    normalized = pattern.rstrip("/")
    if not _GLOB_CHARS.search(normalized):
        normalized = f"{normalized}/**"
    return normalized


def _expand_braces(pattern: str) -> list[str]:
    match = _BRACES.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(_expand_braces(f"{head}{option}{tail}"))
    return expanded


def _translate_glob(pattern: str) -> str:
    """Regex source for one brace-free glob; ``*`` and ``?`` never cross ``/``."""
    out: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        if pattern.startswith("**", i) and (i == 0 or pattern[i - 1] == "/"):
            end = i + 2
            if end == n:
                if out and out[-1] == "/":
                    # "dir/**" also selects the directory entry itself
                    out[-1] = "(?:/.*)?"
                else:
                    out.append(".*")
                i = end
                continue
            if pattern[end] == "/":
                out.append("(?:.*/)?")
                i = end + 1
                continue

        ch = pattern[i]
        if ch == "*":
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        elif ch == "[" and (close := pattern.find("]", i + 2)) != -1:
            body = pattern[i + 1 : close].replace("\\", "\\\\")
            if body[0] in "!^":
                body = "^/" + body[1:]
            out.append(f"[{body}]")
            i = close + 1
            continue
        else:
            out.append(re.escape(ch))
        i += 1
    return "".join(out)


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> tuple[tuple[re.Pattern[str], bool], ...]:
    compiled = []
    for expanded in dict.fromkeys(_expand_braces(pattern)):
        compiled.append((re.compile(_translate_glob(expanded), re.DOTALL), "/" not in expanded))
    return tuple(compiled)


def matches_glob(relative_path: str, pattern: str) -> bool:
    """
    Match a root-relative path against a glob pattern.

    ``*`` and ``?`` stay within one path segment, ``**`` spans any number of
    directories (zero included), ``{a,b}`` lists alternatives, and a pattern
    without ``/`` is also tried against the basename.
    """
    path = relative_path.replace("\\", "/")
    base = path.rsplit("/", 1)[-1]
    for regex, match_base in _compile_glob(pattern):
        if regex.fullmatch(path):
            return True
        if match_base and regex.fullmatch(base):
            return True
    return False


def _relative(root: Path, path: Path) -> str:
    """``path`` relative to ``root``; files outside it get ``../`` segments."""
    try:
        return Path(os.path.relpath(path, root)).as_posix()
    except ValueError:
        # no relative path across Windows drives
        return path.as_posix()


def select_files(
    file_names: list[str],
    root_dir: Path,
    include: str | None = None,
    exclude: str | None = None,
) -> list[str]:
    """Apply include/exclude patterns to candidate files, keeping their order."""
    if not include and not exclude:
        return list(file_names)

    include_pattern = normalize_glob_pattern(include) if include else None
    exclude_pattern = normalize_glob_pattern(exclude) if exclude else None

    selected = []
    for file_name in file_names:
        rel = _relative(root_dir, Path(file_name))
        if exclude_pattern and matches_glob(rel, exclude_pattern):
            continue
        if include_pattern and not matches_glob(rel, include_pattern):
            continue
        selected.append(file_name)

    logger.debug(f"Selected {len(selected)} of {len(file_names)} files")
    return selected


def iter_source_files(
    root: Path,
    patterns: list[str],
    exclude_patterns: list[str],
) -> list[str]:
    """Recursively collect files matching ``patterns``, pruning excluded entries."""
    root = root.resolve()
    files: list[str] = []

    for current, dir_names, file_names in os.walk(root):
        current_path = Path(current)
        dir_names[:] = sorted(
            name
            for name in dir_names
            if not any(
                matches_glob(_relative(root, current_path / name), pattern)
                for pattern in exclude_patterns
            )
        )
        for name in sorted(file_names):
            rel = _relative(root, current_path / name)
            if any(matches_glob(rel, pattern) for pattern in exclude_patterns):
                continue
            if any(matches_glob(rel, pattern) for pattern in patterns):
                files.append(str(current_path / name))

    return files
