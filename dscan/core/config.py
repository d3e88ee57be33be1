"""Project configuration resolution (tsconfig.json or built-in defaults)."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from dscan.core.errors import ConfigurationError
from dscan.core.models import ProjectConfig
from dscan.core.protocols import ProgressCallback
from dscan.core.utils import iter_source_files, normalize_glob_pattern

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "tsconfig.json"

# Used when the project has no tsconfig.json
DEFAULT_COMPILER_OPTIONS: dict[str, Any] = {
    "target": "ESNext",
    "module": "ESNext",
    "moduleResolution": "Bundler",
    "allowJs": True,
    "checkJs": True,
    "strict": True,
    "skipLibCheck": True,
    "esModuleInterop": True,
}

DEFAULT_FILE_PATTERNS = [
    "**/*.ts",
    "**/*.tsx",
    "**/*.mts",
    "**/*.cts",
    "**/*.js",
    "**/*.jsx",
    "**/*.mjs",
    "**/*.cjs",
]

DEFAULT_EXCLUDE_PATTERNS = ["**/node_modules/**", "**/dist/**", "**/build/**", "**/.git/**"]

TS_EXTENSIONS = (".ts", ".tsx", ".mts", ".cts")
JS_EXTENSIONS = (".js", ".jsx", ".mjs", ".cjs")

# tsconfig excludes these when "exclude" is not given
TSCONFIG_DEFAULT_EXCLUDE = ["node_modules", "bower_components", "jspm_packages"]

_JSONC_TOKENS = re.compile(
    r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/|,(?=\s*[}\]])',
    re.DOTALL,
)


def _notify(progress_callback: ProgressCallback | None, message: str) -> None:
    if progress_callback is not None:
        progress_callback.update(message)


def find_config_file(root_dir: Path, config_path: str | Path | None = None) -> Path | None:
    """
    Locate the project configuration.

    An explicit path wins when it exists (relative paths resolve against
    ``root_dir``). Otherwise only ``root_dir/tsconfig.json`` is considered;
    parent directories are never searched.
    """
    if config_path is not None:
        candidate = (root_dir / config_path).resolve()
        return candidate if candidate.is_file() else None

    candidate = root_dir / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None


def strip_json_comments(text: str) -> str:
    """Remove comments and trailing commas allowed by the tsconfig dialect."""

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token.startswith('"'):
            return token
        if token.startswith("/*"):
            # keep line numbers stable for parser messages
            return "\n" * token.count("\n")
        return ""

    # second pass catches trailing commas that were followed by a comment
    return _JSONC_TOKENS.sub(_replace, _JSONC_TOKENS.sub(_replace, text))


def read_config_file(config_path: Path) -> dict[str, Any]:
    """Read and parse a tsconfig file, raising ``ConfigurationError`` on failure."""
    try:
        text = config_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(config_path, str(e)) from e

    try:
        data = json.loads(strip_json_comments(text))
    except json.JSONDecodeError as e:
        raise ConfigurationError(config_path, str(e)) from e

    if not isinstance(data, dict):
        raise ConfigurationError(config_path, "The root value must be an object")

    _validate_config(config_path, data)
    return data


def _validate_config(config_path: Path, data: dict[str, Any]) -> None:
    options = data.get("compilerOptions", {})
    if not isinstance(options, dict):
        raise ConfigurationError(config_path, "'compilerOptions' must be an object")

    for key in ("files", "include", "exclude"):
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ConfigurationError(config_path, f"'{key}' must be an array of strings")


def _config_file_names(config_dir: Path, data: dict[str, Any]) -> list[str]:
    options: dict[str, Any] = data.get("compilerOptions", {})
    extensions = TS_EXTENSIONS + (JS_EXTENSIONS if options.get("allowJs") else ())

    explicit: list[str] = data.get("files") or []
    include: list[str] | None = data.get("include")
    if include is None:
        include = [] if explicit else ["**/*"]

    exclude: list[str] | None = data.get("exclude")
    if exclude is None:
        exclude = list(TSCONFIG_DEFAULT_EXCLUDE)
        out_dir = options.get("outDir")
        if isinstance(out_dir, str):
            exclude.append(out_dir)

    include_patterns = [normalize_glob_pattern(pattern.removeprefix("./")) for pattern in include]
    exclude_patterns = [normalize_glob_pattern(pattern.removeprefix("./")) for pattern in exclude]

    files = {str((config_dir / name).resolve()) for name in explicit}
    if include_patterns:
        for file_name in iter_source_files(config_dir, include_patterns, exclude_patterns):
            if file_name.lower().endswith(extensions):
                files.add(file_name)

    missing = [name for name in files if not Path(name).is_file()]
    if missing:
        logger.warning(f"Files listed in config do not exist: {', '.join(sorted(missing))}")
    return sorted(name for name in files if name not in missing)


def load_project_config(
    root_dir: str | Path,
    config_path: str | Path | None = None,
    progress_callback: ProgressCallback | None = None,
) -> ProjectConfig:
    """
    Resolve which configuration applies to ``root_dir`` and which files it covers.

    Args:
        root_dir: Project root directory
        config_path: Optional explicit tsconfig path
        progress_callback: Receives human readable status messages

    Returns:
        ProjectConfig with absolute, sorted candidate file names

    Raises:
        ConfigurationError: The configuration file is unreadable or malformed
    """
    root = Path(root_dir).resolve()

    _notify(progress_callback, f"Looking for {CONFIG_FILE_NAME}...")
    found = find_config_file(root, config_path)

    if found is None:
        if config_path is not None:
            logger.warning(f"Config file {config_path} not found, using defaults")
        _notify(progress_callback, f"No {CONFIG_FILE_NAME} found, using default configuration...")
        return ProjectConfig(
            root_dir=root,
            compiler_options=dict(DEFAULT_COMPILER_OPTIONS),
            file_names=iter_source_files(root, DEFAULT_FILE_PATTERNS, DEFAULT_EXCLUDE_PATTERNS),
        )

    _notify(progress_callback, f"Reading {found.name}...")
    data = read_config_file(found)
    logger.debug(f"Loaded configuration from {found}")

    return ProjectConfig(
        root_dir=root,
        config_path=found,
        compiler_options=data.get("compilerOptions", {}),
        file_names=_config_file_names(found.parent, data),
    )
