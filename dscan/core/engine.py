"""TypeScript language server as a diagnostic engine."""

from __future__ import annotations

import logging
from typing import Any

from dscan.core.lsp_client import LSPClient
from dscan.core.lsp_utils import (
    first_location_path,
    language_id,
    path_to_uri,
    raw_diagnostic_from_lsp,
)
from dscan.core.models import Position, ProjectConfig, RawDiagnostic

logger = logging.getLogger(__name__)

DEFAULT_SERVER_CMD = ["typescript-language-server", "--stdio"]

DIAGNOSTICS_TIMEOUT = 60.0
SETTLE_DELAY = 0.5


def implicit_project_configuration(compiler_options: dict[str, Any]) -> dict[str, Any]:
    """Translate compiler options into the server's inferred-project settings."""
    strict = bool(compiler_options.get("strict"))
    return {
        "checkJs": bool(compiler_options.get("checkJs")),
        "module": compiler_options.get("module", "ESNext"),
        "target": compiler_options.get("target", "ESNext"),
        "strictNullChecks": strict,
        "strictFunctionTypes": strict,
    }


class LanguageServerEngine:
    """
    Diagnostic engine backed by ``typescript-language-server``.

    Created per scan; ``start`` must be awaited before the first document is
    opened and ``dispose`` shuts the server down.
    """

    def __init__(
        self,
        config: ProjectConfig,
        server_cmd: list[str] | None = None,
        client: LSPClient | None = None,
        diagnostics_timeout: float = DIAGNOSTICS_TIMEOUT,
        settle_delay: float = SETTLE_DELAY,
    ) -> None:
        self.config = config
        self.client = client or LSPClient(server_cmd=server_cmd or DEFAULT_SERVER_CMD)
        self.diagnostics_timeout = diagnostics_timeout
        self.settle_delay = settle_delay
        self._started = False

    async def start(self) -> None:
        if self._started:
            return
        await self.client.connect()
        self._started = True

        root_uri = self.config.root_dir.as_uri()
        await self.client.initialize(
            root_uri,
            initialization_options={
                "preferences": {"includeCompletionsForModuleExports": False},
            },
        )

        if self.config.uses_default:
            # no tsconfig.json: files end up in inferred projects
            await self.client.notify(
                "workspace/didChangeConfiguration",
                params={
                    "settings": {
                        "implicitProjectConfiguration": implicit_project_configuration(
                            self.config.compiler_options
                        )
                    }
                },
            )
        logger.debug(f"Language server initialized for {root_uri}")

    async def open_document(self, file_path: str, text: str, version: int) -> list[RawDiagnostic]:
        uri = path_to_uri(file_path)
        self.client.expect_diagnostics(uri)
        await self.client.did_open(uri, language_id(file_path), version, text)
        published = await self.client.wait_for_diagnostics(
            uri, timeout=self.diagnostics_timeout, settle_delay=self.settle_delay
        )
        return [raw_diagnostic_from_lsp(item) for item in published]

    async def definition(self, file_path: str, position: Position) -> str | None:
        result = await self.client.definition(
            path_to_uri(file_path), position.line, position.character
        )
        return first_location_path(result)

    async def close_document(self, file_path: str) -> None:
        await self.client.did_close(path_to_uri(file_path))

    async def dispose(self) -> None:
        if self._started:
            await self.client.shutdown()
            self._started = False
