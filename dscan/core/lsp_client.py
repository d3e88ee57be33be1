import asyncio
import logging
import os
from typing import Any

from dscan import __version__
from dscan.core.transport import AsyncStdioTransport

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 60.0


class LSPClient:
    """Simple JSON-RPC client for Language Server Protocol."""

    def __init__(self, server_cmd: list[str], request_timeout: float = REQUEST_TIMEOUT) -> None:
        self.server_cmd = server_cmd
        self.request_timeout = request_timeout
        self.transport: AsyncStdioTransport | None = None
        self._response_futures: dict[int, asyncio.Future[dict[str, Any]]] = {}
        self._reader_task: asyncio.Task[None] | None = None
        self._id = 0
        self.proc: asyncio.subprocess.Process | None = None
        self._diagnostics: dict[str, list[dict[str, Any]]] = {}
        self._diagnostic_events: dict[str, asyncio.Event] = {}

    async def _send_result(self, id_: int | str, result: Any = None) -> None:
        """Answer a request initiated by the server."""
        if self.transport is None:
            return
        await self.transport.send({"jsonrpc": "2.0", "id": id_, "result": result})

    async def connect(self) -> None:
        """Start the server process and the reader task."""
        try:
            self.proc = await asyncio.create_subprocess_exec(
                *self.server_cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise RuntimeError(f"Language server not found: {self.server_cmd[0]}") from e
        if self.proc.returncode is not None:
            raise RuntimeError("Failed to start language server")
        self.transport = AsyncStdioTransport(self.proc)
        self._reader_task = asyncio.create_task(self._reader())

    async def _reader(self) -> None:
        """Reads messages from the server and dispatches them."""
        while self.transport:
            message = await self.transport.read_message()
            if message is None:
                break
            if "method" in message and "id" in message:
                # server -> client request (workDoneProgress/create, configuration, ...)
                logger.debug(f"Answering server request {message['method']}")
                await self._send_result(message["id"], None)
            elif "id" in message:
                fut = self._response_futures.get(message["id"])
                if fut and not fut.done():
                    fut.set_result(message)
            elif "method" in message:
                await self._handle_notification(message["method"], message.get("params", {}))

        # If the reader exits, notify all pending futures
        for future in self._response_futures.values():
            if not future.done():
                future.set_exception(RuntimeError("LSP connection lost"))

    def _next_id(self) -> int:
        self._id += 1
        return self._id

    async def request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and wait for its result."""
        if self.transport is None:
            raise RuntimeError("Not connected")

        msg_id = self._next_id()
        future = asyncio.get_running_loop().create_future()
        self._response_futures[msg_id] = future

        await self.transport.send(
            {"jsonrpc": "2.0", "id": msg_id, "method": method, "params": params or {}}
        )

        try:
            response = await asyncio.wait_for(future, timeout=self.request_timeout)
            if "error" in response:
                raise RuntimeError(f"LSP error for {method}: {response['error']}")
            return response.get("result")
        except TimeoutError:
            raise TimeoutError(f"Timed out waiting for {method}")
        finally:
            self._response_futures.pop(msg_id, None)

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification (no response expected)."""
        if self.transport is None:
            raise RuntimeError("Not connected")
        await self.transport.send({"jsonrpc": "2.0", "method": method, "params": params or {}})

    async def _handle_notification(self, method: str, params: dict[str, Any]) -> None:
        """Handle incoming notifications from the server."""
        if method == "textDocument/publishDiagnostics":
            uri = params.get("uri", "")
            diagnostics = params.get("diagnostics", [])
            logger.debug(f"Diagnostics published for {uri}: {len(diagnostics)} items")
            event = self._diagnostic_events.get(uri)
            if event is not None:
                self._diagnostics[uri] = diagnostics
                event.set()
        elif method == "window/logMessage":
            logger.debug(f"Server log: {params.get('message')}")
        else:
            logger.debug(f"Received notification: {method}")

    def expect_diagnostics(self, uri: str) -> None:
        """Start tracking diagnostics for ``uri``; call before opening the document."""
        self._diagnostics.pop(uri, None)
        self._diagnostic_events[uri] = asyncio.Event()

    async def wait_for_diagnostics(
        self, uri: str, timeout: float, settle_delay: float
    ) -> list[dict[str, Any]]:
        """
        Wait until the diagnostics published for ``uri`` stop changing.

        The server may publish several times per document (syntactic, semantic,
        then suggestion diagnostics); each publication replaces the previous
        one. The latest set is returned once no new publication arrives within
        ``settle_delay`` seconds.

        Raises:
            TimeoutError: No diagnostics were published within ``timeout``
        """
        event = self._diagnostic_events.get(uri)
        if event is None:
            raise RuntimeError(f"Diagnostics for {uri} were not requested")
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        try:
            try:
                await asyncio.wait_for(event.wait(), timeout=timeout)
            except TimeoutError:
                raise TimeoutError(f"No diagnostics published for {uri}")

            while loop.time() < deadline:
                event.clear()
                try:
                    await asyncio.wait_for(event.wait(), timeout=settle_delay)
                except TimeoutError:
                    break
            return self._diagnostics.get(uri, [])
        finally:
            self._diagnostic_events.pop(uri, None)
            self._diagnostics.pop(uri, None)

    async def initialize(
        self,
        root_uri: str,
        initialization_options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Initialize the LSP server."""
        params = {
            "processId": os.getpid(),
            "clientInfo": {"name": "deprecation-scanner", "version": __version__},
            "rootUri": root_uri,
            "workspaceFolders": [{"uri": root_uri, "name": "workspace"}],
            "initializationOptions": initialization_options or {},
            "capabilities": {
                "textDocument": {
                    "synchronization": {"didSave": False, "dynamicRegistration": False},
                    "definition": {"dynamicRegistration": False, "linkSupport": True},
                    "publishDiagnostics": {
                        "relatedInformation": False,
                        "tagSupport": {"valueSet": [1, 2]},
                    },
                },
                "workspace": {"workspaceFolders": True, "configuration": False},
                "window": {"workDoneProgress": False},
            },
        }
        result = await self.request("initialize", params=params)
        await self.notify("initialized", params={})
        return result or {}

    async def did_open(self, uri: str, language_id: str, version: int, text: str) -> None:
        await self.notify(
            "textDocument/didOpen",
            params={
                "textDocument": {
                    "uri": uri,
                    "languageId": language_id,
                    "version": version,
                    "text": text,
                }
            },
        )

    async def did_close(self, uri: str) -> None:
        await self.notify("textDocument/didClose", params={"textDocument": {"uri": uri}})

    async def definition(self, text_document_uri: str, line0: int, char0: int) -> Any:
        """
        Query the server for the definition at a zero-based position.

        Returns:
            ``Location``, ``Location[]``, ``LocationLink[]`` or None
        """
        params = {
            "textDocument": {"uri": text_document_uri},
            "position": {"line": line0, "character": char0},
        }
        return await self.request("textDocument/definition", params=params)

    async def shutdown(self) -> None:
        """Shutdown the LSP connection."""
        if self.transport is not None:
            try:
                await asyncio.wait_for(self.request("shutdown"), timeout=5)
                await self.notify("exit")
            except (RuntimeError, TimeoutError, OSError) as e:
                logger.debug(f"Failed to shutdown language server gracefully: {e}")
        if self._reader_task is not None:
            self._reader_task.cancel()
        if self.transport:
            await self.transport.close()
            self.transport = None
