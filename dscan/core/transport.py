"""JSON-RPC transport over a language server's stdio."""

import asyncio
import contextlib
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

HEADER_SEPARATOR = b"\r\n\r\n"


def encode_message(payload: dict[str, Any]) -> bytes:
    """Frame a JSON-RPC payload with its Content-Length header."""
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return f"Content-Length: {len(body)}\r\n\r\n".encode("ascii") + body


def parse_content_length(header: str) -> int | None:
    for line in header.split("\r\n"):
        if line.lower().startswith("content-length:"):
            try:
                return int(line.split(":", 1)[1].strip())
            except ValueError:
                return None
    return None


class AsyncStdioTransport:
    """Handles JSON-RPC framing for LSP communication with a child process."""

    def __init__(self, proc: asyncio.subprocess.Process) -> None:
        self.proc = proc
        self._buffer: bytes = b""
        self._stderr_task: asyncio.Task[None] | None = None
        if proc.stderr is not None:
            self._stderr_task = asyncio.create_task(self._drain_stderr(proc.stderr))

    async def _drain_stderr(self, stream: asyncio.StreamReader) -> None:
        # an undrained stderr pipe eventually blocks the server
        while True:
            line = await stream.readline()
            if not line:
                return
            logger.debug(f"[server] {line.decode('utf-8', errors='replace').rstrip()}")

    async def send(self, payload: dict[str, Any]) -> None:
        """Send a JSON-RPC payload to the server."""
        if self.proc.stdin is None or self.proc.stdin.is_closing():
            raise RuntimeError("Stdin is closed")
        self.proc.stdin.write(encode_message(payload))
        await self.proc.stdin.drain()

    async def read_message(self) -> dict[str, Any] | None:
        """Read one message from stdout; ``None`` once the stream ends."""
        while True:
            header_end = self._buffer.find(HEADER_SEPARATOR)
            if header_end != -1:
                header = self._buffer[:header_end].decode("ascii", errors="replace")
                rest = self._buffer[header_end + len(HEADER_SEPARATOR) :]
                content_length = parse_content_length(header)

                if content_length is None:
                    logger.debug(f"Discarding message with invalid header: {header!r}")
                    self._buffer = rest
                    continue

                if len(rest) >= content_length:
                    body = rest[:content_length]
                    self._buffer = rest[content_length:]
                    try:
                        return json.loads(body.decode("utf-8"))
                    except (json.JSONDecodeError, UnicodeDecodeError):
                        logger.debug("Failed to parse JSON body from language server")
                        continue

            if self.proc.stdout is None:
                return None
            data = await self.proc.stdout.read(4096)
            if not data:
                return None
            self._buffer += data

    async def close(self, timeout: float = 5.0) -> None:
        """Close stdin and wait for the server to exit, terminating it if needed."""
        if self.proc.stdin is not None and not self.proc.stdin.is_closing():
            self.proc.stdin.close()
        try:
            await asyncio.wait_for(self.proc.wait(), timeout=timeout)
        except TimeoutError:
            logger.debug("Language server did not exit, terminating")
            with contextlib.suppress(ProcessLookupError):
                self.proc.terminate()
            await self.proc.wait()
        if self._stderr_task is not None:
            self._stderr_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._stderr_task
