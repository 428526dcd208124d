import json
from enum import Enum
from typing import Optional
import anyio
from anyio.abc import Process
from anyio.streams.buffered import BufferedByteReceiveStream
from fastapi import WebSocket
from .settings import Settings
from .buildlog import log

MAX_HEADER_BYTES = 4096
CLOSE_SERVER_GONE = 1011

class LanguageServerError(RuntimeError):
    pass

class ProxyState(str, Enum):
    CONNECTING = "connecting"
    RELAYING = "relaying"
    CLOSED = "closed"

def encode_frame(body: str) -> bytes:
    payload = body.encode("utf-8")
    return f"Content-Length: {len(payload)}\r\n\r\n".encode("ascii") + payload

async def read_frame(stream: BufferedByteReceiveStream) -> str:
    header = await stream.receive_until(b"\r\n\r\n", MAX_HEADER_BYTES)
    length = None
    for line in header.decode("ascii", errors="replace").split("\r\n"):
        key, _, value = line.partition(":")
        if key.strip().lower() == "content-length":
            try:
                length = int(value.strip())
            except ValueError:
                raise LanguageServerError(f"Invalid Content-Length {value.strip()!r}")
    if length is None or length < 0:
        raise LanguageServerError("Missing Content-Length header")
    body = await stream.receive_exactly(length)
    return body.decode("utf-8")

class LanguageServerProxy:
    """
    Bridges one websocket client to one freshly spawned clangd process.

    Client text frames are JSON-RPC messages; they are written to the
    process stdin with a Content-Length header, and every frame read from
    its stdout goes back to the client as a text frame. Three events move
    the state machine: ``message``, ``error`` and ``close``. Leaving the
    relaying state always disposes the process before run() returns.
    """

    def __init__(self, websocket: WebSocket, settings: Settings):
        self.websocket = websocket
        self.settings = settings
        self.command = [settings.CLANGD_PATH, *settings.CLANGD_ARGS]
        self.state = ProxyState.CONNECTING
        self.process: Optional[Process] = None
        self._scope: Optional[anyio.CancelScope] = None

    def _log(self, line: str) -> None:
        log("lsp", line, self.settings.LOG_PATH)

    async def run(self) -> None:
        await self.websocket.accept()
        try:
            self.process = await anyio.open_process(self.command, stderr=None)
        except OSError as e:
            self._log(f"failed to spawn {self.command[0]}: {e}")
            self.state = ProxyState.CLOSED
            await self.websocket.close(code=CLOSE_SERVER_GONE)
            return

        self.state = ProxyState.RELAYING
        self._log(f"Forwarding new client to pid {self.process.pid}")
        try:
            async with anyio.create_task_group() as tg:
                self._scope = tg.cancel_scope
                tg.start_soon(self._relay_from_process)
                tg.start_soon(self._relay_from_socket)
        finally:
            with anyio.CancelScope(shield=True):
                await self.dispose()

    async def on_message(self, text: str) -> None:
        if self.state is not ProxyState.RELAYING:
            return
        try:
            json.loads(text)
        except ValueError:
            self._log("dropping non-JSON client frame")
            return
        try:
            await self.process.stdin.send(encode_frame(text))
        except (anyio.BrokenResourceError, anyio.ClosedResourceError) as e:
            await self.on_error(e)

    async def on_error(self, error: BaseException) -> None:
        self._log(f"relay error: {error!r}")
        await self._close_socket()
        self._finish()

    def on_close(self, code: int, reason: str = "") -> None:
        self._log(f"Client closed code={code} reason={reason!r}")
        self._finish()

    def _finish(self) -> None:
        self.state = ProxyState.CLOSED
        if self._scope is not None:
            self._scope.cancel()

    async def _close_socket(self) -> None:
        if self.state is ProxyState.CLOSED:
            return
        try:
            await self.websocket.close(code=CLOSE_SERVER_GONE)
        except (RuntimeError, OSError):
            # the client went away first
            pass

    async def _relay_from_socket(self) -> None:
        while self.state is ProxyState.RELAYING:
            message = await self.websocket.receive()
            if message["type"] == "websocket.disconnect":
                self.on_close(message.get("code", 1000), message.get("reason") or "")
                return
            text = message.get("text")
            if text is None and message.get("bytes") is not None:
                text = message["bytes"].decode("utf-8", errors="replace")
            if text is not None:
                await self.on_message(text)

    async def _relay_from_process(self) -> None:
        stream = BufferedByteReceiveStream(self.process.stdout)
        while self.state is ProxyState.RELAYING:
            try:
                body = await read_frame(stream)
            except (anyio.IncompleteRead, anyio.EndOfStream, anyio.ClosedResourceError):
                self._log("language server exited")
                await self._close_socket()
                self._finish()
                return
            except (LanguageServerError, anyio.DelimiterNotFound, UnicodeDecodeError) as e:
                await self.on_error(e)
                return
            try:
                await self.websocket.send_text(body)
            except (RuntimeError, OSError) as e:
                await self.on_error(e)
                return

    async def dispose(self) -> None:
        """Terminate and reap the process; kill it if it ignores SIGTERM."""
        self.state = ProxyState.CLOSED
        process = self.process
        if process is None:
            return
        if process.returncode is None:
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            with anyio.move_on_after(self.settings.CLANGD_KILL_TIMEOUT):
                await process.wait()
            if process.returncode is None:
                process.kill()
                await process.wait()
        await process.aclose()
        self._log(f"disposed pid {process.pid} (exit {process.returncode})")
