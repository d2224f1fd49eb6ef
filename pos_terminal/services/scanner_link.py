"""
Scanner Link: persistent WebSocket client to the barcode scanning device.

The device (an ESP8266 bridge) pushes one scanned code per text frame and
expects nothing back. The link reconnects on its own after a fixed delay,
forever, until it is torn down.

Each connection attempt gets a fresh integer handle. Work tied to an older
handle (a late frame, a late close) is dropped, so a manual reconnect can
never be disturbed by the connection it replaced.
"""
from enum import Enum
from typing import Any, Awaitable, Callable, Optional
import asyncio

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed

from pos_terminal.utils.structured_logging import get_logger

CodeHandler = Callable[[str], Any]
Connector = Callable[[str], Awaitable[Any]]


class ScannerStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ScannerLink:
    """Owns at most one live connection to the scanning device."""

    def __init__(
        self,
        url: str,
        on_code: CodeHandler,
        reconnect_delay: float = 5.0,
        connector: Optional[Connector] = None,
        name: str = "scanner",
    ):
        self.url = url
        self.reconnect_delay = reconnect_delay
        self.status = ScannerStatus.DISCONNECTED
        self.last_scanned_code: Optional[str] = None

        self._on_code = on_code
        self._connector = connector or ws_connect
        self._handle = 0
        self._socket = None
        self._reader_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._stopped = False
        self._logger = get_logger(__name__).bind(terminal=name)

    @property
    def handle(self) -> int:
        return self._handle

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    # ---- public operations ----

    def connect(self) -> bool:
        """Start a connection attempt unless one is already live or in progress."""
        self._stopped = False
        return self._open()

    async def reconnect(self) -> None:
        """Drop the current connection (if any) and connect again right away."""
        self._logger.info("Manual scanner reconnect requested")
        self._stopped = False
        self._cancel_reconnect()
        await self._release()
        if self._stopped:
            # Torn down while the old connection was closing
            return
        self.status = ScannerStatus.DISCONNECTED
        self._open()

    async def disconnect(self) -> None:
        """Tear down: close the connection and cancel any pending reconnect."""
        self._stopped = True
        self._cancel_reconnect()
        await self._release()
        self.status = ScannerStatus.DISCONNECTED
        self._logger.info("Scanner link stopped")

    # ---- connection lifecycle ----

    def _open(self) -> bool:
        if self.status in (ScannerStatus.CONNECTING, ScannerStatus.CONNECTED):
            return False

        self._cancel_reconnect()
        self._handle += 1
        handle = self._handle
        self.status = ScannerStatus.CONNECTING
        self._logger.info(f"Connecting to scanner at {self.url}", extra={"handle": handle})
        self._reader_task = asyncio.create_task(self._run(handle))
        return True

    def _is_current(self, handle: int) -> bool:
        return handle == self._handle

    async def _run(self, handle: int) -> None:
        try:
            socket = await self._connector(self.url)
        except Exception as e:
            if self._is_current(handle):
                self._logger.warning(f"Failed to connect to scanner at {self.url}: {e}")
                self._lost()
            return

        if not self._is_current(handle):
            await self._close_socket(socket)
            return

        self._socket = socket
        self.status = ScannerStatus.CONNECTED
        self._logger.info("Connected to scanner", extra={"handle": handle})

        try:
            async for frame in socket:
                if not self._is_current(handle):
                    return
                self._deliver(frame)
        except ConnectionClosed as e:
            if self._is_current(handle):
                self._logger.warning(f"Scanner connection closed: {e}")
        except Exception as e:
            if self._is_current(handle):
                self._logger.error(f"Scanner transport error: {e}")

        if self._is_current(handle):
            self._socket = None
            self._logger.info("Disconnected from scanner")
            self._lost()

    def _deliver(self, frame) -> None:
        code = frame.decode("utf-8", errors="replace") if isinstance(frame, bytes) else frame
        self.last_scanned_code = code
        self._logger.info(f"Received barcode: {code}")
        try:
            self._on_code(code)
        except Exception as e:
            self._logger.error(f"Scan handler failed for '{code}': {e}", exc_info=True)

    def _lost(self) -> None:
        self.status = ScannerStatus.DISCONNECTED
        if not self._stopped:
            self._schedule_reconnect()

    async def _release(self) -> None:
        # Bumping the handle first orphans anything the old connection still emits.
        self._handle += 1
        socket, self._socket = self._socket, None
        task, self._reader_task = self._reader_task, None

        if task is not None and not task.done():
            task.cancel()
        if socket is not None:
            await self._close_socket(socket)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def _close_socket(self, socket) -> None:
        try:
            await socket.close()
        except Exception as e:
            self._logger.debug(f"Error closing scanner socket: {e}")

    # ---- reconnect timer ----

    def _schedule_reconnect(self) -> None:
        self._cancel_reconnect()
        self._logger.info(f"Reconnecting to scanner in {self.reconnect_delay}s")
        self._reconnect_task = asyncio.create_task(self._reconnect_after_delay())

    def _cancel_reconnect(self) -> None:
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and not task.done():
            task.cancel()

    async def _reconnect_after_delay(self) -> None:
        await asyncio.sleep(self.reconnect_delay)
        self._reconnect_task = None
        if not self._stopped:
            self._open()
