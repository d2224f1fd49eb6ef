"""
Scanner simulator: stands in for the ESP8266 barcode bridge.

Serves a WebSocket on ws://localhost:8765 (the development SCANNER_WS_URL)
and pushes every line typed at the prompt to all connected terminals as one
text frame, exactly like the real device does.

    python simulate_scanner.py
    uvicorn pos_terminal.main:app --reload   # in another terminal
"""
import asyncio
import os
import sys

from websockets.asyncio.server import broadcast, serve

HOST = os.getenv("SIMULATOR_HOST", "localhost")
PORT = int(os.getenv("SIMULATOR_PORT", "8765"))

clients = set()


async def handler(websocket):
    clients.add(websocket)
    print(f"🔌 Terminal connected ({len(clients)} total)")
    try:
        # The device never reads; just wait for the terminal to go away.
        await websocket.wait_closed()
    finally:
        clients.discard(websocket)
        print(f"🔌 Terminal disconnected ({len(clients)} total)")


async def read_codes():
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            return
        code = line.rstrip("\r\n")
        if not code:
            continue
        broadcast(clients, code)
        print(f"📤 Sent '{code}' to {len(clients)} terminal(s)")


async def main():
    async with serve(handler, HOST, PORT):
        print(f"--- 🧪 Scanner simulator on ws://{HOST}:{PORT} ---")
        print("Type a barcode / SKU and press Enter. Ctrl-D to quit.\n")
        await read_codes()


if __name__ == "__main__":
    asyncio.run(main())
