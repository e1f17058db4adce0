"""
Async client for the ``/ws`` chat relay.

Authenticates on every (re)connect, dispatches incoming frames to
subscribers by their ``type`` and reconnects with exponential backoff.
"""

import asyncio
import json
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

import websockets
from websockets.exceptions import WebSocketException

from lawhelp.core.constants import MAX_RECONNECT_ATTEMPTS, RECONNECT_BASE_DELAY

logger = logging.getLogger(__name__)

Frame = Dict[str, Any]
Listener = Callable[[Frame], Any]


class ChatClient:
    def __init__(
        self,
        url: str,
        token: str,
        max_reconnect_attempts: int = MAX_RECONNECT_ATTEMPTS,
        base_delay: float = RECONNECT_BASE_DELAY,
        connect: Callable[..., Any] = websockets.connect,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.url = url
        self.token = token
        self.max_reconnect_attempts = max_reconnect_attempts
        self.base_delay = base_delay
        self.reconnect_attempts = 0
        self._connect = connect
        self._sleep = sleep
        self._ws = None
        self._closed = False
        self._listeners: Dict[str, Set[Listener]] = defaultdict(set)

    def reconnect_delay(self, attempt: int) -> float:
        """Seconds to wait before reconnect number ``attempt`` (zero based)."""
        return self.base_delay * (2 ** attempt)

    @property
    def connected(self) -> bool:
        return self._ws is not None

    def subscribe(self, event_type: str, callback: Listener) -> Callable[[], None]:
        """Register a callback for one frame type. Returns an unsubscribe function."""
        self._listeners[event_type].add(callback)
        return lambda: self._listeners[event_type].discard(callback)

    async def _dispatch(self, raw: str) -> None:
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse WebSocket message: {e}")
            return
        if not isinstance(frame, dict):
            logger.warning(f"Ignoring WebSocket message that is not an object: {raw}")
            return
        for callback in list(self._listeners.get(frame.get("type"), ())):
            try:
                result = callback(frame)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Listener for '{frame.get('type')}' failed: {e}")

    async def send(self, message: Frame) -> bool:
        if self._ws is None:
            return False
        await self._ws.send(json.dumps(message))
        return True

    async def send_chat_message(self, session_id: int, content: str) -> bool:
        return await self.send({"type": "chat_message", "session_id": session_id, "content": content})

    async def ping(self) -> bool:
        return await self.send({"type": "ping"})

    async def _session(self) -> None:
        async with self._connect(self.url) as ws:
            self._ws = ws
            self.reconnect_attempts = 0
            logger.info(f"WebSocket connected to {self.url}")
            try:
                await self.send({"type": "auth", "token": self.token})
                async for raw in ws:
                    await self._dispatch(raw)
            finally:
                self._ws = None

    async def run(self) -> None:
        """Stay connected until ``close`` is called or reconnects are exhausted."""
        while not self._closed:
            try:
                await self._session()
                logger.info("WebSocket disconnected")
            except (WebSocketException, OSError) as e:
                logger.warning(f"WebSocket error: {e}")

            if self._closed:
                break
            if self.reconnect_attempts >= self.max_reconnect_attempts:
                logger.error(f"Giving up after {self.reconnect_attempts} reconnect attempts")
                break

            delay = self.reconnect_delay(self.reconnect_attempts)
            self.reconnect_attempts += 1
            logger.info(f"Reconnecting in {delay:.0f}s (attempt {self.reconnect_attempts}/{self.max_reconnect_attempts})")
            await self._sleep(delay)

    async def close(self) -> None:
        self._closed = True
        if self._ws is not None:
            await self._ws.close()
        self._ws = None
        self._listeners.clear()

    def backoff_schedule(self) -> List[float]:
        return [self.reconnect_delay(n) for n in range(self.max_reconnect_attempts)]


async def ask(
    url: str,
    token: str,
    session_id: int,
    question: str,
    timeout: Optional[float] = 120.0,
    connect: Callable[..., Any] = websockets.connect,
) -> Frame:
    """Send one question and wait for the ``ai_response`` (or ``error``) frame.

    If the connection ends before an answer arrives, an ``error`` frame is
    returned instead of waiting for the timeout.
    """
    client = ChatClient(url, token, max_reconnect_attempts=0, connect=connect)
    loop = asyncio.get_running_loop()
    answer: asyncio.Future = loop.create_future()

    async def on_auth(frame: Frame) -> None:
        await client.send_chat_message(session_id, question)

    def on_result(frame: Frame) -> None:
        if not answer.done():
            answer.set_result(frame)

    client.subscribe("auth_success", on_auth)
    client.subscribe("ai_response", on_result)
    client.subscribe("error", on_result)
    client.subscribe("auth_error", on_result)

    def on_finished(task: asyncio.Task) -> None:
        if answer.done():
            return
        if not task.cancelled() and task.exception() is not None:
            answer.set_exception(task.exception())
        else:
            answer.set_result({"type": "error", "message": "Connection closed before a response arrived"})

    runner = asyncio.create_task(client.run())
    runner.add_done_callback(on_finished)
    try:
        return await asyncio.wait_for(answer, timeout)
    finally:
        await client.close()
        runner.cancel()
