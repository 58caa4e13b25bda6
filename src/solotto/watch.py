"""
Live draw notifications.

Connection lifecycle (ReconnectPolicy) is kept apart from event delivery
(DrawFeed); DrawWatcher wires the two to a `logsSubscribe` websocket stream.
The feed is best effort: it reconnects forever with a fixed delay.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

import aiohttp

from .pda import AddressLike, to_pubkey
from .project_constants import DRAW_FEE_LOG, RECONNECT_DELAY_S, WINNING_TICKET_LOG

log = logging.getLogger(__name__)

DRAW = "draw"
CONNECTED = "connected"
ERROR = "error"
RECONNECTING = "reconnecting"
EVENTS = (DRAW, CONNECTED, ERROR, RECONNECTING)


@dataclass(frozen=True)
class DrawEvent:
    winning_ticket_number: int
    signature: str


@dataclass(frozen=True)
class ReconnectingEvent:
    delay: float


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    BACKING_OFF = "backing-off"


class ReconnectPolicy:
    """Fixed delay, no attempt limit."""

    def __init__(self, delay_s: float = RECONNECT_DELAY_S) -> None:
        self.delay_s = delay_s
        self.state = ConnectionState.CONNECTING
        self.failures = 0

    def connected(self) -> None:
        self.state = ConnectionState.CONNECTED

    def failed(self) -> float:
        """Records a failure and returns how long to wait before reconnecting."""
        self.failures += 1
        self.state = ConnectionState.BACKING_OFF
        return self.delay_s

    def retry(self) -> None:
        self.state = ConnectionState.CONNECTING


class DrawFeed:
    """Fan-out of watcher events to registered listeners."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Callable[..., Any]]] = {e: [] for e in EVENTS}

    def on(self, event: str, listener: Callable[..., Any]) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown event {event!r}; expected one of {EVENTS}")
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Callable[..., Any]) -> None:
        if listener in self._listeners.get(event, []):
            self._listeners[event].remove(listener)

    def emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(*args)
            except Exception:
                log.exception("Listener for %r failed", event)


def parse_draw_logs(logs: Iterable[str]) -> Optional[int]:
    """Winning ticket number if these logs belong to a draw, else None."""
    winning = 0
    is_draw = False
    for line in logs:
        if WINNING_TICKET_LOG in line:
            try:
                winning = int(line.split(WINNING_TICKET_LOG, 1)[1].strip())
            except ValueError:
                log.warning("Unparseable winning ticket log: %s", line)
        if DRAW_FEE_LOG in line:
            is_draw = True
    return winning if is_draw else None


def subscribe_payload(program_id: str) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "logsSubscribe",
        "params": [{"mentions": [program_id]}, {"commitment": "finalized"}],
    }


class DrawWatcher:
    def __init__(
        self,
        wss_url: str,
        program_id: AddressLike,
        feed: Optional[DrawFeed] = None,
        policy: Optional[ReconnectPolicy] = None,
        heartbeat_s: float = 30.0,
    ) -> None:
        self.wss_url = wss_url
        self.program_id = str(to_pubkey(program_id))
        self.feed = feed or DrawFeed()
        self.policy = policy or ReconnectPolicy()
        self.heartbeat_s = heartbeat_s

    def handle_message(self, message: Dict[str, Any]) -> Optional[DrawEvent]:
        """Emits and returns a DrawEvent for draw notifications; ignores everything else."""
        if message.get("method") != "logsNotification":
            return None
        value = message["params"]["result"]["value"]
        winning = parse_draw_logs(value.get("logs") or [])
        if winning is None:
            return None
        event = DrawEvent(winning_ticket_number=winning, signature=value["signature"])
        log.info("Draw: ticket %d (%s)", event.winning_ticket_number, event.signature)
        self.feed.emit(DRAW, event)
        return event

    async def _stream(self, session: aiohttp.ClientSession) -> None:
        log.info("Connecting to %s", self.wss_url)
        async with session.ws_connect(self.wss_url, heartbeat=self.heartbeat_s) as ws:
            await ws.send_json(subscribe_payload(self.program_id))
            self.policy.connected()
            log.info("Connected, watching %s", self.program_id)
            self.feed.emit(CONNECTED)
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self.handle_message(msg.json())
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    raise ConnectionError(f"websocket error: {ws.exception()}")
        raise ConnectionError("websocket closed by server")

    async def run(self) -> None:
        """Runs until cancelled."""
        async with aiohttp.ClientSession() as session:
            while True:
                try:
                    await self._stream(session)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    log.warning("Connection error: %s", e)
                    self.feed.emit(ERROR, e)
                    delay = self.policy.failed()
                    log.info("Reconnecting in %s seconds...", delay)
                    self.feed.emit(RECONNECTING, ReconnectingEvent(delay=delay))
                    await asyncio.sleep(delay)
                    self.policy.retry()
