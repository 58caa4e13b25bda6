"""
Tests for draw log parsing, the reconnect policy and event fan-out.
"""
import asyncio

import pytest
from solders.pubkey import Pubkey

from solotto.watch import (
    CONNECTED,
    DRAW,
    ERROR,
    RECONNECTING,
    ConnectionState,
    DrawEvent,
    DrawFeed,
    DrawWatcher,
    ReconnectingEvent,
    ReconnectPolicy,
    parse_draw_logs,
    subscribe_payload,
)

DRAW_LOGS = [
    "Program Lott111 invoke [1]",
    "Program log: Winning ticket number: 17",
    "Program log: Fee amount: 5000000",
    "Program Lott111 success",
]


def _notification(logs, signature="5xSig"):
    return {
        "jsonrpc": "2.0",
        "method": "logsNotification",
        "params": {"result": {"value": {"signature": signature, "err": None, "logs": logs}}},
    }


def test_parse_draw_logs():
    assert parse_draw_logs(DRAW_LOGS) == 17


def test_winning_line_without_fee_is_not_a_draw():
    assert parse_draw_logs(DRAW_LOGS[:2]) is None


def test_fee_without_winning_line_reports_zero():
    assert parse_draw_logs(["Program log: Fee amount: 1"]) == 0


def test_unparseable_winning_number():
    logs = ["Program log: Winning ticket number: abc", "Program log: Fee amount: 1"]
    assert parse_draw_logs(logs) == 0


def test_subscribe_payload():
    payload = subscribe_payload("Prog111")
    assert payload["method"] == "logsSubscribe"
    assert payload["params"] == [{"mentions": ["Prog111"]}, {"commitment": "finalized"}]


def test_policy_cycle():
    policy = ReconnectPolicy(delay_s=2.5)
    assert policy.state is ConnectionState.CONNECTING
    policy.connected()
    assert policy.state is ConnectionState.CONNECTED
    assert policy.failed() == 2.5
    assert policy.state is ConnectionState.BACKING_OFF
    policy.retry()
    assert policy.state is ConnectionState.CONNECTING
    assert policy.failed() == 2.5
    assert policy.failures == 2


def test_feed_rejects_unknown_events():
    with pytest.raises(ValueError):
        DrawFeed().on("winner", print)


def test_feed_survives_failing_listener():
    feed = DrawFeed()
    seen = []

    def broken(_event):
        raise RuntimeError("listener bug")

    feed.on(DRAW, broken)
    feed.on(DRAW, seen.append)
    feed.emit(DRAW, "x")
    assert seen == ["x"]

    feed.off(DRAW, seen.append)
    feed.emit(DRAW, "y")
    assert seen == ["x"]


def test_handle_message_emits_draw():
    watcher = DrawWatcher("wss://example", Pubkey.new_unique())
    seen = []
    watcher.feed.on(DRAW, seen.append)

    event = watcher.handle_message(_notification(DRAW_LOGS, "sigA"))

    assert event == DrawEvent(winning_ticket_number=17, signature="sigA")
    assert seen == [event]


def test_handle_message_ignores_other_traffic():
    watcher = DrawWatcher("wss://example", Pubkey.new_unique())
    seen = []
    watcher.feed.on(DRAW, seen.append)

    assert watcher.handle_message({"jsonrpc": "2.0", "result": 12, "id": 1}) is None
    assert watcher.handle_message(_notification(["Program log: Buy ticket"])) is None
    assert seen == []


def test_run_reports_and_retries_after_failures(monkeypatch):
    watcher = DrawWatcher("wss://example", Pubkey.new_unique(), policy=ReconnectPolicy(0.5))
    events = []
    watcher.feed.on(ERROR, lambda e: events.append(("error", str(e))))
    watcher.feed.on(RECONNECTING, lambda ev: events.append(("reconnecting", ev)))
    watcher.feed.on(CONNECTED, lambda: events.append(("connected",)))
    attempts = []

    async def _stream(_session):
        attempts.append(watcher.policy.state)
        if len(attempts) == 3:
            raise asyncio.CancelledError()
        raise ConnectionError("refused")

    async def _sleep(_seconds):
        return None

    monkeypatch.setattr(watcher, "_stream", _stream)
    monkeypatch.setattr("solotto.watch.asyncio.sleep", _sleep)

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(watcher.run())

    assert events == [
        ("error", "refused"),
        ("reconnecting", ReconnectingEvent(delay=0.5)),
        ("error", "refused"),
        ("reconnecting", ReconnectingEvent(delay=0.5)),
    ]
    assert attempts == [ConnectionState.CONNECTING] * 3
    assert watcher.policy.failures == 2
