from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import asdict, is_dataclass
from typing import Any, Awaitable, Callable

from .config import Settings
from .lottery import Lottery
from .network import LotteryNetwork
from .pda import AddressDeriver
from .rpc import RpcClient
from .watch import CONNECTED, DRAW, ERROR, RECONNECTING, DrawWatcher


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def to_jsonable(obj: Any) -> Any:
    if is_dataclass(obj):
        return asdict(obj)
    if isinstance(obj, list):
        return [to_jsonable(o) for o in obj]
    return obj


def _settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(
        rpc_url_override=args.rpc_url, program_id_override=args.program_id
    )


def _run(args: argparse.Namespace, action: Callable[[Lottery], Awaitable[Any]]) -> int:
    settings = _settings(args)

    async def go() -> Any:
        async with RpcClient(settings.rpc_url, timeout_s=args.timeout) as rpc:
            return await action(Lottery(rpc, settings.program_id))

    print(json.dumps(to_jsonable(asyncio.run(go())), indent=2))
    return 0


def cmd_derive(args: argparse.Namespace) -> int:
    deriver = AddressDeriver(_settings(args).program_id)
    lottery, lottery_bump = deriver.derive_lottery(args.authority, args.id)
    pool, pool_bump = deriver.derive_prize_pool()
    out = {
        "lottery": {"address": str(lottery), "bump": lottery_bump},
        "prize_pool": {"address": str(pool), "bump": pool_bump},
    }
    print(json.dumps(out, indent=2))
    return 0


def cmd_lottery(args: argparse.Namespace) -> int:
    return _run(args, lambda l: l.get_lottery(args.authority, args.id, fees=not args.gross))


def cmd_lotteries(args: argparse.Namespace) -> int:
    return _run(args, lambda l: l.get_lotteries(args.authority, fees=not args.gross))


def cmd_ticket(args: argparse.Namespace) -> int:
    return _run(args, lambda l: l.get_ticket(args.authority, args.id, args.number))


def cmd_tickets(args: argparse.Namespace) -> int:
    return _run(
        args, lambda l: l.get_tickets(args.authority, args.id, args.buyer, args.group)
    )


def cmd_status(args: argparse.Namespace) -> int:
    settings = _settings(args)

    async def go() -> str:
        async with RpcClient(settings.rpc_url, timeout_s=args.timeout) as rpc:
            return await LotteryNetwork(rpc).status(
                args.signature, args.max_attempts, args.interval
            )

    print(asyncio.run(go()))
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    settings = _settings(args)
    log = logging.getLogger("watch")
    watcher = DrawWatcher(settings.wss_url, settings.program_id)
    watcher.feed.on(CONNECTED, lambda: log.info("Watching draws of %s", settings.program_id))
    watcher.feed.on(ERROR, lambda err: log.warning("Stream error: %s", err))
    watcher.feed.on(RECONNECTING, lambda ev: log.info("Reconnecting in %ss", ev.delay))
    watcher.feed.on(DRAW, lambda ev: print(json.dumps(asdict(ev))))
    try:
        asyncio.run(watcher.run())
    except KeyboardInterrupt:
        pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="solotto",
        description="Client for the on-chain Solana lottery program.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument(
        "--program-id", default=None, help="Override lottery program id (else use env)."
    )
    p.add_argument("--timeout", type=float, default=60.0, help="RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    d = sub.add_parser("derive", help="Print lottery and prize-pool addresses.")
    d.add_argument("--authority", required=True, help="Lottery authority address.")
    d.add_argument("--id", required=True, type=int, help="Lottery id.")
    d.set_defaults(func=cmd_derive)

    lo = sub.add_parser("lottery", help="Show one lottery's on-chain state.")
    lo.add_argument("--authority", required=True, help="Lottery authority address.")
    lo.add_argument("--id", required=True, type=int, help="Lottery id.")
    lo.add_argument(
        "--gross", action="store_true", help="Show the prize pool before the 10%% fee."
    )
    lo.set_defaults(func=cmd_lottery)

    ls = sub.add_parser("lotteries", help="List lotteries, newest id first.")
    ls.add_argument("--authority", default=None, help="Only this authority's lotteries.")
    ls.add_argument(
        "--gross", action="store_true", help="Show prize pools before the 10%% fee."
    )
    ls.set_defaults(func=cmd_lotteries)

    t = sub.add_parser("ticket", help="Look up a ticket by number.")
    t.add_argument("--authority", required=True, help="Lottery authority address.")
    t.add_argument("--id", required=True, type=int, help="Lottery id.")
    t.add_argument("--number", required=True, type=int, help="Ticket number.")
    t.set_defaults(func=cmd_ticket)

    ts = sub.add_parser("tickets", help="List tickets, highest number first.")
    ts.add_argument("--authority", required=True, help="Lottery authority address.")
    ts.add_argument("--id", required=True, type=int, help="Lottery id.")
    ts.add_argument("--buyer", default=None, help="Only this buyer's tickets.")
    ts.add_argument("--group", action="store_true", help="Group tickets by owner.")
    ts.set_defaults(func=cmd_tickets)

    s = sub.add_parser("status", help="Wait for a signature to finalize.")
    s.add_argument("--signature", required=True, help="Transaction signature.")
    s.add_argument("--max-attempts", type=int, default=10, help="Polls before giving up.")
    s.add_argument("--interval", type=float, default=3, help="Seconds between polls.")
    s.set_defaults(func=cmd_status)

    w = sub.add_parser("watch", help="Stream draw results as they finalize.")
    w.set_defaults(func=cmd_watch)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
