from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, TypeVar

import base58

from .pda import AddressDeriver
from .project_constants import PROTOCOL_FEE_SHARE, TICKET_ACCOUNT_SIZE

log = logging.getLogger(__name__)

T = TypeVar("T")
Reader = Callable[[bytes, int], Tuple[T, int]]


class StateDecodeError(ValueError):
    """Account bytes do not match the expected layout."""


@dataclass(frozen=True)
class LotteryState:
    authority: str
    lottery_id: int
    ticket_price: int
    total_tickets: int
    winner_ticket_number: Optional[int]
    winner_address: Optional[str]
    is_active: bool
    prize_pool_balance: float
    draw_initiated: bool
    prize_pool_address: str
    lottery_address: str
    release_time: Optional[int]


@dataclass(frozen=True)
class TicketState:
    owner: str
    lottery: str
    ticket_receipt: str
    ticket_number: int
    # Known only when the ticket was located through a lottery lookup.
    ticket_pda: Optional[str] = None
    lottery_id: Optional[int] = None
    lottery_auth: Optional[str] = None


def read_u8(buffer: bytes, cursor: int) -> Tuple[int, int]:
    return struct.unpack_from("<B", buffer, cursor)[0], cursor + 1


def read_bool(buffer: bytes, cursor: int) -> Tuple[bool, int]:
    value, cursor = read_u8(buffer, cursor)
    return value == 1, cursor


def read_u64(buffer: bytes, cursor: int) -> Tuple[int, int]:
    return struct.unpack_from("<Q", buffer, cursor)[0], cursor + 8


def read_pubkey(buffer: bytes, cursor: int) -> Tuple[str, int]:
    raw = buffer[cursor:cursor + 32]
    if len(raw) != 32:
        raise struct.error(f"need 32 bytes for an address at offset {cursor}, got {len(raw)}")
    return base58.b58encode(raw).decode("ascii"), cursor + 32


def read_optional(
    buffer: bytes, cursor: int, reader: Reader[T]
) -> Tuple[Optional[T], int]:
    """Presence byte (1 = value follows, 0 = absent) then the value."""
    present, cursor = read_u8(buffer, cursor)
    if present != 1:
        return None, cursor
    return reader(buffer, cursor)


class StateDecoder:
    """
    Decodes lottery and ticket program accounts.

    Lottery layout:
        authority(32) | lottery_id(8) | ticket_price(8) | total_tickets(8)
        | [1 + 8] winner ticket | [1 + 32] winner address | is_active(1)
        | prize_pool(8) | draw_initiated(1) | [1 + 8] release timestamp
    """

    def __init__(self, deriver: AddressDeriver) -> None:
        self.deriver = deriver

    def decode_lottery(
        self, buffer: bytes, apply_fee_adjustment: bool = True
    ) -> LotteryState:
        buffer = bytes(buffer)
        try:
            authority, cursor = read_pubkey(buffer, 0)
            lottery_id, cursor = read_u64(buffer, cursor)
            ticket_price, cursor = read_u64(buffer, cursor)
            total_tickets, cursor = read_u64(buffer, cursor)
            winner_ticket, cursor = read_optional(buffer, cursor, read_u64)
        except struct.error as e:
            raise StateDecodeError(f"Lottery account too short ({len(buffer)} bytes): {e}") from e

        is_active = False
        prize_pool = 0
        draw_initiated = False
        release_time: Optional[int] = None

        try:
            winner_address, cursor = read_optional(buffer, cursor, read_pubkey)
            tail_ok = True
        except struct.error:
            log.warning("Lottery %d: truncated winner address, treating as absent", lottery_id)
            winner_address = None
            tail_ok = False

        if tail_ok:
            try:
                is_active, cursor = read_bool(buffer, cursor)
                prize_pool, cursor = read_u64(buffer, cursor)
                draw_initiated, cursor = read_bool(buffer, cursor)
            except struct.error as e:
                raise StateDecodeError(
                    f"Lottery {lottery_id}: account too short ({len(buffer)} bytes): {e}"
                ) from e
            try:
                release_time, cursor = read_optional(buffer, cursor, read_u64)
            except struct.error:
                release_time = None

        prize_pool_address, _ = self.deriver.derive_prize_pool()
        lottery_address, _ = self.deriver.derive_lottery(authority, lottery_id)

        balance: float = prize_pool
        if apply_fee_adjustment:
            balance = prize_pool * (1 - PROTOCOL_FEE_SHARE)

        return LotteryState(
            authority=authority,
            lottery_id=lottery_id,
            ticket_price=ticket_price,
            total_tickets=total_tickets,
            winner_ticket_number=winner_ticket,
            winner_address=winner_address,
            is_active=is_active,
            prize_pool_balance=balance,
            draw_initiated=draw_initiated,
            prize_pool_address=str(prize_pool_address),
            lottery_address=str(lottery_address),
            release_time=release_time,
        )

    def decode_ticket(self, buffer: bytes) -> TicketState:
        buffer = bytes(buffer)
        if len(buffer) < TICKET_ACCOUNT_SIZE:
            raise StateDecodeError(
                f"Ticket account must be {TICKET_ACCOUNT_SIZE} bytes, got {len(buffer)}"
            )
        owner, cursor = read_pubkey(buffer, 0)
        lottery, cursor = read_pubkey(buffer, cursor)
        ticket_receipt, cursor = read_pubkey(buffer, cursor)
        ticket_number, _ = read_u64(buffer, cursor)
        return TicketState(
            owner=owner,
            lottery=lottery,
            ticket_receipt=ticket_receipt,
            ticket_number=ticket_number,
        )
