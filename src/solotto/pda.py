from __future__ import annotations

import struct
from typing import Tuple, Union

from solders.pubkey import Pubkey

from .project_constants import LOTTERY_SEED, PRIZE_POOL_SEED, TICKET_SEED

AddressLike = Union[Pubkey, str]
DerivedAddress = Tuple[Pubkey, int]


def to_pubkey(value: AddressLike) -> Pubkey:
    """Accepts a Pubkey or its base58 string; raises ValueError otherwise."""
    if isinstance(value, Pubkey):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected an address, got {type(value).__name__}")
    return Pubkey.from_string(value)


def lottery_id_seed(lottery_id: int) -> bytes:
    """8-byte little-endian unsigned encoding of a lottery id."""
    if isinstance(lottery_id, bool) or not isinstance(lottery_id, int):
        raise ValueError(f"Lottery id must be an integer, got {lottery_id!r}")
    if lottery_id < 0 or lottery_id >= 2**64:
        raise ValueError(f"Lottery id out of u64 range: {lottery_id}")
    return struct.pack("<Q", lottery_id)


class AddressDeriver:
    """Program-derived addresses for lottery, ticket and prize-pool accounts."""

    def __init__(self, program_id: AddressLike) -> None:
        self.program_id = to_pubkey(program_id)

    def derive_lottery(self, authority: AddressLike, lottery_id: int) -> DerivedAddress:
        return Pubkey.find_program_address(
            [LOTTERY_SEED, bytes(to_pubkey(authority)), lottery_id_seed(lottery_id)],
            self.program_id,
        )

    def derive_ticket(
        self,
        lottery: AddressLike,
        buyer: AddressLike,
        ticket_receipt: AddressLike,
    ) -> DerivedAddress:
        return Pubkey.find_program_address(
            [
                TICKET_SEED,
                bytes(to_pubkey(lottery)),
                bytes(to_pubkey(buyer)),
                bytes(to_pubkey(ticket_receipt)),
            ],
            self.program_id,
        )

    def derive_prize_pool(self) -> DerivedAddress:
        # One pool is shared by every lottery under the program.
        return Pubkey.find_program_address([PRIZE_POOL_SEED], self.program_id)
