from __future__ import annotations

import struct

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.system_program import CreateAccountParams, create_account
from solders.sysvar import SLOT_HASHES

from .project_constants import MEMO_PROGRAM_ID, LotteryInstruction


def memo(text: str, signer: Pubkey) -> Instruction:
    return Instruction(
        MEMO_PROGRAM_ID,
        text.encode("utf-8"),
        [AccountMeta(signer, is_signer=True, is_writable=True)],
    )


def initialize_data(ticket_price: int, lottery_id: int) -> bytes:
    # discriminator(1) + price(8) + id(8)
    return struct.pack("<BQQ", LotteryInstruction.INITIALIZE_LOTTERY, ticket_price, lottery_id)


def lock_data(lock_state: int) -> bytes:
    return struct.pack("<BB", LotteryInstruction.LOCK_LOTTERY, lock_state)


def initialize_lottery(
    program_id: Pubkey,
    authority: Pubkey,
    lottery: Pubkey,
    ticket_price: int,
    lottery_id: int,
) -> Instruction:
    return Instruction(
        program_id,
        initialize_data(ticket_price, lottery_id),
        [
            AccountMeta(authority, is_signer=True, is_writable=True),
            AccountMeta(lottery, is_signer=False, is_writable=True),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        ],
    )


def create_receipt_account(
    program_id: Pubkey, buyer: Pubkey, receipt: Pubkey, rent_lamports: int
) -> Instruction:
    return create_account(
        CreateAccountParams(
            from_pubkey=buyer,
            to_pubkey=receipt,
            lamports=rent_lamports,
            space=0,
            owner=program_id,
        )
    )


def buy_ticket(
    program_id: Pubkey,
    buyer: Pubkey,
    lottery: Pubkey,
    ticket: Pubkey,
    prize_pool: Pubkey,
    receipt: Pubkey,
) -> Instruction:
    return Instruction(
        program_id,
        bytes([LotteryInstruction.BUY_TICKET]),
        [
            AccountMeta(buyer, is_signer=True, is_writable=True),
            AccountMeta(lottery, is_signer=False, is_writable=True),
            AccountMeta(ticket, is_signer=False, is_writable=True),
            AccountMeta(prize_pool, is_signer=False, is_writable=True),
            AccountMeta(receipt, is_signer=True, is_writable=True),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        ],
    )


def draw_winner(
    program_id: Pubkey, authority: Pubkey, lottery: Pubkey, prize_pool: Pubkey
) -> Instruction:
    return Instruction(
        program_id,
        bytes([LotteryInstruction.DRAW_WINNER]),
        [
            AccountMeta(authority, is_signer=True, is_writable=False),
            AccountMeta(lottery, is_signer=False, is_writable=True),
            AccountMeta(SLOT_HASHES, is_signer=False, is_writable=False),
            AccountMeta(prize_pool, is_signer=False, is_writable=True),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        ],
    )


def claim_prize(
    program_id: Pubkey,
    winner: Pubkey,
    lottery: Pubkey,
    receipt: Pubkey,
    ticket: Pubkey,
    prize_pool: Pubkey,
) -> Instruction:
    return Instruction(
        program_id,
        bytes([LotteryInstruction.CLAIM_PRIZE]),
        [
            AccountMeta(winner, is_signer=True, is_writable=True),
            AccountMeta(lottery, is_signer=False, is_writable=True),
            AccountMeta(receipt, is_signer=False, is_writable=False),
            AccountMeta(ticket, is_signer=False, is_writable=False),
            AccountMeta(prize_pool, is_signer=False, is_writable=True),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        ],
    )


def lock_lottery(
    program_id: Pubkey, authority: Pubkey, lottery: Pubkey, lock_state: int
) -> Instruction:
    """lock_state 0 stops ticket sales, 1 resumes them."""
    if lock_state not in (0, 1):
        raise ValueError(f"lock_state must be 0 or 1, got {lock_state!r}")
    return Instruction(
        program_id,
        lock_data(lock_state),
        [
            AccountMeta(authority, is_signer=True, is_writable=False),
            AccountMeta(lottery, is_signer=False, is_writable=True),
        ],
    )


def release_expired(
    program_id: Pubkey, authority: Pubkey, lottery: Pubkey, prize_pool: Pubkey
) -> Instruction:
    return Instruction(
        program_id,
        bytes([LotteryInstruction.RELEASE_EXPIRED]),
        [
            AccountMeta(authority, is_signer=True, is_writable=True),
            AccountMeta(lottery, is_signer=False, is_writable=True),
            AccountMeta(prize_pool, is_signer=False, is_writable=True),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        ],
    )
