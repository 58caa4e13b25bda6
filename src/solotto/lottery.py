from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Union

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from . import instructions as ixs
from .accounts import LotteryState, StateDecodeError, StateDecoder, TicketState
from .builder import TransactionRequest
from .network import LotteryNetwork
from .pda import AddressDeriver, AddressLike, DerivedAddress, to_pubkey
from .project_constants import (
    LOTTERY_AUTHORITY_OFFSET,
    MAX_TICKETS_PER_TX,
    MIN_TICKETS_PER_TX,
    TICKET_ACCOUNT_SIZE,
    TICKET_LOTTERY_OFFSET,
    TICKET_NUMBER_OFFSET,
    TICKET_OWNER_OFFSET,
    WRAPPER_TOLERANCE,
)
from .results import SendError, SimulationError, TxResult
from .rpc import RpcClient, data_size, memcmp

log = logging.getLogger(__name__)

Party = Union[Keypair, Pubkey, str]
WrapperResult = Union[str, TxResult, SimulationError, SendError]


def pubkey_of(party: Party) -> Pubkey:
    if isinstance(party, Keypair):
        return party.pubkey()
    return to_pubkey(party)


def ticket_number_b58(ticket_number: int) -> str:
    return base58.b58encode(struct.pack("<Q", ticket_number)).decode("ascii")


@dataclass(frozen=True)
class TicketGroup:
    owner: str
    ticket_count: int
    tickets: List[TicketState]


@dataclass(frozen=True)
class TicketList:
    lottery_id: int
    lottery_address: str
    lottery_auth: str
    buyer: str  # "All" when not filtered
    tickets: Union[List[TicketState], List[TicketGroup]]


def sort_tickets(tickets: List[TicketState]) -> List[TicketState]:
    return sorted(tickets, key=lambda t: t.ticket_number, reverse=True)


def group_by_owner(tickets: List[TicketState]) -> List[TicketGroup]:
    grouped: Dict[str, List[TicketState]] = {}
    for t in tickets:
        grouped.setdefault(t.owner, []).append(t)
    return [TicketGroup(owner, len(items), items) for owner, items in grouped.items()]


class Lottery:
    """Read operations and player actions (buy tickets, claim a prize)."""

    def __init__(self, rpc: RpcClient, program_id: AddressLike) -> None:
        self.rpc = rpc
        self.deriver = AddressDeriver(program_id)
        self.program_id = self.deriver.program_id
        self.decoder = StateDecoder(self.deriver)
        self.network = LotteryNetwork(rpc)

    def derive_lottery_pda(self, authority: AddressLike, lottery_id: int) -> DerivedAddress:
        return self.deriver.derive_lottery(authority, lottery_id)

    def derive_ticket_pda(
        self, lottery: AddressLike, buyer: AddressLike, ticket_receipt: AddressLike
    ) -> DerivedAddress:
        return self.deriver.derive_ticket(lottery, buyer, ticket_receipt)

    def derive_prize_pool_pda(self) -> DerivedAddress:
        return self.deriver.derive_prize_pool()

    async def get_lottery(
        self, authority: Party, lottery_id: int, fees: bool = True
    ) -> LotteryState:
        lottery_pda, _ = self.deriver.derive_lottery(pubkey_of(authority), lottery_id)
        data = await self.rpc.get_account_info(str(lottery_pda))
        if data is None:
            raise LookupError(f"Lottery account {lottery_pda} not found")
        return self.decoder.decode_lottery(data, fees)

    async def get_lotteries(
        self, authority: Optional[Party] = None, fees: bool = True
    ) -> List[LotteryState]:
        """All lotteries under the program (or one authority), newest id first."""
        filters = []
        if authority is not None:
            filters.append(memcmp(LOTTERY_AUTHORITY_OFFSET, str(pubkey_of(authority))))
        accounts = await self.rpc.get_program_accounts(str(self.program_id), filters)

        lotteries: List[LotteryState] = []
        for address, data in accounts:
            if len(data) == TICKET_ACCOUNT_SIZE or not data:
                continue
            try:
                lotteries.append(self.decoder.decode_lottery(data, fees))
            except StateDecodeError as e:
                log.warning("Skipping account %s: %s", address, e)

        lotteries.sort(key=lambda s: s.lottery_id, reverse=True)
        return lotteries

    async def get_ticket(
        self, authority: Party, lottery_id: int, ticket_number: int
    ) -> TicketState:
        auth = pubkey_of(authority)
        lottery_pda, _ = self.deriver.derive_lottery(auth, lottery_id)
        accounts = await self.rpc.get_program_accounts(
            str(self.program_id),
            [
                data_size(TICKET_ACCOUNT_SIZE),
                memcmp(TICKET_LOTTERY_OFFSET, str(lottery_pda)),
                memcmp(TICKET_NUMBER_OFFSET, ticket_number_b58(ticket_number)),
            ],
        )
        if not accounts:
            raise LookupError(f"Ticket {ticket_number} not found in lottery {lottery_pda}")
        address, data = accounts[0]
        ticket = self.decoder.decode_ticket(data)
        return replace(
            ticket,
            ticket_pda=address,
            lottery_id=lottery_id,
            lottery_auth=str(auth),
        )

    async def get_tickets(
        self,
        authority: Party,
        lottery_id: int,
        buyer: Optional[Party] = None,
        group: bool = False,
    ) -> TicketList:
        auth = pubkey_of(authority)
        lottery_pda, _ = self.deriver.derive_lottery(auth, lottery_id)
        filters = [data_size(TICKET_ACCOUNT_SIZE)]
        if buyer is not None:
            filters.append(memcmp(TICKET_OWNER_OFFSET, str(pubkey_of(buyer))))
        filters.append(memcmp(TICKET_LOTTERY_OFFSET, str(lottery_pda)))

        accounts = await self.rpc.get_program_accounts(str(self.program_id), filters)
        tickets = sort_tickets(
            [
                replace(
                    self.decoder.decode_ticket(data),
                    ticket_pda=address,
                    lottery_id=lottery_id,
                    lottery_auth=str(auth),
                )
                for address, data in accounts
            ]
        )
        return TicketList(
            lottery_id=lottery_id,
            lottery_address=str(lottery_pda),
            lottery_auth=str(auth),
            buyer=str(pubkey_of(buyer)) if buyer is not None else "All",
            tickets=group_by_owner(tickets) if group else tickets,
        )

    async def buy_tickets(
        self,
        buyer: Party,
        authority: Party,
        lottery_id: int,
        amount: int = 1,
        encoded: bool = False,
    ) -> WrapperResult:
        if not MIN_TICKETS_PER_TX <= amount <= MAX_TICKETS_PER_TX:
            raise ValueError(
                f"amount must be between {MIN_TICKETS_PER_TX} and {MAX_TICKETS_PER_TX}, got {amount}"
            )
        buyer_key = pubkey_of(buyer)
        lottery_pda, _ = self.deriver.derive_lottery(pubkey_of(authority), lottery_id)
        prize_pool, _ = self.deriver.derive_prize_pool()
        rent = await self.rpc.get_minimum_balance_for_rent_exemption(0)

        instructions = []
        receipts = []
        for _ in range(amount):
            receipt = Keypair()
            receipts.append(receipt)
            ticket_pda, _ = self.deriver.derive_ticket(lottery_pda, buyer_key, receipt.pubkey())
            instructions.append(
                ixs.create_receipt_account(self.program_id, buyer_key, receipt.pubkey(), rent)
            )
            instructions.append(
                ixs.buy_ticket(
                    self.program_id,
                    buyer_key,
                    lottery_pda,
                    ticket_pda,
                    prize_pool,
                    receipt.pubkey(),
                )
            )

        log.info("Buying %d ticket(s) in lottery %s", amount, lottery_pda)
        return await self._submit(buyer, buyer_key, instructions, encoded, signers=receipts)

    async def claim_ticket(
        self,
        authority: Party,
        lottery_id: int,
        winner: Party,
        encoded: bool = False,
    ) -> WrapperResult:
        try:
            state = await self.get_lottery(authority, lottery_id)
            if state.winner_ticket_number is None:
                return TxResult.error(f"lottery {lottery_id} has not been drawn")
            ticket = await self.get_ticket(authority, lottery_id, state.winner_ticket_number)
        except (LookupError, StateDecodeError) as e:
            log.error("Lottery %d: cannot claim: %s", lottery_id, e)
            return TxResult.error(str(e))
        owner = to_pubkey(ticket.owner)
        ix = ixs.claim_prize(
            self.program_id,
            owner,
            to_pubkey(ticket.lottery),
            to_pubkey(ticket.ticket_receipt),
            to_pubkey(ticket.ticket_pda),
            to_pubkey(state.prize_pool_address),
        )
        return await self._submit(winner, owner, [ix], encoded)

    async def _submit(
        self,
        party: Party,
        payer: Pubkey,
        instructions: list,
        encoded: bool,
        signers: Optional[List[Keypair]] = None,
    ) -> WrapperResult:
        result = await self.network.tx(
            TransactionRequest(
                account=payer,
                instructions=instructions,
                signers=signers,
                tolerance=WRAPPER_TOLERANCE,
                serialize=encoded,
                encode=encoded,
            )
        )
        if not result.ok:
            return result
        if isinstance(party, Keypair) and not encoded:
            return await self.network.sign_send_and_confirm(result.transaction, party)
        return result
