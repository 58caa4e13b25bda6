from __future__ import annotations

import logging
from typing import List, Optional, Union

import httpx
from solders.instruction import Instruction
from solders.keypair import Keypair

from . import instructions as ixs
from .accounts import LotteryState, StateDecodeError
from .builder import TransactionRequest
from .confirm import FINALIZED
from .lottery import Lottery, Party, WrapperResult, pubkey_of
from .pda import AddressLike
from .project_constants import WRAPPER_TOLERANCE
from .results import SendError, TxResult
from .rpc import RpcClient, RpcError

log = logging.getLogger(__name__)

AdminResult = Union[LotteryState, WrapperResult]


class LotteryManager:
    """Authority-only operations: create, draw, lock/unlock, reclaim expired prizes."""

    def __init__(self, rpc: RpcClient, program_id: AddressLike) -> None:
        self.lottery = Lottery(rpc, program_id)
        self.program_id = self.lottery.program_id
        self.deriver = self.lottery.deriver
        self.network = self.lottery.network

    async def initialize(
        self,
        authority: Party,
        ticket_price: int,
        lottery_id: int,
        encoded: bool = False,
    ) -> WrapperResult:
        auth = pubkey_of(authority)
        lottery_pda, _ = self.deriver.derive_lottery(auth, lottery_id)
        log.info("Lottery PDA: %s", lottery_pda)
        ix = ixs.initialize_lottery(self.program_id, auth, lottery_pda, ticket_price, lottery_id)
        try:
            return await self._submit(authority, [ix], encoded)
        except (httpx.HTTPError, RpcError) as e:
            log.error("Initialize failed: %s", e)
            return TxResult.error(str(e))

    async def random_draw(
        self, authority: Party, lottery_id: int, encoded: bool = False
    ) -> AdminResult:
        auth = pubkey_of(authority)
        lottery_pda, _ = self.deriver.derive_lottery(auth, lottery_id)
        prize_pool, _ = self.deriver.derive_prize_pool()
        ix = ixs.draw_winner(self.program_id, auth, lottery_pda, prize_pool)
        return await self._run_and_refresh(authority, lottery_id, [ix], encoded, memo="draw")

    async def lock_lottery(
        self,
        authority: Party,
        lottery_id: int,
        lock_state: int,
        encoded: bool = False,
    ) -> AdminResult:
        auth = pubkey_of(authority)
        lottery_pda, _ = self.deriver.derive_lottery(auth, lottery_id)
        ix = ixs.lock_lottery(self.program_id, auth, lottery_pda, lock_state)
        return await self._run_and_refresh(authority, lottery_id, [ix], encoded)

    async def claim_expired(
        self, authority: Party, lottery_id: int, encoded: bool = False
    ) -> AdminResult:
        auth = pubkey_of(authority)
        lottery_pda, _ = self.deriver.derive_lottery(auth, lottery_id)
        prize_pool, _ = self.deriver.derive_prize_pool()
        ix = ixs.release_expired(self.program_id, auth, lottery_pda, prize_pool)
        return await self._run_and_refresh(authority, lottery_id, [ix], encoded)

    async def _run_and_refresh(
        self,
        authority: Party,
        lottery_id: int,
        instructions: List[Instruction],
        encoded: bool,
        memo: Optional[str] = None,
    ) -> AdminResult:
        try:
            outcome = await self._submit(authority, instructions, encoded, memo)
            if outcome == FINALIZED:
                return await self.lottery.get_lottery(authority, lottery_id, fees=False)
            return outcome
        except (httpx.HTTPError, RpcError, LookupError, StateDecodeError) as e:
            log.error("Lottery %d: operation failed: %s", lottery_id, e)
            return TxResult.error(str(e))

    async def _submit(
        self,
        authority: Party,
        instructions: List[Instruction],
        encoded: bool,
        memo: Optional[str] = None,
    ) -> WrapperResult:
        result = await self.network.tx(
            TransactionRequest(
                account=pubkey_of(authority),
                instructions=instructions,
                tolerance=WRAPPER_TOLERANCE,
                serialize=encoded,
                encode=encoded,
                memo=memo,
            )
        )
        if not result.ok:
            return result
        if isinstance(authority, Keypair) and not encoded:
            outcome = await self.network.sign_send_and_confirm(result.transaction, authority)
            if isinstance(outcome, SendError):
                log.error("Send failed: %s", outcome.message)
            return outcome
        return result
