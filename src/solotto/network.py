from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from .builder import TransactionBuilder, TransactionRequest
from .compute import ComputeSimulator
from .confirm import ConfirmationPoller, Submitter
from .fees import FeeEstimator, PriorityTier
from .project_constants import DEFAULT_POLL_ATTEMPTS, DEFAULT_POLL_INTERVAL_S
from .results import SendError, SimulationError, TxResult
from .rpc import RpcClient
from .transactions import partial_sign

log = logging.getLogger(__name__)


class LotteryNetwork:
    """Build, send and confirm transactions over one shared RPC client."""

    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc
        self.simulator = ComputeSimulator(rpc)
        self.estimator = FeeEstimator(rpc)
        self.builder = TransactionBuilder(rpc, self.simulator, self.estimator)
        self.submitter = Submitter(rpc)
        self.poller = ConfirmationPoller(rpc)

    async def tx(self, request: TransactionRequest) -> Union[TxResult, SimulationError]:
        return await self.builder.build(request)

    async def send(self, tx: Union[VersionedTransaction, bytes]) -> Union[str, SendError]:
        return await self.submitter.send(tx)

    async def status(
        self,
        signature: str,
        max_attempts: int = DEFAULT_POLL_ATTEMPTS,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_S,
    ) -> str:
        return await self.poller.poll(signature, max_attempts, interval_seconds)

    async def compute(
        self,
        payer: Pubkey,
        instructions: Sequence[Instruction],
        tolerance: float,
        blockhash: str,
        table: Optional[AddressLookupTableAccount] = None,
    ) -> Union[int, SimulationError]:
        return await self.simulator.estimate(payer, instructions, tolerance, blockhash, table)

    async def estimate(
        self,
        payer: Pubkey,
        tier: Union[PriorityTier, str],
        instructions: Sequence[Instruction],
        blockhash: str,
        table: Optional[AddressLookupTableAccount] = None,
    ) -> int:
        return await self.estimator.estimate(payer, tier, instructions, blockhash, table)

    async def sign_send_and_confirm(
        self, tx: VersionedTransaction, signer: Keypair
    ) -> Union[str, SendError]:
        """Adds the payer's signature, submits and waits; returns the poll outcome."""
        signed = partial_sign(tx, [signer])
        signature = await self.send(signed)
        if isinstance(signature, SendError):
            return signature
        return await self.status(signature)
