from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import httpx
from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from . import instructions as ixs
from .compute import ComputeSimulator
from .fees import FeeEstimator, PriorityTier
from .pda import to_pubkey
from .project_constants import DEFAULT_TOLERANCE
from .results import SimulationError, TxResult
from .rpc import RpcClient, RpcError
from .transactions import compile_transaction, partial_sign

log = logging.getLogger(__name__)


@dataclass
class TransactionRequest:
    """
    Everything needed to build one transaction.

    `account` (the payer) and `instructions` are required; the builder reports
    their absence as an error result rather than raising.
    """

    account: Optional[Union[Pubkey, str]] = None
    instructions: Optional[Sequence[Instruction]] = None
    signers: Optional[Sequence[Keypair]] = None
    priority: Union[PriorityTier, str] = PriorityTier.LOW
    tolerance: Optional[float] = DEFAULT_TOLERANCE
    serialize: bool = False
    encode: bool = False
    compute: bool = True
    fees: bool = True
    table: Optional[AddressLookupTableAccount] = None
    memo: Optional[str] = None


class TransactionBuilder:
    """
    Sizes, prices and compiles a versioned transaction.

    Nothing is ever submitted from here; the only network traffic is the
    blockhash fetch, the dry run and the fee estimate.
    """

    def __init__(
        self,
        rpc: RpcClient,
        simulator: Optional[ComputeSimulator] = None,
        estimator: Optional[FeeEstimator] = None,
    ) -> None:
        self.rpc = rpc
        self.simulator = simulator or ComputeSimulator(rpc)
        self.estimator = estimator or FeeEstimator(rpc)

    async def build(
        self, request: TransactionRequest
    ) -> Union[TxResult, SimulationError]:
        if request.account is None:
            return TxResult.error("missing account")
        if request.instructions is None:
            return TxResult.error("missing instructions")
        try:
            payer = to_pubkey(request.account)
        except ValueError as e:
            return TxResult.error(f"invalid account: {e}")
        try:
            tier = PriorityTier.parse(request.priority)
        except ValueError as e:
            return TxResult.error(str(e))
        tolerance = request.tolerance or DEFAULT_TOLERANCE

        # Own copy; the caller's list is never touched.
        instructions = list(request.instructions)

        try:
            blockhash = await self.rpc.get_latest_blockhash("confirmed")
        except (httpx.HTTPError, RpcError, KeyError, TypeError) as e:
            log.error("Could not fetch a blockhash: %s", e)
            return TxResult.error("there was an error fetching a recent blockhash")

        if request.memo:
            instructions.append(ixs.memo(request.memo, payer))

        if request.compute:
            try:
                units = await self.simulator.estimate(
                    payer, instructions, tolerance, blockhash, request.table
                )
            except Exception as e:  # includes solders CompileError
                log.error("Compute estimation failed: %s", e)
                return TxResult.error("there was an error when optimizing compute limit")
            if isinstance(units, SimulationError):
                return SimulationError(
                    message="there was an error when simulating the transaction",
                    details=units.details,
                    logs=units.logs,
                )
            instructions.insert(0, set_compute_unit_limit(units))

        if request.fees:
            try:
                rate = await self.estimator.estimate(
                    payer, tier, instructions, blockhash, request.table
                )
            except Exception as e:  # compile errors; the estimator absorbs request failures
                log.error("Priority fee estimation failed: %s", e)
                return TxResult.error("there was an error when estimating the priority fee")
            # Prepended last, so the price instruction leads the transaction.
            instructions.insert(0, set_compute_unit_price(rate))

        try:
            tx = compile_transaction(payer, instructions, blockhash, request.table)
            if request.signers:
                tx = partial_sign(tx, request.signers)
        except Exception as e:  # solders raises its own CompileError type
            log.error("Could not compile transaction: %s", e)
            return TxResult.error(f"there was an error compiling the transaction: {e}")

        if request.serialize:
            raw = bytes(tx)
            if request.encode:
                return TxResult.success(base64.b64encode(raw).decode("ascii"))
            return TxResult.success(raw)
        return TxResult.success(tx)
