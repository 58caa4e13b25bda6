from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Optional, Sequence, Union

from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.instruction import Instruction
from solders.pubkey import Pubkey

from .project_constants import MAX_COMPUTE_UNITS, SIMULATION_UNIT_PRICE
from .results import SimulationError
from .rpc import RpcClient
from .transactions import compile_transaction

log = logging.getLogger(__name__)


def size_budget(units_consumed: int, tolerance: float) -> int:
    """ceil(units_consumed * tolerance), computed in decimal so 100000 * 1.1 is 110000."""
    return math.ceil(Decimal(units_consumed) * Decimal(str(tolerance)))


class ComputeSimulator:
    """Measures compute consumption with a dry run and pads it by a tolerance."""

    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc

    async def estimate(
        self,
        payer: Pubkey,
        instructions: Sequence[Instruction],
        tolerance: float,
        blockhash: str,
        table: Optional[AddressLookupTableAccount] = None,
    ) -> Union[int, SimulationError]:
        # Simulate under the protocol ceiling so the dry run never aborts on its own limit.
        draft = [
            set_compute_unit_price(SIMULATION_UNIT_PRICE),
            set_compute_unit_limit(MAX_COMPUTE_UNITS),
            *instructions,
        ]
        tx = compile_transaction(payer, draft, blockhash, table)
        value = await self.rpc.simulate_transaction(
            bytes(tx), replace_recent_blockhash=True, sig_verify=False
        )

        if value.get("err") is not None:
            log.warning("Simulation failed: %s", value["err"])
            return SimulationError(
                message="simulation error",
                details=value["err"],
                logs=list(value.get("logs") or []),
            )

        consumed = int(value["unitsConsumed"])
        units = size_budget(consumed, tolerance)
        log.debug("Simulated %d units, budget %d (x%s)", consumed, units, tolerance)
        return units
