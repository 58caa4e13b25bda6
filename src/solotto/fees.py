from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional, Sequence, Union

import base58
import httpx
from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.instruction import Instruction
from solders.pubkey import Pubkey

from .project_constants import FEE_FLOOR, FEE_NO_DATA_SENTINEL, FEE_NO_DATA_SUBSTITUTE
from .rpc import RpcClient, RpcError
from .transactions import compile_transaction

log = logging.getLogger(__name__)


class PriorityTier(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "VeryHigh"

    @classmethod
    def parse(cls, value: Union["PriorityTier", str]) -> "PriorityTier":
        """Accepts the four tiers plus "Extreme", which the estimator lacks and maps to VeryHigh."""
        if isinstance(value, cls):
            return value
        if value == "Extreme":
            return cls.VERY_HIGH
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown priority tier: {value!r}") from None


def correct_fee_rate(raw: int) -> int:
    if raw == FEE_NO_DATA_SENTINEL:
        raw = FEE_NO_DATA_SUBSTITUTE
    if raw < FEE_FLOOR:
        raw = FEE_FLOOR
    return raw


def _parse_estimate(raw: Any) -> int:
    return int(float(raw))


class FeeEstimator:
    """Asks the endpoint for a priority fee rate; advisory only, never signs or sends."""

    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc

    async def estimate(
        self,
        payer: Pubkey,
        tier: Union[PriorityTier, str],
        instructions: Sequence[Instruction],
        blockhash: str,
        table: Optional[AddressLookupTableAccount] = None,
    ) -> int:
        level = PriorityTier.parse(tier)
        tx = compile_transaction(payer, instructions, blockhash, table)
        encoded = base58.b58encode(bytes(tx)).decode("ascii")

        try:
            raw = _parse_estimate(
                await self.rpc.get_priority_fee_estimate(encoded, level.value)
            )
        except (httpx.HTTPError, RpcError, KeyError, TypeError, ValueError) as e:
            # Treated like the estimator's own "no data" answer.
            log.warning("Priority fee estimate unavailable (%s), using fallback", e)
            raw = FEE_NO_DATA_SENTINEL

        rate = correct_fee_rate(raw)
        log.debug("Priority fee %s: raw=%s rate=%d", level.value, raw, rate)
        return rate
