"""
Tests for priority fee estimation and correction.
"""
import asyncio

import base58
import httpx
import pytest
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from solotto.fees import FeeEstimator, PriorityTier, correct_fee_rate
from solotto.rpc import RpcError
from tests.helpers import FakeRpc


def _ix(payer):
    return Instruction(Pubkey.new_unique(), b"\x01", [AccountMeta(payer, True, True)])


@pytest.mark.parametrize(
    "raw, expected",
    [(1, 100_000), (5_000, 10_000), (50_000, 50_000), (0, 10_000), (10_000, 10_000)],
)
def test_correct_fee_rate(raw, expected):
    assert correct_fee_rate(raw) == expected


def test_tier_parsing():
    assert PriorityTier.parse("Low") is PriorityTier.LOW
    assert PriorityTier.parse("VeryHigh") is PriorityTier.VERY_HIGH
    assert PriorityTier.parse("Extreme") is PriorityTier.VERY_HIGH
    assert PriorityTier.parse(PriorityTier.HIGH) is PriorityTier.HIGH
    with pytest.raises(ValueError, match="Unknown priority tier"):
        PriorityTier.parse("Ludicrous")


def test_estimate_sends_base58_transaction_and_tier(payer):
    rpc = FakeRpc(fee_estimate=1)
    estimator = FeeEstimator(rpc)

    rate = asyncio.run(
        estimator.estimate(payer.pubkey(), "Extreme", [_ix(payer.pubkey())], rpc.blockhash)
    )

    assert rate == 100_000
    method, tx_b58, level = rpc.calls[0]
    assert method == "getPriorityFeeEstimate"
    assert level == "VeryHigh"
    tx = VersionedTransaction.from_bytes(base58.b58decode(tx_b58))
    assert tx.message.account_keys[0] == payer.pubkey()
    assert str(tx.message.recent_blockhash) == rpc.blockhash


def test_fractional_estimate_is_truncated(payer):
    rpc = FakeRpc(fee_estimate=123456.78)
    rate = asyncio.run(
        FeeEstimator(rpc).estimate(payer.pubkey(), "Low", [_ix(payer.pubkey())], rpc.blockhash)
    )
    assert rate == 123456


@pytest.mark.parametrize(
    "failure",
    [httpx.ConnectError("down"), RpcError("getPriorityFeeEstimate", {"code": -32601}), KeyError("x")],
)
def test_estimation_failure_falls_back(payer, failure):
    rpc = FakeRpc(fee_estimate=failure)
    rate = asyncio.run(
        FeeEstimator(rpc).estimate(payer.pubkey(), "Medium", [_ix(payer.pubkey())], rpc.blockhash)
    )
    assert rate == 100_000
