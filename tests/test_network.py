"""
Tests for the LotteryNetwork facade.
"""
import asyncio

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from solotto.network import LotteryNetwork
from tests.helpers import FakeRpc


def _ix(payer):
    return Instruction(Pubkey.new_unique(), b"\x01", [AccountMeta(payer, True, True)])


def test_compute_delegates_to_simulator(payer):
    rpc = FakeRpc(units_consumed=50_000)
    units = asyncio.run(
        LotteryNetwork(rpc).compute(payer.pubkey(), [_ix(payer.pubkey())], 1.2, rpc.blockhash)
    )
    assert units == 60_000
    assert rpc.methods() == ["simulateTransaction"]


def test_estimate_delegates_to_estimator(payer):
    rpc = FakeRpc(fee_estimate=25_000)
    rate = asyncio.run(
        LotteryNetwork(rpc).estimate(payer.pubkey(), "High", [_ix(payer.pubkey())], rpc.blockhash)
    )
    assert rate == 25_000
    assert rpc.calls[0][0] == "getPriorityFeeEstimate"
    assert rpc.calls[0][2] == "High"
