"""
Tests for simulate-then-size compute budgeting.
"""
import asyncio

import pytest
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from solotto.compute import ComputeSimulator, size_budget
from solotto.results import SimulationError
from tests.helpers import FakeRpc


def _ix(payer):
    return Instruction(Pubkey.new_unique(), b"\x07", [AccountMeta(payer, True, True)])


@pytest.mark.parametrize(
    "consumed, tolerance, expected",
    [(100_000, 1.2, 120_000), (100_000, 1.1, 110_000), (1_001, 1.5, 1_502), (5_000, 1.0, 5_000)],
)
def test_size_budget(consumed, tolerance, expected):
    assert size_budget(consumed, tolerance) == expected


def test_tolerance_below_one_is_not_clamped():
    assert size_budget(100_000, 0.5) == 50_000


def test_estimate_pads_consumption(payer):
    rpc = FakeRpc(units_consumed=100_000)
    units = asyncio.run(
        ComputeSimulator(rpc).estimate(payer.pubkey(), [_ix(payer.pubkey())], 1.2, rpc.blockhash)
    )
    assert units == 120_000


def test_simulation_runs_under_max_budget_unsigned(payer):
    rpc = FakeRpc()
    original = [_ix(payer.pubkey())]
    asyncio.run(ComputeSimulator(rpc).estimate(payer.pubkey(), original, 1.1, rpc.blockhash))

    assert len(original) == 1
    _, tx_bytes, replace_blockhash, sig_verify = rpc.calls[0]
    assert replace_blockhash is True
    assert sig_verify is False

    tx = VersionedTransaction.from_bytes(tx_bytes)
    compiled = tx.message.instructions
    assert len(compiled) == 3
    assert compiled[0].data == set_compute_unit_price(10_000).data
    assert compiled[1].data == set_compute_unit_limit(1_400_000).data


def test_execution_error_returns_simulation_error(payer):
    logs = ["Program xyz invoke [1]", "Program log: Lottery is locked", "Program xyz failed"]
    rpc = FakeRpc(sim_err={"InstructionError": [2, {"Custom": 6}]}, sim_logs=logs)
    result = asyncio.run(
        ComputeSimulator(rpc).estimate(payer.pubkey(), [_ix(payer.pubkey())], 1.1, rpc.blockhash)
    )
    assert isinstance(result, SimulationError)
    assert result.status == "error"
    assert result.details == {"InstructionError": [2, {"Custom": 6}]}
    assert result.logs == logs
