"""
Pytest fixtures for the solotto tests.
"""
import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from solotto.pda import AddressDeriver
from tests.helpers import FakeRpc


@pytest.fixture
def program_id():
    return Pubkey.new_unique()


@pytest.fixture
def deriver(program_id):
    return AddressDeriver(program_id)


@pytest.fixture
def payer():
    return Keypair()


@pytest.fixture
def fake_rpc():
    return FakeRpc()
