"""Python client for the Solana lottery program"""

from .accounts import LotteryState, StateDecoder, TicketState
from .builder import TransactionBuilder, TransactionRequest
from .compute import ComputeSimulator
from .confirm import ConfirmationPoller, Submitter
from .fees import FeeEstimator, PriorityTier
from .lottery import Lottery
from .manager import LotteryManager
from .network import LotteryNetwork
from .pda import AddressDeriver
from .results import SendError, SimulationError, TxResult
from .rpc import RpcClient, RpcError
from .watch import DrawFeed, DrawWatcher

__version__ = "0.1.0"

__all__ = [
    "AddressDeriver",
    "ComputeSimulator",
    "ConfirmationPoller",
    "DrawFeed",
    "DrawWatcher",
    "FeeEstimator",
    "Lottery",
    "LotteryManager",
    "LotteryNetwork",
    "LotteryState",
    "PriorityTier",
    "RpcClient",
    "RpcError",
    "SendError",
    "SimulationError",
    "StateDecoder",
    "Submitter",
    "TicketState",
    "TransactionBuilder",
    "TransactionRequest",
    "TxResult",
]
