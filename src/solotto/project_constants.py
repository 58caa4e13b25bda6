"""
Fixed parameters of the on-chain lottery program and of transaction budgeting.

These values must match the deployed program.
Changing a seed, a discriminator or a layout size breaks interoperability.
"""

from enum import IntEnum

from solders.pubkey import Pubkey


class LotteryInstruction(IntEnum):
    """Single-byte instruction discriminators understood by the program."""

    INITIALIZE_LOTTERY = 0
    BUY_TICKET = 1
    DRAW_WINNER = 2
    CLAIM_PRIZE = 3
    LOCK_LOTTERY = 4
    RELEASE_EXPIRED = 5


# PDA seeds
LOTTERY_SEED = b"lottery"
TICKET_SEED = b"ticket"
PRIZE_POOL_SEED = b"prize-pool"

# owner(32) | lottery(32) | ticketReceipt(32) | ticketNumber(8)
TICKET_ACCOUNT_SIZE = 104
TICKET_OWNER_OFFSET = 0
TICKET_LOTTERY_OFFSET = 32
TICKET_NUMBER_OFFSET = 96

LOTTERY_AUTHORITY_OFFSET = 0

# Ticket purchases per transaction
MIN_TICKETS_PER_TX = 1
MAX_TICKETS_PER_TX = 4

# Share of the prize pool kept by the protocol, shown as a display haircut
PROTOCOL_FEE_SHARE = 0.1

# Compute budgeting
MAX_COMPUTE_UNITS = 1_400_000  # protocol ceiling, used only while simulating
SIMULATION_UNIT_PRICE = 10_000
DEFAULT_TOLERANCE = 1.1
WRAPPER_TOLERANCE = 1.2

# Priority fee correction (micro-lamports per compute unit)
FEE_NO_DATA_SENTINEL = 1
FEE_NO_DATA_SUBSTITUTE = 100_000
FEE_FLOOR = 10_000

# Confirmation polling
DEFAULT_POLL_ATTEMPTS = 10
DEFAULT_POLL_INTERVAL_S = 3

# Draw feed
RECONNECT_DELAY_S = 5.0
WINNING_TICKET_LOG = "Program log: Winning ticket number: "
DRAW_FEE_LOG = "Program log: Fee amount: "

COMPUTE_BUDGET_PROGRAM_ID = Pubkey.from_string("ComputeBudget111111111111111111111111111111")
MEMO_PROGRAM_ID = Pubkey.from_string("MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr")
