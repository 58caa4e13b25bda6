"""Fakes and account encoders shared by the tests."""
import struct

from solders.hash import Hash


class FakeRpc:
    """Records calls and answers with canned values."""

    def __init__(
        self,
        units_consumed=100_000,
        fee_estimate=50_000,
        sim_err=None,
        sim_logs=None,
        statuses=None,
        program_accounts=None,
        account_data=None,
    ):
        self.blockhash = str(Hash.new_unique())
        self.units_consumed = units_consumed
        self.fee_estimate = fee_estimate
        self.sim_err = sim_err
        self.sim_logs = sim_logs or ["Program log: ok"]
        self.statuses = list(statuses or [])
        self.program_accounts = program_accounts or []
        self.account_data = account_data
        self.calls = []
        self.sent = []

    async def get_latest_blockhash(self, commitment="confirmed"):
        self.calls.append(("getLatestBlockhash", commitment))
        return self.blockhash

    async def simulate_transaction(self, tx_bytes, replace_recent_blockhash=True, sig_verify=False):
        self.calls.append(("simulateTransaction", tx_bytes, replace_recent_blockhash, sig_verify))
        if isinstance(self.units_consumed, Exception):
            raise self.units_consumed
        return {"err": self.sim_err, "logs": self.sim_logs, "unitsConsumed": self.units_consumed}

    async def get_priority_fee_estimate(self, transaction_b58, priority_level):
        self.calls.append(("getPriorityFeeEstimate", transaction_b58, priority_level))
        if isinstance(self.fee_estimate, Exception):
            raise self.fee_estimate
        return self.fee_estimate

    async def send_raw_transaction(self, tx_bytes, skip_preflight=True, max_retries=0):
        self.calls.append(("sendTransaction", skip_preflight, max_retries))
        self.sent.append(tx_bytes)
        return "5igFakeSignature"

    async def get_signature_status(self, signature):
        self.calls.append(("getSignatureStatuses", signature))
        status = self.statuses.pop(0) if self.statuses else None
        if isinstance(status, Exception):
            raise status
        return status

    async def get_program_accounts(self, program_id, filters):
        self.calls.append(("getProgramAccounts", program_id, filters))
        return self.program_accounts

    async def get_account_info(self, address):
        self.calls.append(("getAccountInfo", address))
        return self.account_data

    async def get_minimum_balance_for_rent_exemption(self, size):
        self.calls.append(("getMinimumBalanceForRentExemption", size))
        return 890_880

    def methods(self):
        return [c[0] for c in self.calls]


def lottery_bytes(
    authority,
    lottery_id=7,
    ticket_price=100_000_000,
    total_tickets=12,
    winner_ticket=None,
    winner_address=None,
    is_active=True,
    prize_pool=1_000_000_000,
    draw_initiated=False,
    release_time=None,
):
    """Encode a lottery account the way the program lays it out."""
    buf = bytearray(bytes(authority))
    buf += struct.pack("<QQQ", lottery_id, ticket_price, total_tickets)
    if winner_ticket is None:
        buf += b"\x00"
    else:
        buf += b"\x01" + struct.pack("<Q", winner_ticket)
    if winner_address is None:
        buf += b"\x00"
    else:
        buf += b"\x01" + bytes(winner_address)
    buf += bytes([1 if is_active else 0])
    buf += struct.pack("<Q", prize_pool)
    buf += bytes([1 if draw_initiated else 0])
    if release_time is None:
        buf += b"\x00"
    else:
        buf += b"\x01" + struct.pack("<Q", release_time)
    return bytes(buf)


def ticket_bytes(owner, lottery, receipt, number):
    return bytes(owner) + bytes(lottery) + bytes(receipt) + struct.pack("<Q", number)

