from __future__ import annotations

from typing import Optional, Sequence

from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0, to_bytes_versioned
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction


def compile_transaction(
    payer: Pubkey,
    instructions: Sequence[Instruction],
    blockhash: str,
    table: Optional[AddressLookupTableAccount] = None,
) -> VersionedTransaction:
    """Compiles a V0 message and wraps it in a transaction with empty signature slots."""
    tables = [table] if table is not None else []
    message = MessageV0.try_compile(
        payer, list(instructions), tables, Hash.from_string(blockhash)
    )
    return VersionedTransaction.populate(
        message, [Signature.default()] * message.header.num_required_signatures
    )


def partial_sign(
    tx: VersionedTransaction, signers: Sequence[Keypair]
) -> VersionedTransaction:
    """
    Fills the signature slots belonging to `signers` and leaves the rest untouched,
    so a transaction can be pre-signed here and completed by its payer later.
    """
    message = tx.message
    payload = to_bytes_versioned(message)
    keys = list(message.account_keys)
    required = message.header.num_required_signatures
    signatures = list(tx.signatures)
    for kp in signers:
        pubkey = kp.pubkey()
        if pubkey not in keys or keys.index(pubkey) >= required:
            raise ValueError(f"{pubkey} is not a required signer of this transaction")
        signatures[keys.index(pubkey)] = kp.sign_message(payload)
    return VersionedTransaction.populate(message, signatures)
