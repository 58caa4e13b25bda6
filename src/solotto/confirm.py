from __future__ import annotations

import asyncio
import logging
from typing import Union

import httpx
from solders.transaction import VersionedTransaction

from .project_constants import DEFAULT_POLL_ATTEMPTS, DEFAULT_POLL_INTERVAL_S
from .results import SendError
from .rpc import RpcClient, RpcError

log = logging.getLogger(__name__)

FINALIZED = "finalized"
PROGRAM_ERROR = "program error!"


def timeout_message(max_attempts: int, interval_seconds: float) -> str:
    return f"{max_attempts * interval_seconds} seconds max wait reached"


class Submitter:
    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc

    async def send(
        self, tx: Union[VersionedTransaction, bytes]
    ) -> Union[str, SendError]:
        """Submits once, preflight skipped; resubmitting is left to the caller."""
        raw = tx if isinstance(tx, (bytes, bytearray)) else bytes(tx)
        try:
            signature = await self.rpc.send_raw_transaction(
                bytes(raw), skip_preflight=True, max_retries=0
            )
        except (httpx.HTTPError, RpcError) as e:
            log.error("Send failed: %s", e)
            return SendError(message=str(e))
        log.info("Signature: %s", signature)
        return signature


class ConfirmationPoller:
    """
    Polls a signature until it is finalized or the attempt budget runs out.

    processed/confirmed observations restart the budget; only finalized ends
    the wait early.
    """

    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc

    async def poll(
        self,
        signature: str,
        max_attempts: int = DEFAULT_POLL_ATTEMPTS,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_S,
    ) -> str:
        attempts = 0
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                status = await self.rpc.get_signature_status(signature)
            except (httpx.HTTPError, RpcError) as e:
                log.debug("Status query for %s failed: %s", signature, e)
                status = None

            state = status.get("confirmationStatus") if status else None
            if state == "finalized":
                if status.get("err") is not None:
                    log.warning("%s finalized with program error: %s", signature, status["err"])
                    return PROGRAM_ERROR
                return FINALIZED
            if state in ("processed", "confirmed"):
                log.debug("%s is %s", signature, state)
                attempts = 0

            attempts += 1
            if attempts >= max_attempts:
                return timeout_message(max_attempts, interval_seconds)
