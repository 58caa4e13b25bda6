from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

log = logging.getLogger(__name__)


class RpcError(RuntimeError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, error: Any) -> None:
        self.method = method
        self.error = error
        super().__init__(f"RPC error ({method}): {error}")


def data_size(size: int) -> Dict[str, Any]:
    return {"dataSize": size}


def memcmp(offset: int, b58_bytes: str) -> Dict[str, Any]:
    return {"memcmp": {"offset": offset, "bytes": b58_bytes}}


class RpcClient:
    """
    Minimal async JSON-RPC transport.

    Only the calls the lottery client needs are exposed. The fee estimate
    goes to the same endpoint under its own method name, so the endpoint
    must support `getPriorityFeeEstimate` (Helius does).
    """

    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.AsyncClient(timeout=timeout_s, transport=transport)
        self._request_id = 0

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _call(self, method: str, params: List[Any]) -> Any:
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }
        data = await self._post(payload)
        return data.get("result")

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        log.debug("rpc -> %s", payload["method"])
        resp = await self.client.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            raise RpcError(payload["method"], data["error"])
        return data

    async def get_latest_blockhash(self, commitment: str = "confirmed") -> str:
        result = await self._call("getLatestBlockhash", [{"commitment": commitment}])
        return result["value"]["blockhash"]

    async def get_account_info(self, address: str) -> Optional[bytes]:
        """Returns raw account data, or None when the account does not exist."""
        result = await self._call(
            "getAccountInfo", [str(address), {"encoding": "base64"}]
        )
        value = result.get("value") if result else None
        if value is None:
            return None
        # value['data'] is [base64_str, "base64"]
        return base64.b64decode(value["data"][0])

    async def get_program_accounts(
        self,
        program_id: str,
        filters: List[Dict[str, Any]],
    ) -> List[Tuple[str, bytes]]:
        """Returns (address, raw data) for every program account matching all filters."""
        result = await self._call(
            "getProgramAccounts",
            [str(program_id), {"encoding": "base64", "filters": filters}],
        )
        out: List[Tuple[str, bytes]] = []
        for item in result or []:
            out.append((item["pubkey"], base64.b64decode(item["account"]["data"][0])))
        return out

    async def simulate_transaction(
        self,
        tx_bytes: bytes,
        replace_recent_blockhash: bool = True,
        sig_verify: bool = False,
    ) -> Dict[str, Any]:
        """Returns the simulation value: err, logs, unitsConsumed."""
        result = await self._call(
            "simulateTransaction",
            [
                base64.b64encode(tx_bytes).decode("ascii"),
                {
                    "encoding": "base64",
                    "replaceRecentBlockhash": replace_recent_blockhash,
                    "sigVerify": sig_verify,
                },
            ],
        )
        return result["value"]

    async def send_raw_transaction(
        self,
        tx_bytes: bytes,
        skip_preflight: bool = True,
        max_retries: int = 0,
    ) -> str:
        return await self._call(
            "sendTransaction",
            [
                base64.b64encode(tx_bytes).decode("ascii"),
                {
                    "encoding": "base64",
                    "skipPreflight": skip_preflight,
                    "maxRetries": max_retries,
                },
            ],
        )

    async def get_signature_status(self, signature: str) -> Optional[Dict[str, Any]]:
        result = await self._call(
            "getSignatureStatuses",
            [[str(signature)], {"searchTransactionHistory": True}],
        )
        if not result or not result.get("value"):
            return None
        return result["value"][0]

    async def get_priority_fee_estimate(
        self, transaction_b58: str, priority_level: str
    ) -> Any:
        result = await self._call(
            "getPriorityFeeEstimate",
            [
                {
                    "transaction": transaction_b58,
                    "options": {"priorityLevel": priority_level},
                }
            ],
        )
        return result["priorityFeeEstimate"]

    async def get_minimum_balance_for_rent_exemption(self, size: int) -> int:
        return int(await self._call("getMinimumBalanceForRentExemption", [size]))
