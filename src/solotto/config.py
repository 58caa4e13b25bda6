from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv
from solders.pubkey import Pubkey


def _default_wss_url(rpc_url: str) -> str:
    if rpc_url.startswith("https://"):
        return "wss://" + rpc_url[len("https://"):]
    if rpc_url.startswith("http://"):
        return "ws://" + rpc_url[len("http://"):]
    return rpc_url


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    wss_url: str
    program_id: Pubkey

    @staticmethod
    def from_env(
        rpc_url_override: str | None = None,
        program_id_override: str | None = None,
    ) -> "Settings":
        load_dotenv()

        # If user provides --rpc-url, trust it.
        if rpc_url_override:
            rpc_url = rpc_url_override
        else:
            rpc_url = os.getenv("RPC_URL", "").strip()

        # Priority fee estimates need a Helius endpoint, so build one from the key.
        if not rpc_url:
            helius_key = os.getenv("HELIUS_API_KEY", "").strip()
            if not helius_key:
                raise RuntimeError(
                    "Missing HELIUS_API_KEY (or RPC_URL). Put it in .env or export it."
                )
            rpc_url = f"https://mainnet.helius-rpc.com/?api-key={helius_key}"

        wss_url = os.getenv("WSS_URL", "").strip() or _default_wss_url(rpc_url)

        program = program_id_override or os.getenv("LOTTERY_PROGRAM_ID", "").strip()
        if not program:
            raise RuntimeError(
                "Missing LOTTERY_PROGRAM_ID. Put it in .env or pass --program-id."
            )
        try:
            program_id = Pubkey.from_string(program)
        except ValueError as e:
            raise RuntimeError(f"LOTTERY_PROGRAM_ID is not a valid address: {e}") from e

        return Settings(rpc_url=rpc_url, wss_url=wss_url, program_id=program_id)
