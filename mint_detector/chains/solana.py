from __future__ import annotations

from loguru import logger
from solana.constants import LAMPORTS_PER_SOL

# Any one of these in a transaction's logs marks a DBC token launch
TOKEN_CREATION_LOG_MARKERS = (
    "Instruction: InitializeVirtualPoolWithSplToken",
    "create token metadata",
    "Instruction: MintTo",
)

_UNIT_DIVISORS = {
    "solana-mainnet": LAMPORTS_PER_SOL,
    "solana-devnet": LAMPORTS_PER_SOL,
}


def unit_divisor(chain: str) -> int:
    divisor = _UNIT_DIVISORS.get(chain)
    if divisor is None:
        logger.warning("Unknown chain {}; defaulting unit divisor to 1", chain)
        return 1
    return divisor


def to_display_units(raw, divisor: int) -> float:
    try:
        return int(raw or 0) / divisor
    except (TypeError, ValueError):
        return 0.0


def log_messages(tx: dict) -> list[str]:
    meta = tx.get("meta") or {}
    return [m for m in (meta.get("logMessages") or []) if isinstance(m, str)]


def is_token_creation(logs: list[str]) -> bool:
    return any(marker in line for line in logs for marker in TOKEN_CREATION_LOG_MARKERS)


def first_new_mint(tx: dict, excluded: frozenset[str]) -> str | None:
    meta = tx.get("meta") or {}
    for bal in meta.get("postTokenBalances") or []:
        if not isinstance(bal, dict):
            continue
        mint = bal.get("mint")
        if mint and mint not in excluded:
            return mint
    return None


def account_keys(tx: dict) -> list[str]:
    message = (tx.get("transaction") or {}).get("message") or {}
    keys: list[str] = []
    for k in message.get("accountKeys") or []:
        # jsonParsed messages carry {"pubkey": ..., "signer": ..., "writable": ...}
        addr = k.get("pubkey") if isinstance(k, dict) else k
        if addr:
            keys.append(addr)
    return keys
