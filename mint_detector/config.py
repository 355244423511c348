from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from solders.pubkey import Pubkey

DEFAULT_PROGRAM_ID = "dbcij3LWUppWqq96dh6gJWwBifmcGfLSB5D4DuSMaqN"

# Addresses that show up in every DBC launch but are never the new token,
# its bonding curve, or its creator.
DEFAULT_EXCLUDED_ADDRESSES: frozenset[str] = frozenset(
    {
        "So11111111111111111111111111111111111111112",  # wrapped SOL mint
        "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",  # SPL token program
        "11111111111111111111111111111111",  # system program
        "96gYZGLnJYVFmbjzopPSU6QiEV5fGqZNyN9nmNhvrZU5",
        "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",  # associated token program
        "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s",  # metaplex metadata
        "42oMq7QR47GpFFH35GGaCbV7wsgnsXTy2KE7G3MxXEUH",
        "EhqBw92PqdPL5gJz428Qmfr76wUjRi1AWcXeg9yGBre",
        "uw1cVbU6E8J5qmswXwgo4K62eC7kRkGTfGaMVck6w9a",
        "8Ks12pbrD6PXxfty1hVQiE9sc289zgU1zHkvXhrSdriF",
        DEFAULT_PROGRAM_ID,
        "FhVo3mqL8PW5pH5U2CN4XE33DokiyZnUwuGpH2hmHLuM",
        "GWTUtJsEHYqest7WysPf5nNTuj4u15KQvC9BonZEVPSb",
    }
)


def _validate_pubkey(value: str) -> str:
    try:
        Pubkey.from_string(value)
    except Exception as e:  # noqa: BLE001
        raise ValueError(f"not a valid base58 public key: {value!r}") from e
    return value


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env",), extra="ignore")

    # Chain / program
    chain: str = "solana-mainnet"
    program_id: str = DEFAULT_PROGRAM_ID
    commitment: str = "confirmed"
    signature_page_size: int = 10
    bonding_curve_account_space: int = 424  # DBC virtual pool account size

    # Gateway (Tatum blockchain MCP server over stdio)
    tatum_api_key: str = ""
    gateway_command: str = "npx"
    gateway_args: list[str] = ["@tatumio/blockchain-mcp"]
    client_name: str = "solana_dbc_mint_detector"
    client_version: str = "1.0.0"
    rpc_min_interval_sec: float = 1.0
    rpc_timeout_sec: float | None = 30.0

    # Risk check
    risk_check_fail_open: bool = True

    # Polling
    poll_interval_ms: int = 1000
    max_poll_interval_ms: int = 5000
    poll_backoff_step_ms: int = 100

    # State
    state_file: str = "state.json"
    max_processed_signatures: int = 0  # 0 keeps every processed signature

    # Extra exclusions (YAML list of addresses)
    excluded_addresses_config: str | None = None

    # Logging
    log_level: str = "INFO"

    @field_validator("rpc_timeout_sec", "excluded_addresses_config", mode="before")
    @classmethod
    def _empty_str_to_none(cls, v):
        if v == "":
            return None
        return v

    @field_validator("rpc_timeout_sec")
    @classmethod
    def _non_positive_timeout_disables(cls, v):
        if v is not None and v <= 0:
            return None
        return v

    @field_validator("poll_interval_ms", mode="before")
    @classmethod
    def _poll_interval_default(cls, v):
        # Unset, empty, zero or garbage all mean the 1s default
        try:
            v = int(v)
        except (TypeError, ValueError):
            return 1000
        return v if v > 0 else 1000

    @field_validator("program_id")
    @classmethod
    def _program_id_is_pubkey(cls, v: str) -> str:
        return _validate_pubkey(v)

    def excluded_addresses(self) -> frozenset[str]:
        extra = load_excluded_yaml(Path(self.excluded_addresses_config)) if self.excluded_addresses_config else []
        return DEFAULT_EXCLUDED_ADDRESSES | {self.program_id} | frozenset(extra)


def load_excluded_yaml(path: Path) -> list[str]:
    """Read extra excluded addresses from a YAML file.

    Accepts either ``excluded_addresses: [...]`` or a bare list, with each
    entry a plain address string or a mapping carrying an ``address`` key.
    A missing file yields no extra addresses.
    """
    import yaml

    if not path.exists():
        return []
    data = yaml.safe_load(path.read_text()) or []
    items = data.get("excluded_addresses", []) if isinstance(data, dict) else data
    out: list[str] = []
    for item in items or []:
        addr = item.get("address") if isinstance(item, dict) else item
        if not addr:
            continue
        out.append(_validate_pubkey(str(addr).strip()))
    return out
