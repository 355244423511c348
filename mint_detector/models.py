from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PollOutcome(str, Enum):
    IDLE = "idle"  # page came back empty
    ACTIVE = "active"  # at least one signature fetched
    ERRORED = "errored"


@dataclass(frozen=True)
class TokenDetectionRecord:
    mint_address: str
    bonding_curve_address: str
    sol_balance: float
    minter_address: str
    minter_sol_balance: float
    process_signature: str
    is_malicious: bool

    def to_dict(self) -> dict:
        return {
            "mintAddress": self.mint_address,
            "bondingCurveAddress": self.bonding_curve_address,
            "solBalance": self.sol_balance,
            "minterAddress": self.minter_address,
            "minterSolBalance": self.minter_sol_balance,
            "processSignature": self.process_signature,
            "isMalicious": self.is_malicious,
        }
