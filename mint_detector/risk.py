from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from mint_detector.errors import RiskCheckFailure
from mint_detector.gateway.client import GatewayClient

RISK_TOOL = "check_malicious_address"


@dataclass
class RiskChecker:
    gateway: GatewayClient
    fail_open: bool = True

    async def is_malicious(self, address: str) -> bool:
        try:
            return await self._check(address)
        except Exception as e:
            verdict = not self.fail_open
            logger.warning("Malicious address check failed for {}: {} (assuming {})", address, e, verdict)
            return verdict

    async def _check(self, address: str) -> bool:
        payload = await self.gateway.call_tool(RISK_TOOL, {"address": address})
        if payload is None:
            raise RiskCheckFailure("empty response")
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict):
            raise RiskCheckFailure(f"unexpected payload {payload!r}")
        return bool(payload.get("isMalicious"))
