from __future__ import annotations

import asyncio
from dataclasses import dataclass

from loguru import logger

from mint_detector.chains.solana import (
    account_keys,
    first_new_mint,
    is_token_creation,
    log_messages,
    to_display_units,
    unit_divisor,
)
from mint_detector.config import AppSettings
from mint_detector.errors import GatewayError
from mint_detector.gateway.client import GatewayClient, rpc_result
from mint_detector.models import PollOutcome, TokenDetectionRecord
from mint_detector.risk import RiskChecker
from mint_detector.scheduler import AdaptiveScheduler
from mint_detector.state import StateStore


@dataclass
class TokenDetector:
    settings: AppSettings
    gateway: GatewayClient
    risk: RiskChecker
    state: StateStore
    scheduler: AdaptiveScheduler
    excluded: frozenset[str]

    @classmethod
    def create(cls, settings: AppSettings, gateway: GatewayClient) -> TokenDetector:
        state = StateStore(settings.state_file, max_processed=settings.max_processed_signatures)
        state.load()
        return cls(
            settings=settings,
            gateway=gateway,
            risk=RiskChecker(gateway, fail_open=settings.risk_check_fail_open),
            state=state,
            scheduler=AdaptiveScheduler.create(settings),
            excluded=settings.excluded_addresses(),
        )

    async def poll_once(self) -> list[TokenDetectionRecord]:
        try:
            return await self._poll()
        except Exception as e:
            logger.exception("Error polling {} signatures: {}", self.settings.program_id, e)
            self.scheduler.record(PollOutcome.ERRORED)
            return []

    async def _poll(self) -> list[TokenDetectionRecord]:
        page = await self._fetch_signatures()
        logger.info("Fetched signatures: {}", len(page))
        if not page:
            interval = self.scheduler.record(PollOutcome.IDLE)
            logger.info("No new signatures, poll interval now {}ms", interval)
            return []
        self.scheduler.record(PollOutcome.ACTIVE)

        records: list[TokenDetectionRecord] = []
        # Gateway returns newest first; handle in chain order
        for sig in reversed(page):
            if self.state.has(sig):
                logger.info("Skipping already processed signature {}", sig)
                continue
            try:
                rec = await self._process_signature(sig)
            except (AttributeError, TypeError, KeyError, ValueError) as e:
                logger.warning("Unreadable transaction {}: {!r}", sig, e)
                rec = None
            if rec is not None:
                logger.info("New token detected: {}", rec.to_dict())
                records.append(rec)
            self.state.mark_processed(sig)

        self.state.advance(page[0])
        self.state.save()
        return records

    async def _fetch_signatures(self) -> list[str]:
        opts = {"limit": self.settings.signature_page_size, "commitment": self.settings.commitment}
        if self.state.last_signature:
            opts["before"] = self.state.last_signature
        payload = await self.gateway.call("getSignaturesForAddress", [self.settings.program_id, opts])
        result = rpc_result(payload)
        if not isinstance(result, list):
            if result is not None:
                logger.debug("Unexpected signatures payload: {}", result)
            return []
        return [s["signature"] for s in result if isinstance(s, dict) and s.get("signature")]

    async def _process_signature(self, sig: str) -> TokenDetectionRecord | None:
        tx = await self._fetch_transaction(sig)
        if not tx:
            logger.warning("No transaction data found for {}", sig)
            return None

        if not is_token_creation(log_messages(tx)):
            logger.info("Not a token creation transaction: {}", sig)
            return None

        mint = first_new_mint(tx, self.excluded)
        if not mint:
            logger.warning("No valid mint address found in {}", sig)
            return None

        keys = account_keys(tx)
        if not keys:
            logger.warning("Transaction {} has no account keys", sig)
            return None
        minter = keys[0]
        if minter in self.excluded:
            logger.warning("Minter address {} is excluded ({})", minter, sig)
            return None
        candidates = [k for k in keys if k not in self.excluded]

        divisor = unit_divisor(self.settings.chain)
        bonding_curve = await self._find_bonding_curve(candidates)
        sol_balance = 0.0
        if bonding_curve:
            sol_balance = to_display_units(await self._get_balance(bonding_curve), divisor)
        minter_balance = to_display_units(await self._get_balance(minter), divisor)
        malicious = await self.risk.is_malicious(minter)

        return TokenDetectionRecord(
            mint_address=mint,
            bonding_curve_address=bonding_curve or "",
            sol_balance=sol_balance,
            minter_address=minter,
            minter_sol_balance=minter_balance,
            process_signature=sig,
            is_malicious=malicious,
        )

    async def _fetch_transaction(self, sig: str) -> dict | None:
        try:
            payload = await self.gateway.call(
                "getTransaction",
                [sig, {"commitment": self.settings.commitment, "maxSupportedTransactionVersion": 0}],
            )
        except GatewayError:
            return None
        tx = rpc_result(payload)
        return tx if isinstance(tx, dict) else None

    async def _account_space(self, address: str) -> int | None:
        try:
            payload = await self.gateway.call(
                "getAccountInfo",
                [address, {"encoding": "jsonParsed", "commitment": self.settings.commitment}],
            )
        except Exception as e:  # noqa: BLE001
            logger.debug("getAccountInfo failed for {}: {}", address, e)
            return None
        result = rpc_result(payload)
        value = result.get("value") if isinstance(result, dict) else None
        return value.get("space") if isinstance(value, dict) else None

    async def _find_bonding_curve(self, candidates: list[str]) -> str | None:
        if not candidates:
            return None
        spaces = await asyncio.gather(*(self._account_space(a) for a in candidates))
        for address, space in zip(candidates, spaces):
            if space == self.settings.bonding_curve_account_space:
                return address
        return None

    async def _get_balance(self, address: str):
        try:
            payload = await self.gateway.call("getBalance", [address, {"commitment": self.settings.commitment}])
        except GatewayError:
            return 0
        result = rpc_result(payload)
        if isinstance(result, dict):
            return result.get("value") or 0
        return result or 0
