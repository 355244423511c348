from __future__ import annotations

import asyncio

import yaml
from loguru import logger

from mint_detector.chains.solana_detector import TokenDetector
from mint_detector.config import AppSettings
from mint_detector.errors import StartupError, TransportError
from mint_detector.gateway.client import GatewayClient
from mint_detector.gateway.transport import McpTransport


async def main_loop(detector: TokenDetector, max_cycles: int | None = None, sleep=asyncio.sleep) -> int:
    """Poll, log, sleep, repeat. Returns the number of cycles run."""
    cycles = 0
    while max_cycles is None or cycles < max_cycles:
        try:
            tokens = await detector.poll_once()
            for token in tokens:
                logger.info("Token data: {}", token.to_dict())
        except Exception as e:
            logger.exception("Polling error: {}", e)
        cycles += 1
        await sleep(detector.scheduler.interval_seconds)
    return cycles


async def run(settings: AppSettings, transport=None, max_cycles: int | None = None) -> int:
    transport = transport or McpTransport.create(settings)
    try:
        await transport.connect()
    except TransportError as e:
        raise StartupError(str(e)) from e
    try:
        gateway = GatewayClient.create(settings, transport)
        try:
            detector = TokenDetector.create(settings, gateway)
        except (ValueError, TypeError, OSError, yaml.YAMLError) as e:
            raise StartupError(f"failed to build detector: {e}") from e
        logger.info(
            "Watching program {} on {} (poll {}ms)",
            settings.program_id,
            settings.chain,
            settings.poll_interval_ms,
        )
        return await main_loop(detector, max_cycles=max_cycles)
    finally:
        await transport.close()
