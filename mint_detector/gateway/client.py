from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from loguru import logger

from mint_detector.config import AppSettings
from mint_detector.errors import GatewayError, MalformedResponseError
from mint_detector.gateway.rate_limiter import CallGate

RPC_TOOL = "gateway_execute_rpc"


def unwrap_envelope(response: Any) -> Any:
    """Return the inner payload of a gateway response.

    ``content[0].text`` holds ``{"success", "data", "error"}`` where ``data``
    is itself JSON-encoded. Raises ``GatewayError`` when the gateway reports
    failure and ``MalformedResponseError`` when the shape cannot be read.
    """
    content = response.get("content") if isinstance(response, dict) else None
    if not isinstance(content, list) or not content or not isinstance(content[0], dict):
        raise MalformedResponseError(f"response has no content: {response!r}")
    text = content[0].get("text")
    if not text:
        raise MalformedResponseError(f"response content has no text: {response!r}")
    try:
        outer = json.loads(text)
    except ValueError as e:
        raise MalformedResponseError(f"outer envelope is not JSON: {text[:200]!r}") from e
    if not isinstance(outer, dict):
        raise MalformedResponseError(f"outer envelope is not an object: {text[:200]!r}")
    if not outer.get("success"):
        raise GatewayError(str(outer.get("error") or response.get("error") or "Unknown error"))
    data = outer.get("data")
    if not isinstance(data, str):
        # Some tools already return decoded data
        return data
    try:
        return json.loads(data)
    except ValueError as e:
        raise MalformedResponseError(f"inner payload is not JSON: {data[:200]!r}") from e


def rpc_result(payload: Any) -> Any:
    # Hosted gateway wraps the JSON-RPC body as {"data": {"result": ...}}
    if not isinstance(payload, dict):
        return None
    inner = payload.get("data")
    if isinstance(inner, dict) and "result" in inner:
        return inner["result"]
    return payload.get("result")


@dataclass
class GatewayClient:
    transport: Any
    chain: str
    gate: CallGate

    @classmethod
    def create(cls, settings: AppSettings, transport) -> GatewayClient:
        return cls(
            transport=transport,
            chain=settings.chain,
            gate=CallGate(settings.rpc_min_interval_sec),
        )

    async def call_tool(self, name: str, arguments: dict) -> Any:
        async with self.gate:
            response = await self.transport.call_tool(name, arguments)
        try:
            return unwrap_envelope(response)
        except MalformedResponseError as e:
            logger.error("Malformed gateway response for {} {}: {}", name, arguments, e)
            return None

    async def call(self, method: str, params: list) -> Any:
        logger.debug("RPC {} {}", method, params)
        try:
            return await self.call_tool(
                RPC_TOOL, {"chain": self.chain, "method": method, "params": params}
            )
        except GatewayError as e:
            logger.warning("Gateway error for {} {}: {}", method, params, e)
            raise
