from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from typing import Any

from loguru import logger
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.types import Implementation

from mint_detector.config import AppSettings
from mint_detector.errors import TransportError


def normalize_content_item(item: Any) -> dict:
    """Flatten one MCP content block into ``{text, type, ...}``.

    Some gateway builds nest the payload one level deeper
    (``item.content[0].text``); that text is lifted to the top.
    """
    if hasattr(item, "model_dump"):
        data = item.model_dump(by_alias=True, exclude_none=True)
    elif isinstance(item, dict):
        data = dict(item)
    else:
        data = {"text": getattr(item, "text", None), "type": getattr(item, "type", None)}
    text = data.get("text")
    if not text:
        nested = data.get("content")
        if isinstance(nested, list) and nested and isinstance(nested[0], dict):
            text = nested[0].get("text")
    data["text"] = text
    return data


class McpTransport:
    """Stdio session to the blockchain MCP server.

    Owned for the process lifetime: ``connect`` once at startup (or use as
    an async context manager) and ``close`` on shutdown.
    """

    def __init__(
        self,
        command: str,
        args: list[str],
        env: dict[str, str] | None = None,
        client_name: str = "solana_dbc_mint_detector",
        client_version: str = "1.0.0",
        timeout_sec: float | None = 30.0,
    ) -> None:
        self._params = StdioServerParameters(command=command, args=list(args), env=env)
        self._client_info = Implementation(name=client_name, version=client_version)
        self._timeout_sec = timeout_sec
        self._stack: AsyncExitStack | None = None
        self._session: ClientSession | None = None

    @classmethod
    def create(cls, settings: AppSettings) -> McpTransport:
        return cls(
            command=settings.gateway_command,
            args=settings.gateway_args,
            env={"TATUM_API_KEY": settings.tatum_api_key},
            client_name=settings.client_name,
            client_version=settings.client_version,
            timeout_sec=settings.rpc_timeout_sec,
        )

    async def connect(self) -> None:
        stack = AsyncExitStack()
        try:
            read, write = await stack.enter_async_context(stdio_client(self._params))
            session = await stack.enter_async_context(
                ClientSession(read, write, client_info=self._client_info)
            )
            await asyncio.wait_for(session.initialize(), timeout=self._timeout_sec)
        except Exception as e:
            await stack.aclose()
            raise TransportError(f"failed to start gateway {self._params.command!r}: {e}") from e
        self._stack = stack
        self._session = session
        logger.info("Connected to gateway: {} {}", self._params.command, " ".join(self._params.args))

    async def close(self) -> None:
        if self._stack is not None:
            await self._stack.aclose()
        self._stack = None
        self._session = None

    async def __aenter__(self) -> McpTransport:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def call_tool(self, name: str, arguments: dict) -> dict:
        if self._session is None:
            raise TransportError("gateway session is not connected")
        try:
            result = await asyncio.wait_for(
                self._session.call_tool(name, arguments), timeout=self._timeout_sec
            )
        except asyncio.TimeoutError as e:
            raise TransportError(f"{name} timed out after {self._timeout_sec}s") from e
        except Exception as e:
            raise TransportError(f"{name} failed: {e}") from e
        content = [normalize_content_item(c) for c in (result.content or [])]
        return {
            "content": content,
            "error": content[0].get("text") if result.isError and content else None,
            "_meta": getattr(result, "meta", None),
        }
