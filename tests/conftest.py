from __future__ import annotations

import json

import pytest


def envelope(data, success=True, error=None):
    outer = {"success": success, "data": json.dumps(data) if success else None, "error": error}
    return {"content": [{"type": "text", "text": json.dumps(outer)}]}


def make_tx(logs, mints, keys):
    return {
        "slot": 1,
        "meta": {
            "logMessages": logs,
            "postTokenBalances": [{"mint": m, "uiTokenAmount": {"amount": "1"}} for m in mints],
        },
        "transaction": {"message": {"accountKeys": keys}},
    }


class FakeTransport:
    """Answers gateway tool calls from per-method handlers.

    RPC handlers get the call params and return the bare RPC result, which
    is wrapped the way the hosted gateway does. The risk handler gets the
    address and returns the inner payload. A handler may raise, or return a
    ready-made envelope (a dict with ``content``).
    """

    def __init__(self, handlers=None):
        self.handlers = handlers or {}
        self.calls = []
        self.connected = False
        self.closed = False

    async def connect(self):
        self.connected = True

    async def close(self):
        self.closed = True

    async def call_tool(self, name, arguments):
        if name == "gateway_execute_rpc":
            key = arguments["method"]
            args = arguments["params"]
        else:
            key = name
            args = [arguments["address"]]
        self.calls.append((key, arguments))
        handler = self.handlers.get(key)
        out = handler(*args) if handler else None
        if isinstance(out, dict) and "content" in out:
            return out
        if name == "gateway_execute_rpc":
            return envelope({"data": {"result": out}})
        return envelope(out)

    def methods(self):
        return [k for k, _ in self.calls]


@pytest.fixture
def detector_factory(tmp_path):
    from mint_detector.chains.solana_detector import TokenDetector
    from mint_detector.config import AppSettings
    from mint_detector.gateway.client import GatewayClient

    def build(handlers, **overrides):
        opts = {"state_file": str(tmp_path / "state.json"), "rpc_min_interval_sec": 0.0}
        opts.update(overrides)
        settings = AppSettings(**opts)
        transport = FakeTransport(handlers)
        detector = TokenDetector.create(settings, GatewayClient.create(settings, transport))
        return detector, transport

    return build


@pytest.fixture
def fake_transport_cls():
    return FakeTransport


@pytest.fixture
def make_envelope():
    return envelope


@pytest.fixture
def tx_builder():
    return make_tx
