from __future__ import annotations

import pytest

from mint_detector.errors import StartupError, TransportError
from mint_detector.models import TokenDetectionRecord
from mint_detector.scheduler import AdaptiveScheduler


class _FakeDetector:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.scheduler = AdaptiveScheduler(base_interval_ms=1000)
        self.calls = 0

    async def poll_once(self):
        self.calls += 1
        out = self.outcomes.pop(0)
        if isinstance(out, Exception):
            raise out
        return out


def _record(sig):
    return TokenDetectionRecord(
        mint_address="M",
        bonding_curve_address="",
        sol_balance=0.0,
        minter_address="W",
        minter_sol_balance=0.0,
        process_signature=sig,
        is_malicious=False,
    )


@pytest.mark.asyncio
async def test_main_loop_survives_errors_and_always_sleeps():
    from mint_detector.runner import main_loop

    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    detector = _FakeDetector([[_record("s1")], RuntimeError("escaped"), []])
    cycles = await main_loop(detector, max_cycles=3, sleep=fake_sleep)
    assert cycles == 3
    assert detector.calls == 3
    assert slept == [1.0, 1.0, 1.0]


@pytest.mark.asyncio
async def test_main_loop_sleeps_current_interval():
    from mint_detector.models import PollOutcome
    from mint_detector.runner import main_loop

    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    detector = _FakeDetector([[]])
    detector.scheduler.record(PollOutcome.IDLE)
    await main_loop(detector, max_cycles=1, sleep=fake_sleep)
    assert slept == [1.1]


@pytest.mark.asyncio
async def test_run_startup_failure_is_fatal(tmp_path):
    from mint_detector.config import AppSettings
    from mint_detector.runner import run

    class DeadTransport:
        closed = False

        async def connect(self):
            raise TransportError("npx not found")

        async def close(self):
            self.closed = True

    settings = AppSettings(state_file=str(tmp_path / "state.json"))
    with pytest.raises(StartupError):
        await run(settings, transport=DeadTransport(), max_cycles=1)


@pytest.mark.asyncio
async def test_run_polls_and_closes_transport(tmp_path, fake_transport_cls):
    from mint_detector.config import AppSettings
    from mint_detector.runner import run

    transport = fake_transport_cls({"getSignaturesForAddress": lambda program, opts: []})
    settings = AppSettings(
        state_file=str(tmp_path / "state.json"),
        rpc_min_interval_sec=0.0,
        poll_interval_ms=1,
        max_poll_interval_ms=1,
    )
    cycles = await run(settings, transport=transport, max_cycles=2)
    assert cycles == 2
    assert transport.connected and transport.closed
    assert transport.methods() == ["getSignaturesForAddress", "getSignaturesForAddress"]


def test_service_main_exit_code_on_startup_failure(monkeypatch):
    from services.detector import main as service

    async def failing_run(settings):
        raise StartupError("handshake failed")

    monkeypatch.setattr(service, "run", failing_run)
    assert service.main() == 1


def test_service_main_rejects_bad_config(monkeypatch):
    from services.detector import main as service

    monkeypatch.setenv("PROGRAM_ID", "not-a-pubkey")
    assert service.main() == 1


@pytest.mark.parametrize("body", ["excluded_addresses: [unclosed\n", "excluded_addresses: 5\n"])
@pytest.mark.asyncio
async def test_run_bad_exclusions_file_is_startup_error(tmp_path, fake_transport_cls, body):
    from mint_detector.config import AppSettings
    from mint_detector.runner import run

    path = tmp_path / "excluded.yaml"
    path.write_text(body)
    transport = fake_transport_cls()
    settings = AppSettings(
        state_file=str(tmp_path / "state.json"), excluded_addresses_config=str(path)
    )
    with pytest.raises(StartupError):
        await run(settings, transport=transport, max_cycles=1)
    assert transport.closed
