import importlib.util
import json
from pathlib import Path


def load_module(path: Path):
    spec = importlib.util.spec_from_file_location("inspect_state", str(path))
    assert spec and spec.loader, "Failed to load module spec"
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)  # type: ignore[assignment]
    return mod


def _write_state(path: Path):
    path.write_text(
        json.dumps({"lastSignature": "s3", "processedSignatures": ["s1", "s2", "s3"]}, indent=2)
    )


def test_inspect_state_prints_summary(tmp_path, capsys):
    mod = load_module(Path("scripts/inspect_state.py"))
    state = tmp_path / "state.json"
    _write_state(state)

    assert mod.main(["--state-file", str(state), "--last", "2"]) == 0
    out = capsys.readouterr().out
    assert "last signature: s3" in out
    assert "processed signatures: 3" in out
    assert "  s2" in out and "  s3" in out
    assert "  s1" not in out


def test_inspect_state_forget_and_reset(tmp_path):
    mod = load_module(Path("scripts/inspect_state.py"))
    state = tmp_path / "state.json"
    _write_state(state)

    assert mod.main(["--state-file", str(state), "--forget", "s2"]) == 0
    assert json.loads(state.read_text())["processedSignatures"] == ["s1", "s3"]

    assert mod.main(["--state-file", str(state), "--reset"]) == 0
    assert json.loads(state.read_text()) == {"lastSignature": None, "processedSignatures": []}
