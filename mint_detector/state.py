from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger


@dataclass
class DetectionCursor:
    last_signature: str | None = None
    # dict keys as an insertion-ordered set, oldest first
    processed_signatures: dict[str, None] = field(default_factory=dict)

    def to_json(self) -> dict:
        return {
            "lastSignature": self.last_signature,
            "processedSignatures": list(self.processed_signatures),
        }

    @classmethod
    def from_json(cls, data) -> DetectionCursor:
        if not isinstance(data, dict):
            raise ValueError(f"state must be a JSON object, got {type(data).__name__}")
        last = data.get("lastSignature") or None
        if last is not None and not isinstance(last, str):
            raise ValueError("lastSignature must be a string or null")
        processed = data.get("processedSignatures") or []
        if not isinstance(processed, list) or not all(isinstance(s, str) for s in processed):
            raise ValueError("processedSignatures must be a list of strings")
        return cls(last_signature=last, processed_signatures=dict.fromkeys(processed))


class StateStore:
    """Cursor and dedup set persisted as a small JSON file."""

    def __init__(self, path: Path | str, max_processed: int = 0) -> None:
        self.path = Path(path)
        self.max_processed = max(0, int(max_processed or 0))
        self.cursor = DetectionCursor()

    def load(self) -> DetectionCursor:
        if not self.path.exists():
            self.cursor = DetectionCursor()
            return self.cursor
        try:
            self.cursor = DetectionCursor.from_json(json.loads(self.path.read_text()))
            self._trim()
            logger.info(
                "Loaded state: lastSignature={} processed={}",
                self.cursor.last_signature,
                len(self.cursor.processed_signatures),
            )
        except Exception as e:
            logger.error("Failed to load state from {}: {}", self.path, e)
            self.cursor = DetectionCursor()
        return self.cursor

    def save(self) -> bool:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(self.cursor.to_json(), indent=2))
            os.replace(tmp, self.path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            logger.error("Failed to save state to {}: {}", self.path, e)
            return False
        logger.info("Saved state: lastSignature={}", self.cursor.last_signature)
        return True

    @property
    def last_signature(self) -> str | None:
        return self.cursor.last_signature

    def has(self, signature: str) -> bool:
        return signature in self.cursor.processed_signatures

    def mark_processed(self, signature: str) -> None:
        self.cursor.processed_signatures[signature] = None
        self._trim()

    def forget(self, signature: str) -> bool:
        if signature not in self.cursor.processed_signatures:
            return False
        del self.cursor.processed_signatures[signature]
        return True

    def advance(self, signature: str) -> None:
        self.cursor.last_signature = signature

    def _trim(self) -> None:
        if not self.max_processed:
            return
        processed = self.cursor.processed_signatures
        while len(processed) > self.max_processed:
            del processed[next(iter(processed))]
