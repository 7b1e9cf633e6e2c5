"""
Local persisted quota record.

A single JSON file holding {callsMade, lastResetTime, userApiKey?, hasCustomKey}.
Read once at startup, rewritten after every quota mutation.
"""

import asyncio
import json
import logging
from pathlib import Path

from mealmate.models import QuotaState

logger = logging.getLogger(__name__)


class QuotaStateFile:
    """Reads and writes the quota record on local disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    async def load(self) -> QuotaState | None:
        """Return the stored state, or None if missing or unreadable."""
        if not self.path.exists():
            return None
        try:
            raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
            return QuotaState.from_record(json.loads(raw))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable quota record at {self.path}: {e}")
            return None

    async def save(self, state: QuotaState) -> None:
        payload = json.dumps(state.to_record())
        await asyncio.to_thread(self._write, payload)

    def _write(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(self.path)
