"""Persist the current batch snapshot and processing history as JSON."""

import json
from pathlib import Path
from typing import Optional

from .models import ProcessingResult, ProcessingState

MAX_HISTORY = 100


class StateStore:
    """JSON files under a state directory.

    state.json holds the latest batch snapshot; history.json holds the most
    recent results, newest first.
    """

    def __init__(self, state_dir: Path):
        self.state_dir = Path(state_dir)

    @property
    def state_path(self) -> Path:
        return self.state_dir / "state.json"

    @property
    def history_path(self) -> Path:
        return self.state_dir / "history.json"

    def _write(self, path: Path, data) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(path)

    def _read(self, path: Path):
        if not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def load_state(self) -> Optional[ProcessingState]:
        data = self._read(self.state_path)
        return ProcessingState.from_dict(data) if data else None

    def save_state(self, state: ProcessingState) -> None:
        self._write(self.state_path, state.to_dict())

    def clear_state(self) -> None:
        self.state_path.unlink(missing_ok=True)

    def load_history(self) -> list[ProcessingResult]:
        data = self._read(self.history_path) or []
        return [ProcessingResult.from_dict(item) for item in data]

    def append_history(self, results: list[ProcessingResult]) -> None:
        """Prepend a batch's results, keeping the newest MAX_HISTORY."""
        history = list(reversed(results)) + self.load_history()
        self._write(
            self.history_path, [r.to_dict() for r in history[:MAX_HISTORY]]
        )

    def clear_history(self) -> None:
        self.history_path.unlink(missing_ok=True)
