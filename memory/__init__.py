"""
Local persistence for the habit tracker: the JSON habit store, the audit log and the node trace.
"""
import os
import json
import logging
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

import habit_config
from habit_errors import StoreParseError, StoreReadError, StoreWriteError
from habit_models import Snapshot

logger = logging.getLogger(__name__)


# Node-level logging utility
def log_node(step, state):
    if not habit_config.TRACE_LOG_PATH:
        return
    entry = {
        'step': step,
        'command': getattr(state, 'command', None),
        'params': getattr(state, 'params', None),
        'decayed': getattr(state, 'decayed', None),
        'result': getattr(state, 'result', None),
        'error': getattr(state, 'error', None),
        'exit_code': getattr(state, 'exit_code', None),
    }
    AuditLog(habit_config.TRACE_LOG_PATH).append(entry)


class HabitStore:
    """Whole-file JSON store for a Snapshot. Every save rewrites the file; there is no locking."""

    def __init__(self, file_path: str):
        self.file_path = Path(file_path)

    def exists(self) -> bool:
        return self.file_path.exists()

    def load(self) -> Snapshot:
        try:
            content = self.file_path.read_text(encoding='utf-8')
        except OSError as e:
            raise StoreReadError(f"Cannot read habit store {self.file_path}: {e}") from e
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StoreParseError(f"Habit store {self.file_path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StoreParseError(f"Habit store {self.file_path} must contain a JSON object")
        try:
            snapshot = Snapshot.model_validate(data)
        except ValidationError as e:
            raise StoreParseError(f"Habit store {self.file_path} is malformed: {e}") from e
        logger.debug("Loaded %d habit(s) from %s", len(snapshot.habits), self.file_path)
        return snapshot

    def save(self, snapshot: Snapshot, now: Optional[datetime] = None):
        snapshot.meta.last_updated = now or datetime.now(timezone.utc)
        payload = json.dumps(snapshot.to_json_dict(), indent=2, ensure_ascii=False) + '\n'
        directory = self.file_path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            # write a sibling file first so readers never see a half-written store
            fd, tmp_path = tempfile.mkstemp(dir=str(directory), prefix=f".{self.file_path.name}.", suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(payload)
                os.replace(tmp_path, self.file_path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StoreWriteError(f"Cannot write habit store {self.file_path}: {e}") from e
        logger.debug("Saved %d habit(s) to %s", len(snapshot.habits), self.file_path)

    def initialize(self, now: Optional[datetime] = None) -> bool:
        """Create an empty store if none exists. Returns True when a file was written."""
        if self.exists():
            return False
        self.save(Snapshot(), now=now)
        return True


class AuditLog:
    def __init__(self, log_path: str):
        self.log_path = log_path

    def append(self, entry: Dict[str, Any]):
        # a lost log line never fails the command it describes
        try:
            Path(self.log_path).parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, 'a', encoding='utf-8') as f:
                f.write(json.dumps(entry, default=str) + '\n')
        except OSError as e:
            logger.warning("Cannot write log entry to %s: %s", self.log_path, e)

    def read_all(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.log_path):
            return []
        with open(self.log_path, 'r', encoding='utf-8') as f:
            return [json.loads(line) for line in f if line.strip()]
