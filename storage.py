# storage.py — persistence helpers for the single JSON state document + backup import/export

from __future__ import annotations

import json
import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union

from models import AppState, initial_state

LOAD_MISSING = "missing"
LOAD_OK = "ok"
LOAD_CORRUPTED = "corrupted"

BACKUP_PREFIX = "bankroll_backup_"


class ImportValidationError(ValueError):
    pass


@dataclass
class LoadResult:
    state: AppState
    status: str  # missing | ok | corrupted
    error: Optional[str] = None
    quarantined_path: Optional[str] = None

    @property
    def corrupted(self) -> bool:
        return self.status == LOAD_CORRUPTED


def _now_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")


def serialize_state(state: AppState) -> str:
    """Pretty JSON; the saved file and the exported backup are byte-identical."""
    return json.dumps(state.to_dict(), indent=2, ensure_ascii=False)


def _validate_shape(parsed: Any) -> Dict[str, Any]:
    if not isinstance(parsed, dict):
        raise ImportValidationError("Backup must be a JSON object.")
    if not isinstance(parsed.get("config"), dict):
        raise ImportValidationError("Backup is missing the 'config' object.")
    if not isinstance(parsed.get("sessions"), list):
        raise ImportValidationError("Backup is missing the 'sessions' list.")
    return parsed


def parse_state(raw: Union[str, bytes]) -> AppState:
    """
    Parse + validate a state document. Raises ImportValidationError for bad JSON
    or a document without a `config` object and a `sessions` list.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ImportValidationError(f"Backup is not UTF-8 text: {e}") from e
    if not raw or not raw.strip():
        raise ImportValidationError("Backup file is empty.")
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ImportValidationError(f"Backup is not valid JSON: {e.msg} (line {e.lineno})") from e
    except RecursionError as e:
        raise ImportValidationError("Backup is nested too deeply to read.") from e
    data = _validate_shape(parsed)
    try:
        return AppState.from_dict(data)
    except (TypeError, ArithmeticError, ValueError, AttributeError) as e:
        raise ImportValidationError(f"Backup content is malformed: {e}") from e


# ---------- STATE FILE ----------

def _quarantine(path: str) -> Optional[str]:
    target = f"{path}.corrupt-{_now_stamp()}"
    try:
        shutil.copy2(path, target)
        return target
    except OSError as e:
        print(f"[storage._quarantine] could not copy {path!r}: {e!r}")
        return None


def load_state(path: str) -> LoadResult:
    """
    Read the state document. Never raises:
      - no file            -> initial state, status=missing
      - unreadable/garbled -> initial state, status=corrupted (file copied aside)
    """
    if not path or not os.path.exists(path):
        return LoadResult(state=initial_state(), status=LOAD_MISSING)

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
        state = parse_state(raw)
    except (OSError, ImportValidationError) as e:
        print(f"[storage.load_state] falling back to defaults for {path!r}: {e!r}")
        return LoadResult(
            state=initial_state(),
            status=LOAD_CORRUPTED,
            error=str(e),
            quarantined_path=_quarantine(path),
        )

    return LoadResult(state=state, status=LOAD_OK)


def save_state(state: AppState, path: str) -> bool:
    """
    Write the whole document (temp file + atomic replace). Returns False on
    failure; the in-memory state is left as-is.
    """
    if not path:
        return False
    payload = serialize_state(state)
    folder = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        os.makedirs(folder, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".state-", suffix=".json", dir=folder)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_path, path)
        return True
    except OSError as e:
        print(f"[storage.save_state] error while saving {path!r}: {e!r}")
        if tmp_path and os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                pass
        return False


# ---------- BACKUP (export / import) ----------

def backup_filename(today: Optional[date] = None) -> str:
    d = today or datetime.now(timezone.utc).date()
    return f"{BACKUP_PREFIX}{d.isoformat()}.json"


def export_state(state: AppState, today: Optional[date] = None) -> Tuple[str, bytes]:
    return backup_filename(today), serialize_state(state).encode("utf-8")


def import_state(raw: Union[str, bytes]) -> AppState:
    return parse_state(raw)
