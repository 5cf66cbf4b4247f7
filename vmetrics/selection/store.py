"""VMetrics — Selection Store.

Load/save boundary between SelectionState and the user_preferences table.
State is loaded once per request and written back on every mutation.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

from sqlmodel import Session, select

from vmetrics.config import settings
from vmetrics.core.logging import get_logger
from vmetrics.models.preference_models import UserPreference
from vmetrics.selection.state import SelectionState

logger = get_logger("selection.store")

STORAGE_KEYS = {
    "metrics": settings.metrics_storage_key,
    "columns": settings.columns_storage_key,
}


class SelectionStore:
    """Persists selection state and the upstream API key."""

    def __init__(self, session: Session):
        self.session = session

    # ── Raw key-value access ──

    def _get(self, key: str) -> Optional[UserPreference]:
        return self.session.exec(
            select(UserPreference).where(UserPreference.key == key)
        ).first()

    def read(self, key: str) -> Any:
        """Decoded value under key, or None if absent or unreadable."""
        pref = self._get(key)
        if pref is None:
            return None
        try:
            return json.loads(pref.value_json)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unreadable preference '{key}'")
            return None

    def write(self, key: str, value: Any) -> None:
        pref = self._get(key)
        if pref is None:
            pref = UserPreference(key=key, value_json=json.dumps(value))
        else:
            pref.value_json = json.dumps(value)
            pref.updated_at = datetime.now(timezone.utc)
        self.session.add(pref)
        self.session.commit()

    # ── Selection state ──

    def load(self, kind: str) -> SelectionState:
        """Persisted state for "metrics" or "columns", defaults if none saved."""
        state = SelectionState.for_kind(kind)
        data = self.read(STORAGE_KEYS[kind])
        if isinstance(data, dict):
            state.load_dict(data)
        elif data is not None:
            logger.warning(f"Discarding malformed {kind} selection; using defaults")
        return state

    def save(self, kind: str, state: SelectionState) -> None:
        self.write(STORAGE_KEYS[kind], state.to_dict())

    # ── API key ──

    def get_api_key(self) -> Optional[str]:
        value = self.read(settings.api_key_storage_key)
        return value if isinstance(value, str) and value else None

    def set_api_key(self, api_key: str) -> None:
        self.write(settings.api_key_storage_key, api_key)
