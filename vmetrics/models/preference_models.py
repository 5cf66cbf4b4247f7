"""VMetrics — Persisted Preference & Snapshot Tables."""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


class UserPreference(SQLModel, table=True):
    """Key-value store for user configuration.

    Holds the column/metric selection state and the upstream API key, each
    under a fixed storage key.
    """

    __tablename__ = "user_preferences"

    id: Optional[int] = Field(default=None, primary_key=True)
    key: str = Field(index=True, unique=True, description="Fixed storage key")
    value_json: str = Field(description="JSON-encoded value")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DashboardSnapshot(SQLModel, table=True):
    """Dashboard result produced by the scheduled refresh."""

    __tablename__ = "dashboard_snapshots"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    period: str = Field(index=True)
    date_from: str = Field(default="")
    date_to: str = Field(default="")
    degraded: bool = Field(default=False)
    result_json: str = Field(description="Full DashboardSummary as JSON")
