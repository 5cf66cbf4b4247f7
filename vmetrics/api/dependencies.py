"""VMetrics — Shared Route Dependencies."""

from typing import AsyncIterator, Optional

from fastapi import Depends, HTTPException, Query
from sqlmodel import Session

from vmetrics.config import settings
from vmetrics.connectors.redtrack.client import RedTrackClient
from vmetrics.connectors.redtrack.endpoints import RedTrackEndpoints
from vmetrics.database import get_session
from vmetrics.selection.store import SelectionStore


def get_store(session: Session = Depends(get_session)) -> SelectionStore:
    return SelectionStore(session)


def resolve_api_key(
    api_key: Optional[str] = Query(None, description="RedTrack API key (overrides the saved one)"),
    store: SelectionStore = Depends(get_store),
) -> str:
    """API key from the query, then the saved key, then the environment."""
    key = api_key or store.get_api_key() or settings.redtrack_api_key
    if not key:
        raise HTTPException(status_code=401, detail="RedTrack API key not configured")
    return key


async def get_endpoints(
    api_key: str = Depends(resolve_api_key),
) -> AsyncIterator[RedTrackEndpoints]:
    """Dependency — yields RedTrack endpoints, closing the client afterwards."""
    client = RedTrackClient(api_key=api_key)
    try:
        yield RedTrackEndpoints(client)
    finally:
        await client.close()
