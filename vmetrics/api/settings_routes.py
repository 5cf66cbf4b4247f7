"""VMetrics — Settings API Routes.

Column/metric selection and the RedTrack API key. Every mutation is written
back to the preference store before responding.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from vmetrics.api.dependencies import get_store
from vmetrics.config import settings
from vmetrics.connectors.redtrack.client import RedTrackAPIError, RedTrackClient
from vmetrics.connectors.redtrack.endpoints import RedTrackEndpoints
from vmetrics.core.logging import get_logger
from vmetrics.core.metric_registry import CATALOGS
from vmetrics.selection.state import SelectionState
from vmetrics.selection.store import SelectionStore

logger = get_logger("api.settings")

router = APIRouter(prefix="/settings", tags=["Settings"])


# ── Request Models ──


class OrderRequest(BaseModel):
    """Body for PUT /settings/{kind}/order."""

    order: List[str]


class MoveRequest(BaseModel):
    """Body for POST /settings/{kind}/move."""

    from_index: int
    to_index: int


class ApiKeyRequest(BaseModel):
    """Body for PUT /settings/api-key."""

    api_key: str


def mask_key(key: Optional[str]) -> Optional[str]:
    if not key:
        return None
    if len(key) <= 4:
        return "*" * len(key)
    return "*" * (len(key) - 4) + key[-4:]


# ── API key ──
# Declared before /{kind} so "api-key" is not taken for a selection kind.


@router.get("/api-key")
async def get_api_key(store: SelectionStore = Depends(get_store)):
    """Whether a key is configured, and where it comes from."""
    saved = store.get_api_key()
    key = saved or settings.redtrack_api_key
    return {
        "configured": bool(key),
        "source": "saved" if saved else ("environment" if key else None),
        "masked_key": mask_key(key),
    }


@router.put("/api-key")
async def save_api_key(
    request: ApiKeyRequest,
    store: SelectionStore = Depends(get_store),
):
    """Validate a key against RedTrack and save it."""
    key = request.api_key.strip()
    if not key:
        raise HTTPException(status_code=400, detail="API key must not be empty")

    client = RedTrackClient(api_key=key)
    try:
        valid = await RedTrackEndpoints(client).validate_api_key()
    except RedTrackAPIError as e:
        logger.error(f"API key validation failed: {e}", extra={"status_code": e.status_code})
        raise HTTPException(
            status_code=502, detail=f"Could not reach RedTrack to validate key: {str(e)}"
        )
    finally:
        await client.close()

    if not valid:
        raise HTTPException(status_code=400, detail="Invalid RedTrack API key")

    store.set_api_key(key)
    logger.info("RedTrack API key saved")
    return {"status": "success", "configured": True, "masked_key": mask_key(key)}


# ── Selection ──


def _load(store: SelectionStore, kind: str) -> SelectionState:
    if kind not in CATALOGS:
        raise HTTPException(status_code=404, detail=f"Unknown settings kind '{kind}'")
    return store.load(kind)


def _check_id(state: SelectionState, kind: str, item_id: str) -> None:
    if item_id not in state.catalog:
        raise HTTPException(status_code=404, detail=f"Unknown {kind} id '{item_id}'")


def _view(kind: str, state: SelectionState) -> dict:
    return {
        "kind": kind,
        **state.to_dict(),
        "visible": [state.catalog[i].to_dict() for i in state.visible_ids()],
        "available": [
            {**state.catalog[i].to_dict(), "selected": state.is_selected(i)}
            for i in state.order
        ],
    }


@router.get("/{kind}")
async def get_selection(kind: str, store: SelectionStore = Depends(get_store)):
    """Current selection and order for "metrics" or "columns"."""
    return _view(kind, _load(store, kind))


@router.post("/{kind}/select/{item_id}")
async def select_item(kind: str, item_id: str, store: SelectionStore = Depends(get_store)):
    state = _load(store, kind)
    _check_id(state, kind, item_id)
    state.select(item_id)
    store.save(kind, state)
    return _view(kind, state)


@router.post("/{kind}/deselect/{item_id}")
async def deselect_item(kind: str, item_id: str, store: SelectionStore = Depends(get_store)):
    state = _load(store, kind)
    _check_id(state, kind, item_id)
    state.deselect(item_id)
    store.save(kind, state)
    return _view(kind, state)


@router.put("/{kind}/order")
async def set_order(
    kind: str,
    request: OrderRequest,
    store: SelectionStore = Depends(get_store),
):
    """Replace the display order. Unknown ids are dropped."""
    state = _load(store, kind)
    state.set_order(request.order)
    store.save(kind, state)
    return _view(kind, state)


@router.post("/{kind}/move")
async def move_item(
    kind: str,
    request: MoveRequest,
    store: SelectionStore = Depends(get_store),
):
    """Drag-and-drop reorder: move the entry at from_index to to_index."""
    state = _load(store, kind)
    state.move(request.from_index, request.to_index)
    store.save(kind, state)
    return _view(kind, state)


@router.post("/{kind}/reset")
async def reset_selection(kind: str, store: SelectionStore = Depends(get_store)):
    state = _load(store, kind)
    state.reset_to_default()
    store.save(kind, state)
    return _view(kind, state)
