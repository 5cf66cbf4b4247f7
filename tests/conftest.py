"""
Test Suite Configuration
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from vmetrics.api import dependencies, settings_routes
from vmetrics.config import settings
from vmetrics.connectors.redtrack.client import RedTrackClient
from vmetrics.connectors.redtrack.endpoints import RedTrackEndpoints
from vmetrics.database import get_session
from vmetrics.main import app
from vmetrics.models import preference_models  # noqa: F401

Responder = Callable[[httpx.Request], Tuple[int, Any]]


class FakeRedTrack:
    """In-process stand-in for the RedTrack API, served via httpx.MockTransport."""

    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.requests: List[httpx.Request] = []

    def set(self, path: str, body: Any = None, status: int = 200) -> None:
        """Fixed response for a path (e.g. "report", "me/settings")."""
        self.routes[path] = (status, body)

    def set_handler(self, path: str, responder: Responder) -> None:
        """Per-request response for a path."""
        self.routes[path] = responder

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path.strip("/"))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        status, body = route(request) if callable(route) else route
        return httpx.Response(status, json=body)

    def client(self, api_key: Optional[str] = None, **kwargs) -> RedTrackClient:
        kwargs.setdefault("retry_base_delay", 0)
        return RedTrackClient(
            api_key=api_key, transport=httpx.MockTransport(self.handler), **kwargs
        )

    def endpoints(self, api_key: str = "test-key") -> RedTrackEndpoints:
        return RedTrackEndpoints(self.client(api_key=api_key))

    def params_for(self, path: str) -> List[Dict[str, str]]:
        return [
            dict(r.url.params) for r in self.requests if r.url.path.strip("/") == path
        ]


@pytest.fixture
def engine():
    """In-memory SQLite shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def fake_redtrack() -> FakeRedTrack:
    return FakeRedTrack()


@pytest.fixture
def no_env_api_key(monkeypatch):
    monkeypatch.setattr(settings, "redtrack_api_key", None)


@pytest.fixture
def api(engine, fake_redtrack, monkeypatch, no_env_api_key):
    """TestClient wired to the in-memory DB and the fake RedTrack API."""

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    monkeypatch.setattr(dependencies, "RedTrackClient", fake_redtrack.client)
    monkeypatch.setattr(settings_routes, "RedTrackClient", fake_redtrack.client)
    yield TestClient(app)
    app.dependency_overrides.clear()
