"""Tests for persisting selection state and the API key."""

from sqlmodel import select

from vmetrics.config import settings
from vmetrics.core.metric_registry import DEFAULT_COLUMNS, DEFAULT_METRICS
from vmetrics.models.preference_models import UserPreference
from vmetrics.selection.store import STORAGE_KEYS, SelectionStore


class TestSelectionStore:
    """Tests for SelectionStore against an in-memory database."""

    def test_defaults_when_nothing_saved(self, session):
        store = SelectionStore(session)
        assert store.load("metrics").selected_ids == DEFAULT_METRICS
        assert store.load("columns").selected_ids == DEFAULT_COLUMNS

    def test_save_and_load(self, session):
        store = SelectionStore(session)
        state = store.load("columns")
        state.set_order(["name", "clicks", "roi"])
        state.select("roi")
        store.save("columns", state)

        restored = SelectionStore(session).load("columns")
        assert restored.order == ["name", "clicks", "roi"]
        assert restored.visible_ids() == ["name", "clicks", "roi"]

    def test_kinds_are_stored_separately(self, session):
        store = SelectionStore(session)
        metrics = store.load("metrics")
        metrics.deselect("clicks")
        store.save("metrics", metrics)
        assert "clicks" in store.load("columns").selected_ids
        assert "clicks" not in store.load("metrics").selected_ids

    def test_save_overwrites_single_row(self, session):
        store = SelectionStore(session)
        for item in ("cpc", "epc"):
            state = store.load("metrics")
            state.select(item)
            store.save("metrics", state)
        rows = session.exec(
            select(UserPreference).where(UserPreference.key == STORAGE_KEYS["metrics"])
        ).all()
        assert len(rows) == 1
        assert store.load("metrics").selected_ids[-2:] == ["cpc", "epc"]

    def test_unreadable_json_falls_back_to_defaults(self, session):
        session.add(UserPreference(key=STORAGE_KEYS["metrics"], value_json="{not json"))
        session.commit()
        assert SelectionStore(session).load("metrics").selected_ids == DEFAULT_METRICS

    def test_wrong_shape_falls_back_to_defaults(self, session):
        session.add(UserPreference(key=STORAGE_KEYS["columns"], value_json="[1, 2, 3]"))
        session.commit()
        assert SelectionStore(session).load("columns").selected_ids == DEFAULT_COLUMNS

    def test_saved_ids_unknown_to_catalog_are_dropped(self, session):
        store = SelectionStore(session)
        store.write(
            STORAGE_KEYS["metrics"],
            {"order": ["clicks", "old_metric"], "selected_ids": ["old_metric", "clicks"]},
        )
        state = store.load("metrics")
        assert state.order == ["clicks"]
        assert state.selected_ids == ["clicks"]

    def test_storage_keys(self):
        assert STORAGE_KEYS == {"metrics": "metrics-storage", "columns": "columns-storage"}


class TestApiKeyStorage:
    def test_no_key(self, session):
        assert SelectionStore(session).get_api_key() is None

    def test_set_and_get(self, session):
        store = SelectionStore(session)
        store.set_api_key("rt-123")
        store.set_api_key("rt-456")
        assert SelectionStore(session).get_api_key() == "rt-456"
        assert store.read(settings.api_key_storage_key) == "rt-456"
