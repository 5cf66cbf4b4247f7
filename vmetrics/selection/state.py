"""VMetrics — Column/Metric Selection State.

Holds which catalog entries are visible and in which order. The catalog is
fixed; selected_ids ⊆ order ⊆ catalog ids holds after every operation, and
ids unknown to the catalog are ignored everywhere.
"""

from typing import Any, Dict, Iterable, List, Mapping, Sequence

from vmetrics.core.metric_registry import CATALOGS, DEFAULTS, MetricDefinition


def _unique_known(ids: Iterable[Any], known: Iterable[str]) -> List[str]:
    allowed = set(known)
    seen: set[str] = set()
    result: List[str] = []
    for item in ids:
        if isinstance(item, str) and item in allowed and item not in seen:
            seen.add(item)
            result.append(item)
    return result


class SelectionState:
    """Visible subset and display order over a fixed catalog."""

    def __init__(
        self,
        catalog: Mapping[str, MetricDefinition],
        default_selected: Sequence[str],
    ):
        self.catalog = dict(catalog)
        self.default_selected = _unique_known(default_selected, self.catalog)
        self.order: List[str] = []
        self.selected_ids: List[str] = []
        self.reset_to_default()

    @classmethod
    def for_kind(cls, kind: str) -> "SelectionState":
        """Default state for "metrics" or "columns"."""
        return cls(CATALOGS[kind], DEFAULTS[kind])

    # ── Operations ──

    def select(self, item_id: str) -> None:
        if item_id not in self.catalog or item_id in self.selected_ids:
            return
        self.selected_ids.append(item_id)
        if item_id not in self.order:
            self.order.append(item_id)

    def deselect(self, item_id: str) -> None:
        """Hide an id; it stays known in order."""
        if item_id in self.selected_ids:
            self.selected_ids.remove(item_id)

    def set_order(self, ids: Iterable[str]) -> None:
        """Replace the display order. Selected ids missing from it are deselected."""
        self.order = _unique_known(ids, self.catalog)
        self.selected_ids = [i for i in self.selected_ids if i in self.order]

    def set_selected(self, ids: Iterable[str]) -> None:
        """Replace the visible subset, keeping only ids already in order."""
        self.selected_ids = _unique_known(ids, self.order)

    def move(self, from_index: int, to_index: int) -> None:
        if not (0 <= from_index < len(self.order)):
            return
        to_index = max(0, min(to_index, len(self.order) - 1))
        item = self.order.pop(from_index)
        self.order.insert(to_index, item)

    def reset_to_default(self) -> None:
        self.order = list(self.catalog)
        self.selected_ids = list(self.default_selected)

    # ── Queries ──

    def is_selected(self, item_id: str) -> bool:
        return item_id in self.selected_ids

    def visible_ids(self) -> List[str]:
        """Selected ids in display order."""
        selected = set(self.selected_ids)
        return [i for i in self.order if i in selected]

    # ── Persistence shape ──

    def to_dict(self) -> Dict[str, List[str]]:
        return {"selected_ids": list(self.selected_ids), "order": list(self.order)}

    def load_dict(self, data: Mapping[str, Any]) -> None:
        """Apply persisted state, dropping ids the catalog no longer has."""
        order = data.get("order")
        selected = data.get("selected_ids")
        if isinstance(order, list):
            self.order = _unique_known(order, self.catalog)
            self.selected_ids = [i for i in self.selected_ids if i in self.order]
        if isinstance(selected, list):
            self.selected_ids = _unique_known(selected, self.order)
