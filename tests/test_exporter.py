"""
Tests for the JSON snapshot export.
"""

import json
from datetime import datetime, timezone

from exporter import EXPORT_FILENAME, export_snapshot, write_snapshot
from models import AppState
from store import default_state

FIXED_NOW = datetime(2026, 1, 10, 9, 30, 0, tzinfo=timezone.utc)


class TestExportSnapshot:
    def test_empty_state(self, catalog):
        snap = export_snapshot(default_state(catalog), catalog, now=FIXED_NOW)
        assert snap["exportedAt"] == "2026-01-10T09:30:00.000Z"
        assert snap["totalRevenue"] == 0
        assert [s["id"] for s in snap["shops"]] == ["A", "B"]
        for shop in snap["shops"]:
            assert shop["revenue"] == 0
            assert all(p["sold"] == 0 for p in shop["products"])

    def test_product_fields_in_catalog_order(self, catalog):
        state = default_state(catalog)
        state.shops["A"] = {"Y": 3, "X": 1}
        snap = export_snapshot(state, catalog, now=FIXED_NOW)
        products = snap["shops"][0]["products"]
        assert [p["id"] for p in products] == ["X", "Y", "Z"]
        assert products[0] == {
            "id": "X",
            "name": "Book X",
            "category": "本",
            "stock": 2,
            "price": 500,
            "sold": 1,
        }
        assert snap["shops"][0]["revenue"] == 500 + 900
        assert snap["totalRevenue"] == 1400

    def test_missing_and_stale_entries(self, catalog):
        state = AppState(active_shop="gone", show_revenue=True, shops={"old": {"P": 2}, "B": {"X": 2}})
        snap = export_snapshot(state, catalog, now=FIXED_NOW)
        assert snap["shops"][0]["revenue"] == 0
        assert snap["shops"][1]["revenue"] == 301.0
        assert snap["totalRevenue"] == 301.0
        assert "old" not in [s["id"] for s in snap["shops"]]

    def test_deterministic_apart_from_timestamp(self, catalog):
        state = default_state(catalog)
        state.shops["B"]["X"] = 1
        a = export_snapshot(state, catalog)
        b = export_snapshot(state, catalog)
        a.pop("exportedAt")
        b.pop("exportedAt")
        assert a == b

    def test_does_not_mutate_state(self, catalog):
        state = AppState(active_shop="A", shops={})
        export_snapshot(state, catalog)
        assert state.shops == {}


def test_write_snapshot(tmp_path, catalog):
    snap = export_snapshot(default_state(catalog), catalog, now=FIXED_NOW)
    path = str(tmp_path / EXPORT_FILENAME)
    assert write_snapshot(snap, path) == path
    with open(path, encoding="utf-8") as f:
        assert json.load(f) == snap
