# exporter.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from models import AppState, Catalog, Number, Shop
from utils import atomic_write_json, now_iso

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "event-backup.json"


def _sold_of(state: AppState, shop_id: str) -> Mapping[str, Any]:
    sold = state.shops.get(shop_id) if isinstance(state.shops, dict) else None
    return sold if isinstance(sold, dict) else {}


def _count(sold: Mapping[str, Any], product_id: str) -> int:
    v = sold.get(product_id, 0)
    if isinstance(v, bool) or not isinstance(v, int):
        return 0
    return v


def shop_revenue(state: AppState, shop: Shop) -> Number:
    sold = _sold_of(state, shop.id)
    return sum((_count(sold, p.id) * p.price for p in shop.products), 0)


def export_snapshot(state: AppState, catalog: Catalog, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    カタログ順に全店舗・全商品の販売数と売上を書き出す。
    状態に店舗や商品のカウンタがなければ 0 として扱う。
    """
    shops = []
    total: Number = 0
    for shop in catalog:
        sold = _sold_of(state, shop.id)
        revenue = shop_revenue(state, shop)
        total += revenue
        shops.append({
            "id": shop.id,
            "name": shop.name,
            "products": [
                {
                    "id": p.id,
                    "name": p.name,
                    "category": p.category,
                    "stock": p.stock,
                    "price": p.price,
                    "sold": _count(sold, p.id),
                }
                for p in shop.products
            ],
            "revenue": revenue,
        })
    return {
        "exportedAt": now_iso(now),
        "shops": shops,
        "totalRevenue": total,
    }


def write_snapshot(snapshot: Dict[str, Any], path: str) -> str:
    atomic_write_json(path, snapshot)
    logger.info("Exported snapshot to %s (total revenue %s)", path, snapshot.get("totalRevenue"))
    return path
