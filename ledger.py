# ledger.py
from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Optional, Tuple

from catalog import find_product, find_shop, group_by_category
from exporter import export_snapshot, shop_revenue
from models import AppState, Catalog, Number, Product, Shop
from store import StateStore, default_state, reconcile
from utils import format_money

logger = logging.getLogger(__name__)

MASKED_MONEY = "¥•••••"

Listener = Callable[[], None]


class Ledger:
    """
    状態(AppState)を唯一所有するコントローラ。画面側はここを経由してのみ状態を変える。
    変更のたびに store.save() し、購読者へ再描画を通知する。
    """

    def __init__(self, catalog: Catalog, store: StateStore, state: Optional[AppState] = None):
        self.catalog = catalog
        self.store = store
        if state is None:
            self.state = store.load()
        else:
            # same rules as a loaded record: unknown active shop falls back, counts clamped
            self.state = reconcile(default_state(catalog), state.to_record(), catalog)
        self.last_save: Optional[Future] = None
        self._listeners: List[Listener] = []

    # -------------------------
    # Internal
    # -------------------------
    def _shop(self, shop_id: Optional[str]) -> Shop:
        sid = shop_id or self.state.active_shop
        shop = find_shop(self.catalog, sid)
        if shop is None:
            raise ValueError(f"店舗が見つかりません: {sid}")
        return shop

    def _product(self, product_id: str, shop_id: Optional[str]) -> Tuple[Shop, Product]:
        shop = self._shop(shop_id)
        p = find_product(shop, product_id)
        if p is None:
            raise ValueError(f"商品が見つかりません: {shop.id}/{product_id}")
        return shop, p

    def _commit(self) -> Future:
        self.last_save = self.store.save(self.state)
        for cb in list(self._listeners):
            cb()
        return self.last_save

    # -------------------------
    # Listeners
    # -------------------------
    def subscribe(self, cb: Listener) -> None:
        self._listeners.append(cb)

    def unsubscribe(self, cb: Listener) -> None:
        if cb in self._listeners:
            self._listeners.remove(cb)

    # -------------------------
    # Read helpers
    # -------------------------
    def get_catalog(self) -> Catalog:
        return self.catalog

    def get_active_shop(self) -> Shop:
        return self._shop(None)

    def sold_count(self, product_id: str, shop_id: Optional[str] = None) -> int:
        sid = shop_id or self.state.active_shop
        return int(self.state.shops.get(sid, {}).get(product_id, 0))

    def remaining_stock(self, product_id: str, shop_id: Optional[str] = None) -> int:
        shop, p = self._product(product_id, shop_id)
        return p.stock - self.sold_count(p.id, shop.id)

    def revenue_by_shop(self, shop_id: str) -> Number:
        return shop_revenue(self.state, self._shop(shop_id))

    def total_revenue(self) -> Number:
        return sum((self.revenue_by_shop(s.id) for s in self.catalog), 0)

    def masked_revenue(self, value: Number) -> str:
        if not self.state.show_revenue:
            return MASKED_MONEY
        return f"¥{format_money(value)}"

    def display_products(self, shop_id: Optional[str] = None) -> Dict[str, List[Product]]:
        """カテゴリごとに、販売可能な商品 → 売り切れ商品の順で並べる"""
        shop = self._shop(shop_id)
        out: Dict[str, List[Product]] = {}
        for category, items in group_by_category(shop.products).items():
            available = [p for p in items if self.remaining_stock(p.id, shop.id) > 0]
            sold_out = [p for p in items if self.remaining_stock(p.id, shop.id) <= 0]
            out[category] = available + sold_out
        return out

    # -------------------------
    # Mutations
    # -------------------------
    def increment(self, product_id: str, shop_id: Optional[str] = None) -> bool:
        shop, p = self._product(product_id, shop_id)
        sold = self.sold_count(p.id, shop.id)
        if sold >= p.stock:
            logger.debug("Sold out, ignoring increment", extra={"shop_id": shop.id, "product_id": p.id})
            return False
        self.state.shops.setdefault(shop.id, {})[p.id] = sold + 1
        self._commit()
        return True

    def decrement(self, product_id: str, shop_id: Optional[str] = None) -> bool:
        shop, p = self._product(product_id, shop_id)
        sold = self.sold_count(p.id, shop.id)
        if sold <= 0:
            logger.debug("Nothing sold, ignoring decrement", extra={"shop_id": shop.id, "product_id": p.id})
            return False
        self.state.shops.setdefault(shop.id, {})[p.id] = sold - 1
        self._commit()
        return True

    def set_active_shop(self, shop_id: str) -> None:
        shop = self._shop(shop_id)
        self.state.active_shop = shop.id
        self._commit()

    def toggle_revenue_visibility(self) -> bool:
        self.state.show_revenue = not self.state.show_revenue
        self._commit()
        return self.state.show_revenue

    # -------------------------
    # Export
    # -------------------------
    def export_snapshot(self) -> Dict[str, Any]:
        return export_snapshot(self.state, self.catalog)
