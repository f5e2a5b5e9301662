# catalog.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from models import Catalog, Product, Shop

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    pass


def _require_str(obj: Dict[str, Any], key: str, where: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str) or not v.strip():
        raise CatalogError(f"{where}: {key} が空です")
    return v.strip()


def _parse_product(raw: Any, where: str) -> Product:
    if not isinstance(raw, dict):
        raise CatalogError(f"{where}: 商品の形式が不正です")
    pid = _require_str(raw, "id", where)
    where = f"{where}/{pid}"
    name = _require_str(raw, "name", where)
    category = raw.get("category", "")
    if not isinstance(category, str):
        raise CatalogError(f"{where}: カテゴリが不正です")

    stock = raw.get("stock")
    # bool is an int subclass
    if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
        raise CatalogError(f"{where}: 在庫が不正です")
    price = raw.get("price")
    if isinstance(price, bool) or not isinstance(price, (int, float)) or price < 0:
        raise CatalogError(f"{where}: 単価が不正です")

    return Product(id=pid, name=name, category=category.strip(), stock=stock, price=price)


def parse_catalog(data: Dict[str, Any]) -> Catalog:
    shops_raw = data.get("shops") if isinstance(data, dict) else None
    if not isinstance(shops_raw, list) or not shops_raw:
        raise CatalogError("店舗が定義されていません")

    shops: List[Shop] = []
    seen_shops = set()
    for i, raw in enumerate(shops_raw):
        if not isinstance(raw, dict):
            raise CatalogError(f"shops[{i}]: 店舗の形式が不正です")
        sid = _require_str(raw, "id", f"shops[{i}]")
        if sid in seen_shops:
            raise CatalogError(f"店舗IDが重複しています: {sid}")
        seen_shops.add(sid)
        name = _require_str(raw, "name", sid)

        products_raw = raw.get("products", [])
        if not isinstance(products_raw, list):
            raise CatalogError(f"{sid}: products が不正です")
        products: List[Product] = []
        seen_products = set()
        for p_raw in products_raw:
            p = _parse_product(p_raw, sid)
            if p.id in seen_products:
                raise CatalogError(f"{sid}: 商品IDが重複しています: {p.id}")
            seen_products.add(p.id)
            products.append(p)

        shops.append(Shop(id=sid, name=name, products=tuple(products)))
    return tuple(shops)


def load_catalog(path: str) -> Catalog:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    catalog = parse_catalog(data)
    logger.info("Loaded catalog from %s (%d shops)", path, len(catalog))
    return catalog


def find_shop(catalog: Catalog, shop_id: str) -> Optional[Shop]:
    for s in catalog:
        if s.id == shop_id:
            return s
    return None


def find_product(shop: Shop, product_id: str) -> Optional[Product]:
    for p in shop.products:
        if p.id == product_id:
            return p
    return None


def group_by_category(products: Iterable[Product]) -> Dict[str, List[Product]]:
    """カテゴリ → 商品リスト（初出順）"""
    out: Dict[str, List[Product]] = {}
    for p in products:
        out.setdefault(p.category, []).append(p)
    return out
