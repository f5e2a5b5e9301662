# models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple, Union

Number = Union[int, float]


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str
    stock: int
    price: Number


@dataclass(frozen=True)
class Shop:
    id: str
    name: str
    products: Tuple[Product, ...] = ()


Catalog = Tuple[Shop, ...]


@dataclass
class AppState:
    active_shop: str
    show_revenue: bool = False
    # shop id -> product id -> sold count
    shops: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def to_record(self) -> Dict[str, object]:
        """永続化用の辞書（キー名は保存形式に合わせる）"""
        return {
            "activeShop": self.active_shop,
            "showRevenue": bool(self.show_revenue),
            "shops": {sid: {"sold": dict(sold)} for sid, sold in self.shops.items()},
        }
