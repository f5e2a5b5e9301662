# store.py
from __future__ import annotations

import copy
import logging
import math
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from catalog import find_shop
from models import AppState, Catalog
from utils import atomic_write_json, load_json_or_default, make_backup

logger = logging.getLogger(__name__)

STORE_NAME = "event-counter"
STATE_KEY = "state"

WarningListener = Callable[[str], None]


class KeyValueFile:
    """
    1ファイル = 1ストア。{key: value} をまるごとJSONで保持する。
    ファイル名はストア名から決まるので、ストア名を変えれば新しいストアになる。
    """

    def __init__(self, data_dir: str, store_name: str = STORE_NAME):
        self.store_name = store_name
        self.path = os.path.join(data_dir, f"{store_name}.json")
        self._records: Optional[Dict[str, Any]] = None

    def _open(self) -> Dict[str, Any]:
        if self._records is None:
            self._records = load_json_or_default(self.path, {})
        return self._records

    def get(self, key: str) -> Any:
        return copy.deepcopy(self._open().get(key))

    def reset(self) -> None:
        self._records = {}

    def put(self, key: str, value: Any) -> None:
        records = dict(self._open())
        records[key] = value
        atomic_write_json(self.path, records)
        self._records = records


# -------------------------
# Defaults / reconcile
# -------------------------
def default_state(catalog: Catalog) -> AppState:
    return AppState(
        active_shop=catalog[0].id,
        show_revenue=False,
        shops={s.id: {} for s in catalog},
    )


def _coerce_count(v: Any) -> int:
    if isinstance(v, bool):
        return 0
    if isinstance(v, float) and not math.isfinite(v):
        return 0
    try:
        return int(v)
    except (TypeError, ValueError, OverflowError):
        return 0


def reconcile(defaults: AppState, loaded: Any, catalog: Catalog) -> AppState:
    """
    保存データ(loaded)をデフォルトに重ねる。キーごとに loaded が優先、
    欠けているキーはデフォルトのまま。

    - activeShop はカタログに存在する場合のみ採用（なければ先頭店舗）
    - showRevenue は bool の場合のみ採用
    - カタログ外の店舗・商品のカウンタは保持する（表示や集計では無視される）
    - カタログ商品のカウンタは [0, stock] に丸める
    """
    state = AppState(
        active_shop=defaults.active_shop,
        show_revenue=defaults.show_revenue,
        shops={sid: dict(sold) for sid, sold in defaults.shops.items()},
    )
    if not isinstance(loaded, dict):
        return state

    active = loaded.get("activeShop")
    if isinstance(active, str) and find_shop(catalog, active) is not None:
        state.active_shop = active
    elif active is not None:
        logger.warning("Persisted active shop %r is not in the catalog; using %r", active, state.active_shop)

    show = loaded.get("showRevenue")
    if isinstance(show, bool):
        state.show_revenue = show

    shops = loaded.get("shops")
    if isinstance(shops, dict):
        for sid, entry in shops.items():
            sold = entry.get("sold") if isinstance(entry, dict) else None
            if not isinstance(sold, dict):
                continue
            merged = state.shops.setdefault(str(sid), {})
            for pid, n in sold.items():
                merged[str(pid)] = _coerce_count(n)

    for shop in catalog:
        sold = state.shops.setdefault(shop.id, {})
        for p in shop.products:
            if p.id in sold:
                sold[p.id] = max(0, min(p.stock, sold[p.id]))
    return state


# -------------------------
# Store
# -------------------------
class StateStore:
    """
    AppState の永続化。load は同期、save は単一ワーカーで非同期に書き込み
    Future を返す。書き込みに失敗してもメモリ上の状態で動作を続ける（degraded）。
    """

    def __init__(self, data_dir: str, catalog: Catalog, *, store_name: str = STORE_NAME):
        self.catalog = catalog
        self.kv = KeyValueFile(data_dir, store_name)
        self.path = self.kv.path
        self.degraded = False
        self.last_error: Optional[BaseException] = None
        self._listeners: List[WarningListener] = []
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="state-store")
        self._pending: Optional[Future] = None

    def add_warning_listener(self, cb: WarningListener) -> None:
        self._listeners.append(cb)

    def _warn(self, exc: BaseException, message: str) -> None:
        with self._lock:
            self.degraded = True
            self.last_error = exc
        logger.warning("%s (%s: %s)", message, type(exc).__name__, exc)
        for cb in list(self._listeners):
            cb(message)

    def load(self) -> AppState:
        defaults = default_state(self.catalog)
        try:
            loaded = self.kv.get(STATE_KEY)
        except (OSError, ValueError) as e:
            self._warn(e, "保存データを読み込めませんでした。変更は再起動後に残らない可能性があります")
            self._keep_unreadable_copy()
            self.kv.reset()
            return defaults
        if loaded is None:
            logger.info("No saved state in %s; starting fresh", self.path)
            return defaults
        state = reconcile(defaults, loaded, self.catalog)
        logger.info("Loaded state from %s (active shop %s)", self.path, state.active_shop)
        return state

    def _keep_unreadable_copy(self) -> None:
        # the next save replaces the file
        if not os.path.exists(self.path):
            return
        try:
            dst = make_backup(self.path)
            logger.info("Copied unreadable store to %s", dst)
        except OSError as e:
            logger.warning("Could not copy unreadable store %s: %s", self.path, e)

    def _write(self, record: Dict[str, Any]) -> None:
        try:
            self.kv.put(STATE_KEY, record)
        except OSError as e:
            self._warn(e, "保存に失敗しました。変更は再起動後に残らない可能性があります")
            raise
        with self._lock:
            recovered = self.degraded
            self.degraded = False
            self.last_error = None
        if recovered:
            logger.info("Store %s is writable again", self.path)
            # empty message: the warning can be cleared
            for cb in list(self._listeners):
                cb("")

    def save(self, state: AppState) -> Future:
        # snapshot on the caller's thread
        record = state.to_record()
        fut = self._executor.submit(self._write, record)
        self._pending = fut
        return fut

    def flush(self) -> None:
        fut = self._pending
        if fut is not None:
            fut.exception()

    def close(self) -> None:
        self._executor.shutdown(wait=True)
