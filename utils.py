# utils.py
from __future__ import annotations

import os
import json
import shutil
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def now_iso(now: Optional[datetime] = None) -> str:
    # "2026-01-10T09:30:00.000Z"
    dt = now or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    tmp = path + ".tmp"
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)


def load_json_or_default(path: str, default: Dict[str, Any]) -> Dict[str, Any]:
    if not os.path.exists(path):
        return default
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"JSONの形式が不正です: {path}")
    return data


def format_money(value: float, decimals: int = 2) -> str:
    """
    金額をカンマ区切りで表示する。整数ならそのまま、端数があれば decimals 桁。
    """
    v = float(value)
    if v.is_integer():
        return f"{int(v):,}"
    return f"{v:,.{int(decimals)}f}"


def make_backup(src_path: str, backup_dir: Optional[str] = None) -> str:
    """
    JSON等のバックアップを同一ディレクトリ（または指定dir）に作成して、作成先パスを返す。
    """
    if not os.path.exists(src_path):
        raise FileNotFoundError("バックアップ対象ファイルが存在しません")

    base_dir = backup_dir or os.path.dirname(src_path) or "."
    os.makedirs(base_dir, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    base = os.path.basename(src_path)
    dst = os.path.join(base_dir, f"{base}.backup_{ts}")
    shutil.copy2(src_path, dst)
    return dst
