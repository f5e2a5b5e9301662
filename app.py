# app.py
import logging
import os
import sys
from pathlib import Path
import tkinter as tk
from tkinter import messagebox

from catalog import load_catalog
from ledger import Ledger
from logging_config import configure_logging, level_from_name
from store import StateStore
from ui.counter_tabs import CounterView

APP_TITLE = "イベント売上カウンター"

logger = logging.getLogger(__name__)


def get_base_dir() -> Path:
    """
    保存先の基準フォルダを決定する。
    - exe化（PyInstaller）: exe と同じフォルダ
    - 通常実行: app.py と同じフォルダ
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parent


def get_data_dir() -> str:
    return os.environ.get("TALLY_DATA_DIR") or str(get_base_dir() / "data")


def get_catalog_path() -> str:
    return os.environ.get("TALLY_CATALOG") or str(get_base_dir() / "catalog.json")


def main():
    data_dir = get_data_dir()
    log_path = configure_logging(data_dir, level_from_name(os.environ.get("TALLY_LOG_LEVEL", "INFO")))
    logger.info("Starting (data dir %s, log %s)", data_dir, log_path)

    root = tk.Tk()
    root.title(APP_TITLE)
    root.geometry("900x800")

    try:
        catalog = load_catalog(get_catalog_path())
    except (OSError, ValueError) as e:
        logger.exception("Could not load catalog")
        messagebox.showerror("起動エラー", f"カタログの読み込みに失敗しました。\n\n{e}")
        root.destroy()
        return

    store = StateStore(data_dir, catalog)
    ledger = Ledger(catalog, store)

    view = CounterView(root, ledger)
    view.pack(fill="both", expand=True)

    try:
        root.mainloop()
    finally:
        store.close()
        logger.info("Stopped")


if __name__ == "__main__":
    main()
