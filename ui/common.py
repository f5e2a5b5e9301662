# ui/common.py
from __future__ import annotations

import tkinter as tk
from tkinter import ttk, filedialog
from typing import Callable, Optional

from exporter import EXPORT_FILENAME


def ask_export_path(parent) -> Optional[str]:
    path = filedialog.asksaveasfilename(
        parent=parent,
        title="JSONバックアップ",
        initialfile=EXPORT_FILENAME,
        defaultextension=".json",
        filetypes=[("JSON", "*.json"), ("All files", "*.*")],
    )
    return path or None


class ProductCard(ttk.Frame):
    """
    商品1件: 名前 / 用意・売・在庫 / −・＋ ボタン
    """
    def __init__(self, parent, *, name: str, stock: int, sold: int, remaining: int,
                 on_minus: Callable[[], None], on_plus: Callable[[], None]):
        super().__init__(parent, padding=4, relief="groove")
        sold_out = remaining == 0

        ttk.Label(self, text=name, width=24).grid(row=0, column=0, sticky="w", padx=4)
        stats = f"用意:{stock}  売:{sold}  在庫:{remaining}"
        ttk.Label(self, text=stats, width=28).grid(row=0, column=1, sticky="w", padx=4)

        btn_minus = ttk.Button(self, text="−", width=3, command=on_minus)
        btn_minus.grid(row=0, column=2, padx=2)
        btn_plus = ttk.Button(self, text="＋", width=3, command=on_plus)
        btn_plus.grid(row=0, column=3, padx=2)

        if sold == 0:
            btn_minus.state(["disabled"])
        if sold_out:
            btn_plus.state(["disabled"])
            tk.Label(self, text="売り切れ", fg="red").grid(row=0, column=4, sticky="w", padx=6)
