# ui/counter_tabs.py
from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox

from exporter import write_snapshot
from ui.common import ProductCard, ask_export_path
from utils import make_backup

STARTUP_WARNING = "保存データを読み込めませんでした。変更は再起動後に残らない可能性があります"


class CounterView(ttk.Frame):
    def __init__(self, parent, ledger):
        super().__init__(parent)
        self.ledger = ledger

        # ---- Shop switcher ----
        self.shop_bar = ttk.Frame(self)
        self.shop_bar.pack(fill="x", padx=8, pady=(8, 4))

        # ---- Controls / revenue ----
        controls = ttk.Frame(self)
        controls.pack(fill="x", padx=8, pady=4)

        self.var_toggle = tk.StringVar()
        ttk.Button(controls, textvariable=self.var_toggle, command=self.on_toggle_revenue).pack(side="left", padx=4)
        ttk.Button(controls, text="JSONバックアップ", command=self.on_export).pack(side="left", padx=4)
        ttk.Button(controls, text="保存データを複製", command=self.on_backup_store).pack(side="left", padx=4)

        self.revenue_box = ttk.LabelFrame(self, text="売上")
        self.revenue_box.pack(fill="x", padx=8, pady=4)

        self.var_warning = tk.StringVar(value="")
        tk.Label(self, textvariable=self.var_warning, fg="#b00020", anchor="w").pack(fill="x", padx=8)

        # ---- Products ----
        self.products_box = ttk.Frame(self)
        self.products_box.pack(fill="both", expand=True, padx=8, pady=8)

        self.ledger.subscribe(self.refresh)
        store = self.ledger.store
        # listeners run on the store's worker thread; hop back onto the Tk thread
        store.add_warning_listener(lambda message: self.after(0, self.var_warning.set, message))
        if store.degraded:
            self.var_warning.set(STARTUP_WARNING)
        self.refresh()

    def _safe(self, fn, *args):
        try:
            fn(*args)
        except Exception as e:
            messagebox.showerror("エラー", str(e), parent=self)

    # -------------------------
    # Actions
    # -------------------------
    def on_select_shop(self, shop_id: str):
        self._safe(self.ledger.set_active_shop, shop_id)

    def on_toggle_revenue(self):
        self.ledger.toggle_revenue_visibility()

    def on_plus(self, product_id: str):
        self._safe(self.ledger.increment, product_id)

    def on_minus(self, product_id: str):
        self._safe(self.ledger.decrement, product_id)

    def on_export(self):
        path = ask_export_path(self)
        if not path:
            return
        try:
            write_snapshot(self.ledger.export_snapshot(), path)
            messagebox.showinfo("JSONバックアップ", f"書き出しました:\n{path}", parent=self)
        except Exception as e:
            messagebox.showerror("エラー", str(e), parent=self)

    def on_backup_store(self):
        try:
            self.ledger.store.flush()
            dst = make_backup(self.ledger.store.path)
            messagebox.showinfo("バックアップ作成", f"バックアップを作成しました:\n{dst}", parent=self)
        except Exception as e:
            messagebox.showerror("エラー", str(e), parent=self)

    # -------------------------
    # Render
    # -------------------------
    def refresh(self):
        ledger = self.ledger
        active = ledger.get_active_shop()

        for w in self.shop_bar.winfo_children():
            w.destroy()
        for shop in ledger.get_catalog():
            label = f"[{shop.name}]" if shop.id == active.id else shop.name
            ttk.Button(self.shop_bar, text=label, command=lambda sid=shop.id: self.on_select_shop(sid))\
                .pack(side="left", padx=2)

        self.var_toggle.set(f"売上 {'非表示' if ledger.state.show_revenue else '表示'}")

        for w in self.revenue_box.winfo_children():
            w.destroy()
        for shop in ledger.get_catalog():
            text = f"{shop.name}: {ledger.masked_revenue(ledger.revenue_by_shop(shop.id))}"
            ttk.Label(self.revenue_box, text=text).pack(anchor="w", padx=4)
        ttk.Label(self.revenue_box, text=f"合計: {ledger.masked_revenue(ledger.total_revenue())}")\
            .pack(anchor="w", padx=4, pady=(2, 4))

        for w in self.products_box.winfo_children():
            w.destroy()
        for category, products in ledger.display_products().items():
            section = ttk.LabelFrame(self.products_box, text=category or "-")
            section.pack(fill="x", pady=4)
            for p in products:
                ProductCard(
                    section,
                    name=p.name,
                    stock=p.stock,
                    sold=ledger.sold_count(p.id),
                    remaining=ledger.remaining_stock(p.id),
                    on_minus=lambda pid=p.id: self.on_minus(pid),
                    on_plus=lambda pid=p.id: self.on_plus(pid),
                ).pack(fill="x", padx=4, pady=2)
