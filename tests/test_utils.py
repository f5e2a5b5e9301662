import json
import logging
import os
from datetime import datetime, timedelta, timezone

import pytest

from logging_config import JsonFormatter, level_from_name
from utils import atomic_write_json, format_money, load_json_or_default, make_backup, now_iso


def test_now_iso_is_utc_with_millis():
    jst = timezone(timedelta(hours=9))
    assert now_iso(datetime(2026, 1, 10, 18, 0, 0, 123456, tzinfo=jst)) == "2026-01-10T09:00:00.123Z"
    assert now_iso().endswith("Z")


def test_atomic_write_and_load(tmp_path):
    path = str(tmp_path / "sub" / "data.json")
    atomic_write_json(path, {"名前": "本", "n": 1})
    assert load_json_or_default(path, {}) == {"名前": "本", "n": 1}
    assert not os.path.exists(path + ".tmp")


def test_load_missing_returns_default(tmp_path):
    assert load_json_or_default(str(tmp_path / "missing.json"), {"a": 1}) == {"a": 1}


def test_load_rejects_non_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_json_or_default(str(path), {})


@pytest.mark.parametrize("value, expected", [
    (1500, "1,500"),
    (1500.0, "1,500"),
    (150.5, "150.50"),
    (1234.25, "1,234.25"),
])
def test_format_money(value, expected):
    assert format_money(value) == expected


def test_make_backup(tmp_path):
    src = tmp_path / "event-counter.json"
    src.write_text("{}", encoding="utf-8")
    dst = make_backup(str(src), str(tmp_path / "backups"))
    assert os.path.basename(dst).startswith("event-counter.json.backup_")
    with open(dst, encoding="utf-8") as f:
        assert f.read() == "{}"


def test_make_backup_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        make_backup(str(tmp_path / "nothing.json"))


def test_json_formatter_includes_context():
    record = logging.LogRecord("ledger", logging.DEBUG, __file__, 1, "Sold out", None, None)
    record.shop_id = "A"
    record.product_id = "X"
    out = json.loads(JsonFormatter().format(record))
    assert out["message"] == "Sold out"
    assert out["shop_id"] == "A"
    assert out["product_id"] == "X"
    assert out["level"] == "DEBUG"


def test_level_from_name():
    assert level_from_name("debug") == logging.DEBUG
    assert level_from_name("nonsense") == logging.INFO
