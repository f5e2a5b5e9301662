import pytest

from catalog import parse_catalog
from ledger import Ledger
from store import StateStore

CATALOG_DATA = {
    "shops": [
        {
            "id": "A",
            "name": "Shop A",
            "products": [
                {"id": "X", "name": "Book X", "category": "本", "stock": 2, "price": 500},
                {"id": "Y", "name": "Sticker Y", "category": "グッズ", "stock": 5, "price": 300},
                {"id": "Z", "name": "Book Z", "category": "本", "stock": 1, "price": 1200},
            ],
        },
        {
            "id": "B",
            "name": "Shop B",
            "products": [
                {"id": "X", "name": "Postcard", "category": "グッズ", "stock": 3, "price": 150.5},
            ],
        },
    ]
}


@pytest.fixture
def catalog():
    return parse_catalog(CATALOG_DATA)


@pytest.fixture
def store(tmp_path, catalog):
    s = StateStore(str(tmp_path), catalog)
    yield s
    s.close()


@pytest.fixture
def ledger(catalog, store):
    return Ledger(catalog, store)
