# order_entry/tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - pytest-qt owns QApplication (use qapp/qtbot fixtures)
# - Qt runs on the offscreen platform
# - Every test gets a fresh in-memory SQLite DB with schema + demo catalog
# - conn.row_factory = sqlite3.Row, PRAGMA foreign_keys=ON
# - Stock cache runs on a fake clock so TTL tests are deterministic
# - Silence benign Qt signal warnings
# ---------------------------------------------------------------------

from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import re
import sqlite3

import pytest
from PySide6 import QtCore

from order_entry.database.schema import apply_schema
from order_entry.database.seeders.default_data import seed
from order_entry.database.repositories.inventory_repo import InventoryRepo
from order_entry.modules.pricing import LineDocument, Lookups, StockCache


# ---------- Qt: let pytest-qt own the app ----------
@pytest.fixture(scope="session")
def app(qapp):  # alias to match code that expects an `app` fixture
    return qapp


# ---------- Silence benign Qt warnings ----------
_BENIGN_QT_PATTERNS = [
    r"^QObject::connect: .* already connected",
    r"^QObject::disconnect: Unexpected null parameter",
    r"^QBasicTimer::stop: Failed\. Platform timer not running\.",
    r"^This plugin does not support propagateSizeHints",
]

@pytest.fixture(autouse=True, scope="session")
def _silence_benign_qt():
    """Filter common harmless Qt messages during tests."""
    original = QtCore.qInstallMessageHandler(None)
    rx = [re.compile(p) for p in _BENIGN_QT_PATTERNS]

    def handler(msg_type, context, message):
        text = str(message)
        for r in rx:
            if r.search(text):
                return  # swallow benign messages
        # pass everything else through the default handler
        QtCore.qInstallMessageHandler(None)
        try:
            QtCore.qDebug(message)
        finally:
            QtCore.qInstallMessageHandler(handler)

    QtCore.qInstallMessageHandler(handler)
    try:
        yield
    finally:
        QtCore.qInstallMessageHandler(original)


# ---------- Per-test in-memory DB ----------
@pytest.fixture()
def conn():
    """Fresh schema + demo catalog for every test."""
    con = sqlite3.connect(":memory:")
    con.row_factory = sqlite3.Row
    con.execute("PRAGMA foreign_keys=ON;")
    apply_schema(con)
    seed(con)
    try:
        yield con
    finally:
        con.close()


# ---------- Handy lookups ----------
@pytest.fixture()
def ids(conn: sqlite3.Connection) -> dict:
    """Common IDs used throughout the tests."""
    def one(sql: str, *p):
        r = conn.execute(sql, p).fetchone()
        return None if r is None else int(list(r)[0])

    water = one("SELECT product_id FROM products WHERE code='P001'")
    return {
        "uom_piece": one("SELECT uom_id FROM uoms WHERE unit_name='Piece'"),
        "uom_box":   one("SELECT uom_id FROM uoms WHERE unit_name='Box'"),
        "uom_strip": one("SELECT uom_id FROM uoms WHERE unit_name='Strip'"),
        "water":     water,                                                    # 10 pcs, Box of 4
        "water_box": one("SELECT multi_unit_id FROM product_multi_units WHERE product_id=?", water),
        "paracetamol": one("SELECT product_id FROM products WHERE code='P002'"),  # 2 batches, tracked
        "soap":        one("SELECT product_id FROM products WHERE code='P003'"),  # legacy batches, untracked
        "vitamin_c":   one("SELECT product_id FROM products WHERE code='P004'"),  # 1 batch, tracked
        "cleaner":     one("SELECT product_id FROM products WHERE code='P005'"),  # no stock
    }


# ---------- Engine wiring ----------
class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def lookups(conn: sqlite3.Connection, clock: FakeClock) -> Lookups:
    cache = StockCache(InventoryRepo(conn).on_hand_base, clock=clock)
    return Lookups.from_connection(conn, stock_cache=cache)


@pytest.fixture()
def doc(lookups: Lookups) -> LineDocument:
    return LineDocument(lookups)
