# order_entry/tests/test_repositories.py

import sqlite3

import pytest

import order_entry.database as database
from order_entry.database.repositories import (
    BatchesRepo,
    InventoryDomainError,
    InventoryRepo,
    ProductsRepo,
)
from order_entry.database.seeders.default_data import seed


# ---------- catalog ----------

def test_list_products_sorted_by_name(conn):
    names = [p.name for p in ProductsRepo(conn).list_products()]
    assert names == sorted(names)
    assert len(names) == 5


def test_inactive_products_are_hidden(conn, ids):
    conn.execute("UPDATE products SET is_active=0 WHERE product_id=?", (ids["cleaner"],))
    repo = ProductsRepo(conn)
    assert "Glass Cleaner" not in [p.name for p in repo.list_products()]
    # direct lookups still resolve it
    assert repo.get(ids["cleaner"]).name == "Glass Cleaner"


def test_get_builds_units_and_prices(conn, ids):
    p = ProductsRepo(conn).get(ids["water"])
    assert p.code == "P001"
    assert p.base_unit.unit_id == ids["uom_piece"] and p.base_unit.name == "Piece"
    assert (p.purchase_price, p.retail_price, p.wholesale_price) == (70, 100, 90)
    assert p.special_price_1 == 85 and p.special_price_2 == 0
    assert not p.allow_batches
    [box] = p.multi_units
    assert box.unit.name == "Box" and box.conversion == 4
    assert p.multi_unit(box.multi_unit_id) is box
    assert p.multi_unit(12345) is None


def test_missing_product(conn):
    repo = ProductsRepo(conn)
    assert repo.get(9999) is None
    assert repo.get_by_code("NOPE") is None


def test_get_by_code_trims(conn):
    assert ProductsRepo(conn).get_by_code("  P002 ").name == "Paracetamol 500mg"


def test_find_by_scan_code(conn, ids):
    repo = ProductsRepo(conn)
    product, mu_id = repo.find_by_scan_code("1000001")
    assert product.product_id == ids["water"] and mu_id is None
    product, mu_id = repo.find_by_scan_code(" 2000001 ")
    assert product.product_id == ids["water"] and mu_id == ids["water_box"]
    assert repo.find_by_scan_code("0000000") is None
    assert repo.find_by_scan_code("") is None


def test_search(conn):
    repo = ProductsRepo(conn)
    assert [p.code for p in repo.search("para")] == ["P002"]
    assert [p.code for p in repo.search("1000004")] == ["P004"]
    assert len(repo.search("P00", limit=2)) == 2
    assert repo.search("   ") == []


# ---------- batches ----------

def test_batches_oldest_expiry_first(conn, ids):
    batches = BatchesRepo(conn).list_for_product(ids["paracetamol"])
    assert [b.batch_number for b in batches] == ["PCM-2401", "PCM-2402"]
    first = batches[0]
    assert (first.quantity, first.purchase_price, first.retail_price, first.wholesale_price) == (5, 10, 15, 13)
    assert first.expiry_date == "2027-01-31"
    assert first.product_id == ids["paracetamol"]


def test_undated_batches_sort_last(conn, ids):
    conn.execute(
        "INSERT INTO product_batches(product_id, batch_number, quantity, purchase_price) VALUES (?, 'PCM-OPEN', 1, 9)",
        (ids["paracetamol"],),
    )
    batches = BatchesRepo(conn).list_for_product(ids["paracetamol"])
    assert batches[-1].batch_number == "PCM-OPEN"
    assert batches[-1].expiry_date is None


def test_duplicate_batch_number_rejected(conn, ids):
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(
            "INSERT INTO product_batches(product_id, batch_number, quantity) VALUES (?, 'VC-01', 1)",
            (ids["vitamin_c"],),
        )


# ---------- stock ----------

def test_on_hand(conn, ids):
    inv = InventoryRepo(conn)
    assert inv.on_hand_base(ids["water"]) == 10
    assert inv.on_hand_base(ids["cleaner"]) == 0.0
    assert inv.on_hand_base(9999) == 0.0
    m = inv.on_hand_map()
    assert m[ids["paracetamol"]] == 12 and m[ids["cleaner"]] == 0.0


def test_add_transaction_moves_stock(conn, ids):
    inv = InventoryRepo(conn)
    tid = inv.add_transaction(ids["water"], -3, "sale", notes="walk-in")
    assert tid > 0
    assert inv.on_hand_base(ids["water"]) == 7
    latest = inv.transactions_for(ids["water"])[0]
    assert latest["transaction_type"] == "sale"
    assert latest["quantity"] == -3
    assert latest["notes"] == "walk-in"


def test_add_transaction_rejects_bad_input(conn, ids):
    inv = InventoryRepo(conn)
    with pytest.raises(InventoryDomainError):
        inv.add_transaction(ids["water"], 1, "gift")
    with pytest.raises(InventoryDomainError):
        inv.add_transaction(ids["water"], 0)
    with pytest.raises(InventoryDomainError):
        inv.add_transaction(ids["water"], "abc")


# ---------- seed / connection ----------

def test_seed_is_idempotent(conn):
    seed(conn)
    n = conn.execute("SELECT COUNT(*) AS n FROM products").fetchone()["n"]
    assert n == 5


def test_get_connection_creates_seeded_db(tmp_path, monkeypatch):
    monkeypatch.setattr(database, "DB_PATH", tmp_path / "data" / "entry.db")
    con = database.get_connection()
    try:
        assert (tmp_path / "data" / "entry.db").exists()
        assert con.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert con.execute("SELECT version FROM schema_version WHERE id=1").fetchone()["version"] == "1"
        assert con.execute("SELECT COUNT(*) FROM products").fetchone()[0] == 5
    finally:
        con.close()


def test_get_connection_without_seed(tmp_path, monkeypatch):
    monkeypatch.setattr(database, "DB_PATH", tmp_path / "empty.db")
    con = database.get_connection(seed=False)
    try:
        assert con.execute("SELECT COUNT(*) FROM products").fetchone()[0] == 0
    finally:
        con.close()


def test_reopening_keeps_recorded_version(tmp_path, monkeypatch):
    monkeypatch.setattr(database, "DB_PATH", tmp_path / "entry.db")
    con = database.get_connection()
    con.execute("UPDATE schema_version SET version='0' WHERE id=1")
    con.commit()
    con.close()
    con = database.get_connection()
    try:
        assert con.execute("SELECT version FROM schema_version WHERE id=1").fetchone()["version"] == "0"
        assert con.execute("SELECT COUNT(*) FROM products").fetchone()[0] == 5
    finally:
        con.close()
