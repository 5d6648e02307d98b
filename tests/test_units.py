import pytest

from order_entry.constants import RATE_RETAIL, RATE_SPECIAL_1, RATE_SPECIAL_2, RATE_WHOLESALE
from order_entry.database.repositories.batches_repo import Batch
from order_entry.database.repositories.products_repo import (
    DomainError as CatalogError,
    MultiUnit,
    Product,
    ProductsRepo,
    UnitRef,
)
from order_entry.modules.pricing import DomainError
from order_entry.modules.pricing.units import (
    base_unit_price,
    build_unit_options,
    multi_unit_price,
    pick_unit,
)


@pytest.fixture()
def water(conn, ids) -> Product:
    return ProductsRepo(conn).get(ids["water"])


def test_base_price_follows_rate_type(water):
    assert base_unit_price(water, RATE_RETAIL) == 100
    assert base_unit_price(water, RATE_WHOLESALE) == 90
    assert base_unit_price(water, RATE_SPECIAL_1) == 85
    # special_2 unset on the product -> retail
    assert base_unit_price(water, RATE_SPECIAL_2) == 100


def test_batch_price_wins_then_falls_back():
    p = Product(1, "X", "X", UnitRef(1, "Piece"), retail_price=30, wholesale_price=25)
    b = Batch("B1", 5, retail_price=32, wholesale_price=0)
    assert base_unit_price(p, RATE_RETAIL, b) == 32
    # batch has no wholesale -> product wholesale
    assert base_unit_price(p, RATE_WHOLESALE, b) == 25
    # batches never carry special prices
    assert base_unit_price(p, RATE_SPECIAL_1, b) == 30


def test_base_price_zero_when_nothing_set():
    p = Product(1, "X", "X", UnitRef(1, "Piece"))
    assert base_unit_price(p, RATE_WHOLESALE) == 0


def test_multi_unit_price_chain():
    mu = MultiUnit(7, UnitRef(2, "Box"), 4, retail_price=0, wholesale_price=350)
    assert multi_unit_price(mu, RATE_RETAIL) == 350
    assert multi_unit_price(mu, RATE_WHOLESALE) == 350
    bare = MultiUnit(8, UnitRef(2, "Box"), 4)
    assert multi_unit_price(bare, RATE_SPECIAL_1) == 0


def test_unknown_rate_type(water):
    with pytest.raises(DomainError):
        base_unit_price(water, "vip")


def test_options_base_first_then_multi_units(water, ids):
    opts = build_unit_options(water, RATE_RETAIL)
    assert [o.name for o in opts] == ["Piece", "Box"]
    base, box = opts
    assert base.key == "base" and base.conversion == 1 and base.price == 100
    assert box.is_multi_unit and box.multi_unit_id == ids["water_box"]
    assert box.conversion == 4 and box.price == 380
    assert box.key == f"mu:{ids['water_box']}"


def test_batch_tracked_product_offers_base_unit_only(conn, ids):
    p = ProductsRepo(conn).get(ids["paracetamol"])
    p.multi_units.append(MultiUnit(99, UnitRef(ids["uom_box"], "Box"), 10, retail_price=150))
    opts = build_unit_options(p, RATE_RETAIL)
    assert len(opts) == 1 and opts[0].name == "Strip"


def test_pick_unit_preferences(water, ids):
    opts = build_unit_options(water, RATE_RETAIL)
    assert pick_unit(opts).key == "base"
    assert pick_unit(opts, matched_multi_unit_id=ids["water_box"]).name == "Box"
    assert pick_unit(opts, scan_code="2000001").name == "Box"
    assert pick_unit(opts, scan_code="1000001").name == "Piece"
    assert pick_unit(opts, scan_code="nope").name == "Piece"
    assert pick_unit([]) is None


def test_unit_ref_resolves_every_shape():
    names = {3: "Strip"}
    assert UnitRef.resolve(3, names) == UnitRef(3, "Strip")
    assert UnitRef.resolve("3", names) == UnitRef(3, "Strip")
    assert UnitRef.resolve({"uom_id": 3, "unit_name": "Strip"}) == UnitRef(3, "Strip")
    assert UnitRef.resolve({"id": 3}, names) == UnitRef(3, "Strip")
    assert UnitRef.resolve(None) == UnitRef(None, "")
    ref = UnitRef(1, "Piece")
    assert UnitRef.resolve(ref) is ref
    with pytest.raises(CatalogError):
        UnitRef.resolve("box")
