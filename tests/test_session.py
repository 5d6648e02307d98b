from order_entry.constants import RATE_WHOLESALE, TAX_EXCLUSIVE
from order_entry.modules.pricing import EditState, RowEditSession


def _water_line(doc, ids):
    line = doc.lines[0]
    assert doc.select_product(line.line_id, doc.lookups.product(ids["water"])).applied
    return line


def test_uncommitted_quantity_reverts_on_other_row(doc, ids):
    line = _water_line(doc, ids)
    other = doc.add_line()
    doc.enter_row(line.line_id)
    assert line.state is EditState.EDITING
    assert line.snapshot["quantity"] == 1

    doc.set_quantity(line.line_id, 3)
    assert line.quantity == 3 and line.total == 300

    reverted = doc.enter_row(other.line_id)
    assert reverted == line.line_id
    assert line.quantity == 1
    assert line.total == 100
    assert line.state is EditState.IDLE
    assert line.snapshot is None


def test_quantity_typed_right_after_selection_reverts(doc, ids):
    line = _water_line(doc, ids)
    other = doc.add_line()
    doc.set_quantity(line.line_id, 3)
    assert doc.enter_row(other.line_id) == line.line_id
    assert line.product.code == "P001"
    assert (line.quantity, line.total) == (1, 100)
    assert doc.totals().total == 100


def test_selection_in_another_row_reverts_active_row(doc, ids):
    line = _water_line(doc, ids)
    doc.set_quantity(line.line_id, 6)
    other = doc.add_line()
    assert doc.select_product(other.line_id, doc.lookups.product(ids["water"])).applied
    assert line.quantity == 1
    assert doc.max_quantity(other.line_id) == 9


def test_revert_after_tax_mode_change_keeps_new_mode(doc, ids):
    line = _water_line(doc, ids)
    doc.set_quantity(line.line_id, 3)
    doc.set_tax_mode(TAX_EXCLUSIVE)
    assert doc.leave_grid() == line.line_id
    assert line.quantity == 1
    assert (line.vat_amount, line.total) == (5.00, 105.00)
    assert doc.totals().total == 105


def test_revert_after_vat_toggle_keeps_zero_vat(doc, ids):
    line = _water_line(doc, ids)
    doc.set_vat_applies(False)
    doc.set_quantity(line.line_id, 2)
    doc.leave_grid()
    assert (line.quantity, line.vat_amount, line.total) == (1, 0, 100)


def test_revert_after_rate_change_keeps_new_prices(doc, ids):
    line = _water_line(doc, ids)
    doc.set_price(line.line_id, 95)
    doc.set_rate_type(RATE_WHOLESALE)
    assert line.price == 90
    doc.leave_grid()
    assert line.price == 90 and line.total == 90
    assert line.chosen_unit.price == 90
    box = next(u for u in line.unit_options if u.is_multi_unit)
    assert box.price == 350


def test_reentering_active_row_keeps_snapshot(doc, ids):
    line = _water_line(doc, ids)
    doc.session.active_line_id = None
    doc.enter_row(line.line_id)
    doc.set_quantity(line.line_id, 4)
    assert doc.enter_row(line.line_id) is None
    assert line.quantity == 4
    assert line.snapshot["quantity"] == 1


def test_entering_empty_row_takes_no_snapshot(doc):
    line = doc.lines[0]
    doc.enter_row(line.line_id)
    assert line.state is EditState.IDLE
    assert line.snapshot is None
    assert doc.session.active_line_id == line.line_id


def test_commit_moves_to_new_row(doc, ids):
    line = _water_line(doc, ids)
    doc.enter_row(line.line_id)
    doc.set_quantity(line.line_id, 2)
    result = doc.commit_row(line.line_id)
    assert result.ok
    assert line.state is EditState.COMMITTED
    assert line.snapshot is None
    assert len(doc.lines) == 2
    assert result.next_line_id == doc.lines[1].line_id
    assert doc.session.active_line_id == result.next_line_id
    # committed value survives leaving
    doc.leave_grid()
    assert line.quantity == 2


def test_commit_reuses_existing_next_row(doc, ids):
    line = _water_line(doc, ids)
    nxt = doc.add_line()
    result = doc.commit_row(line.line_id)
    assert result.next_line_id == nxt.line_id
    assert len(doc.lines) == 2


def test_commit_reports_first_missing_field(doc, ids):
    line = doc.lines[0]
    r = doc.commit_row(line.line_id)
    assert not r.ok and r.field == "product" and r.message == "Select a product."

    _water_line(doc, ids)
    doc.set_quantity(line.line_id, 0)
    r = doc.commit_row(line.line_id)
    assert (r.field, r.message) == ("quantity", "Quantity must be greater than zero.")

    doc.set_quantity(line.line_id, 1)
    doc.set_price(line.line_id, 0)
    r = doc.commit_row(line.line_id)
    assert (r.field, r.message) == ("price", "Price must be greater than zero.")

    line.unit_key = None
    r = doc.commit_row(line.line_id)
    assert (r.field, r.message) == ("unit", "Select a unit.")
    assert len(doc.lines) == 1


def test_leaving_grid_reverts(doc, ids):
    line = _water_line(doc, ids)
    doc.session.active_line_id = None
    doc.enter_row(line.line_id)
    doc.set_discount_percent(line.line_id, 50)
    assert line.discount_amount == 50
    assert doc.leave_grid() == line.line_id
    assert line.discount_amount == 0
    assert doc.session.active_line_id is None


def test_removed_row_is_forgotten(doc, ids):
    line = _water_line(doc, ids)
    keep = doc.add_line()
    doc.session.active_line_id = None
    doc.enter_row(line.line_id)
    doc.remove_line(line.line_id)
    assert doc.session.active_line_id is None
    assert doc.enter_row(keep.line_id) is None


def test_session_with_no_lines_to_find():
    session = RowEditSession(lambda _id: None)
    session.active_line_id = 42
    assert session.leave() is None
    assert session.active_line_id is None
