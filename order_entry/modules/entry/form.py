from PySide6.QtWidgets import (
    QApplication, QDialog, QVBoxLayout, QHBoxLayout, QGridLayout, QFormLayout, QComboBox,
    QCheckBox, QLineEdit, QPushButton, QLabel, QGroupBox, QTableWidget, QTableWidgetItem,
    QAbstractItemView, QHeaderView, QDialogButtonBox, QCompleter
)
from PySide6.QtCore import Qt, QEvent, QObject, QTimer
from dataclasses import asdict
import logging
import sqlite3

from ...constants import (
    STOCK_DEBOUNCE_MS,
    TAX_INCLUSIVE,
    TAX_EXCLUSIVE,
    RATE_RETAIL,
    RATE_WHOLESALE,
    RATE_SPECIAL_1,
    RATE_SPECIAL_2,
)
from ...utils.helpers import fmt_money, fmt_qty
from ...utils.ui_helpers import info, warn
from ...utils.validators import parse_numeric_input
from ..pricing import (
    Adjustments,
    LineDocument,
    Lookups,
    RowEditSession,
    SelectionOutcome,
    SelectionStatus,
    StockNotice,
)
from .batch_dialog import BatchPickerDialog

_log = logging.getLogger(__name__)

MODES = {
    "purchase_return": "Purchase Return",
    "quotation": "Quotation",
    "sale": "Sale",
}

RATE_CHOICES = [
    ("Retail", RATE_RETAIL),
    ("Wholesale", RATE_WHOLESALE),
    ("Special 1", RATE_SPECIAL_1),
    ("Special 2", RATE_SPECIAL_2),
]

COL_NUM, COL_ITEM, COL_UNIT, COL_QTY, COL_PRICE, COL_GROSS, COL_DISC_PCT, COL_DISC_AMT, COL_VAT, COL_TOTAL, COL_DEL = range(11)

EDITABLE_COLS = (COL_QTY, COL_PRICE, COL_DISC_PCT, COL_DISC_AMT)

# column that regains focus when a commit fails on that field
FIELD_COLS = {
    "product": COL_ITEM,
    "unit": COL_UNIT,
    "quantity": COL_QTY,
    "price": COL_PRICE,
}


class GridEventFilter(QObject):
    """Enter on the price cell commits the row; Enter on the item cell re-opens the batch choice."""

    def __init__(self, form):
        super().__init__(form)
        self.form = form

    def eventFilter(self, obj, event):
        if event.type() == QEvent.KeyPress and obj is self.form.tbl:
            if event.key() in (Qt.Key_Return, Qt.Key_Enter):
                row = self.form.tbl.currentRow()
                col = self.form.tbl.currentColumn()
                if row < 0:
                    return False
                if col == COL_PRICE:
                    self.form.commit_row(row)
                    return True
                if col == COL_ITEM:
                    self.form.reopen_batches(row)
                    return True
        return False


class LineEntryForm(QDialog):
    COLS = ["#", "Item", "Unit", "Qty", "Price", "Gross", "Disc %", "Disc", "VAT", "Total", ""]

    def __init__(
        self,
        parent=None,
        lookups: Lookups | None = None,
        *,
        conn: sqlite3.Connection | None = None,
        mode: str = "sale",
        tax_mode: str = TAX_INCLUSIVE,
        vat_applies: bool = True,
        rate_type: str = RATE_RETAIL,
    ):
        super().__init__(parent)
        if mode not in MODES:
            raise ValueError(f"Unknown entry mode: {mode!r}")
        if lookups is None:
            if conn is None:
                raise ValueError("LineEntryForm needs either lookups or a connection.")
            lookups = Lookups.from_connection(conn)

        self.mode = mode
        self.doc = LineDocument(lookups, tax_mode=tax_mode, vat_applies=vat_applies, rate_type=rate_type)
        self._products = lookups.products()
        self._payload = None

        self.setWindowTitle(MODES[mode])
        self.setMinimumSize(980, 560)

        main = QVBoxLayout(self)

        # ---- header: document settings + scan ----
        head = QHBoxLayout()
        self.cmb_tax = QComboBox()
        self.cmb_tax.addItem("Tax Inclusive", TAX_INCLUSIVE)
        self.cmb_tax.addItem("Tax Exclusive", TAX_EXCLUSIVE)
        self.cmb_tax.setCurrentIndex(self.cmb_tax.findData(tax_mode))
        self.chk_vat = QCheckBox("VAT")
        self.chk_vat.setChecked(bool(vat_applies))
        self.cmb_rate = QComboBox()
        for label, key in RATE_CHOICES:
            self.cmb_rate.addItem(label, key)
        self.cmb_rate.setCurrentIndex(self.cmb_rate.findData(rate_type))
        self.txt_scan = QLineEdit()
        self.txt_scan.setPlaceholderText("Scan / IMEI")

        head.addWidget(QLabel(f"<b>{MODES[mode]}</b>"))
        head.addStretch(1)
        head.addWidget(QLabel("Rate:"))
        head.addWidget(self.cmb_rate)
        head.addWidget(self.cmb_tax)
        head.addWidget(self.chk_vat)
        head.addWidget(self.txt_scan)
        main.addLayout(head)

        # ---- grid + product panel ----
        body = QHBoxLayout()
        self.tbl = QTableWidget(0, len(self.COLS))
        self.tbl.setHorizontalHeaderLabels(self.COLS)
        self.tbl.verticalHeader().setVisible(False)
        self.tbl.setSelectionBehavior(QAbstractItemView.SelectItems)
        self.tbl.setEditTriggers(
            QAbstractItemView.DoubleClicked | QAbstractItemView.EditKeyPressed | QAbstractItemView.AnyKeyPressed
        )
        hh = self.tbl.horizontalHeader()
        hh.setSectionResizeMode(QHeaderView.ResizeToContents)
        hh.setSectionResizeMode(COL_ITEM, QHeaderView.Stretch)
        self._grid_filter = GridEventFilter(self)
        self.tbl.installEventFilter(self._grid_filter)
        body.addWidget(self.tbl, 1)

        box_info = QGroupBox("Product")
        fl = QFormLayout(box_info)
        self.lab_info_name = QLabel("-")
        self.lab_info_purchase = QLabel("-")
        self.lab_info_profit = QLabel("-")
        self.lab_info_stock = QLabel("-")
        self.lab_info_total_stock = QLabel("-")
        self.lab_info_batch = QLabel("-")
        self.lab_info_expiry = QLabel("-")
        self.lab_info_pcs = QLabel("-")
        self.lab_stock_preview = QLabel("")
        fl.addRow("Item:", self.lab_info_name)
        fl.addRow("Purchase rate:", self.lab_info_purchase)
        fl.addRow("Profit:", self.lab_info_profit)
        fl.addRow("Stock:", self.lab_info_stock)
        fl.addRow("Total stock:", self.lab_info_total_stock)
        fl.addRow("Batch:", self.lab_info_batch)
        fl.addRow("Expiry:", self.lab_info_expiry)
        fl.addRow("Pcs inside:", self.lab_info_pcs)
        fl.addRow(self.lab_stock_preview)
        box_info.setFixedWidth(230)
        body.addWidget(box_info)
        main.addLayout(body, 1)

        # ---- totals ----
        box_tot = QGroupBox("Totals")
        grid = QGridLayout(box_tot)
        self.lab_gross = QLabel("0.00")
        self.lab_disc = QLabel("0.00")
        self.lab_vat = QLabel("0.00")
        self.lab_sub = QLabel("0.00")
        self.lab_grand = QLabel("0.00")
        self.lab_grand.setStyleSheet("font-weight: bold; font-size: 16px;")
        self.txt_other_disc = QLineEdit()
        self.txt_charges = QLineEdit()
        self.txt_freight = QLineEdit()
        self.txt_round = QLineEdit()
        for w in (self.txt_other_disc, self.txt_charges, self.txt_freight, self.txt_round):
            w.setPlaceholderText("0")
            w.setAlignment(Qt.AlignRight)
            w.textChanged.connect(lambda _t: self._refresh_totals())

        pairs = [
            ("Gross", self.lab_gross), ("Discount", self.lab_disc), ("VAT", self.lab_vat), ("Sub total", self.lab_sub),
            ("Other disc.", self.txt_other_disc), ("Other charges", self.txt_charges),
            ("Freight", self.txt_freight), ("Round off", self.txt_round),
        ]
        for i, (text, w) in enumerate(pairs):
            grid.addWidget(QLabel(text), i // 4 * 2, i % 4)
            grid.addWidget(w, i // 4 * 2 + 1, i % 4)
        grid.addWidget(QLabel("Grand total"), 0, 4)
        grid.addWidget(self.lab_grand, 1, 4)
        main.addWidget(box_tot)

        self.btn_add = QPushButton("Add Row")
        self.buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        foot = QHBoxLayout()
        foot.addWidget(self.btn_add)
        foot.addStretch(1)
        foot.addWidget(self.buttons)
        main.addLayout(foot)

        # ---- debounce for the stock preview while scrolling the product list ----
        self._preview_pid = None
        self._stock_timer = QTimer(self)
        self._stock_timer.setSingleShot(True)
        self._stock_timer.setInterval(STOCK_DEBOUNCE_MS)
        self._stock_timer.timeout.connect(self._show_stock_preview)

        # ---- wiring ----
        self.cmb_tax.currentIndexChanged.connect(lambda _i: self._on_tax_mode_changed())
        self.chk_vat.toggled.connect(self._on_vat_toggled)
        self.cmb_rate.currentIndexChanged.connect(lambda _i: self._on_rate_changed())
        self.txt_scan.returnPressed.connect(lambda: self.scan_code(self.txt_scan.text()))
        self.tbl.cellChanged.connect(self._cell_changed)
        self.tbl.currentCellChanged.connect(self._current_cell_changed)
        self.btn_add.clicked.connect(self._add_empty_line)
        self.buttons.accepted.connect(self.accept)
        self.buttons.rejected.connect(self.reject)

        app = QApplication.instance()
        if app is not None:
            app.focusChanged.connect(self._on_focus_changed)

        self._sync_rows()
        self._refresh_totals()

    # ------------------------------------------------------------------
    # Row construction
    # ------------------------------------------------------------------

    def _with_signal_blocking(self, widget, callback):
        """Helper to execute a callback with signal blocking."""
        widget.blockSignals(True)
        try:
            return callback()
        finally:
            widget.blockSignals(False)

    def _add_row(self):
        r = self.tbl.rowCount()
        self.tbl.insertRow(r)

        num = QTableWidgetItem(str(r + 1))
        num.setFlags(Qt.ItemIsSelectable | Qt.ItemIsEnabled)
        self.tbl.setItem(r, COL_NUM, num)

        cmb_item = QComboBox()
        cmb_item.setEditable(True)
        labels = [f"{p.name} ({p.code})" if p.code else p.name for p in self._products]
        completer = QCompleter(labels, self)
        completer.setCaseSensitivity(Qt.CaseInsensitive)
        completer.setFilterMode(Qt.MatchContains)
        cmb_item.setCompleter(completer)
        # empty first entry so nothing is selected by default
        cmb_item.addItem("", None)
        for label, p in zip(labels, self._products):
            cmb_item.addItem(label, p.product_id)
        cmb_item.setCurrentIndex(0)
        cmb_item.currentIndexChanged.connect(lambda _i, c=cmb_item: self._on_item_changed(c))
        cmb_item.highlighted.connect(lambda i, c=cmb_item: self._queue_stock_preview(c.itemData(i)))
        self.tbl.setCellWidget(r, COL_ITEM, cmb_item)

        cmb_unit = QComboBox()
        cmb_unit.currentIndexChanged.connect(lambda _i, c=cmb_unit: self._on_unit_changed(c))
        self.tbl.setCellWidget(r, COL_UNIT, cmb_unit)

        for c in range(COL_QTY, COL_DEL):
            it = QTableWidgetItem("")
            it.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
            if c in EDITABLE_COLS:
                it.setFlags(Qt.ItemIsSelectable | Qt.ItemIsEditable | Qt.ItemIsEnabled)
            else:
                it.setFlags(Qt.ItemIsSelectable | Qt.ItemIsEnabled)
            self.tbl.setItem(r, c, it)

        btn_del = QPushButton("✕")
        btn_del.setFocusPolicy(Qt.NoFocus)
        btn_del.clicked.connect(lambda _=False, b=btn_del: self._delete_row_for_button(b))
        self.tbl.setCellWidget(r, COL_DEL, btn_del)

    def _sync_rows(self):
        """Grow/shrink the table to the document's line count and repaint every row."""
        def sync():
            while self.tbl.rowCount() < len(self.doc.lines):
                self._add_row()
            while self.tbl.rowCount() > len(self.doc.lines):
                self.tbl.removeRow(self.tbl.rowCount() - 1)
        self._with_signal_blocking(self.tbl, sync)
        for r in range(self.tbl.rowCount()):
            self._refresh_row(r)

    def _row_of_widget(self, w) -> int:
        for r in range(self.tbl.rowCount()):
            for c in (COL_ITEM, COL_UNIT, COL_DEL):
                cell = self.tbl.cellWidget(r, c)
                if cell is not None and (cell is w or cell.isAncestorOf(w)):
                    return r
        return -1

    def _delete_row_for_button(self, btn: QPushButton):
        r = self._row_of_widget(btn)
        if r < 0:
            return
        self.doc.remove_line(self.doc.lines[r].line_id)
        if self.tbl.rowCount() > len(self.doc.lines):
            self._with_signal_blocking(self.tbl, lambda: self.tbl.removeRow(r))
        self._sync_rows()
        self._refresh_totals()
        self._show_product_info(None)

    def _add_empty_line(self):
        self.doc.add_line()
        self._sync_rows()
        self._focus_cell(self.tbl.rowCount() - 1, COL_ITEM)

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------

    def _refresh_row(self, r: int):
        if not (0 <= r < len(self.doc.lines)):
            return
        line = self.doc.lines[r]

        def fill():
            self.tbl.item(r, COL_NUM).setText(str(r + 1))

            cmb_item: QComboBox = self.tbl.cellWidget(r, COL_ITEM)
            idx = cmb_item.findData(line.product_id) if line.product_id is not None else 0
            self._with_signal_blocking(cmb_item, lambda: cmb_item.setCurrentIndex(max(idx, 0)))

            cmb_unit: QComboBox = self.tbl.cellWidget(r, COL_UNIT)

            def fill_units():
                cmb_unit.clear()
                for opt in line.unit_options:
                    cmb_unit.addItem(opt.name, opt.key)
                i = cmb_unit.findData(line.unit_key)
                if i >= 0:
                    cmb_unit.setCurrentIndex(i)
                cmb_unit.setEnabled(len(line.unit_options) > 1)
            self._with_signal_blocking(cmb_unit, fill_units)

            if not line.has_product:
                for c in range(COL_QTY, COL_DEL):
                    self.tbl.item(r, c).setText("")
                return
            self.tbl.item(r, COL_QTY).setText(fmt_qty(line.quantity))
            self.tbl.item(r, COL_PRICE).setText(f"{line.price:.2f}")
            self.tbl.item(r, COL_GROSS).setText(fmt_money(line.gross))
            self.tbl.item(r, COL_DISC_PCT).setText(f"{line.discount_percent:g}")
            self.tbl.item(r, COL_DISC_AMT).setText(f"{line.discount_amount:.2f}")
            self.tbl.item(r, COL_VAT).setText(fmt_money(line.vat_amount))
            self.tbl.item(r, COL_TOTAL).setText(fmt_money(line.total))

        self._with_signal_blocking(self.tbl, fill)

    def _refresh_line(self, line_id: int):
        line = self.doc.find_line(line_id)
        if line is not None:
            self._refresh_row(self.doc.lines.index(line))

    def _adjustments(self) -> Adjustments:
        return Adjustments(
            other_discount=parse_numeric_input(self.txt_other_disc.text()),
            other_charges=parse_numeric_input(self.txt_charges.text()),
            freight=parse_numeric_input(self.txt_freight.text()),
            round_off=parse_numeric_input(self.txt_round.text()),
        )

    def _refresh_totals(self):
        t = self.doc.totals()
        g = self.doc.grand_total(self._adjustments())
        self.lab_gross.setText(fmt_money(t.gross))
        self.lab_disc.setText(fmt_money(t.discount))
        self.lab_vat.setText(fmt_money(g.vat_total))
        self.lab_sub.setText(fmt_money(g.sub_total))
        self.lab_grand.setText(fmt_money(g.grand_total))

    def _show_product_info(self, line_id: int | None):
        pi = self.doc.product_info(line_id) if line_id is not None else None
        if pi is None:
            for lab in (self.lab_info_name, self.lab_info_purchase, self.lab_info_profit, self.lab_info_stock,
                        self.lab_info_total_stock, self.lab_info_batch, self.lab_info_expiry, self.lab_info_pcs):
                lab.setText("-")
            return
        self.lab_info_name.setText(pi.product_name)
        self.lab_info_purchase.setText(fmt_money(pi.purchase_rate))
        self.lab_info_profit.setText(fmt_money(pi.profit))
        self.lab_info_stock.setText(fmt_qty(pi.stock))
        self.lab_info_total_stock.setText(fmt_qty(pi.total_stock))
        self.lab_info_batch.setText(pi.batch_number or "-")
        self.lab_info_expiry.setText(pi.expiry_date or "-")
        self.lab_info_pcs.setText(fmt_qty(pi.pieces_per_unit) if pi.pieces_per_unit else "-")

    def _focus_cell(self, r: int, c: int):
        if not (0 <= r < self.tbl.rowCount()):
            return
        self.tbl.setCurrentCell(r, c)
        w = self.tbl.cellWidget(r, c)
        if w is not None:
            w.setFocus()
        else:
            self.tbl.setFocus()

    # ------------------------------------------------------------------
    # Product selection
    # ------------------------------------------------------------------

    def _on_item_changed(self, cmb: QComboBox):
        r = self._row_of_widget(cmb)
        if r < 0:
            return
        self.choose_product(r, cmb.currentData())

    def choose_product(self, r: int, product_id) -> SelectionOutcome:
        line = self.doc.lines[r]
        token = self.doc.begin_selection(line.line_id)
        product = self.doc.lookups.product(int(product_id)) if product_id else None
        outcome = self.doc.select_product(line.line_id, product, token=token)
        return self._handle_outcome(r, outcome)

    def scan_code(self, text: str, r: int | None = None) -> SelectionOutcome | None:
        code = (text or "").strip()
        if not code:
            return None
        if r is None:
            r = self._scan_target_row()
        outcome = self.doc.select_by_scan(self.doc.lines[r].line_id, code)
        if outcome.status is SelectionStatus.NOT_FOUND:
            info(self, "Not found", f"No product matches “{code}”.")
        self.txt_scan.clear()
        return self._handle_outcome(r, outcome)

    def _scan_target_row(self) -> int:
        r = self.tbl.currentRow()
        if 0 <= r < len(self.doc.lines) and not self.doc.lines[r].has_product:
            return r
        for i, line in enumerate(self.doc.lines):
            if not line.has_product:
                return i
        self.doc.add_line()
        self._sync_rows()
        return len(self.doc.lines) - 1

    def reopen_batches(self, r: int) -> SelectionOutcome | None:
        if not (0 <= r < len(self.doc.lines)):
            return None
        outcome = self.doc.reopen_batch_choice(self.doc.lines[r].line_id)
        if outcome.status is SelectionStatus.CANCELLED:
            return outcome
        return self._handle_outcome(r, outcome)

    def _ask_batch(self, batches, product_name: str = ""):
        """Modal batch picker; returns the chosen batch or None when cancelled."""
        dlg = BatchPickerDialog(self, batches, product_name)
        if dlg.exec() == QDialog.Accepted:
            return dlg.selected_batch()
        return None

    def _handle_outcome(self, r: int, outcome: SelectionOutcome) -> SelectionOutcome:
        line_id = outcome.line_id
        if outcome.status is SelectionStatus.NEEDS_BATCH:
            cmb_item: QComboBox = self.tbl.cellWidget(r, COL_ITEM)
            batch = self._ask_batch(outcome.batches, cmb_item.currentText() if cmb_item else "")
            if batch is None:
                outcome = self.doc.cancel_batch_choice(line_id)
            else:
                outcome = self.doc.choose_batch(line_id, batch)

        if outcome.status is SelectionStatus.REJECTED:
            warn(self, "Stock", outcome.message)
        elif outcome.status is SelectionStatus.STALE:
            _log.debug("ignored stale selection on row %s", r)

        self._sync_rows()
        self._refresh_totals()
        self._show_product_info(line_id)
        if outcome.applied:
            self._focus_cell(r, COL_QTY)
        return outcome

    def _queue_stock_preview(self, product_id):
        self._preview_pid = product_id
        self._stock_timer.start()

    def _show_stock_preview(self):
        pid = self._preview_pid
        if not pid:
            self.lab_stock_preview.setText("")
            return
        stock = self.doc.lookups.stock(int(pid))
        self.lab_stock_preview.setText(f"In stock: {fmt_qty(stock)}")

    # ------------------------------------------------------------------
    # Field edits
    # ------------------------------------------------------------------

    def _on_unit_changed(self, cmb: QComboBox):
        r = self._row_of_widget(cmb)
        if r < 0 or cmb.currentData() is None:
            return
        line = self.doc.lines[r]
        self._enter_row(r)
        notice = self.doc.set_unit(line.line_id, cmb.currentData())
        self._after_edit(r, notice)

    def _cell_changed(self, r: int, c: int):
        if not (0 <= r < len(self.doc.lines)) or c not in EDITABLE_COLS:
            return
        it = self.tbl.item(r, c)
        if it is None:
            return
        line_id = self.doc.lines[r].line_id
        value = parse_numeric_input(it.text())
        notice = None
        if c == COL_QTY:
            notice = self.doc.set_quantity(line_id, value)
        elif c == COL_PRICE:
            self.doc.set_price(line_id, value)
        elif c == COL_DISC_PCT:
            self.doc.set_discount_percent(line_id, value)
        elif c == COL_DISC_AMT:
            self.doc.set_discount_amount(line_id, value)
        self._after_edit(r, notice)

    def _after_edit(self, r: int, notice: StockNotice | None):
        self._refresh_row(r)
        self._refresh_totals()
        self._show_product_info(self.doc.lines[r].line_id)
        if notice is not None:
            warn(self, "Stock", notice.message)
            QTimer.singleShot(0, lambda: self._focus_cell(r, COL_QTY))

    # ------------------------------------------------------------------
    # Row session
    # ------------------------------------------------------------------

    def _current_cell_changed(self, r: int, _c: int, prev_r: int, _prev_c: int):
        if r >= 0 and r != prev_r:
            self._enter_row(r)

    def _enter_row(self, r: int):
        if not (0 <= r < len(self.doc.lines)):
            return
        line = self.doc.lines[r]
        reverted = self.doc.enter_row(line.line_id)
        if reverted is not None and reverted != line.line_id:
            self._refresh_line(reverted)
            self._refresh_totals()
        self._show_product_info(line.line_id)

    def commit_row(self, r: int):
        line = self.doc.lines[r]
        result = self.doc.commit_row(line.line_id)
        if not result.ok:
            _log.debug("row %s: %s", r + 1, result.message)
            self._focus_cell(r, FIELD_COLS.get(result.field, COL_ITEM))
            return result
        self._sync_rows()
        self._refresh_totals()
        self._focus_cell(self.doc.index_of(result.next_line_id), COL_ITEM)
        return result

    def leave_grid(self):
        reverted = self.doc.leave_grid()
        if reverted is not None:
            self._refresh_line(reverted)
            self._refresh_totals()
        return reverted

    def _on_focus_changed(self, _old, now):
        if now is None or not self.isVisible() or self.doc.session.active_line_id is None:
            return
        if now is self.tbl or self.tbl.isAncestorOf(now):
            r = self._row_of_widget(now)
            if r >= 0:
                self._enter_row(r)
            return
        # popups and message boxes live in their own windows
        if now.window() is not self:
            return
        self.leave_grid()

    # ------------------------------------------------------------------
    # Document settings
    # ------------------------------------------------------------------

    def _on_tax_mode_changed(self):
        self.doc.set_tax_mode(self.cmb_tax.currentData())
        self._sync_rows()
        self._refresh_totals()

    def _on_vat_toggled(self, checked: bool):
        self.doc.set_vat_applies(checked)
        self._sync_rows()
        self._refresh_totals()

    def _on_rate_changed(self):
        self.doc.set_rate_type(self.cmb_rate.currentData())
        self._sync_rows()
        self._refresh_totals()

    # ------------------------------------------------------------------
    # Payload
    # ------------------------------------------------------------------

    def _validate_items(self) -> tuple[bool, list[str]]:
        errors = []
        for i, line in enumerate(self.doc.lines, start=1):
            if not line.has_product:
                continue
            failure = RowEditSession.validate(line)
            if failure is not None:
                errors.append(f"Row {i}: {failure[1]}")
        if not self.doc.committed_items():
            errors.append("Add at least one item.")
        return (not errors), errors

    def get_payload(self) -> dict | None:
        ok, errors = self._validate_items()
        if not ok:
            warn(self, "Missing or invalid fields", "Please fix the following:\n\n• " + "\n• ".join(errors))
            return None
        adj = self._adjustments()
        return {
            "doc_type": self.mode,
            "tax_mode": self.doc.tax_mode,
            "vat_applies": self.doc.vat_applies,
            "rate_type": self.doc.rate_type,
            "items": self.doc.committed_items(),
            "totals": asdict(self.doc.totals()),
            "adjustments": asdict(adj),
            "grand_total": asdict(self.doc.grand_total(adj)),
        }

    def accept(self):
        p = self.get_payload()
        if p is None:
            return
        self._payload = p
        super().accept()

    def payload(self):
        return self._payload
