from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QLabel, QTableWidget, QTableWidgetItem, QAbstractItemView,
    QHeaderView, QDialogButtonBox
)
from PySide6.QtCore import Qt, QEvent, QObject

from ...database.repositories.batches_repo import Batch
from ...utils.helpers import fmt_money, fmt_qty


class _BatchKeyFilter(QObject):
    """Up/Down move the highlight without wrapping; Enter picks; Escape cancels."""

    def __init__(self, dialog):
        super().__init__(dialog)
        self.dialog = dialog

    def eventFilter(self, obj, event):
        if event.type() == QEvent.KeyPress:
            key = event.key()
            if key == Qt.Key_Down:
                self.dialog.move_highlight(1)
                return True
            if key == Qt.Key_Up:
                self.dialog.move_highlight(-1)
                return True
            if key in (Qt.Key_Return, Qt.Key_Enter):
                self.dialog.accept()
                return True
            if key == Qt.Key_Escape:
                self.dialog.reject()
                return True
        return False


class BatchPickerDialog(QDialog):
    COLS = ["Batch", "Qty", "Purchase", "Retail", "Wholesale", "Expiry"]

    def __init__(self, parent=None, batches: list[Batch] | tuple[Batch, ...] = (), product_name: str = ""):
        super().__init__(parent)
        self.setWindowTitle("Select Batch")
        self.setModal(True)
        self.batches = list(batches)

        lay = QVBoxLayout(self)
        if product_name:
            lay.addWidget(QLabel(f"<b>{product_name}</b>"))

        self.tbl = QTableWidget(len(self.batches), len(self.COLS))
        self.tbl.setHorizontalHeaderLabels(self.COLS)
        self.tbl.verticalHeader().setVisible(False)
        self.tbl.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.tbl.setSelectionMode(QAbstractItemView.SingleSelection)
        self.tbl.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.tbl.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        for r, b in enumerate(self.batches):
            cells = [
                b.batch_number,
                fmt_qty(b.quantity),
                fmt_money(b.purchase_price),
                fmt_money(b.retail_price),
                fmt_money(b.wholesale_price),
                b.expiry_date or "",
            ]
            for c, text in enumerate(cells):
                it = QTableWidgetItem(text)
                if c in (1, 2, 3, 4):
                    it.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
                self.tbl.setItem(r, c, it)
        self.tbl.doubleClicked.connect(lambda _idx: self.accept())
        lay.addWidget(self.tbl, 1)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.buttons.accepted.connect(self.accept)
        self.buttons.rejected.connect(self.reject)
        lay.addWidget(self.buttons)

        self._keys = _BatchKeyFilter(self)
        self.tbl.installEventFilter(self._keys)
        self.installEventFilter(self._keys)

        self.current_index = 0
        if self.batches:
            self.tbl.selectRow(0)
        self.tbl.setFocus()
        self.resize(620, 300)

    # ---- navigation ----

    def _sync_index(self):
        model = self.tbl.selectionModel()
        rows = model.selectedRows() if model else []
        if rows:
            self.current_index = rows[0].row()

    def move_highlight(self, delta: int):
        """Move the highlight by `delta`, stopping at either end."""
        if not self.batches:
            return
        self._sync_index()
        idx = min(max(self.current_index + delta, 0), len(self.batches) - 1)
        self.current_index = idx
        self.tbl.selectRow(idx)

    def selected_batch(self) -> Batch | None:
        self._sync_index()
        if 0 <= self.current_index < len(self.batches):
            return self.batches[self.current_index]
        return None

    def accept(self):
        if self.selected_batch() is None:
            return
        super().accept()
