from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel, QDialog
from PySide6.QtCore import Qt
import logging
import sqlite3

from ..base_module import BaseModule
from .form import LineEntryForm, MODES
from ...utils.helpers import fmt_money

_log = logging.getLogger(__name__)


class EntryView(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        lay = QVBoxLayout(self)
        row = QHBoxLayout()
        self.buttons: dict[str, QPushButton] = {}
        for mode, title in MODES.items():
            btn = QPushButton(f"New {title}")
            self.buttons[mode] = btn
            row.addWidget(btn)
        row.addStretch(1)
        lay.addLayout(row)
        self.lab_last = QLabel("No document entered yet.")
        self.lab_last.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        lay.addWidget(self.lab_last, 1)


class EntryController(BaseModule):
    """
    Opens the entry grid in each document mode and keeps the last accepted
    payload. Saving documents is left to whoever consumes `last_payload`.
    """

    def __init__(self, conn: sqlite3.Connection):
        super().__init__()
        self.conn = conn
        self.view = EntryView()
        self.last_payload: dict | None = None
        self.active_dialog = None
        for mode, btn in self.view.buttons.items():
            btn.clicked.connect(lambda _=False, m=mode: self.open_form(m))

    def get_widget(self) -> QWidget:
        return self.view

    def open_form(self, mode: str) -> dict | None:
        dlg = LineEntryForm(self.view, conn=self.conn, mode=mode)
        self.active_dialog = dlg
        try:
            if dlg.exec() != QDialog.Accepted:
                return None
            payload = dlg.payload()
        finally:
            self.active_dialog = None
        self._on_payload(payload)
        return payload

    def _on_payload(self, payload: dict | None):
        if not payload:
            return
        self.last_payload = payload
        grand = payload["grand_total"]["grand_total"]
        n = len(payload["items"])
        _log.info("%s accepted: %d item(s), grand total %s", payload["doc_type"], n, fmt_money(grand))
        self.view.lab_last.setText(
            f"Last {MODES[payload['doc_type']]}: {n} item(s), grand total {fmt_money(grand)}"
        )
