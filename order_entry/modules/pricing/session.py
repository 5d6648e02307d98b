"""
pricing/session.py

Snapshot / commit / revert of the row under edit.

Numeric cells are edited keystroke by keystroke, so a row passes through
states nobody meant to keep (a half-typed quantity). Entering a row with a
product snapshots it, and so does placing a product on a row. Enter on the
price commits the row; leaving it any other way puts the snapshot back.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from .models import LineItem, EditState, CommitResult

__all__ = ["RowEditSession"]

_log = logging.getLogger(__name__)


class RowEditSession:
    def __init__(self, find_line: Callable[[int], Optional[LineItem]]):
        self._find_line = find_line
        self.active_line_id: int | None = None

    # ---- transitions ----

    def enter(self, line: LineItem) -> int | None:
        """
        Focus moved into `line`. Returns the id of a row that was reverted, if any.
        """
        if self.active_line_id == line.line_id and line.state in (EditState.EDITING, EditState.COMMITTED):
            return None
        reverted = self._revert_active()
        self.active_line_id = line.line_id
        if line.has_product:
            line.snapshot = line.capture()
            line.state = EditState.EDITING
        return reverted

    def leave(self) -> int | None:
        """Focus left the grid entirely."""
        reverted = self._revert_active()
        self.active_line_id = None
        return reverted

    def commit(self, line: LineItem) -> CommitResult:
        """Validate and accept the row's edits. Navigation is the caller's job."""
        failure = self.validate(line)
        if failure is not None:
            field, message = failure
            _log.debug("row %s not committed: %s", line.line_id, message)
            return CommitResult(ok=False, line_id=line.line_id, field=field, message=message)
        self.mark_committed(line)
        return CommitResult(ok=True, line_id=line.line_id)

    def begin(self, line: LineItem) -> None:
        """
        A product was just placed on `line`. The populated row becomes the
        snapshot, so the selection itself stands while later edits made
        without a commit are still undone.
        """
        if self.active_line_id != line.line_id:
            self._revert_active()
        self.active_line_id = line.line_id
        line.snapshot = line.capture()
        line.state = EditState.EDITING

    def mark_committed(self, line: LineItem) -> None:
        if self.active_line_id != line.line_id:
            self._revert_active()
        line.state = EditState.COMMITTED
        line.snapshot = None
        self.active_line_id = line.line_id

    def forget(self, line_id: int) -> None:
        """The row is gone; drop whatever the session held for it."""
        if self.active_line_id == line_id:
            self.active_line_id = None

    # ---- helpers ----

    @staticmethod
    def validate(line: LineItem) -> tuple[str, str] | None:
        """First offending field as (field, message), or None when the row is complete."""
        if not line.has_product:
            return "product", "Select a product."
        if line.chosen_unit is None:
            return "unit", "Select a unit."
        if line.quantity <= 0:
            return "quantity", "Quantity must be greater than zero."
        if line.price <= 0:
            return "price", "Price must be greater than zero."
        return None

    def _revert_active(self) -> int | None:
        if self.active_line_id is None:
            return None
        line = self._find_line(self.active_line_id)
        if line is None or line.state is not EditState.EDITING:
            return None
        if line.snapshot is not None:
            line.restore(line.snapshot)
        line.snapshot = None
        line.state = EditState.IDLE
        _log.debug("row %s reverted to snapshot", line.line_id)
        return line.line_id
