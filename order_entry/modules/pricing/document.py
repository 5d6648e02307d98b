"""
pricing/document.py

LineDocument: the line collection of one purchase return / quotation / sale,
independent of any screen. Tax mode, VAT applicability and rate type are
document settings; changing any of them re-runs every line.

Flow on product selection:
    batches -> batch decision -> unit options -> stock cap -> amounts
and on every field edit:
    (quantity/unit) stock cap -> amounts
"""
from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

from ...constants import (
    VAT_RATE,
    QTY_DECIMALS,
    TAX_INCLUSIVE,
    TAX_EXCLUSIVE,
    RATE_RETAIL,
    RATE_TYPES,
)
from ...database.repositories.batches_repo import Batch
from ...database.repositories.products_repo import Product
from ...utils.helpers import round2, round_down, round_half_up
from .batches import BatchDecision, select_batch
from .calculator import EDITED_AMOUNT, EDITED_PERCENT, compute_line
from .lookups import Lookups
from .models import (
    Adjustments,
    CommitResult,
    DocumentTotals,
    DomainError,
    EditState,
    GrandTotal,
    LineItem,
    ProductInfo,
    SelectionOutcome,
    SelectionStatus,
    StockNotice,
)
from .session import RowEditSession
from .stock import StockAllocator
from .units import build_unit_options, pick_unit

__all__ = ["LineDocument"]

_log = logging.getLogger(__name__)


def _finite(value) -> float:
    """Numeric field input as a float; missing, nan and infinite read as 0."""
    number = float(value or 0)
    return number if math.isfinite(number) else 0.0


@dataclass
class _PendingSelection:
    product: Product
    token: int
    batches: tuple[Batch, ...]
    matched_multi_unit_id: int | None = None
    scan_code: str | None = None


class LineDocument:
    def __init__(
        self,
        lookups: Lookups,
        *,
        tax_mode: str = TAX_INCLUSIVE,
        vat_applies: bool = True,
        rate_type: str = RATE_RETAIL,
        vat_rate: float = VAT_RATE,
    ):
        self._check_tax_mode(tax_mode)
        self._check_rate_type(rate_type)
        self.lookups = lookups
        self.tax_mode = tax_mode
        self.vat_applies = bool(vat_applies)
        self.rate_type = rate_type
        self.vat_rate = float(vat_rate)
        self.allocator = StockAllocator()
        self.session = RowEditSession(self.find_line)
        self._ids = itertools.count(1)
        self._tokens = itertools.count(1)
        self._pending: dict[int, _PendingSelection] = {}
        self.lines: list[LineItem] = []
        self.add_line()

    # ------------------------------------------------------------------
    # Line collection
    # ------------------------------------------------------------------

    def add_line(self) -> LineItem:
        line = LineItem(line_id=next(self._ids))
        self.lines.append(line)
        return line

    def find_line(self, line_id: int) -> Optional[LineItem]:
        for line in self.lines:
            if line.line_id == line_id:
                return line
        return None

    def line(self, line_id: int) -> LineItem:
        line = self.find_line(line_id)
        if line is None:
            raise DomainError(f"Unknown line id: {line_id}")
        return line

    def index_of(self, line_id: int) -> int:
        return self.lines.index(self.line(line_id))

    def remove_line(self, line_id: int) -> None:
        """Remove a row; the last remaining row is reset to empty instead."""
        line = self.line(line_id)
        self.session.forget(line_id)
        self._pending.pop(line_id, None)
        if len(self.lines) == 1:
            self._clear(line)
            return
        self.lines.remove(line)

    def clear(self) -> None:
        self.lines = []
        self._pending.clear()
        self.session.active_line_id = None
        self.add_line()

    def load_items(self, items: Iterable[dict]) -> list[SelectionOutcome]:
        """
        Replace every line with saved items (product_id, multi_unit_id,
        batch_number, quantity, price, discount_amount). Saved quantities were
        already taken from stock, so they are kept rather than re-capped.
        """
        self.lines = []
        self._pending.clear()
        self.session.active_line_id = None
        outcomes: list[SelectionOutcome] = []
        for item in items:
            line = self.add_line()
            product = self.lookups.product(int(item["product_id"]))
            if product is None:
                outcomes.append(SelectionOutcome(SelectionStatus.NOT_FOUND, line.line_id, "Product not found."))
                continue
            batch = None
            number = item.get("batch_number")
            if number:
                batch = next((b for b in self.lookups.batches(product.product_id) if b.batch_number == number), None)
            self._populate(line, product, batch, matched_multi_unit_id=item.get("multi_unit_id"))
            line.quantity = _finite(item.get("quantity"))
            if item.get("price") is not None:
                line.price = round2(item["price"])
            line.discount_amount = round2(item.get("discount_amount") or 0)
            self._recompute(line, EDITED_AMOUNT)
            line.state = EditState.COMMITTED
            outcomes.append(SelectionOutcome(SelectionStatus.APPLIED, line.line_id))
        if not self.lines:
            self.add_line()
        return outcomes

    # ------------------------------------------------------------------
    # Product selection
    # ------------------------------------------------------------------

    def begin_selection(self, line_id: int) -> int:
        """Issue a new request token for the line; older ones become stale."""
        line = self.line(line_id)
        line.request_token = next(self._tokens)
        self._pending.pop(line_id, None)
        return line.request_token

    def select_product(
        self,
        line_id: int,
        product: Optional[Product],
        *,
        matched_multi_unit_id: int | None = None,
        scan_code: str | None = None,
        token: int | None = None,
    ) -> SelectionOutcome:
        line = self.line(line_id)
        if token is None:
            token = self.begin_selection(line_id)
        elif token != line.request_token:
            _log.debug("discarding stale selection for line %s (token %s)", line_id, token)
            return SelectionOutcome(SelectionStatus.STALE, line_id)

        if product is None:
            self._clear(line)
            return SelectionOutcome(SelectionStatus.NOT_FOUND, line_id, "Product not found.")

        choice = select_batch(product, self.lookups.batches(product.product_id))
        if choice.decision is BatchDecision.CHOOSE:
            self._pending[line_id] = _PendingSelection(
                product=product,
                token=token,
                batches=choice.candidates,
                matched_multi_unit_id=matched_multi_unit_id,
                scan_code=scan_code,
            )
            return SelectionOutcome(SelectionStatus.NEEDS_BATCH, line_id, batches=choice.candidates)
        return self._complete_selection(line, product, choice.batch, matched_multi_unit_id, scan_code)

    def select_by_code(self, line_id: int, code: str) -> SelectionOutcome:
        token = self.begin_selection(line_id)
        product = self.lookups.product_by_code(code)
        return self.select_product(line_id, product, token=token)

    def select_by_scan(self, line_id: int, scan_code: str) -> SelectionOutcome:
        token = self.begin_selection(line_id)
        found = self.lookups.product_by_scan(scan_code)
        if found is None:
            return self.select_product(line_id, None, token=token)
        product, multi_unit_id = found
        return self.select_product(
            line_id,
            product,
            matched_multi_unit_id=multi_unit_id,
            scan_code=scan_code,
            token=token,
        )

    def pending_batches(self, line_id: int) -> tuple[Batch, ...]:
        pending = self._pending.get(line_id)
        return pending.batches if pending else ()

    def choose_batch(self, line_id: int, batch: Batch) -> SelectionOutcome:
        line = self.line(line_id)
        pending = self._pending.pop(line_id, None)
        if pending is None:
            raise DomainError(f"No batch choice pending for line {line_id}")
        if pending.token != line.request_token:
            return SelectionOutcome(SelectionStatus.STALE, line_id)
        return self._complete_selection(
            line, pending.product, batch, pending.matched_multi_unit_id, pending.scan_code
        )

    def cancel_batch_choice(self, line_id: int) -> SelectionOutcome:
        """Operator escaped the batch picker; the line stays as it was."""
        self.line(line_id)
        self._pending.pop(line_id, None)
        return SelectionOutcome(SelectionStatus.CANCELLED, line_id)

    def reopen_batch_choice(self, line_id: int) -> SelectionOutcome:
        """Enter on the item cell of a batch-tracked row: offer its batches again."""
        line = self.line(line_id)
        product = line.product
        if product is None or not product.allow_batches:
            return SelectionOutcome(SelectionStatus.CANCELLED, line_id)
        return self.select_product(line_id, product)

    def _complete_selection(
        self,
        line: LineItem,
        product: Product,
        batch: Optional[Batch],
        matched_multi_unit_id: int | None,
        scan_code: str | None,
    ) -> SelectionOutcome:
        if batch is not None:
            total_stock = float(batch.quantity)
        else:
            total_stock = self.lookups.stock(product.product_id)

        self.session.enter(line)
        candidate = LineItem(line_id=line.line_id)
        self._populate(candidate, product, batch, matched_multi_unit_id, scan_code, total_stock)

        remaining = self.allocator.cap_pieces(candidate, self.lines)
        if remaining <= 0:
            return self._reject(line, f'Cannot add "{product.name}": no stock available.')
        max_qty = self.allocator.max_quantity(candidate, self.lines)
        if max_qty <= 0:
            return self._reject(line, f'Cannot add "{product.name}": not enough stock for this unit.')

        line.restore(candidate.capture())
        line.quantity = min(1.0, max_qty)
        self._recompute(line)
        self.session.begin(line)
        _log.debug(
            "line %s: %s x %s @ %s (batch %s)",
            line.line_id, product.name, line.quantity, line.price, line.batch_number,
        )
        return SelectionOutcome(SelectionStatus.APPLIED, line.line_id)

    def _reject(self, line: LineItem, message: str) -> SelectionOutcome:
        self._clear(line)
        _log.info("line %s: %s", line.line_id, message)
        return SelectionOutcome(SelectionStatus.REJECTED, line.line_id, message)

    @staticmethod
    def _clear(line: LineItem) -> None:
        # an emptied row has nothing left to revert to
        line.reset()
        line.snapshot = None
        line.state = EditState.IDLE

    def _populate(
        self,
        line: LineItem,
        product: Product,
        batch: Optional[Batch],
        matched_multi_unit_id: int | None = None,
        scan_code: str | None = None,
        total_stock: float | None = None,
    ) -> None:
        options = build_unit_options(product, self.rate_type, batch)
        unit = pick_unit(options, matched_multi_unit_id=matched_multi_unit_id, scan_code=scan_code)
        line.product = product
        line.unit_options = options
        line.unit_key = unit.key if unit else None
        line.batch = batch
        line.price = unit.price if unit else 0.0
        line.purchase_price = round2(
            batch.purchase_price if batch is not None and batch.purchase_price else product.purchase_price
        )
        line.discount_percent = 0.0
        line.discount_amount = 0.0
        if total_stock is None:
            total_stock = float(batch.quantity) if batch is not None else self.lookups.stock(product.product_id)
        line.base_stock_pieces = float(total_stock)
        line.batch_max_pieces = float(batch.quantity) if batch is not None else None

    # ------------------------------------------------------------------
    # Field edits
    # ------------------------------------------------------------------

    def set_quantity(self, line_id: int, quantity: float) -> Optional[StockNotice]:
        line = self.line(line_id)
        requested = max(_finite(quantity), 0.0)
        notice = None
        if line.has_product:
            kept, clamped = self.allocator.clamp(line, self.lines, requested)
            if clamped:
                notice = StockNotice(line_id=line_id, requested=requested, allowed=kept)
                _log.info("line %s: quantity %s clamped to %s", line_id, requested, kept)
            requested = kept
        line.quantity = requested
        self._recompute(line)
        return notice

    def set_price(self, line_id: int, price: float) -> None:
        line = self.line(line_id)
        line.price = round2(max(_finite(price), 0.0))
        self._recompute(line)

    def set_discount_percent(self, line_id: int, percent: float) -> None:
        line = self.line(line_id)
        line.discount_percent = min(max(_finite(percent), 0.0), 100.0)
        self._recompute(line, EDITED_PERCENT)

    def set_discount_amount(self, line_id: int, amount: float) -> None:
        line = self.line(line_id)
        line.discount_amount = max(_finite(amount), 0.0)
        self._recompute(line, EDITED_AMOUNT)

    def set_unit(self, line_id: int, unit_key: str) -> Optional[StockNotice]:
        """
        Switch the line's unit: price follows the unit, discount resets, and
        the quantity is re-capped for the new conversion factor.
        """
        line = self.line(line_id)
        unit = next((u for u in line.unit_options if u.key == unit_key), None)
        if unit is None:
            raise DomainError(f"Line {line_id} has no unit {unit_key!r}")
        line.unit_key = unit.key
        line.price = unit.price
        line.discount_percent = 0.0
        line.discount_amount = 0.0
        kept, clamped = self.allocator.clamp(line, self.lines, line.quantity)
        notice = None
        if clamped:
            notice = StockNotice(line_id=line_id, requested=line.quantity, allowed=kept)
        line.quantity = kept
        self._recompute(line)
        return notice

    def max_quantity(self, line_id: int) -> float:
        line = self.line(line_id)
        if not line.has_product:
            return 0.0
        return self.allocator.max_quantity(line, self.lines)

    # ------------------------------------------------------------------
    # Row session
    # ------------------------------------------------------------------

    def enter_row(self, line_id: int) -> int | None:
        return self.session.enter(self.line(line_id))

    def leave_grid(self) -> int | None:
        return self.session.leave()

    def commit_row(self, line_id: int) -> CommitResult:
        """
        Enter on the price cell. On success focus moves to the next row,
        appending an empty one when this was the last.
        """
        line = self.line(line_id)
        result = self.session.commit(line)
        if not result.ok:
            return result
        idx = self.lines.index(line)
        if idx < len(self.lines) - 1:
            nxt = self.lines[idx + 1]
        else:
            nxt = self.add_line()
        self.session.enter(nxt)
        return CommitResult(ok=True, line_id=line_id, next_line_id=nxt.line_id)

    # ------------------------------------------------------------------
    # Document settings
    # ------------------------------------------------------------------

    def set_tax_mode(self, tax_mode: str) -> None:
        self._check_tax_mode(tax_mode)
        self.tax_mode = tax_mode
        self.recompute_all()

    def set_vat_applies(self, vat_applies: bool) -> None:
        self.vat_applies = bool(vat_applies)
        self.recompute_all()

    def set_rate_type(self, rate_type: str) -> None:
        """Re-price every unit option; chosen units and quantities stay."""
        self._check_rate_type(rate_type)
        self.rate_type = rate_type
        for line in self.lines:
            if line.has_product:
                self._reprice(line)
            self._update_snapshot(line, self._reprice)
        self.recompute_all()

    def recompute_all(self) -> None:
        """Re-run every line, and the snapshot of the row under edit with it."""
        for line in self.lines:
            if line.has_product:
                self._recompute(line)
            self._update_snapshot(line, self._recompute)

    def _reprice(self, line: LineItem) -> None:
        line.unit_options = build_unit_options(line.product, self.rate_type, line.batch)
        unit = line.chosen_unit
        if unit is not None:
            line.price = unit.price

    @staticmethod
    def _update_snapshot(line: LineItem, apply) -> None:
        # a revert must not bring back amounts worked out under old settings
        if line.snapshot is None:
            return
        held = LineItem(line_id=line.line_id)
        held.restore(line.snapshot)
        if held.has_product:
            apply(held)
        line.snapshot = held.capture()

    def _recompute(self, line: LineItem, edited: str | None = None) -> None:
        amounts = compute_line(
            line.quantity,
            line.price,
            discount_percent=line.discount_percent,
            discount_amount=line.discount_amount,
            edited=edited,
            tax_mode=self.tax_mode,
            vat_applies=self.vat_applies,
            rate=self.vat_rate,
        )
        line.gross = amounts.gross
        line.discount_percent = amounts.discount_percent
        line.discount_amount = amounts.discount_amount
        line.vat_amount = amounts.vat_amount
        line.total = amounts.total

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def totals(self) -> DocumentTotals:
        priced = [line for line in self.lines if line.has_product]
        return DocumentTotals(
            gross=round2(sum(line.gross for line in priced)),
            discount=round2(sum(line.discount_amount for line in priced)),
            vat=round2(sum(line.vat_amount for line in priced)),
            total=round2(sum(line.total for line in priced)),
            quantity=round_half_up(sum(line.quantity for line in priced), QTY_DECIMALS),
            item_count=len(priced),
        )

    def grand_total(self, adjustments: Adjustments | None = None) -> GrandTotal:
        """
        Line totals plus header adjustments. With VAT on, adjustments are
        treated as tax-inclusive and their VAT is extracted for reporting.
        """
        adj = adjustments or Adjustments()
        t = self.totals()
        net_adj = adj.net
        adj_vat = 0.0
        if self.vat_applies and net_adj != 0:
            adj_vat = round2(net_adj * self.vat_rate / (100.0 + self.vat_rate))
        return GrandTotal(
            sub_total=t.total,
            adjustments_vat=adj_vat,
            vat_total=round2(t.vat + adj_vat),
            grand_total=round2(t.total + net_adj),
        )

    def committed_items(self) -> list[dict]:
        """Lines ready to save: every row holding a product, in grid order."""
        items = []
        for line in self.lines:
            if not line.has_product:
                continue
            unit = line.chosen_unit
            items.append({
                "product_id": line.product_id,
                "unit_id": unit.unit_id if unit else None,
                "multi_unit_id": unit.multi_unit_id if unit else None,
                "batch_number": line.batch_number,
                "quantity": line.quantity,
                "unit_price": line.price,
                "discount_amount": line.discount_amount,
                "vat_amount": line.vat_amount,
                "total": line.total,
            })
        return items

    def product_info(self, line_id: int) -> Optional[ProductInfo]:
        line = self.line(line_id)
        product = line.product
        if product is None:
            return None
        conv = line.conversion
        unit = line.chosen_unit
        cost = line.purchase_price * conv
        return ProductInfo(
            product_name=product.name,
            purchase_rate=line.purchase_price,
            price=line.price,
            profit=round2(line.price - cost),
            stock=round_down(max(self.allocator.cap_pieces(line, self.lines), 0.0), QTY_DECIMALS),
            total_stock=line.base_stock_pieces,
            batch_number=line.batch_number or "",
            expiry_date=(line.batch.expiry_date or "") if line.batch else "",
            pieces_per_unit=conv if unit is not None and unit.is_multi_unit else None,
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_tax_mode(tax_mode: str) -> None:
        if tax_mode not in (TAX_INCLUSIVE, TAX_EXCLUSIVE):
            raise DomainError(f"Unknown tax mode: {tax_mode!r}")

    @staticmethod
    def _check_rate_type(rate_type: str) -> None:
        if rate_type not in RATE_TYPES:
            raise DomainError(f"Unknown rate type: {rate_type!r}")
