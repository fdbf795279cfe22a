"""
Invoice editor: the controller behind a form.

State is a plain InvoiceDraft; every mutation goes through a method here and
is followed by a full recomputation of the totals.
"""

import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Callable, Optional

from calculator import calculate_totals
from models import InvoiceDraft, InvoiceHeader, LineItem, TaxConfig, Totals
from printing import PrintSurfaceUnavailable, send_to_print
from renderer import render_invoice
from settings import Settings
from utils import generate_invoice_number, validate_invoice


logger = logging.getLogger(__name__)


def new_draft(settings: Optional[Settings] = None, today: Optional[date] = None) -> InvoiceDraft:
    """A blank invoice: fresh number, due in `settings.due_days`, one empty item."""
    settings = settings or Settings()
    today = today or date.today()
    header = InvoiceHeader(
        invoice_number=generate_invoice_number(today, suffix=settings.invoice_number_suffix),
        issue_date=today,
        due_date=today + timedelta(days=settings.due_days),
        notes=settings.default_notes,
        signature_location=settings.default_signature_location,
        signature_name=settings.default_signature_name,
    )
    return InvoiceDraft(header=header, items=[LineItem()], tax=TaxConfig())


class InvoiceEditor:
    def __init__(self, draft: Optional[InvoiceDraft] = None, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.draft = draft or new_draft(self.settings)
        self.error: str = ""
        self.totals: Totals = self._recompute()

    def _recompute(self) -> Totals:
        self.totals = calculate_totals(self.draft.items, self.draft.tax)
        return self.totals

    # ── Mutations ──────────────────────────────────────────────────────────────

    def update_header(self, field: str, value: Any) -> None:
        header = self.draft.header.model_dump()
        if field not in header:
            raise KeyError(f"Unknown invoice field '{field}'")
        header[field] = value
        self.draft.header = InvoiceHeader.model_validate(header)
        self._recompute()

    def update_tax(self, field: str, value: Any) -> None:
        tax = self.draft.tax.model_dump()
        if field not in tax:
            raise KeyError(f"Unknown tax field '{field}'")
        tax[field] = value
        self.draft.tax = TaxConfig.model_validate(tax)
        self._recompute()

    def add_item(self) -> None:
        self.draft.items.append(LineItem())
        self._recompute()

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.draft.items):
            raise IndexError(f"No line item at position {index} (have {len(self.draft.items)})")

    def update_item(self, index: int, field: str, value: Any) -> None:
        self._check_index(index)
        item = self.draft.items[index].model_dump()
        if field not in item:
            raise KeyError(f"Unknown item field '{field}'")
        item[field] = value
        self.draft.items[index] = LineItem.model_validate(item)
        self._recompute()

    def remove_item(self, index: int) -> bool:
        """Remove an item; the last remaining one is kept. Returns True if removed."""
        self._check_index(index)
        if len(self.draft.items) <= 1:
            return False
        del self.draft.items[index]
        self._recompute()
        return True

    # ── Submission ─────────────────────────────────────────────────────────────

    def submit(self, layout: Optional[str] = None) -> str:
        """Validate and render. On failure `error` holds the message and it is re-raised."""
        self.error = ""
        try:
            validate_invoice(self.draft)
        except ValueError as e:
            self.error = str(e)
            logger.warning("Invoice %s rejected: %s", self.draft.header.invoice_number, e)
            raise
        return render_invoice(
            self.draft,
            self.totals,
            layout=layout or self.settings.default_layout,
            settings=self.settings,
        )

    def print(self, layout: Optional[str] = None, opener: Optional[Callable[[str], bool]] = None) -> Path:
        html = self.submit(layout)
        kwargs = {"output_dir": self.settings.print_output_dir}
        if opener is not None:
            kwargs["opener"] = opener
        try:
            return send_to_print(html, **kwargs)
        except PrintSurfaceUnavailable as e:
            self.error = str(e)
            raise
