"""
Document rendering: turn an InvoiceDraft and its Totals into printable HTML.

Two layouts share one data contract:
  compact     A5 half page, logo row + footer address (the default)
  letterhead  A4 full page with the company letterhead at the top
"""

import os
from typing import List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from calculator import calculate_totals
from models import InvoiceDraft, TaxPolicy, Totals
from settings import LAYOUTS, Settings
from utils import (
    escape_multiline,
    format_date_long,
    format_date_short,
    format_number,
    format_rupiah,
)


TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "invoice_templates")

env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
env.filters["rupiah"] = format_rupiah
env.filters["number"] = format_number
env.filters["date_long"] = format_date_long
env.filters["date_short"] = format_date_short
env.filters["multiline"] = escape_multiline


def summary_rows(draft: InvoiceDraft, totals: Totals) -> List[Tuple[str, str]]:
    """
    Rows between Subtotal and Total, in the order the policy stacks them.

    Lines for a zero down payment or a zero rate are left out. Under
    withholding_first, PPH is shown as a deduction and PPN as an addition.
    """
    tax = draft.tax
    rows = [("Subtotal:", format_rupiah(totals.subtotal))]

    if totals.policy == TaxPolicy.WITHHOLDING_FIRST:
        if tax.pph_rate > 0:
            rows.append((f"PPH ({format_number(tax.pph_rate)}%):", "- " + format_rupiah(totals.pph_amount)))
        if tax.ppn_rate > 0:
            rows.append((f"PPN ({format_number(tax.ppn_rate)}%):", "+ " + format_rupiah(totals.ppn_amount)))
        return rows

    if totals.down_payment > 0:
        rows.append(("DP:", format_rupiah(totals.down_payment)))
    if tax.ppn_rate > 0:
        rows.append((f"PPN ({format_number(tax.ppn_rate)}%):", format_rupiah(totals.ppn_amount)))
    if tax.pph_rate > 0:
        rows.append((f"PPH ({format_number(tax.pph_rate)}%):", format_rupiah(totals.pph_amount)))
    return rows


def render_invoice(
    draft: InvoiceDraft,
    totals: Optional[Totals] = None,
    layout: str = "compact",
    settings: Optional[Settings] = None,
) -> str:
    """Return a self-contained HTML document that opens the print dialog on load."""
    if layout not in LAYOUTS:
        raise ValueError(f"Layout '{layout}' not supported. Allowed: {', '.join(LAYOUTS)}")

    if totals is None:
        totals = calculate_totals(draft.items, draft.tax)
    settings = settings or Settings()

    template = env.get_template(f"{layout}.html")
    return template.render(
        header=draft.header,
        rows=list(zip(draft.items, totals.line_totals)),
        summary=summary_rows(draft, totals),
        totals=totals,
        company=settings,
    )
