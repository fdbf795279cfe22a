"""
MCP Server for the Invoice Builder
----------------------------------
Exposes totals calculation and invoice rendering as MCP tools so any
MCP-compatible client can draft and print invoices.

Run modes:
  stdio  (desktop clients):  python mcp_server.py
  http   (remote / URL):     python mcp_server.py --http
"""

import argparse

from dotenv import load_dotenv
from fastmcp import FastMCP

load_dotenv()

from calculator import calculate_totals
from editor import new_draft
from models import InvoiceDraft, TaxPolicy, TotalsRequest
from renderer import render_invoice
from settings import LAYOUTS, Settings
from utils import validate_invoice

# ── MCP Server ─────────────────────────────────────────────────────────────────

mcp = FastMCP(
    name="Invoice Builder",
    instructions=(
        "Builds Indonesian invoices. Start from new_invoice, fill in customer "
        "and line items, check calculate_invoice_totals after each change, then "
        "call render_invoice_html to get a printable HTML document."
    ),
)

settings = Settings.from_env()


# ── Tools ──────────────────────────────────────────────────────────────────────

@mcp.tool()
def new_invoice() -> dict:
    """
    Returns a blank invoice draft with a fresh invoice number, today's issue
    date, the default due date and one empty line item.
    """
    return new_draft(settings).model_dump(mode="json")


@mcp.tool()
def calculate_invoice_totals(items: list[dict], tax: dict | None = None) -> dict:
    """
    Compute subtotal, PPN, PPH and total.

    Args:
        items: Line items with description, quantity, unit_price and days.
        tax:   ppn_rate, pph_rate (percent), down_payment and policy
               ("down_payment_first" or "withholding_first").
    """
    request = TotalsRequest.model_validate({"items": items, "tax": tax or {}})
    return calculate_totals(request.items, request.tax).model_dump(mode="json")


@mcp.tool()
def render_invoice_html(draft: dict, layout: str = "compact") -> dict:
    """
    Validate a draft and render it as a printable HTML invoice.

    Args:
        draft:  Full invoice draft (header, items, tax) as returned by new_invoice.
        layout: "compact" (A5) or "letterhead" (A4).

    Returns:
        invoice_number and html, or an error message if validation fails
        or the layout is unknown.
    """
    invoice = InvoiceDraft.model_validate(draft)
    try:
        validate_invoice(invoice)
        html = render_invoice(invoice, layout=layout, settings=settings)
    except ValueError as e:
        return {"invoice_number": invoice.header.invoice_number, "error": str(e)}
    return {"invoice_number": invoice.header.invoice_number, "html": html}


@mcp.tool()
def get_supported_layouts() -> dict:
    """
    Returns the available invoice layouts and tax policies.
    """
    return {
        "layouts": list(LAYOUTS),
        "default_layout": settings.default_layout,
        "tax_policies": [policy.value for policy in TaxPolicy],
    }


# ── Entry point ────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Invoice Builder MCP Server")
    parser.add_argument(
        "--http",
        action="store_true",
        help="Run in HTTP (SSE) mode. Default is stdio mode.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="HTTP host (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8001, help="HTTP port (default: 8001)")
    args = parser.parse_args()

    if args.http:
        print(f"🚀 MCP Server running at http://{args.host}:{args.port}/sse")
        mcp.run(transport="sse", host=args.host, port=args.port)
    else:
        mcp.run(transport="stdio")
