import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

load_dotenv()

from calculator import calculate_totals
from editor import new_draft
from models import HealthResponse, InvoiceDraft, Layout, Totals, TotalsRequest
from printing import PrintSurfaceUnavailable, send_to_print
from renderer import render_invoice
from settings import Settings
from utils import validate_invoice

VERSION = "1.0.0"

settings = Settings.from_env()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ───────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    print(f"✅ Invoice Builder ready | company: {settings.company_name} | layout: {settings.default_layout}")
    yield
    print("🛑 Shutting down.")


# ── App ────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Invoice Builder",
    description=(
        "Build Indonesian invoices: recompute **totals** on every edit, "
        "then render a printable **HTML** invoice (compact A5 or A4 letterhead)."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _layout(layout: Optional[str]) -> str:
    return layout or settings.default_layout


def _render_checked(draft: InvoiceDraft, layout: str) -> str:
    try:
        validate_invoice(draft)
    except ValueError as e:
        logger.warning("Invoice %s rejected: %s", draft.header.invoice_number, e)
        raise HTTPException(status_code=422, detail=str(e))
    return render_invoice(draft, layout=layout, settings=settings)


# ── Info ───────────────────────────────────────────────────────────────────────

@app.get("/", tags=["Info"])
def root(request: Request):
    base = str(request.base_url).rstrip("/")
    return {
        "name": "Invoice Builder",
        "version": VERSION,
        "company": settings.company_name,
        "endpoints": {
            "docs":    f"{base}/docs",
            "health":  f"{base}/health",
            "new":     f"{base}/invoices/new",
            "totals":  f"{base}/totals",
            "render":  f"{base}/invoices/render?layout=compact|letterhead",
            "print":   f"{base}/invoices/print?layout=compact|letterhead",
        },
    }


@app.get("/health", response_model=HealthResponse, tags=["Info"])
def health():
    return HealthResponse(status="ok", version=VERSION)


# ── Core: Draft & Totals ───────────────────────────────────────────────────────

@app.get("/invoices/new", response_model=InvoiceDraft, tags=["Invoice"])
def new_invoice():
    """A blank draft with a fresh invoice number, today's date and the default due date."""
    return new_draft(settings)


@app.post("/totals", response_model=Totals, tags=["Invoice"])
def totals(payload: TotalsRequest):
    """
    Recompute totals for the current items and tax configuration.

    Call after every edit; malformed numbers fall back to safe defaults.
    """
    return calculate_totals(payload.items, payload.tax)


# ── Core: Render & Print ───────────────────────────────────────────────────────

@app.post("/invoices/render", response_class=HTMLResponse, tags=["Invoice"])
def render(
    draft: InvoiceDraft,
    layout: Optional[Layout] = Query(
        default=None,
        description="Layout: **compact** (A5) | **letterhead** (A4). Defaults to DEFAULT_LAYOUT.",
    ),
):
    """Validate the draft and return the printable HTML invoice."""
    layout = _layout(layout)
    html = _render_checked(draft, layout)
    logger.info("Rendered invoice %s (%s)", draft.header.invoice_number, layout)
    return HTMLResponse(content=html, media_type="text/html")


@app.post("/invoices/print", tags=["Invoice"])
def print_invoice(
    draft: InvoiceDraft,
    layout: Optional[Layout] = Query(default=None),
):
    """Validate, render and open the invoice in the local browser's print dialog."""
    html = _render_checked(draft, _layout(layout))
    try:
        path = send_to_print(html, output_dir=settings.print_output_dir)
    except PrintSurfaceUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"printed": True, "invoice_number": draft.header.invoice_number, "path": str(path)}


# ── Entry point ────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("APP_ENV", "development") == "development",
    )
