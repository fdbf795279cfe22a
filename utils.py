import math
import random
import string
from datetime import date
from typing import Optional

from markupsafe import Markup, escape


MONTHS_LONG = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]
MONTHS_SHORT = [
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
]

INVOICE_TOKEN_ALPHABET = string.ascii_uppercase + string.digits

# Upper bound for any single quantity, price or amount. Keeps qty x price x days
# and every sum of line totals finite.
MAX_AMOUNT = 1e15

MISSING_CUSTOMER_MESSAGE = "Nama pelanggan harus diisi"
MISSING_DESCRIPTION_MESSAGE = "Semua item harus memiliki deskripsi"


def to_float(
    value,
    default: float = 0,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> float:
    """Coerce form input to a finite float, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except OverflowError:
        # An integer too large for a float; clamp it like any other out-of-range value.
        number = maximum if value > 0 else minimum
        return default if number is None else number
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    if minimum is not None and number < minimum:
        number = minimum
    if maximum is not None and number > maximum:
        number = maximum
    return number


# ── Formatting ─────────────────────────────────────────────────────────────────

def format_rupiah(amount: float) -> str:
    """Floor to whole Rupiah and group digits with dots: 1500000 -> 'Rp 1.500.000'."""
    return "Rp " + f"{math.floor(amount):,}".replace(",", ".")


def format_number(value: float) -> str:
    """Render rates and quantities without a trailing '.0'."""
    value = round(float(value), 6)
    return str(int(value)) if value.is_integer() else str(value)


def format_date_long(value: date) -> str:
    return f"{value.day:02d} {MONTHS_LONG[value.month - 1]} {value.year}"


def format_date_short(value: date) -> str:
    return f"{value.day:02d} {MONTHS_SHORT[value.month - 1]} {value.year}"


def escape_multiline(text: Optional[str]) -> Markup:
    """Escape user text for HTML and keep its line breaks as <br>."""
    if not text:
        return Markup("")
    lines = text.replace("\r\n", "\n").split("\n")
    return Markup("<br>").join(escape(line) for line in lines)


# ── Invoice numbering ──────────────────────────────────────────────────────────

def generate_invoice_number(
    today: Optional[date] = None,
    suffix: str = "BNN",
    rng: Optional[random.Random] = None,
) -> str:
    """
    Returns e.g. 'INV-7QK2/BNN/03/2025'.

    The token is random and never stored, so two sessions can produce the
    same number.
    """
    today = today or date.today()
    rng = rng or random.Random()
    token = "".join(rng.choices(INVOICE_TOKEN_ALPHABET, k=4))
    return f"INV-{token}/{suffix}/{today.month:02d}/{today.year}"


# ── Validation ─────────────────────────────────────────────────────────────────

def validate_invoice(draft) -> None:
    """Raise ValueError with a single message if the draft cannot be printed."""
    if not (draft.header.customer_name or "").strip():
        raise ValueError(MISSING_CUSTOMER_MESSAGE)
    if any(not item.description.strip() for item in draft.items):
        raise ValueError(MISSING_DESCRIPTION_MESSAGE)
