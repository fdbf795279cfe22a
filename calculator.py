"""
Totals calculation: line items + tax configuration into a Totals record.

Two tax-stacking policies are supported and are NOT interchangeable:

  down_payment_first  Subtract the down payment, then add PPN and PPH, both
                      computed on the same post-deposit base.
  withholding_first   Deduct PPH from the subtotal, then add PPN computed on
                      the amount net of withholding. Down payment is ignored.
"""

from typing import Callable, Dict, Iterable, List

from models import LineItem, TaxConfig, TaxPolicy, Totals


def line_total(item: LineItem) -> float:
    return item.quantity * item.unit_price * item.days


def _down_payment_first(subtotal: float, tax: TaxConfig) -> dict:
    after_deposit = max(0.0, subtotal - tax.down_payment)
    ppn_amount = after_deposit * tax.ppn_rate / 100
    pph_amount = after_deposit * tax.pph_rate / 100
    return {
        "down_payment": tax.down_payment,
        "taxable_base": after_deposit,
        "ppn_amount": ppn_amount,
        "pph_amount": pph_amount,
        "total": after_deposit + ppn_amount + pph_amount,
    }


def _withholding_first(subtotal: float, tax: TaxConfig) -> dict:
    pph_amount = subtotal * tax.pph_rate / 100
    base = max(0.0, subtotal - pph_amount)
    ppn_amount = base * tax.ppn_rate / 100
    return {
        "down_payment": 0.0,
        "taxable_base": base,
        "ppn_amount": ppn_amount,
        "pph_amount": pph_amount,
        "total": base + ppn_amount,
    }


POLICIES: Dict[TaxPolicy, Callable[[float, TaxConfig], dict]] = {
    TaxPolicy.DOWN_PAYMENT_FIRST: _down_payment_first,
    TaxPolicy.WITHHOLDING_FIRST: _withholding_first,
}


def calculate_totals(items: Iterable[LineItem], tax: TaxConfig) -> Totals:
    """Pure and idempotent: the same items and config always give the same Totals."""
    line_totals: List[float] = [line_total(item) for item in items]
    subtotal = float(sum(line_totals))
    stacked = POLICIES[tax.policy](subtotal, tax)
    return Totals(
        policy=tax.policy,
        line_totals=line_totals,
        subtotal=subtotal,
        **stacked,
    )
