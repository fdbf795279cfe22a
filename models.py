from datetime import date
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils import MAX_AMOUNT, to_float


Layout = Literal["compact", "letterhead"]


class TaxPolicy(str, Enum):
    """Order in which down payment and taxes are stacked onto the subtotal."""

    DOWN_PAYMENT_FIRST = "down_payment_first"
    WITHHOLDING_FIRST = "withholding_first"


class LineItem(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    description: str = ""
    quantity: float = 1
    unit_price: float = 0
    days: float = 1

    @field_validator("description", mode="before")
    @classmethod
    def _text(cls, value):
        return "" if value is None else str(value)

    @field_validator("quantity", "days", mode="before")
    @classmethod
    def _positive(cls, value):
        number = to_float(value, default=1, maximum=MAX_AMOUNT)
        return number if number > 0 else 1

    @field_validator("unit_price", mode="before")
    @classmethod
    def _non_negative(cls, value):
        return to_float(value, default=0, minimum=0, maximum=MAX_AMOUNT)


class TaxConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    ppn_rate: float = 0
    pph_rate: float = 0
    down_payment: float = 0
    policy: TaxPolicy = TaxPolicy.DOWN_PAYMENT_FIRST

    @field_validator("ppn_rate", "pph_rate", mode="before")
    @classmethod
    def _rate(cls, value):
        return to_float(value, default=0, minimum=0, maximum=100)

    @field_validator("down_payment", mode="before")
    @classmethod
    def _amount(cls, value):
        return to_float(value, default=0, minimum=0, maximum=MAX_AMOUNT)

    @field_validator("policy", mode="before")
    @classmethod
    def _policy(cls, value):
        return TaxPolicy.DOWN_PAYMENT_FIRST if value in (None, "") else value


class InvoiceHeader(BaseModel):
    # Invoice Meta
    invoice_number: str = ""
    issue_date: date
    due_date: date

    # Customer
    customer_name: str = ""
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None

    # Extras
    notes: Optional[str] = None
    signature_location: Optional[str] = None
    signature_name: Optional[str] = None


class InvoiceDraft(BaseModel):
    header: InvoiceHeader
    items: List[LineItem] = Field(default_factory=lambda: [LineItem()], min_length=1)
    tax: TaxConfig = Field(default_factory=TaxConfig)


class TotalsRequest(BaseModel):
    items: List[LineItem] = Field(default_factory=list)
    tax: TaxConfig = Field(default_factory=TaxConfig)


class Totals(BaseModel):
    policy: TaxPolicy
    line_totals: List[float] = Field(default_factory=list)
    subtotal: float = 0
    down_payment: float = 0
    taxable_base: float = 0
    ppn_amount: float = 0
    pph_amount: float = 0
    total: float = 0


class HealthResponse(BaseModel):
    status: str
    version: str
