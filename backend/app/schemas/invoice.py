"""
Invoice schemas for API responses.

WHAT: Pydantic schemas for the unpaid invoice listing.

HOW: Uses Pydantic v2 with from_attributes so ORM rows validate directly.
Amounts are exposed as floats, matching what the portal frontend renders.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, Field, ConfigDict, field_serializer


class UnpaidInvoiceResponse(BaseModel):
    """Schema for one unpaid invoice."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    title: str
    amount: Decimal
    due_date: Optional[date] = Field(default=None, alias="dueDate")
    status: Optional[str] = None

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)


class UnpaidInvoicesResponse(BaseModel):
    """
    Schema for the unpaid invoice summary.

    WHY: The Invoices page shows the unpaid total next to the
    "pay all" button, so the total is computed server-side.
    """

    model_config = ConfigDict(populate_by_name=True)

    items: List[UnpaidInvoiceResponse]
    total_amount: Decimal = Field(alias="totalAmount")

    @field_serializer("total_amount")
    def serialize_total(self, total: Decimal) -> float:
        return float(total)
