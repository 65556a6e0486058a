"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Matchmaker CRM - Payment request model                                      ║
║                                                                              ║
║  LIFECYCLE:                                                                  ║
║  pending → accepted / cancelled   (both terminal)                            ║
║                                                                              ║
║  RULE: traffic.status = "paid" ONLY through an accepted payment              ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import Field

from .common import RequestModel, format_amount


class PaymentStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"


class PaymentDetails(RequestModel):
    """Payment info step of the lead intake form (no traffic_id yet)"""
    package_type: str = Field(..., min_length=1)
    paid_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    discount_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    due_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    total_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    payment_method: str = Field(..., min_length=1)
    after_marriage_fee: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)

    def to_document(self) -> dict:
        """Amounts as caller supplied them, normalised to 2 decimals."""
        return {
            "package_type": self.package_type,
            "paid_amount": format_amount(self.paid_amount),
            "discount_amount": format_amount(self.discount_amount),
            "due_amount": format_amount(self.due_amount),
            "total_amount": format_amount(self.total_amount),
            "payment_method": self.payment_method,
            "after_marriage_fee": format_amount(self.after_marriage_fee),
        }


class PaymentRequestCreate(PaymentDetails):
    traffic_id: str = Field(..., min_length=1)
