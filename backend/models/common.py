"""
Shared model base and helpers
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    """Request bodies accept snake_case and camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


CENTS = Decimal("0.01")


def format_amount(value: Optional[Decimal]) -> Optional[str]:
    """Decimal -> "30000.00" (stored as string, never re-derived)"""
    if value is None:
        return None
    return str(Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP))
