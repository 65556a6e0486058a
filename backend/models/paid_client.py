"""
Matchmaker CRM - Paid client query filters
PaidClient itself is a projection (traffic + accepted payment), never stored.
"""

from typing import Optional
from pydantic import Field

from .common import RequestModel


# Exact-match filters -> traffic field
EXACT_FILTER_FIELDS = {
    "gender": "gender",
    "height": "height",
    "marital_status": "marital_status",
    "qualification": "qualification",
    "profession": "profession",
    "permanent_country": "permanent_country",
    "permanent_city": "permanent_city",
    "present_country": "present_country",
    "present_city": "present_city",
}

# Free-text search fields (case-insensitive substring, OR)
SEARCH_FIELDS = [
    "name",
    "contact_number",
    "email",
    "profession",
    "qualification",
    "permanent_country",
    "permanent_city",
    "present_country",
    "present_city",
    "organization",
    "requirements",
]


class PaidClientFilters(RequestModel):
    """Query string of GET /paid-clients (snake_case or camelCase keys)"""
    page: int = Field(1, ge=1)
    page_size: int = 10
    gender: Optional[str] = None
    birth_year: Optional[int] = None
    age: Optional[int] = Field(None, ge=0, le=150)
    height: Optional[str] = None
    marital_status: Optional[str] = None
    qualification: Optional[str] = None
    profession: Optional[str] = None
    permanent_country: Optional[str] = None
    permanent_city: Optional[str] = None
    present_country: Optional[str] = None
    present_city: Optional[str] = None
    q: Optional[str] = None
