"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Matchmaker CRM - Traffic (lead) model                                       ║
║                                                                              ║
║  RULES:                                                                      ║
║  1. created_by = assigned_by = creator, set server-side                       ║
║  2. status "paid" is never written by create/update                          ║
║  3. assigned_by owns the lead for paid-client visibility                     ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from enum import Enum
from typing import List, Optional
from pydantic import Field, validator

from .common import RequestModel
from .payment import PaymentDetails


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TrafficStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    PAID = "paid"          # set by the payment workflow only


def _reject_paid(v):
    if v == TrafficStatus.PAID:
        raise ValueError("status 'paid' is set by payment acceptance only")
    return v


class TrafficBase(RequestModel):
    profession: Optional[str] = None
    job_type: Optional[str] = None
    date_of_birth: Optional[str] = None
    marital_status: Optional[str] = None
    gender: Optional[str] = None
    permanent_country: Optional[str] = None
    permanent_city: Optional[str] = None
    present_country: Optional[str] = None
    present_city: Optional[str] = None
    height: Optional[str] = None
    qualification: Optional[str] = None
    organization: Optional[str] = None
    religion: Optional[str] = None
    social_title: Optional[str] = None
    profile_picture: Optional[str] = None
    curriculum_vitae: Optional[str] = None
    requirements: Optional[str] = None


class TrafficCreate(TrafficBase):
    name: str = Field(..., min_length=1)
    contact_number: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    priority: Priority = Priority.MEDIUM
    status: TrafficStatus = TrafficStatus.PENDING
    candidate_pictures: List[str] = Field(default_factory=list)

    # Optional third step: creates a pending payment request
    payment: Optional[PaymentDetails] = None

    @validator("status")
    def status_not_paid(cls, v):
        return _reject_paid(v)


class TrafficUpdate(TrafficBase):
    name: Optional[str] = Field(None, min_length=1)
    contact_number: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=1)
    priority: Optional[Priority] = None
    status: Optional[TrafficStatus] = None
    candidate_pictures: Optional[List[str]] = None

    @validator("status")
    def status_not_paid(cls, v):
        return _reject_paid(v)


class PaidClientUpdate(TrafficBase):
    """Super admin edit of a paid client: profile only, never status"""
    name: Optional[str] = Field(None, min_length=1)
    contact_number: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=1)
    priority: Optional[Priority] = None
