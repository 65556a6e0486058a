"""
Matchmaker CRM - Lookup settings (dropdown values per category)
"""

from enum import Enum
from typing import Optional
from pydantic import Field, validator

from .common import RequestModel


class SettingCategory(str, Enum):
    PRIORITY = "priority"
    STATUS = "status"
    PROFESSION = "profession"
    JOB_TYPE = "job_type"
    MARITAL_STATUS = "marital_status"
    GENDER = "gender"
    PERMANENT_COUNTRY = "permanent_country"
    PERMANENT_CITY = "permanent_city"
    PRESENT_COUNTRY = "present_country"
    PRESENT_CITY = "present_city"
    HEIGHT = "height"
    QUALIFICATION = "qualification"
    ORGANIZATION = "organization"
    RELIGION = "religion"
    SOCIAL_TITLE = "social_title"
    PACKAGE_TYPE = "package_type"
    PAYMENT_METHOD = "payment_method"


VALID_CATEGORIES = [c.value for c in SettingCategory]


class SettingCreate(RequestModel):
    category: SettingCategory
    value: str = Field(..., min_length=1, max_length=200)
    display_order: int = 0

    @validator("value")
    def strip_value(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("value cannot be blank")
        return v


class SettingUpdate(RequestModel):
    category: Optional[SettingCategory] = None
    value: Optional[str] = Field(None, min_length=1, max_length=200)
    display_order: Optional[int] = None

    @validator("value")
    def strip_value(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("value cannot be blank")
        return v
