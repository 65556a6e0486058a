"""
Matchmaker CRM - Auth & account models
Three closed roles. Role and enabled flag are only changed by a super_admin.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, validator

from .common import RequestModel


class Role(str, Enum):
    CRO_AGENT = "cro_agent"
    MATCHMAKER = "matchmaker"
    SUPER_ADMIN = "super_admin"


class Actor(BaseModel):
    """
    Explicit caller context passed to every core operation.
    Built from the authenticated user document, never from ambient state.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    is_enabled: bool = True

    @classmethod
    def from_user(cls, user: dict) -> "Actor":
        return cls(
            id=user["id"],
            role=user.get("role", Role.CRO_AGENT.value),
            is_enabled=user.get("is_enabled", True),
        )

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN


class UserLogin(RequestModel):
    username: str
    password: str


class UserCreate(RequestModel):
    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=6)
    role: Role = Role.CRO_AGENT
    is_enabled: bool = True
    name: Optional[str] = ""
    official_number: Optional[str] = ""
    date_of_birth: Optional[str] = ""
    gender: Optional[str] = ""

    @validator("username")
    def normalize_username(cls, v):
        return v.strip().lower()


class UserUpdate(RequestModel):
    username: Optional[str] = Field(None, min_length=3, max_length=64)
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[Role] = None
    is_enabled: Optional[bool] = None
    name: Optional[str] = None
    official_number: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None

    @validator("username")
    def normalize_username(cls, v):
        return v.strip().lower() if v else v
