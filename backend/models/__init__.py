"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Matchmaker CRM - Models Package                                             ║
║                                                                              ║
║  Exports every model for easy import                                         ║
║  from models import Role, TrafficCreate, PaymentRequestCreate, etc.          ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

# Auth / accounts
from .auth import (
    Role,
    Actor,
    UserLogin,
    UserCreate,
    UserUpdate,
)

# Traffic (lead)
from .traffic import (
    Priority,
    TrafficStatus,
    TrafficCreate,
    TrafficUpdate,
    PaidClientUpdate,
)

# Payment requests
from .payment import (
    PaymentStatus,
    PaymentDetails,
    PaymentRequestCreate,
)

# Paid clients query
from .paid_client import (
    PaidClientFilters,
    EXACT_FILTER_FIELDS,
    SEARCH_FIELDS,
)

# Lookup settings
from .setting import (
    SettingCategory,
    VALID_CATEGORIES,
    SettingCreate,
    SettingUpdate,
)

__all__ = [
    # Auth
    "Role",
    "Actor",
    "UserLogin",
    "UserCreate",
    "UserUpdate",
    # Traffic
    "Priority",
    "TrafficStatus",
    "TrafficCreate",
    "TrafficUpdate",
    "PaidClientUpdate",
    # Payment
    "PaymentStatus",
    "PaymentDetails",
    "PaymentRequestCreate",
    # Paid clients
    "PaidClientFilters",
    "EXACT_FILTER_FIELDS",
    "SEARCH_FIELDS",
    # Settings
    "SettingCategory",
    "VALID_CATEGORIES",
    "SettingCreate",
    "SettingUpdate",
]
