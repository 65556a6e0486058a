"""
Configuration and shared helpers
"""

import os
import secrets
from datetime import datetime, timezone
from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv
from pathlib import Path

# Load .env
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# MongoDB
MONGO_URL = os.environ.get('MONGO_URL', 'mongodb://localhost:27017')
DB_NAME = os.environ.get('DB_NAME', 'matchmaker_crm')

client = AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]

# Runtime
APP_ENV = os.environ.get('APP_ENV', 'development').lower()
CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

# Bootstrap admin (see services/bootstrap.py)
ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME', 'admin')
ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD')

SESSION_TTL_DAYS = int(os.environ.get('SESSION_TTL_DAYS', '7'))

# Paid clients pagination
PAID_CLIENTS_DEFAULT_PAGE_SIZE = 10
PAID_CLIENTS_MAX_PAGE_SIZE = int(os.environ.get('PAID_CLIENTS_MAX_PAGE_SIZE', '100'))

# Scheduler
SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'true').lower() in ('1', 'true', 'yes')
RECONCILE_INTERVAL_MINUTES = int(os.environ.get('RECONCILE_INTERVAL_MINUTES', '15'))


def is_production() -> bool:
    return APP_ENV in ('production', 'prod')


# ==================== HELPERS ====================

def generate_token() -> str:
    """Generate a secure session token"""
    return secrets.token_urlsafe(32)

def now_iso() -> str:
    """Current UTC date/time as ISO string"""
    return datetime.now(timezone.utc).isoformat()
