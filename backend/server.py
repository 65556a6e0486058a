"""
Matchmaker CRM - API Backend

Start with:
    uvicorn server:app --host 0.0.0.0 --port 8001 --reload
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from config import client, db, CORS_ORIGINS, SCHEDULER_ENABLED
from services.errors import CRMError

# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("matchmaker")

app = FastAPI(
    title="Matchmaker CRM",
    description="Matchmaking agency CRM: leads, payment requests, paid clients",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== ERRORS ====================

@app.exception_handler(CRMError)
async def crm_error_handler(request: Request, exc: CRMError):
    if exc.status_code >= 500:
        logger.error(f"[ERROR] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"[ERROR] unhandled on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ==================== ROUTES ====================

from routes import auth, accounts, traffic, payments, paid_clients, settings, stats

# Routes with /api prefix
app.include_router(auth.router, prefix="/api")
app.include_router(accounts.router, prefix="/api")
app.include_router(traffic.router, prefix="/api")
app.include_router(payments.router, prefix="/api")
app.include_router(paid_clients.router, prefix="/api")
app.include_router(settings.router, prefix="/api")
app.include_router(stats.router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": "Matchmaker CRM API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs"
    }


# ==================== STARTUP ====================

async def create_indexes():
    await db.users.create_index("id", unique=True)
    await db.users.create_index("username", unique=True)
    await db.sessions.create_index("token", unique=True)
    await db.sessions.create_index("expires_at")
    await db.traffic.create_index("id", unique=True)
    await db.traffic.create_index("assigned_by")
    await db.traffic.create_index("created_at")
    await db.payments.create_index("id", unique=True)
    await db.payments.create_index([("traffic_id", 1), ("status", 1)])
    await db.payments.create_index([("status", 1), ("created_at", -1)])
    await db.settings.create_index([("category", 1), ("value", 1)], unique=True)
    await db.activity_logs.create_index("created_at")


@app.on_event("startup")
async def startup():
    from services.bootstrap import ensure_default_admin, repair_legacy_credentials
    from services.payment_workflow import reconcile_paid_traffic

    await create_indexes()
    logger.info("MongoDB indexes ready")

    repaired = await repair_legacy_credentials()
    if repaired:
        logger.warning(f"[BOOTSTRAP] {repaired} legacy credential(s) rehashed")

    # BootstrapError aborts startup
    await ensure_default_admin()

    result = await reconcile_paid_traffic()
    if result["repaired"]:
        logger.warning(f"[RECONCILE] {result['repaired']} lead(s) promoted to paid at startup")

    if SCHEDULER_ENABLED:
        from scheduler_service import task_scheduler
        task_scheduler.start()

    logger.info("Matchmaker CRM started")


@app.on_event("shutdown")
async def shutdown():
    if SCHEDULER_ENABLED:
        from scheduler_service import task_scheduler
        task_scheduler.stop()
    client.close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
