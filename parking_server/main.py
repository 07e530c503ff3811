"""
FastAPI app entry point for the parking reservation reconciliation service
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .db import engine, Base

# Import models so every table is registered on Base
from . import models  # noqa: F401

# Import routes
from .routes import (
    attendant,
    fines,
    notification,
    reconcile,
)
from .scheduler import start_reconcile_loops, stop_reconcile_loops
from .utils.notification_service import get_dispatcher

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    print("=" * 60)
    print(f"🚀 Starting {settings.APP_NAME} in {settings.ENVIRONMENT} mode...")
    print(f"📊 Database URL: {settings.DATABASE_URL[:50]}...")
    print(f"🕒 Timezone: {settings.TIMEZONE}")
    print("=" * 60)

    if settings.is_development:
        # Production schema is managed by Alembic
        Base.metadata.create_all(bind=engine)
        print("✅ Database tables created/verified")

    tasks = []
    if settings.SCHEDULER_ENABLED:
        tasks = start_reconcile_loops(
            settings.EXPIRY_CHECK_INTERVAL_SECONDS,
            settings.OVERSTAY_CHECK_INTERVAL_SECONDS,
        )
        print("⏱️ In-process reconcile scheduler started")

    print("✅ Application ready!")

    yield

    # Shutdown
    print("\n👋 Shutting down...")
    await stop_reconcile_loops(tasks)
    get_dispatcher().shutdown()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {
        "status": "ok",
        "message": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "message": f"{settings.APP_NAME} is running",
        "environment": settings.ENVIRONMENT,
        "scheduler_enabled": settings.SCHEDULER_ENABLED,
        "notifications": {
            "sms": settings.TWILIO_ENABLED,
            "email": settings.EMAIL_ENABLED,
        },
    }


# Register routers
app.include_router(reconcile.router)
app.include_router(attendant.router)
app.include_router(fines.router)
app.include_router(notification.router)


def main():
    import uvicorn
    uvicorn.run("parking_server.main:app", host=settings.HOST,
                port=settings.PORT, reload=False)


if __name__ == "__main__":
    main()
