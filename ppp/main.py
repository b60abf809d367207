from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from .config import settings
from .database import engine, Base
from .routers import admin, auth, company, jobs, photos, services

logger = logging.getLogger("ppp")

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)


def _run_migrations():
    """Run pending Alembic migrations on startup.

    Migrations are idempotent, so databases created by create_all() upgrade
    cleanly. Errors are logged and never block startup.
    """
    try:
        from alembic.config import Config
        from alembic import command

        alembic_ini = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")
        if not os.path.exists(alembic_ini):
            logger.info("alembic.ini not found, skipping migrations")
            return

        alembic_cfg = Config(alembic_ini)
        alembic_cfg.set_main_option("script_location", os.path.join(os.path.dirname(alembic_ini), "alembic"))
        alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
        alembic_cfg.attributes["url_overridden"] = True

        logger.info("Running pending Alembic migrations...")
        command.upgrade(alembic_cfg, "head")
        logger.info("Migrations complete")

    except Exception as e:
        # Never let migration errors prevent app startup
        logger.warning("Alembic migration warning: %s", e)


app = FastAPI(
    title="PPP Invoice Wizard",
    description="Price-per-pound towing invoice generator",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(auth.router, prefix="/api")
app.include_router(services.router, prefix="/api")
app.include_router(jobs.router, prefix="/api")
app.include_router(photos.router, prefix="/api")
app.include_router(company.router, prefix="/api")
app.include_router(admin.router, prefix="/api")

# Serve uploaded photos and logos (local fallback when R2 not configured)
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/health")
def health():
    return {"status": "ok", "app": "ppp-invoice-wizard"}


@app.on_event("startup")
def auto_migrate():
    _run_migrations()


@app.on_event("startup")
def auto_seed():
    """Seed the towing service catalog on first run."""
    from .database import SessionLocal
    db = SessionLocal()
    try:
        services.seed_towing_services(db)
    except Exception as e:
        logger.warning("Service catalog seeding failed: %s", e)
    finally:
        db.close()
