"""FastAPI application entry point."""

import os
import logging
import tomllib
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Must run before importing modules that read env vars at import time (Mongo connection)
load_dotenv()

from api.dependencies import get_notification_dispatcher
from api.routes import admin, auth, health, settings, users
from utils.logging import setup_structured_logging
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.indexes import ensure_all_indexes

setup_structured_logging()

logger = logging.getLogger(__name__)

# pyproject.toml is the single source of truth for the version
_project_root = Path(__file__).parent.parent.parent
with open(_project_root / "pyproject.toml", "rb") as f:
    VERSION = tomllib.load(f)["project"]["version"]

SERVICE_NAME = "Formation API"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    client = get_mongodb_client()
    if client:
        if ensure_all_indexes(client[DATABASE_NAME]):
            logger.info("MongoDB indexes verified/created successfully")
        else:
            logger.warning("Failed to create some MongoDB indexes")
    else:
        logger.warning("MongoDB unavailable, skipping index creation")

    yield

    # Let in-flight verification emails finish before the loop closes
    await get_notification_dispatcher().drain()


app = FastAPI(
    title=SERVICE_NAME,
    description="Backend for the training platform - accounts, email verification and settings",
    version=VERSION,
    lifespan=lifespan,
)

# Browsers reject credentials with a wildcard origin, so "*" disables them
cors_origins_env = os.getenv("CORS_ORIGINS") or os.getenv("FRONTEND_URL", "http://localhost:5173")

if cors_origins_env == "*":
    cors_origins = ["*"]
    allow_credentials = False
    logger.warning("CORS configured with wildcard origin ('*'). Set CORS_ORIGINS for production.")
else:
    cors_origins = [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
    allow_credentials = True
    logger.info(f"CORS configured with specific origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(admin.router)
app.include_router(settings.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 3001))
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=port,
        access_log=False  # request logging comes from our structured logger
    )
