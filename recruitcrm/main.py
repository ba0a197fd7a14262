from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from recruitcrm.core.config import settings
from recruitcrm.core.errors import setup_error_handlers
from recruitcrm.core.logging import get_logger
from recruitcrm.db.base import Base
from recruitcrm.db.session import engine

# Import all models so SQLAlchemy can discover them for table creation
from recruitcrm.models import User, Candidate, Company, Notification  # noqa: F401

# Import API router
from recruitcrm.api.api import api_router

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables (and the local bucket root) on startup."""
    Base.metadata.create_all(bind=engine)
    if settings.STORAGE_BACKEND == "local":
        Path(settings.STORAGE_LOCAL_PATH).mkdir(parents=True, exist_ok=True)
    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Recruiting CRM: candidates, companies and notifications",
    version="1.0.0",
    lifespan=lifespan,
)

setup_error_handlers(app)

# CORS Middleware - allowlist from env (comma-separated)
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in settings.BACKEND_CORS_ORIGINS.split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Local bucket files are served the way the hosted bucket serves public objects
if settings.STORAGE_BACKEND == "local":
    app.mount(
        "/storage",
        StaticFiles(directory=settings.STORAGE_LOCAL_PATH, check_dir=False),
        name="storage",
    )


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {"message": f"Welcome to {settings.APP_NAME} API"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(api_router, prefix="/api")
