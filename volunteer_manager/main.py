import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401
from .config import CORS_ORIGINS
from .database import Base, engine
from .domain.applications import router as applications_router
from .domain.events import router as events_router
from .domain.hotels import router as hotels_router
from .domain.logs import router as logs_router
from .domain.permissions import router as permissions_router
from .domain.refunds import router as refunds_router
from .domain.registration import router as registration_router
from .domain.trainings import router as trainings_router
from .environment import clear_environment_cache

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Volunteer Manager starting up")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
    except Exception as e:
        # Multiple workers may race to create the schema
        if "already exists" not in str(e):
            logger.error(f"❌ Failed to create database tables: {e}")
            raise
    logger.info("✅ Database schema is up to date")

    yield

    clear_environment_cache()
    logger.info("👋 Volunteer Manager shutting down")


app = FastAPI(title="Volunteer Manager API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors of routes that are not dispatched through an action"""
    logger.warning(f"⚠️ Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": "The server was not able to validate the request."},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(registration_router)
app.include_router(events_router)
app.include_router(applications_router)
app.include_router(hotels_router)
app.include_router(trainings_router)
app.include_router(refunds_router)
app.include_router(permissions_router)
app.include_router(logs_router)


@app.get("/health")
def health():
    return {"status": "healthy"}
