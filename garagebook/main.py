import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import all models to ensure they're registered with SQLAlchemy Base
from . import models, models_sms  # noqa: F401
from .database import Base, engine
from .domain.appointments.router import router as appointments_router
from .domain.catalog.router import router as catalog_router
from .domain.customers.router import router as customers_router
from .domain.staff.router import router as staff_router
from .services.notification_scheduler import NotificationScheduler, ThreadPoolDispatcher
from .services.sms_delivery import SmsDelivery
from .shared.errors import BookingError, TransientStoreError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

# Seconds clients should wait before retrying a transient storage failure
RETRY_AFTER_SECONDS = os.getenv("RETRY_AFTER_SECONDS", "1")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    dispatcher = ThreadPoolDispatcher(SmsDelivery())
    app.state.notification_scheduler = NotificationScheduler(dispatcher)

    yield

    logger.info("Application shutting down...")
    dispatcher.shutdown(wait=True)


app = FastAPI(title="GarageBook API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} - {exc.code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} - {exc.code}: {exc.message}")

    headers = None
    if isinstance(exc, TransientStoreError):
        headers = {"Retry-After": RETRY_AFTER_SECONDS}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"code": "request_validation_error", "detail": jsonable_encoder(exc.errors())},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(appointments_router)
app.include_router(customers_router)
app.include_router(catalog_router)
app.include_router(staff_router)


@app.get("/")
def root():
    return {"status": "ok", "service": "GarageBook API"}


@app.get("/health")
def health():
    return {"status": "healthy"}
