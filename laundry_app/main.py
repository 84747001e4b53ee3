import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import models to ensure they're registered with SQLAlchemy Base
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, LOG_LEVEL
from .database import Base, SessionLocal, engine
from .domain.bookings.router import router as bookings_router
from .domain.deliveries.router import router as delivery_router
from .domain.notifications.router import router as notifications_router
from .domain.payments.router import router as payments_router
from .realtime import RealtimeHub
from .routes.realtime import router as realtime_router
from .services.payment_service import PayMongoClient
from .services.push_service import FirebasePushProvider

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


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

    # Process-wide collaborators, injected into handlers from app.state
    app.state.session_factory = SessionLocal
    app.state.realtime = RealtimeHub()
    app.state.push_provider = FirebasePushProvider()
    app.state.payment_client = PayMongoClient()
    if not app.state.payment_client.is_configured():
        logger.warning("PayMongo keys not set; GCash payments will return 503")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Laundry Marketplace API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": exc.errors()})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    elapsed = (time.time() - start) * 1000
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({elapsed:.1f}ms)")
    return response


logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(bookings_router)
app.include_router(delivery_router)
app.include_router(notifications_router)
app.include_router(payments_router)
app.include_router(realtime_router)


@app.get("/")
def root():
    return {"message": "Laundry Marketplace API is running"}


@app.get("/health")
def health(request: Request):
    hub: RealtimeHub = request.app.state.realtime
    return {
        "status": "healthy",
        "realtime": {
            "connections": hub.rooms.connection_count,
            "online": len(hub.presence.online()),
        },
        "push": request.app.state.push_provider.is_available(),
    }
