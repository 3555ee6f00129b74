import logging
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .auth import protect_admin_route
from .database import Database, get_db
from .domain.admin.router import router as admin_router
from .domain.auth.router import router as auth_router
from .domain.bookings.router import router as bookings_router
from .domain.catalog.router import router as catalog_router
from .errors import AppError
from .models import Appointment, AppointmentRequest, Customer, RequestTimePreference, Service
from .rate_limiter import RateLimiter, create_redis_client, rate_limit_api
from .schemas import HealthResponse
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("passlib").setLevel(logging.ERROR)

HTTP_ERROR_CODES = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")

    owns_database = app.state.database is None
    if owns_database:
        app.state.database = Database(config.DATABASE_URL)
    if config.DB_CREATE_TABLES:
        try:
            app.state.database.create_all()
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create database tables: {e}")

    owns_rate_limiter = app.state.rate_limiter is None
    if owns_rate_limiter:
        if config.RATE_LIMIT_ENABLED:
            app.state.rate_limiter = RateLimiter(create_redis_client(config.REDIS_URL))
            if app.state.rate_limiter.ping():
                logger.info("Redis connection established")
            else:
                logger.warning("Redis unreachable - rate limited routes will answer 503")
        else:
            logger.warning("Rate limiting DISABLED - only use in development!")
            app.state.rate_limiter = RateLimiter(None, enabled=False)

    yield

    logger.info("Application shutting down...")
    if owns_rate_limiter:
        app.state.rate_limiter.close()
        app.state.rate_limiter = None
    if owns_database:
        app.state.database.dispose()
        app.state.database = None


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} - {exc.code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Cannot {request.method} {request.url.path}"
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message": str(message),
                "code": HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
                "message": error.get("msg", "Invalid value"),
            }
            for error in exc.errors()
        ]
        logger.warning(f"Validation error for {request.url.path}: {errors}")
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Invalid input data",
                "code": "VALIDATION_ERROR",
                "errors": errors,
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"{request.method} {request.url.path} - Unhandled error: {exc}", exc_info=exc)
        content = {"success": False, "message": "Internal server error", "code": "INTERNAL_ERROR"}
        if not config.IS_PRODUCTION:
            content["message"] = str(exc) or content["message"]
            content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return JSONResponse(status_code=500, content=content)


def _rows(db: Session, model, *order_by) -> list[dict]:
    columns = [column.name for column in model.__table__.columns]
    return [
        {name: getattr(row, name) for name in columns}
        for row in db.query(model).order_by(*order_by).all()
    ]


def build_api_router() -> APIRouter:
    api_router = APIRouter(prefix="/api", dependencies=[Depends(rate_limit_api)])

    @api_router.get("/health", response_model=HealthResponse, tags=["Operations"])
    def health(request: Request):
        database: Optional[Database] = request.app.state.database
        connected = database is not None and database.ping()
        return HealthResponse(
            status="OK",
            message="Hair by Rhi API is running",
            timestamp=datetime.now(timezone.utc),
            database="connected" if connected else "disconnected",
        )

    @api_router.get("/export", tags=["Operations"], dependencies=protect_admin_route())
    def export_data(request: Request, db: Session = Depends(get_db)):
        """Dump the booking tables as JSON"""
        data = {
            "services": _rows(db, Service, Service.id),
            "customers": _rows(db, Customer, Customer.id),
            "appointment_requests": _rows(db, AppointmentRequest, AppointmentRequest.id),
            "request_time_preferences": _rows(
                db,
                RequestTimePreference,
                RequestTimePreference.request_id,
                RequestTimePreference.priority,
            ),
            "appointments": _rows(db, Appointment, Appointment.id),
            "exported_at": datetime.now(timezone.utc),
            "database_info": {"dialect": request.app.state.database.dialect},
        }
        logger.info(
            f"📦 Exported {len(data['appointment_requests'])} requests "
            f"and {len(data['appointments'])} appointments"
        )
        return JSONResponse(content=jsonable_encoder(data))

    api_router.include_router(catalog_router)
    api_router.include_router(bookings_router)
    api_router.include_router(auth_router)
    api_router.include_router(admin_router)
    return api_router


def create_app(
    database: Optional[Database] = None, rate_limiter: Optional[RateLimiter] = None
) -> FastAPI:
    """
    Build the API application.

    A database handle or rate limiter passed in is used as-is and left open
    at shutdown; anything missing is created from config by the lifespan.
    """
    app = FastAPI(title="Hair by Rhi API", version="1.0.0", lifespan=lifespan)
    app.state.database = database
    app.state.rate_limiter = rate_limiter

    register_exception_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
            raise
        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} ({duration_ms:.0f}ms)"
        )
        return response

    if config.SECURITY_HEADERS_ENABLED:
        app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/docs", "/openapi.json"])
        logger.info("Security headers enabled")
    else:
        logger.warning("Security headers DISABLED - only use in development!")

    logger.info(f"CORS allowed origins: {config.ALLOWED_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.include_router(build_api_router())
    return app


app = create_app()
