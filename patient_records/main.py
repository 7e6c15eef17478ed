import logging
import traceback
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from patient_records.api.dependencies import get_db
from patient_records.api.v1 import router as api_router
from patient_records.config.config import settings
from patient_records.core.authorization import AuthorizationGate
from patient_records.core.errors import INTERNAL_ERROR_MESSAGE, ErrorKind, ServiceError
from patient_records.core.identity_provider import IdentityProviderClient
from patient_records.core.security import TokenVerifier
from patient_records.core.utils import configure_logging
from patient_records.core.validation import RequestValidator
from patient_records.db.session import engine

logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup & Shutdown lifespan events."""
    # -------- STARTUP --------
    logger.info("Starting Patient Records API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    identity_client = IdentityProviderClient(
        base_url=settings.IDENTITY_PROVIDER_URL,
        secret_key=settings.IDENTITY_PROVIDER_SECRET_KEY,
        timeout_seconds=settings.IDENTITY_PROVIDER_TIMEOUT_SECONDS,
    )
    app.state.validator = RequestValidator()
    app.state.authorizer = AuthorizationGate(identity_client)
    app.state.token_verifier = TokenVerifier.from_settings()

    # Test database connection
    try:
        async with engine.begin() as conn:
            await conn.run_sync(lambda _: None)

        logger.info("Database connection established successfully.")

    except Exception as e:
        logger.error(f"Startup initialization failed: {e}")
        logger.error(traceback.format_exc())
        logger.error("Application may not function correctly")

    logger.info("Application startup complete")

    yield

    # -------- SHUTDOWN --------
    logger.info("Shutting down application...")

    await identity_client.aclose()
    logger.info("Identity provider client closed")

    # Dispose database engine
    await engine.dispose()
    logger.info("Database engine disposed")
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    configure_logging(settings.effective_log_level)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # ---------------------- EXCEPTION HANDLERS ----------------------
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.kind is ErrorKind.INTERNAL:
            logger.error(f"Internal service error on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # Malformed bodies and non-numeric path ids are client errors
        messages = []
        for err in exc.errors():
            location = ".".join(str(part) for part in err.get("loc", ()))
            messages.append(f"{location}: {err.get('msg')}")
        return JSONResponse(
            status_code=400,
            content={"error": "invalid request: " + "; ".join(messages)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        logger.error(f"Unhandled Error: {trace}")

        return JSONResponse(
            status_code=500,
            content={"error": INTERNAL_ERROR_MESSAGE},
        )

    # ---------------------- HTTPS REDIRECT ----------------------
    @app.middleware("http")
    async def https_redirect(request: Request, call_next):
        if settings.is_production:
            if request.headers.get("x-forwarded-proto") == "http":
                return RedirectResponse(str(request.url.replace(scheme="https")))
        return await call_next(request)

    # ---------------------- CORS ----------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000, compresslevel=6)

    # ---------------------- ROUTES ----------------------
    app.include_router(api_router, prefix=settings.API_PREFIX)

    # ---------------------- HEALTH CHECK ----------------------
    @app.get("/health")
    async def health_check(db: AsyncSession = Depends(get_db)):
        try:
            await db.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "environment": settings.ENVIRONMENT,
                "database": "connected",
            }
        except Exception as e:
            logger.error(f"Health check failed: {e}", exc_info=True)
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "database": "disconnected",
                    "error": INTERNAL_ERROR_MESSAGE,
                }
            )

    @app.get("/")
    async def root():
        return {
            "name": settings.PROJECT_NAME,
            "environment": settings.ENVIRONMENT,
            "version": settings.VERSION,
        }

    return app


app = create_app()
