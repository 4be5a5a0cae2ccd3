from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from tortoise.contrib.fastapi import RegisterTortoise

from booking_service import settings
from booking_service.deps import close_http_clients
from booking_service.errors import BookingError, InternalError, InvalidRequest
from booking_service.log import setup_logging
from booking_service.routers.booking import router as booking_router
from booking_service.schemas import HealthResponse

MODELS = ["booking_service.models"]


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _error_response(exc: BookingError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("{} {} failed: {}", request.method, request.url.path, exc.message)
    else:
        logger.info("{} {} rejected: {}", request.method, request.url.path, exc.message)
    return _error_response(exc)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Integer loc parts are list indexes or JSON decode offsets, not field names
    fields = sorted(
        {
            ".".join(
                p
                for p in err["loc"]
                if isinstance(p, str) and p not in ("body", "query")
            )
            for err in exc.errors()
        }
        - {""}
    )
    if fields:
        message = f"Invalid or missing fields: {', '.join(fields)}"
    else:
        message = "Invalid request body"
    logger.info("{} {} rejected: {}", request.method, request.url.path, message)
    return _error_response(InvalidRequest(message))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(
        "Unhandled error on {} {}", request.method, request.url.path
    )
    return _error_response(InternalError("Internal server error"))


EXCEPTION_HANDLERS = {
    BookingError: booking_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: unhandled_error_handler,
}


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(
    db_url: str | None = None,
    generate_schemas: bool | None = None,
) -> FastAPI:
    """
    Build the service. The database connection is opened once in the lifespan
    and closed on shutdown, along with the shared inventory HTTP client.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.LOG_LEVEL)
        async with RegisterTortoise(
            app,
            db_url=db_url or settings.db_url,
            modules={"models": MODELS},
            generate_schemas=(
                settings.generate_schemas if generate_schemas is None else generate_schemas
            ),
        ):
            logger.info("booking-service ready (inventory at {})", settings.ticket_service_url)
            yield
            await close_http_clients()
        logger.info("booking-service stopped")

    app = FastAPI(title="booking-service", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)  # type: ignore[arg-type]

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse()

    app.include_router(booking_router, prefix="/api")
    return app


app = create_app()
