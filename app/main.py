import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.database_init import init_database_schema
from app.core.localization import localize_message, normalize_locale
from app.core.logging import configure_logging
from app.core.middleware import LocaleMiddleware
from app.core.storage import build_storage_service
from app.routers import get_api_router


def _request_locale(request: Request) -> str:
    locale = getattr(request.state, "locale", None)
    if locale:
        return locale
    return normalize_locale(request.headers.get("accept-language"), default=get_settings().DEFAULT_LOCALE)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    logger = logging.getLogger("app.errors")

    app = FastAPI(title=settings.PROJECT_NAME)
    app.state.storage = build_storage_service(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(LocaleMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.error("Validation error on %s %s detail=%s", request.method, request.url.path, errors)
        field = ".".join(str(part) for part in errors[0]["loc"][1:]) if errors else "request"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": localize_message(f"Invalid value for '{field}'", _request_locale(request))},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": localize_message("Internal server error", _request_locale(request))},
        )

    app.include_router(get_api_router(), prefix=settings.API_PREFIX)

    @app.on_event("startup")
    def startup_event():
        init_database_schema(settings.DATABASE_URL)

    return app


app = create_app()
