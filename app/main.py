import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.audio.storage import get_cloudinary_storage
from app.db.connection import DatabaseConnection
from app.db.engine import engine
from app.errors import ClientInputError, SongServiceError, UpstreamError
from app.routers import health, songs
from app.schemas.errors import ErrorResponse, FieldIssue
from app.settings import settings
from app.songs.upload import MULTIPART_CONTENT_TYPE, UploadConstraints, check_declared_length

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # 1. Database handle; connect in the background and keep retrying
    database = DatabaseConnection(
        engine,
        retry_seconds=settings.db_connect_retry_seconds,
        ping_timeout_seconds=settings.db_ping_timeout_seconds,
    )
    database.start()
    app.state.database = database

    # 2. Object storage client
    app.state.storage = get_cloudinary_storage()
    logger.info("%s %s starting", settings.app_name, settings.app_version)

    yield

    # Shutdown: in-flight requests have drained by the time we get here
    await database.close()


def _error_response(
    status_code: int, body: ErrorResponse, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=body.model_dump(exclude_none=True), headers=headers
    )


def _details(detail: str | None) -> str | None:
    return None if settings.is_production else detail


def register_exception_handlers(application: FastAPI) -> None:
    @application.exception_handler(SongServiceError)
    async def song_error_handler(request: Request, exc: SongServiceError) -> JSONResponse:
        body = ErrorResponse(error=exc.message)
        if isinstance(exc, ClientInputError) and len(exc.issues) > 1:
            body.fields = [FieldIssue(field=i.field, message=i.message) for i in exc.issues]
        if isinstance(exc, UpstreamError):
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
            body.details = _details(exc.detail)
        return _error_response(exc.status_code, body)

    @application.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return _error_response(
            exc.status_code, ErrorResponse(error=str(exc.detail)), headers=exc.headers
        )

    @application.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = [
            FieldIssue(field=".".join(str(p) for p in err.get("loc", ())[1:]), message=err["msg"])
            for err in exc.errors()
        ]
        return _error_response(400, ErrorResponse(error="Invalid request", fields=fields or None))

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(
            500,
            ErrorResponse(error="Internal Server Error", details=_details(str(exc))),
        )


def register_upload_guard(application: FastAPI) -> None:
    @application.middleware("http")
    async def reject_oversized_uploads(request: Request, call_next):
        content_type = request.headers.get("content-type", "").lower()
        if request.method == "POST" and content_type.startswith(MULTIPART_CONTENT_TYPE):
            try:
                check_declared_length(request.headers.get("content-length"), UploadConstraints())
            except ClientInputError as exc:
                logger.info("Rejected upload on declared length: %s", exc.message)
                return _error_response(exc.status_code, ErrorResponse(error=exc.message))
        return await call_next(request)


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS must wrap the upload guard.
    register_upload_guard(application)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    application.include_router(health.router)
    application.include_router(songs.router, prefix="/api")

    register_exception_handlers(application)

    return application


app = create_app()
