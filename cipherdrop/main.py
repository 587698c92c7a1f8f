import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from cipherdrop.config import settings
from cipherdrop.database import Database
from cipherdrop.errors import (
    AccessDenied,
    AuthenticationError,
    CipherDropError,
    ConflictError,
    NotFoundError,
    ValidationFailure,
)
from cipherdrop.routers.auth import router as auth_router
from cipherdrop.routers.files import router as files_router
from cipherdrop.routers.users import router as users_router
from cipherdrop.security import PasswordHasher
from cipherdrop.services.access import AccessEvaluator
from cipherdrop.services.gateway import StorageGateway

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = [
    (NotFoundError, 404),
    (ConflictError, 409),
    (ValidationFailure, 400),
    (AuthenticationError, 401),
    (AccessDenied, 401),
]


def fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "fail", "message": message})


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{field}: {error.get('msg')}" if field else error.get("msg", ""))
    return "; ".join(messages) or "Invalid request"


def create_app(database: Database | None = None, hasher: PasswordHasher | None = None) -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = database is None
        db = Database(settings.DATABASE_URL) if owned else database
        gateway = StorageGateway(db)
        app.state.database = db
        app.state.gateway = gateway
        app.state.hasher = hasher or PasswordHasher()
        app.state.evaluator = AccessEvaluator(gateway, app.state.hasher)
        logger.info("CipherDrop API started")
        try:
            yield
        finally:
            if owned:
                db.close()

    app = FastAPI(title="CipherDrop API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(files_router)

    @app.exception_handler(CipherDropError)
    async def cipherdrop_error_handler(request: Request, exc: CipherDropError):
        for error_type, status_code in STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                return fail(status_code, exc.message)
        logger.error("Unhandled storage failure on %s: %s", request.url.path, exc)
        return fail(500, exc.message)

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Store failure on %s: %s", request.url.path, exc)
        return fail(500, "Internal storage error")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return fail(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return fail(400, _validation_message(exc))

    @app.get("/")
    def read_root():
        return {"status": "success", "message": "CipherDrop API is running"}

    return app


app = create_app()
