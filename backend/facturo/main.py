# Facturo backend entrypoint: FastAPI app, routers and error envelope.

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.facturo.api import contacts
from backend.facturo.api import invoices
from backend.facturo.api import login
from backend.facturo.api import payments
from backend.facturo.api import settings as settings_api
from backend.facturo.api import stock
from backend.facturo.api import users
from backend.facturo.core.dev_seed import ensure_default_dev_admin
from backend.facturo.core.logging import configure_logging
from backend.facturo.core.settings import get_settings
from backend.facturo.db.base import Base
from backend.facturo.db.session import SessionLocal, engine
from backend.facturo.dependencies.auth import clear_auth_cookies
from backend.facturo.schemas.common import ErrorResponse, FieldError

configure_logging()
logger = logging.getLogger(__name__)

settings = get_settings()
app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(login.router)
app.include_router(contacts.router)
app.include_router(invoices.router)
app.include_router(payments.router)
app.include_router(settings_api.router)
app.include_router(stock.router)
app.include_router(users.router)


def _error(message: str, fields=None) -> dict:
    return ErrorResponse(error=message, fields=fields).model_dump(exclude_none=True)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = JSONResponse(status_code=exc.status_code, content=_error(str(exc.detail)), headers=exc.headers)
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        clear_auth_cookies(response)
    return response


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = [FieldError(field=_field_name(error.get("loc", ())), message=error.get("msg", "")) for error in exc.errors()]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error("Validation failed", fields))


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error("Database error"))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error("Internal server error"))


@app.get("/")
def read_root():
    return {"app": "Facturo backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def init_database():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_default_dev_admin(db)
    finally:
        db.close()
