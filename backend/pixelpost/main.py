from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from pixelpost.config import settings
from pixelpost.events import build_broker
from pixelpost.logging_setup import configure_logging
from pixelpost.routes.system import router as system_router
from pixelpost.routes.contests import router as contests_router
from pixelpost.routes.admin import router as admin_router
from pixelpost.services.errors import ContestError
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    app.state.broker = build_broker()
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha, broker=settings.event_broker)
    yield
    # Shutdown
    await app.state.broker.close()
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for timed image contests with peer voting",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(system_router)
app.include_router(contests_router)
app.include_router(admin_router)

def _fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})

@app.exception_handler(ContestError)
async def contest_error_handler(request: Request, exc: ContestError):
    log.info("request.rejected", path=request.url.path, status=exc.status_code, reason=exc.message)
    return _fail(exc.status_code, exc.message)

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _fail(exc.status_code, str(exc.detail))

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg')}" if where else str(first.get("msg", "Invalid request"))
    return _fail(400, message)

@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    log.exception("request.store_error", path=request.url.path)
    return _fail(500, "Internal server error")

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("request.unhandled_error", path=request.url.path)
    return _fail(500, "Internal server error")

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    structlog.contextvars.clear_contextvars()
    return response
