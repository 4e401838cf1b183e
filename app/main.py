import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import CORS_ORIGINS, DB_SCHEMA
from app.database import Base, engine
from app.integrity.errors import DomainError, MissingField, StoreError
from app.routes import auth, users_routes, categories_routes, themes_routes, contents_routes
from app.utils.logging import setup_logging, level_for_status

# 🔒 Rate limiting setup

from app.limiter import limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

setup_logging()
logger = logging.getLogger(__name__)
request_logger = logging.getLogger("request")

app = FastAPI(title="Content Hub API")

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"message": "Too many requests. Please slow down."}
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    content = {"message": exc.message}
    if isinstance(exc, MissingField):
        content["fields"] = exc.fields
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = []
    for err in exc.errors():
        name = ".".join(str(p) for p in err.get("loc", ())[1:]) or "body"
        if name not in fields:
            fields.append(name)
    logger.error("#%s# Invalid Params: %s", request.url.path, fields)
    return await domain_error_handler(request, MissingField(fields))


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    # Reads run outside atomic(); same treatment as failed writes
    logger.exception("#%s# DB return error -> %s", request.url.path, exc)
    return await domain_error_handler(request, StoreError("Error processing request"))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("#%s# Unexpected error -> %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# 📝 One access-log line per request, level follows the status class
@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    path = request.url.path
    if path not in ("/", "/favicon.ico"):
        client = request.client.host if request.client else "-"
        request_logger.log(
            level_for_status(response.status_code),
            '%s - "%s %s" %s',
            client, request.method, path, response.status_code,
        )
    return response


# ✅ Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ✅ Include your routers
app.include_router(auth.router, prefix="/users")
app.include_router(users_routes.router)
app.include_router(categories_routes.router)
app.include_router(themes_routes.router)
app.include_router(contents_routes.router)


@app.get("/")
async def index():
    return {"error": False}


# ✅ Run DB init on startup
@app.on_event("startup")
async def on_startup():
    # Tiny retry so a momentary DB disconnect doesn't crash the app.
    for attempt in range(2):
        try:
            async with engine.begin() as conn:
                if DB_SCHEMA:
                    await conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{DB_SCHEMA}";'))
                await conn.run_sync(Base.metadata.create_all)
            logger.info("DB Initialize successfully")
            break  # success
        except Exception as e:
            if attempt == 0:
                logger.warning("[startup] DB init failed, retrying once: %r", e)
                await asyncio.sleep(0.5)
            else:
                # Tables should already exist from previous runs.
                logger.error("[startup] Skipping DB init due to error: %r", e)
