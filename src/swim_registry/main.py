#!/usr/bin/env python3
"""Swim Registry - registrant management API and web frontend"""

from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from swim_registry.config import config
from swim_registry.logging_config import get_logger, setup_logging
from swim_registry.models.database import init_db
from swim_registry.routers.health import health
from swim_registry.routers.users import router as users_router
from swim_registry.services.errors import ValidationError

# Configure logging (INFO -> stdout, WARNING/ERROR -> stderr)
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create the schema and apply additive migrations before serving
    init_db()
    yield


app = FastAPI(
    title="Swim Registry",
    description="Registrant management API with search, filters and pagination",
    version="1.0.0",
    lifespan=lifespan,
)

cors_origins = [
    origin.strip() for origin in config["cors_origins"].split(",") if origin.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Content-Length",
        "Accept-Encoding",
        "X-CSRF-Token",
        "Authorization",
        "Accept",
        "Origin",
        "Cache-Control",
        "X-Requested-With",
    ],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Missing or malformed body fields and path parameters are client errors
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    logger.info(f"Rejected request to {request.url.path}: {messages}")
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"error": "; ".join(messages)},
    )


app.include_router(health)
app.include_router(users_router)

# Serve the web frontend when it is deployed alongside the API
static_dir = Path(config["static_dir"])
if (static_dir / "static").is_dir():
    app.mount("/static", StaticFiles(directory=static_dir / "static"), name="static")

if (static_dir / "index.html").is_file():

    @app.get("/", include_in_schema=False)
    async def index():
        return FileResponse(static_dir / "index.html")


if __name__ == "__main__":
    port = config.get("port")
    logger.info(f"Starting Swim Registry on 0.0.0.0:{port}")
    logger.info("API available at /api/users")
    logger.info("Health check available at /health")

    try:
        uvicorn.run(
            app, host="0.0.0.0", port=port, log_level=config["log_level"].lower()
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
