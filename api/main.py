"""
FastAPI application for Cinemesh.

Serves the public catalog API, account endpoints, the server-rendered
admin panel and the admin TMDb import endpoints.
"""

import time

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from api.dependencies import get_config
from api.exceptions import (
    AdminLoginRequired,
    AdminPageError,
    APIError,
    admin_login_required_handler,
    admin_page_error_handler,
    api_error_handler,
    validation_error_handler,
)
from api.logging_config import generate_request_id, logger, set_request_id
from api.routers import admin, admin_tmdb, auth, public, users
from cinemesh.config import Config, load_allowed_origins

app = FastAPI(
    title="Cinemesh API",
    description="Movie catalog API with admin panel and TMDb import",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_exception_handler(APIError, api_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(AdminPageError, admin_page_error_handler)
app.add_exception_handler(AdminLoginRequired, admin_login_required_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=load_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "Content-Type", "Authorization", "Accept"],
    expose_headers=["Content-Length"],
    max_age=12 * 3600,
)


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Log all HTTP requests with timing and response status."""
    request_id = generate_request_id()
    set_request_id(request_id)

    skip_paths = {"/health", "/api/docs", "/api/redoc", "/api/openapi.json"}
    if request.url.path in skip_paths:
        return await call_next(request)

    start_time = time.time()
    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"Request started: {request.method} {request.url.path} from {client_ip}")

    try:
        response = await call_next(request)
    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"Request failed: {request.method} {request.url.path} "
            f"duration={duration_ms:.2f}ms error={e}"
        )
        raise

    duration_ms = (time.time() - start_time) * 1000
    log_msg = (
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration_ms:.2f}ms"
    )
    if response.status_code >= 500:
        logger.error(log_msg)
    elif response.status_code >= 400:
        logger.warning(log_msg)
    else:
        logger.info(log_msg)

    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(public.router, prefix="/api/public", tags=["Public"])
app.include_router(auth.router, tags=["Auth"])
app.include_router(users.router, tags=["Users"])
app.include_router(admin.session_router, prefix="/admin", tags=["Admin"], include_in_schema=False)
app.include_router(admin_tmdb.router, prefix="/admin/tmdb", tags=["Admin TMDb"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"], include_in_schema=False)


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def root(request: Request, config: Config = Depends(get_config)):
    """API documentation page."""
    return public.render_api_docs(request, config)


@app.get("/health", include_in_schema=False)
async def health():
    """Simple health check endpoint."""
    return {"status": "ok"}
