"""FastAPI application entry point for the QR Local redirect service.

Application Lifecycle Diagram
=============================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ create_app() │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ Instrument + │
    │ /api/metrics │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ Include API, │
    │ pages, then  │
    │ /{id} last   │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ lifespan()   │
    │ startup:     │
    │ manager.     │
    │ initialize() │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ Serve HTTP   │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ lifespan()   │
    │ shutdown:    │
    │ cleanup()    │
    └──────────────┘

How to Use
===========
**Step 1: Run with the CLI**::
    qrlocal 7 -e Q

**Step 2: Or with uvicorn directly**::
    uvicorn qrlocal.main:app --host 0.0.0.0 --port 3000

**Step 3: Make API calls**::
    curl -X POST http://localhost:3000/api/add \
         -H "Content-Type: application/json" \
         -d '{"url": "https://example.com", "key": "EXAMPLE"}'

Key Behaviours
===============
- Every fixed route lives under /api, /qr, /download or /human so that no
  single-segment path shadows a valid identifier; /{id} is registered last.
- RedirectError subclasses are rendered as ``{success, error, kind}``.
- OpenAPI docs are served at /api/docs.
"""

__all__ = ["app", "create_app"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from qrlocal import pages
from qrlocal.config import Settings, get_settings
from qrlocal.dependencies import _service_manager
from qrlocal.errors import RedirectError
from qrlocal.routes import redirect_router, router


async def redirect_error_handler(request: Request, exc: RedirectError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # Startup
        await _service_manager.initialize(settings)
        yield
        # Shutdown
        await _service_manager.cleanup()

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Local-network URL shortener with QR codes",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url=None,
        openapi_url="/api/openapi.json",
    )

    app.add_exception_handler(RedirectError, redirect_error_handler)

    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_respect_env_var=False,
    ).instrument(app).expose(app, endpoint="/api/metrics", include_in_schema=False)

    app.include_router(router)
    app.include_router(pages.router)
    app.include_router(redirect_router)
    return app


app = create_app()
