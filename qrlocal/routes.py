"""FastAPI route definitions for the QR Local redirect service.

API Endpoint Overview
=====================
::
    GET    /api/health
        └─ HealthResponse (200)

    POST   /api/add                  JSON or form {url, key?}
        ├─ AddResponse (201) or HTML confirmation (form posts)
        └─ 400 invalid_url / invalid_key_format, 409 duplicate_key,
           500 allocation_exhausted / store_failure

    GET    /api/check?url=
        └─ CheckResponse (200) or 400

    DELETE /api/delete/{id}
        └─ DeleteResponse (200) or 404

    GET    /api/redirects
        └─ list[RedirectOut] (200)

    GET    /qr/{id}/png              inline image, plain-text errors
    GET    /download/qr/{id}/{fmt}   attachment, JSON errors

    GET    /{id}                     (redirect_router, mounted last)
        └─ 307 Redirect or plain-text 404

Key Behaviours
===============
- Identifiers in paths are case-insensitive.
- Errors from the service layer are RedirectError subclasses; the app's
  exception handler turns them into ``{success, error, kind}`` bodies.
- The redirect and inline QR endpoints serve browsers directly and answer
  with plain text instead.
- The visit counter update runs as a background task after the redirect
  response has been sent.

Routes:
    router:  API, QR and health endpoints.
    redirect_router:  The catch-all ``/{id}`` redirect; include it last.
"""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from starlette.concurrency import run_in_threadpool

from qrlocal.dependencies import (
    RequestContext,
    ServiceManager,
    get_redirect_service,
    get_request_context,
    get_resolver,
    get_service_manager,
)
from qrlocal.enums import HealthStatus, QRFormat
from qrlocal.errors import InvalidURL, NotFound, QRRenderError, StoreFailure
from qrlocal.pages import render_created_page
from qrlocal.qr import QROptions, render
from qrlocal.resolver import RedirectResolver
from qrlocal.schemas import (
    AddResponse,
    CheckResponse,
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    RedirectOut,
)
from qrlocal.service import RedirectService

__all__ = ["router", "redirect_router"]

router = APIRouter()
redirect_router = APIRouter()

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


async def _read_add_body(request: Request) -> tuple[Any, Any, bool]:
    """Return ``(url, key, is_form)`` from a JSON or form-encoded body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError as exc:
            raise InvalidURL("URL is required") from exc
        if not isinstance(data, dict):
            raise InvalidURL("URL is required")
        return data.get("url"), data.get("key"), False
    form = await request.form()
    return form.get("url"), form.get("key"), True


@router.get("/api/health", response_model=HealthResponse, tags=["health"])
async def health_check(
    ctx: RequestContext = Depends(get_request_context),
    manager: ServiceManager = Depends(get_service_manager),
) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    try:
        await manager.store.ping()
    except StoreFailure:
        db_status = HealthStatus.UNHEALTHY

    if not manager.cache.enabled:
        cache_status = HealthStatus.DISABLED
    elif await manager.cache.ping():
        cache_status = HealthStatus.HEALTHY
    else:
        cache_status = HealthStatus.UNHEALTHY

    status = HealthStatus.HEALTHY
    if HealthStatus.UNHEALTHY in (db_status, cache_status):
        status = HealthStatus.UNHEALTHY
    ctx.logger.debug(f"Health check completed: {status.value}")
    return HealthResponse(status=status, database=db_status, cache=cache_status)


@router.post(
    "/api/add",
    response_model=AddResponse,
    status_code=201,
    responses=_ERROR_RESPONSES,
    tags=["redirects"],
)
async def add_redirect(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: RedirectService = Depends(get_redirect_service),
) -> Any:
    url, key, is_form = await _read_add_body(request)
    ctx.logger.info(f"Redirect creation requested: url={url!r} key={key!r}")

    record = await service.add(url, key)
    payload = AddResponse.from_record(record, ctx.settings)

    if is_form and "application/json" not in request.headers.get("accept", ""):
        return render_created_page(request, payload)
    return payload


@router.get(
    "/api/check",
    response_model=CheckResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    tags=["redirects"],
)
async def check_redirect(
    url: str | None = None,
    ctx: RequestContext = Depends(get_request_context),
    service: RedirectService = Depends(get_redirect_service),
) -> CheckResponse:
    if not url:
        raise InvalidURL("URL parameter is required")
    record = await service.check(url)
    if record is None:
        return CheckResponse.missing()
    return CheckResponse.from_record(record, ctx.settings)


@router.delete(
    "/api/delete/{raw_id}",
    response_model=DeleteResponse,
    responses=_ERROR_RESPONSES,
    tags=["redirects"],
)
async def delete_redirect(
    raw_id: str,
    service: RedirectService = Depends(get_redirect_service),
) -> DeleteResponse:
    record = await service.delete(raw_id)
    return DeleteResponse(deleted_id=record.id, deleted_url=record.destination)


@router.get("/api/redirects", response_model=list[RedirectOut], tags=["redirects"])
async def list_redirects(
    ctx: RequestContext = Depends(get_request_context),
    service: RedirectService = Depends(get_redirect_service),
) -> list[RedirectOut]:
    records = await service.list_all()
    return [RedirectOut.from_record(record, ctx.settings) for record in records]


@router.get("/qr/{raw_id}/png", tags=["qr"])
async def qr_inline(
    raw_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: RedirectService = Depends(get_redirect_service),
) -> Response:
    try:
        record = await service.get(raw_id)
    except NotFound as exc:
        return PlainTextResponse(exc.message, status_code=404)
    except StoreFailure as exc:
        return PlainTextResponse(exc.message, status_code=500)

    options = QROptions.from_settings(ctx.settings, QRFormat.PNG)
    try:
        image = await run_in_threadpool(render, service.short_url(record.id), options)
    except QRRenderError as exc:
        return PlainTextResponse(exc.message, status_code=500)

    return Response(
        content=image,
        media_type=QRFormat.PNG.media_type,
        headers={"Cache-Control": "public, max-age=86400"},
    )


@router.get("/download/qr/{raw_id}/{fmt}", responses=_ERROR_RESPONSES, tags=["qr"])
async def qr_download(
    raw_id: str,
    fmt: str,
    ctx: RequestContext = Depends(get_request_context),
    service: RedirectService = Depends(get_redirect_service),
) -> Response:
    try:
        qr_format = QRFormat(fmt.lower())
    except ValueError as exc:
        raise NotFound(f"Unsupported QR format: {fmt}") from exc

    record = await service.get(raw_id)
    options = QROptions.from_settings(ctx.settings, qr_format)
    image = await run_in_threadpool(render, service.short_url(record.id), options)

    return Response(
        content=image,
        media_type=qr_format.media_type,
        headers={"Content-Disposition": f'attachment; filename="qr-{record.id}.{qr_format.value}"'},
    )


@redirect_router.get("/{raw_id}", tags=["redirect"])
async def redirect_to_destination(
    raw_id: str,
    background_tasks: BackgroundTasks,
    ctx: RequestContext = Depends(get_request_context),
    resolver: RedirectResolver = Depends(get_resolver),
) -> Response:
    try:
        destination = await resolver.resolve(raw_id, background_tasks.add_task)
    except NotFound as exc:
        return PlainTextResponse(exc.message, status_code=404)
    except StoreFailure as exc:
        return PlainTextResponse(exc.message, status_code=500)

    ctx.logger.info(f"Redirect: {raw_id} -> {destination} ({ctx.get_duration():.1f}ms)")
    return RedirectResponse(url=destination, status_code=307)
