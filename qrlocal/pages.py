"""Browser pages for adding and browsing redirects.

Pages are Jinja2 templates under ``qrlocal/templates`` with autoescaping on,
so destinations are always rendered escaped.

Routes:
    GET /human/add:     form posting to /api/add
    GET /human/browse:  table of all redirects with QR previews
"""

import os

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from qrlocal.dependencies import RequestContext, get_redirect_service, get_request_context
from qrlocal.schemas import AddResponse, RedirectOut
from qrlocal.service import RedirectService

__all__ = ["router", "templates", "render_created_page"]

router = APIRouter(prefix="/human", tags=["pages"])

template_dir = os.path.join(os.path.dirname(__file__), "templates")
templates = Jinja2Templates(directory=template_dir)


def render_created_page(request: Request, payload: AddResponse) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "created.html",
        {"title": "Redirect Created", "payload": payload},
        status_code=201,
    )


@router.get("/add", response_class=HTMLResponse)
async def add_page(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "add.html",
        {"title": "Add Redirect", "max_length": ctx.settings.MAX_ID_LENGTH},
    )


@router.get("/browse", response_class=HTMLResponse)
async def browse_page(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: RedirectService = Depends(get_redirect_service),
) -> HTMLResponse:
    records = await service.list_all()
    redirects = [RedirectOut.from_record(record, ctx.settings) for record in records]
    return templates.TemplateResponse(
        request,
        "browse.html",
        {"title": "Browse Redirects", "redirects": redirects},
    )
