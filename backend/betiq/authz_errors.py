# betiq/authz_errors.py
from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from betiq.config import get_settings
from betiq.gating import VIP_REQUIRED


def _wants_html(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    # browsers usually send text/html
    return "text/html" in accept


def _detail(exc: StarletteHTTPException) -> dict:
    detail = getattr(exc, "detail", None)
    return detail if isinstance(detail, dict) else {}


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    headers = getattr(exc, "headers", None)

    # Unauthenticated -> send to login page in browser
    if exc.status_code == 401:
        if _wants_html(request):
            return RedirectResponse(url=get_settings().login_url, status_code=303)
        return JSONResponse(status_code=401, content={"detail": exc.detail}, headers=headers)

    # Locked VIP content -> browsers go to the upgrade/settings page
    if exc.status_code == 403:
        detail = _detail(exc)
        if _wants_html(request) and detail.get("code") == VIP_REQUIRED:
            url = detail.get("upgrade_url") or get_settings().upgrade_url
            return RedirectResponse(url=url, status_code=303)
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    # Everything else: normal JSON
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)
