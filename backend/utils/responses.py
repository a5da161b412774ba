"""
Action responses.

API clients get ``{"success": true, "message": ..., "data": ...}``. A browser
that asks for HTML gets a 303 back to the resource with the message in a
short-lived ``flash`` cookie instead.
"""
from typing import Any, Optional
from urllib.parse import quote

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse

FLASH_COOKIE = "flash"
FLASH_MAX_AGE = 60


def prefers_html(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    for part in accept.split(","):
        media_type = part.split(";")[0].strip().lower()
        if media_type == "text/html":
            return True
        if media_type in ("application/json", "*/*"):
            return False
    return False


def action_response(
    request: Request,
    message: str,
    data: Any = None,
    redirect_to: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
):
    if redirect_to and prefers_html(request):
        response = RedirectResponse(url=redirect_to, status_code=status.HTTP_303_SEE_OTHER)
        response.set_cookie(FLASH_COOKIE, quote(message), max_age=FLASH_MAX_AGE, httponly=True, samesite="lax")
        return response
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": True, "message": message, "data": data}),
    )


def error_body(message: str, errors: Optional[dict] = None) -> dict:
    body = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    return body
