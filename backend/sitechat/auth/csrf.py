import hmac
import secrets

from fastapi import HTTPException, Request, status

from sitechat.core.config import COOKIE_SECURE

CSRF_COOKIE = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"
CSRF_FIELD = "_csrf"


async def csrf_cookie_middleware(request: Request, call_next):
    """Issue the double-submit cookie and expose it to templates."""
    token = request.cookies.get(CSRF_COOKIE)
    issued = False
    if not token:
        token = secrets.token_hex(32)
        issued = True
    request.state.csrf_token = token

    response = await call_next(request)

    if issued:
        response.set_cookie(
            CSRF_COOKIE,
            token,
            httponly=False,
            samesite="lax",
            secure=COOKIE_SECURE,
        )
    return response


async def validate_csrf(request: Request):
    expected = request.cookies.get(CSRF_COOKIE, "")
    submitted = request.headers.get(CSRF_HEADER, "")

    if not submitted:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
            form = await request.form()
            submitted = form.get(CSRF_FIELD) or ""

    if not expected or not submitted or not hmac.compare_digest(str(submitted).strip().encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Ungültiger CSRF Token. Bitte Seite neu laden."
        )
