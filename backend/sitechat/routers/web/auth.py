import logging

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from sitechat.auth.csrf import validate_csrf
from sitechat.auth.dependencies import admin_only, get_optional_admin
from sitechat.core.config import COOKIE_SECURE
from sitechat.core.security import (
    ACCESS_TOKEN_EXPIRE,
    REMEMBER_ME_EXPIRE,
    admin_login_configured,
    create_access_token,
    verify_admin_credentials,
)
from sitechat.core.templates import templates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def render_login(request: Request, *, error=None, username="", remember_login=True, status_code=200):
    return templates.TemplateResponse(
        request,
        "auth/login.html",
        {
            "error": error,
            "submitted_username": username,
            "remember_login": remember_login,
        },
        status_code=status_code
    )


# ------------------------
# Login Page
# ------------------------
@router.get("/login", response_class=HTMLResponse, name="login_page")
def login_page(request: Request):
    if get_optional_admin(request):
        return RedirectResponse(request.url_for("chat_list"), status_code=status.HTTP_302_FOUND)
    return render_login(request)


# ------------------------
# Login Submit
# ------------------------
@router.post(
    "/login",
    response_class=HTMLResponse,
    name="login_submit",
    dependencies=[Depends(validate_csrf)],
)
def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    remember_login: str = Form(None),
):
    username = username.strip()
    remember = remember_login == "1"

    if not admin_login_configured():
        return render_login(
            request,
            error="Admin Login ist nicht konfiguriert.",
            username=username,
            remember_login=remember,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )

    if not verify_admin_credentials(username, password):
        logger.warning("Failed admin login for %s", username or "-")
        return render_login(
            request,
            error="Ungültige Zugangsdaten.",
            username=username,
            remember_login=remember,
            status_code=status.HTTP_401_UNAUTHORIZED
        )

    expires = REMEMBER_ME_EXPIRE if remember else ACCESS_TOKEN_EXPIRE
    token = create_access_token({"sub": username, "role": "admin"}, expires)

    response = RedirectResponse(
        url=request.url_for("chat_list"),
        status_code=status.HTTP_302_FOUND
    )
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        samesite="lax",
        secure=COOKIE_SECURE,
        max_age=int(expires.total_seconds()),
    )

    logger.info("Admin %s logged in", username)
    return response


@router.post("/logout", name="logout", dependencies=[Depends(validate_csrf)])
def logout(request: Request, _=Depends(admin_only)):
    response = RedirectResponse(
        url=request.url_for("login_page"),
        status_code=status.HTTP_302_FOUND
    )
    response.delete_cookie("access_token", path="/")
    return response
