from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from jose import JWTError
from sqlalchemy.orm import Session

from sitechat.core.exceptions import Unauthorized
from sitechat.core.security import decode_access_token, verify_chat_token
from sitechat.database.session import get_db
from sitechat.models import ChatSession, ChatAttachment
from sitechat.services import chat_service

CHAT_TOKEN_HEADER = "X-Chat-Token"
CHAT_TOKEN_FIELD = "chat_token"


@dataclass
class AdminUser:
    username: str
    role: str = "admin"


def redirect_to_login(request: Request, message: str):
    response = RedirectResponse(
        url=request.url_for("login_page"),
        status_code=status.HTTP_302_FOUND
    )
    response.set_cookie("flash_error", message, max_age=5)
    return response


# ------------------------
# Admin (cookie JWT)
# ------------------------
def get_optional_admin(request: Request) -> Optional[AdminUser]:
    token = request.cookies.get("access_token")
    if not token:
        return None

    try:
        payload = decode_access_token(token)
    except JWTError:
        return None

    if payload.get("role") != "admin" or not payload.get("sub"):
        return None
    return AdminUser(username=payload["sub"])


def get_current_admin(request: Request) -> AdminUser:
    admin = get_optional_admin(request)
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return admin


def admin_only(current_admin: AdminUser = Depends(get_current_admin)) -> AdminUser:
    if current_admin.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access only"
        )
    return current_admin


# ------------------------
# Visitor (chat token)
# ------------------------
async def get_chat_token(request: Request) -> str:
    token = request.headers.get(CHAT_TOKEN_HEADER)
    if token:
        return token.strip()

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        token = form.get(CHAT_TOKEN_FIELD)
        if token:
            return str(token).strip()

    return (request.query_params.get(CHAT_TOKEN_FIELD) or "").strip()


def authorize_visitor(db: Session, chat_id, raw_token: str) -> ChatSession:
    """
    Resolve the chat a visitor token belongs to.

    A missing token fails before any lookup. The session is read fresh on
    every call; unknown chats raise ChatNotFound, a wrong token Unauthorized.
    """
    if not raw_token:
        raise Unauthorized()

    chat = chat_service.get_chat(db, chat_id)
    if not verify_chat_token(raw_token, chat.token_digest):
        raise Unauthorized()
    return chat


def authorize_admin_or_owner(db: Session, chat_id, is_admin: bool, raw_token: str) -> bool:
    if is_admin:
        return True
    authorize_visitor(db, chat_id, raw_token)
    return True


def visitor_chat(
    chat_id: str,
    raw_token: str = Depends(get_chat_token),
    db: Session = Depends(get_db),
) -> ChatSession:
    return authorize_visitor(db, chat_id, raw_token)


def readable_attachment(
    attachment_id: int,
    raw_token: str = Depends(get_chat_token),
    admin: Optional[AdminUser] = Depends(get_optional_admin),
    db: Session = Depends(get_db),
) -> ChatAttachment:
    attachment = chat_service.get_attachment(db, attachment_id)
    authorize_admin_or_owner(db, attachment.message.chat_id, admin is not None, raw_token)
    return attachment
