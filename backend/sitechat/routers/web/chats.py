from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from sitechat.auth.csrf import validate_csrf
from sitechat.auth.dependencies import AdminUser, admin_only
from sitechat.chatbot.states import ONBOARDING_STEPS
from sitechat.core.constants import CHAT_STATUSES
from sitechat.core.templates import templates
from sitechat.database.session import get_db, require_db
from sitechat.services import chat_service
from sitechat.utils.flash import flash_redirect

router = APIRouter(
    prefix="/admin",
    tags=["Admin Chats"],
    dependencies=[Depends(require_db)],
)


@router.get("", name="admin_home")
def admin_home(request: Request):
    return RedirectResponse(request.url_for("chat_list"), status_code=status.HTTP_302_FOUND)


# =================================================
# LIST PAGE (HTML)
# =================================================
@router.get("/chats", response_class=HTMLResponse, name="chat_list")
def chat_list(
    request: Request,
    status: Optional[str] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    current_admin: AdminUser = Depends(admin_only)
):
    rows = chat_service.list_chats(db, status=status, q=q)

    return templates.TemplateResponse(
        request,
        "chats/list.html",
        {
            "current_admin": current_admin,
            "rows": rows,
            "statuses": CHAT_STATUSES,
            "filters": {"status": status or "", "q": q or ""},
        }
    )


# =================================================
# DETAIL PAGE (HTML)
# =================================================
@router.get("/chats/{chat_id}", response_class=HTMLResponse, name="chat_detail")
def chat_detail(
    chat_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: AdminUser = Depends(admin_only)
):
    chat = chat_service.get_chat(db, chat_id)

    return templates.TemplateResponse(
        request,
        "chats/detail.html",
        {
            "current_admin": current_admin,
            "chat": chat,
            "messages": chat_service.list_messages(db, chat.id),
            "statuses": CHAT_STATUSES,
            "steps": ONBOARDING_STEPS,
        }
    )


# =================================================
# MUTATIONS
# =================================================
@router.post(
    "/chats/delete-selected",
    name="chat_delete_selected",
    dependencies=[Depends(validate_csrf)],
)
def delete_selected(
    request: Request,
    ids: List[str] = Form([]),
    db: Session = Depends(get_db),
    _=Depends(admin_only)
):
    deleted = chat_service.delete_chats(db, ids)

    return flash_redirect(
        request.url_for("chat_list"),
        f"{deleted} Chat(s) gelöscht"
    )


@router.post(
    "/chats/{chat_id}/status",
    name="chat_status_update",
    dependencies=[Depends(validate_csrf)],
)
def update_status(
    chat_id: str,
    request: Request,
    status: str = Form(""),
    db: Session = Depends(get_db),
    _=Depends(admin_only)
):
    chat = chat_service.set_status(db, chat_id, status)

    return flash_redirect(
        request.url_for("chat_detail", chat_id=chat.id),
        "Status gespeichert"
    )


@router.post(
    "/chats/{chat_id}/messages",
    name="chat_reply",
    dependencies=[Depends(validate_csrf)],
)
def reply(
    chat_id: str,
    request: Request,
    message: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    current_admin: AdminUser = Depends(admin_only)
):
    sent = chat_service.post_admin_message(db, chat_id, message, files, current_admin.username)

    return flash_redirect(
        request.url_for("chat_detail", chat_id=sent.chat_id),
        "Nachricht gesendet"
    )
