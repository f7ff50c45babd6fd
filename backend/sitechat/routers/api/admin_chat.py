from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from sitechat.auth.csrf import validate_csrf
from sitechat.auth.dependencies import AdminUser, admin_only
from sitechat.database.session import get_db, require_db
from sitechat.schemas.chat import (
    AdminChatListOut,
    AdminChatOut,
    ChatMessagesOut,
    ChatOut,
    ChatStatusOut,
    ChatStatusUpdate,
    ChatSummaryOut,
)
from sitechat.services import chat_service

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin Chat"],
    dependencies=[Depends(require_db), Depends(admin_only)],
)


@router.get("/chats", response_model=AdminChatListOut)
def list_chats(
    status: Optional[str] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db)
):
    rows = chat_service.list_chats(db, status=status, q=q)
    chats = [
        ChatSummaryOut(
            **ChatOut.model_validate(chat).model_dump(),
            last_message=last_message
        )
        for chat, last_message in rows
    ]
    return {"chats": chats}


@router.get("/chats/{chat_id}", response_model=AdminChatOut)
def get_chat(chat_id: str, db: Session = Depends(get_db)):
    chat = chat_service.get_chat(db, chat_id)
    return {"chat": chat, "messages": chat_service.list_messages(db, chat.id)}


@router.post(
    "/chats/{chat_id}/messages",
    status_code=status.HTTP_201_CREATED,
    response_model=ChatMessagesOut,
    dependencies=[Depends(validate_csrf)],
)
def reply(
    chat_id: str,
    message: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    current_admin: AdminUser = Depends(admin_only)
):
    sent = chat_service.post_admin_message(db, chat_id, message, files, current_admin.username)
    return {"chat_id": sent.chat_id, "messages": chat_service.list_messages(db, sent.chat_id)}


@router.patch(
    "/chats/{chat_id}",
    dependencies=[Depends(validate_csrf)],
)
def update_status(
    chat_id: str,
    payload: ChatStatusUpdate,
    db: Session = Depends(get_db)
):
    chat = chat_service.set_status(db, chat_id, payload.status)
    return {"chat": ChatStatusOut.model_validate(chat)}
