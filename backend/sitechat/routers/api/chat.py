import logging
import os
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from sitechat.auth.csrf import validate_csrf
from sitechat.auth.dependencies import visitor_chat, readable_attachment
from sitechat.core.exceptions import AttachmentNotFound
from sitechat.database.session import get_db, require_db
from sitechat.models import ChatSession, ChatAttachment
from sitechat.schemas.chat import ChatStartOut, ChatMessagesOut
from sitechat.services import chat_service, upload_service
from sitechat.services.email_service import send_chat_lead_notification
from sitechat.utils.rate_limit import limit_chat_start, limit_chat_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Chat"], dependencies=[Depends(require_db)])


# -------------------------------
# Start a chat
# -------------------------------
@router.post(
    "/chat/start",
    status_code=status.HTTP_201_CREATED,
    response_model=ChatStartOut,
    dependencies=[Depends(limit_chat_start), Depends(validate_csrf)],
)
def start_chat(
    source_page: Optional[str] = Form(None),
    db: Session = Depends(get_db)
):
    chat, raw_token = chat_service.create_chat(db, source_page)
    return {"chat_id": chat.id, "chat_token": raw_token, "chat": chat}


# -------------------------------
# Visitor messages
# -------------------------------
@router.get("/chat/{chat_id}/messages", response_model=ChatMessagesOut)
def get_messages(
    chat: ChatSession = Depends(visitor_chat),
    db: Session = Depends(get_db)
):
    return {"chat_id": chat.id, "messages": chat_service.list_messages(db, chat.id)}


@router.post(
    "/chat/{chat_id}/messages",
    status_code=status.HTTP_201_CREATED,
    response_model=ChatMessagesOut,
    dependencies=[Depends(limit_chat_message), Depends(validate_csrf)],
)
def send_message(
    background_tasks: BackgroundTasks,
    message: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    chat: ChatSession = Depends(visitor_chat),
    db: Session = Depends(get_db)
):
    chat, transition = chat_service.post_visitor_message(db, chat.id, message, files)

    if transition and transition.completed:
        background_tasks.add_task(
            send_chat_lead_notification,
            chat.id,
            chat.visitor_name,
            chat.visitor_email,
            chat.visitor_phone,
            chat.source_page,
        )

    return {"chat_id": chat.id, "messages": chat_service.list_messages(db, chat.id)}


# -------------------------------
# Attachment download
# -------------------------------
@router.get("/chat/files/{attachment_id}", name="chat_file")
def download_file(attachment: ChatAttachment = Depends(readable_attachment)):
    path = upload_service.absolute_path(attachment.storage_path)
    if not os.path.isfile(path):
        logger.warning("Attachment %s missing on disk", attachment.id)
        raise AttachmentNotFound()

    return FileResponse(
        path,
        media_type=attachment.mime_type,
        filename=attachment.original_name,
        content_disposition_type="inline",
    )
