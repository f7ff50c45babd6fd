import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from sitechat.chatbot import replies
from sitechat.chatbot.handler import Transition, advance
from sitechat.chatbot.states import INTRO, DONE, ONBOARDING_STEPS
from sitechat.core.constants import (
    STATUS_OPEN,
    STATUS_PENDING,
    CHAT_STATUSES,
    SENDER_ADMIN,
    SENDER_VISITOR,
    VISITOR_LABEL,
    SUPPORT_LABEL,
    MAX_FILES_PER_MESSAGE,
)
from sitechat.core.exceptions import (
    ChatValidationError,
    ChatNotFound,
    AttachmentNotFound,
    StoreUnavailable,
    UploadRejected,
)
from sitechat.core.security import issue_chat_token
from sitechat.models import ChatSession, ChatMessage, ChatAttachment
from sitechat.services import upload_service
from sitechat.services.upload_service import StoredFile

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("visitor_name", "visitor_email", "visitor_phone")
ALLOWED_STATUSES = [value for value, _ in CHAT_STATUSES]
MAX_ATTEMPTS = 3


def parse_chat_id(chat_id) -> Optional[str]:
    try:
        return str(uuid.UUID(str(chat_id)))
    except (TypeError, ValueError, AttributeError):
        return None


# =================================================
# SESSIONS
# =================================================
def create_chat(db: Session, source_page: Optional[str] = None):
    """
    Open a new conversation and greet the visitor.

    Returns (chat, raw_token). The raw token is handed out exactly once.
    """
    raw_token, digest = issue_chat_token()

    chat = ChatSession(
        token_digest=digest,
        source_page=(source_page or "").strip() or None,
        onboarding_step=INTRO,
        status=STATUS_OPEN,
        last_message_at=datetime.utcnow(),
    )
    db.add(chat)
    db.flush()

    append_message(db, chat, SENDER_ADMIN, SUPPORT_LABEL, replies.greeting(), automated=True)
    db.commit()
    db.refresh(chat)

    logger.info("Chat %s started (source: %s)", chat.id, chat.source_page or "-")
    return chat, raw_token


def get_chat(db: Session, chat_id) -> ChatSession:
    parsed = parse_chat_id(chat_id)
    chat = None
    if parsed:
        chat = db.query(ChatSession).filter(ChatSession.id == parsed).first()
    if not chat:
        raise ChatNotFound()
    return chat


def lock_chat(db: Session, chat_id: str) -> ChatSession:
    chat = (
        db.query(ChatSession)
        .filter(ChatSession.id == chat_id)
        .with_for_update()
        .first()
    )
    if not chat:
        raise ChatNotFound()
    return chat


def update_onboarding(db: Session, chat_id: str, expected_step: str, step: str, field=None) -> bool:
    """
    Move a chat to `step` if it is still at `expected_step`.

    Single-row compare-and-set; returns False when another request already
    moved the step. Does not commit.
    """
    if step not in ONBOARDING_STEPS or expected_step not in ONBOARDING_STEPS:
        raise ValueError(f"Unknown onboarding step: {expected_step} -> {step}")
    if ONBOARDING_STEPS.index(step) - ONBOARDING_STEPS.index(expected_step) not in (0, 1):
        raise ValueError(f"Onboarding cannot move from {expected_step} to {step}")

    stamp = datetime.utcnow()
    values = {
        ChatSession.onboarding_step: step,
        ChatSession.last_message_at: stamp,
        ChatSession.updated_at: stamp,
        ChatSession.status: STATUS_OPEN,
    }
    if field:
        name, value = field
        if name not in CONTACT_FIELDS:
            raise ValueError(f"Not a contact field: {name}")
        values[getattr(ChatSession, name)] = value

    updated = (
        db.query(ChatSession)
        .filter(
            ChatSession.id == chat_id,
            ChatSession.onboarding_step == expected_step
        )
        .update(values, synchronize_session=False)
    )
    return updated == 1


def set_status(db: Session, chat_id, status: str) -> ChatSession:
    status = (status or "").strip()
    if status not in ALLOWED_STATUSES:
        raise ChatValidationError("Ungültiger Status.")

    chat = get_chat(db, chat_id)
    chat.status = status
    chat.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(chat)

    logger.info("Chat %s set to %s", chat.id, status)
    return chat


def delete_chats(db: Session, chat_ids: List[str]) -> int:
    ids = [parsed for parsed in (parse_chat_id(c) for c in chat_ids or []) if parsed]
    if not ids:
        return 0

    storage_paths = [
        row.storage_path
        for row in (
            db.query(ChatAttachment.storage_path)
            .join(ChatMessage, ChatAttachment.message_id == ChatMessage.id)
            .filter(ChatMessage.chat_id.in_(ids))
            .all()
        )
    ]

    chats = db.query(ChatSession).filter(ChatSession.id.in_(ids)).all()
    for chat in chats:
        db.delete(chat)
    db.commit()

    upload_service.remove_storage_paths(storage_paths)

    logger.info("Deleted %s chat(s) and %s attachment file(s)", len(chats), len(storage_paths))
    return len(chats)


def list_chats(db: Session, status: Optional[str] = None, q: Optional[str] = None):
    """Admin overview rows as (chat, last_message_body) tuples."""
    last_message = (
        db.query(ChatMessage.body)
        .filter(ChatMessage.chat_id == ChatSession.id)
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .limit(1)
        .correlate(ChatSession)
        .scalar_subquery()
    )

    query = db.query(ChatSession, last_message.label("last_message"))

    if status in ALLOWED_STATUSES:
        query = query.filter(ChatSession.status == status)

    q = (q or "").strip()
    if q:
        pattern = f"%{q}%"
        query = query.filter(
            or_(
                ChatSession.visitor_name.ilike(pattern),
                ChatSession.visitor_email.ilike(pattern),
                ChatSession.visitor_phone.ilike(pattern),
            )
        )

    return query.order_by(
        func.coalesce(ChatSession.last_message_at, ChatSession.updated_at).desc()
    ).all()


# =================================================
# LEDGER
# =================================================
def append_message(
    db: Session,
    chat: ChatSession,
    sender_type: str,
    sender_label: str,
    body: Optional[str] = None,
    stored_files: Optional[List[StoredFile]] = None,
    automated: bool = False,
) -> ChatMessage:
    """
    Add one message (and its attachments) to a chat. Does not commit.

    Automated support prompts leave the chat status alone; otherwise an
    admin message marks the chat pending and a visitor message reopens it.
    """
    body = (body or "").strip() or None
    stored_files = stored_files or []

    if not body and not stored_files:
        raise ChatValidationError()
    if len(stored_files) > MAX_FILES_PER_MESSAGE:
        raise UploadRejected("Maximal 3 Dateien pro Nachricht.")

    message = ChatMessage(
        chat_id=chat.id,
        sender_type=sender_type,
        sender_label=sender_label,
        body=body,
    )
    db.add(message)
    db.flush()

    for stored in stored_files:
        db.add(
            ChatAttachment(
                message_id=message.id,
                original_name=stored.original_name,
                mime_type=stored.mime_type,
                size_bytes=stored.size_bytes,
                storage_path=stored.storage_path,
            )
        )
    db.flush()

    stamp = datetime.utcnow()
    chat.last_message_at = stamp
    chat.updated_at = stamp
    if not automated:
        chat.status = STATUS_PENDING if sender_type == SENDER_ADMIN else STATUS_OPEN

    return message


def list_messages(db: Session, chat_id: str) -> List[ChatMessage]:
    return (
        db.query(ChatMessage)
        .options(selectinload(ChatMessage.attachments))
        .filter(ChatMessage.chat_id == chat_id)
        .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        .all()
    )


def get_attachment(db: Session, attachment_id: int) -> ChatAttachment:
    attachment = (
        db.query(ChatAttachment)
        .options(selectinload(ChatAttachment.message))
        .filter(ChatAttachment.id == attachment_id)
        .first()
    )
    if not attachment:
        raise AttachmentNotFound()
    return attachment


# =================================================
# VISITOR / ADMIN WRITES
# =================================================
def post_visitor_message(db: Session, chat_id: str, text: Optional[str], files=None):
    """
    Record a visitor message and run the onboarding dialogue on it.

    The visitor message, the step change and the support reply are written
    in one transaction on a locked chat row. If another request moved the
    step first, everything is rolled back and evaluated again against the
    new step. Returns (chat, transition); transition is None once the
    onboarding is done.
    """
    text = (text or "").strip()
    files = upload_service.selected_files(files)

    if not text and not files:
        raise ChatValidationError()
    if len(files) > MAX_FILES_PER_MESSAGE:
        raise UploadRejected("Maximal 3 Dateien pro Nachricht.")

    chat = get_chat(db, chat_id)
    if chat.onboarding_step != DONE and not text:
        raise ChatValidationError("Bitte zuerst die abgefragten Angaben als Text senden.")

    chat_key = chat.id
    stored = upload_service.save_uploads(files)
    try:
        for _ in range(MAX_ATTEMPTS):
            chat = lock_chat(db, chat_key)
            step = chat.onboarding_step

            append_message(db, chat, SENDER_VISITOR, VISITOR_LABEL, text, stored)

            transition: Optional[Transition] = None
            if step != DONE:
                transition = advance(step, text)
                if not update_onboarding(db, chat.id, step, transition.step, transition.field):
                    db.rollback()
                    logger.info("Chat %s changed step concurrently, re-evaluating", chat_key)
                    continue
                if transition.reply:
                    append_message(db, chat, SENDER_ADMIN, SUPPORT_LABEL, transition.reply, automated=True)

            db.commit()
            db.refresh(chat)

            if transition and transition.completed:
                logger.info("Chat %s completed onboarding", chat.id)
            return chat, transition

        raise StoreUnavailable("Chat ist gerade beschäftigt. Bitte erneut versuchen.")
    except BaseException:
        db.rollback()
        upload_service.remove_stored_files(stored)
        raise


def post_admin_message(db: Session, chat_id, text: Optional[str], files=None, sender_label: str = "admin") -> ChatMessage:
    text = (text or "").strip()
    files = upload_service.selected_files(files)

    if not text and not files:
        raise ChatValidationError()

    chat = get_chat(db, chat_id)

    stored = upload_service.save_uploads(files)
    try:
        message = append_message(db, chat, SENDER_ADMIN, sender_label or "admin", text, stored)
        db.commit()
    except BaseException:
        db.rollback()
        upload_service.remove_stored_files(stored)
        raise

    logger.info("Admin %s replied in chat %s", sender_label, chat.id)
    return message
