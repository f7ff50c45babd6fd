from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class AttachmentOut(BaseModel):
    id: int
    original_name: str
    mime_type: str
    size_bytes: int
    created_at: datetime
    file_url: str

    class Config:
        from_attributes = True


class MessageOut(BaseModel):
    id: int
    sender_type: str
    sender_label: str
    body: Optional[str]
    created_at: datetime
    attachments: List[AttachmentOut] = []

    class Config:
        from_attributes = True


class ChatOut(BaseModel):
    id: str
    visitor_name: Optional[str]
    visitor_email: Optional[str]
    visitor_phone: Optional[str]
    source_page: Optional[str]
    onboarding_step: str
    status: str
    last_message_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ChatSummaryOut(ChatOut):
    last_message: Optional[str] = None


class ChatStartOut(BaseModel):
    chat_id: str
    chat_token: str
    chat: ChatOut


class ChatMessagesOut(BaseModel):
    chat_id: str
    messages: List[MessageOut]


class AdminChatOut(BaseModel):
    chat: ChatOut
    messages: List[MessageOut]


class AdminChatListOut(BaseModel):
    chats: List[ChatSummaryOut]


class ChatStatusUpdate(BaseModel):
    status: str = ""


class ChatStatusOut(BaseModel):
    id: str
    status: str
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
