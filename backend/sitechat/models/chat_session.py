import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import relationship

from sitechat.chatbot.states import INTRO
from sitechat.core.constants import STATUS_OPEN
from sitechat.database.base import Base


def new_chat_id() -> str:
    return str(uuid.uuid4())


class ChatSession(Base):
    __tablename__ = "chat_sessions"

    id = Column(String(36), primary_key=True, default=new_chat_id)
    visitor_name = Column(String(255), nullable=True)
    visitor_email = Column(String(255), nullable=True, index=True)
    visitor_phone = Column(String(50), nullable=True)
    token_digest = Column(String(64), nullable=False)
    source_page = Column(Text, nullable=True)
    onboarding_step = Column(String(20), nullable=False, default=INTRO)
    status = Column(String(20), nullable=False, default=STATUS_OPEN, index=True)

    last_message_at = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    messages = relationship(
        "ChatMessage",
        back_populates="chat",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChatMessage.id",
    )
