from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from sitechat.database.base import Base


class ChatAttachment(Base):
    __tablename__ = "chat_attachments"

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(
        Integer,
        ForeignKey("chat_messages.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(150), nullable=False)
    size_bytes = Column(Integer, nullable=False)
    # relative to UPLOAD_DIR
    storage_path = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    message = relationship("ChatMessage", back_populates="attachments")

    @property
    def file_url(self) -> str:
        return f"/api/chat/files/{self.id}"
