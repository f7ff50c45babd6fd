from sitechat.models.chat_session import ChatSession
from sitechat.models.chat_message import ChatMessage
from sitechat.models.chat_attachment import ChatAttachment

__all__ = ["ChatSession", "ChatMessage", "ChatAttachment"]
