# Chat status
STATUS_OPEN = "open"
STATUS_PENDING = "pending"
STATUS_CLOSED = "closed"

CHAT_STATUSES = [
    (STATUS_OPEN, "Offen"),
    (STATUS_PENDING, "Wartet auf Besucher"),
    (STATUS_CLOSED, "Geschlossen"),
]

SENDER_VISITOR = "visitor"
SENDER_ADMIN = "admin"

VISITOR_LABEL = "Besucher"
SUPPORT_LABEL = "Support"

# Uploads
MAX_FILES_PER_MESSAGE = 3
MAX_FILE_SIZE = 10 * 1024 * 1024

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".pdf", ".doc", ".docx", ".txt"}

ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
}
