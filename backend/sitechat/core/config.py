import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sitechat.db")

SECRET_KEY = os.getenv("SECRET_KEY", "change_me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "").strip()
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Mail
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "465"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
MAIL_FROM = os.getenv("MAIL_FROM") or SMTP_USER
MAIL_TO = os.getenv("MAIL_TO")

# Rate limits, per 15 minute window and client address
RATE_LIMIT_WINDOW_SECONDS = 15 * 60
CHAT_START_LIMIT = int(os.getenv("CHAT_START_LIMIT", "12"))
CHAT_MESSAGE_LIMIT = int(os.getenv("CHAT_MESSAGE_LIMIT", "60"))
