import hashlib
import hmac
import secrets
from datetime import datetime, timedelta

from jose import jwt

from sitechat.core.config import SECRET_KEY, ALGORITHM, ADMIN_USERNAME, ADMIN_PASSWORD

ACCESS_TOKEN_EXPIRE = timedelta(hours=8)
REMEMBER_ME_EXPIRE = timedelta(days=30)


# ------------------------
# Chat access tokens
# ------------------------
def hash_chat_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_chat_token():
    """
    Create a fresh visitor token.

    Returns (raw_token, digest). Only the digest may be persisted, the raw
    token goes back to the visitor once and is never stored or logged.
    """
    token = secrets.token_hex(32)
    return token, hash_chat_token(token)


def verify_chat_token(token: str, digest: str) -> bool:
    if not token or not digest:
        return False
    return hmac.compare_digest(hash_chat_token(token), digest)


# ------------------------
# Admin session
# ------------------------
def verify_admin_credentials(username: str, password: str) -> bool:
    if not ADMIN_USERNAME or not ADMIN_PASSWORD:
        return False
    username_ok = hmac.compare_digest((username or "").strip().encode("utf-8"), ADMIN_USERNAME.encode("utf-8"))
    password_ok = hmac.compare_digest((password or "").encode("utf-8"), ADMIN_PASSWORD.encode("utf-8"))
    return username_ok and password_ok


def create_access_token(data: dict, expires_delta: timedelta = ACCESS_TOKEN_EXPIRE) -> str:
    to_encode = data.copy()
    to_encode["exp"] = datetime.utcnow() + expires_delta
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])


def admin_login_configured() -> bool:
    return bool(ADMIN_USERNAME and ADMIN_PASSWORD)
