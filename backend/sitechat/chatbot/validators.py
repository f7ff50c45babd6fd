import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[+\d][\d\s\-()./]{5,}$", re.ASCII)
ASCII_DIGITS = "0123456789"


def valid_email(text):
    value = (text or "").strip().lower()
    return bool(EMAIL_RE.match(value))


def valid_phone(text):
    value = (text or "").strip()
    if not value:
        return False
    digits = sum(1 for ch in value if ch in ASCII_DIGITS)
    return digits >= 6 and bool(PHONE_RE.match(value))
