import logging
import smtplib
from email.mime.text import MIMEText

from sitechat.core import config

logger = logging.getLogger(__name__)


def mail_enabled() -> bool:
    return bool(
        config.SMTP_HOST and config.SMTP_USER and config.SMTP_PASS
        and config.MAIL_FROM and config.MAIL_TO
    )


def send_chat_lead_notification(chat_id: str, name: str, email: str, phone: str, source_page: str = None) -> bool:
    """
    Tell the team that a visitor finished the chat onboarding.

    Best effort: runs as a background task, every failure is logged and
    swallowed so it can never affect the chat itself.
    """
    if not mail_enabled():
        logger.debug("Mail not configured, skipping lead notification for chat %s", chat_id)
        return False

    body = "\n".join([
        "Neuer Chat-Kontakt eingegangen.",
        "",
        f"Name: {name or '-'}",
        f"E-Mail: {email or '-'}",
        f"Telefon: {phone or '-'}",
        f"Quelle: {source_page or '-'}",
        f"Chat-ID: {chat_id}",
    ])

    msg = MIMEText(body, "plain", "utf-8")
    msg["Subject"] = "[Chat] Neuer Kontakt"
    msg["From"] = config.MAIL_FROM
    msg["To"] = config.MAIL_TO
    if email:
        msg["Reply-To"] = email

    try:
        if config.SMTP_PORT == 465:
            server = smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT, timeout=10)
        else:
            server = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=10)
            server.starttls()
        with server:
            server.login(config.SMTP_USER, config.SMTP_PASS)
            server.sendmail(config.MAIL_FROM, [config.MAIL_TO], msg.as_string())
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Lead notification for chat %s failed: %s", chat_id, exc)
        return False

    logger.info("Lead notification for chat %s sent to %s", chat_id, config.MAIL_TO)
    return True
